"""Parse Qualcomm diag logs and QMDL files, convert them to GSMTAP/pcapng, and build analyzers over the parsed messages."""

__version__ = "0.1.0"