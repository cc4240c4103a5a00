"""Writing GSMTAP messages into pcapng files wrapped in IPv4/UDP headers."""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Optional

from .diag import Timestamp
from .gsmtap import GsmtapMessage
from .util import RuntimeMetadata

__all__ = ["GSMTAP_PORT", "GsmtapPcapWriter"]

_SECTION_HEADER_BLOCK = 0x0A0D0D0A
_INTERFACE_DESCRIPTION_BLOCK = 0x00000001
_ENHANCED_PACKET_BLOCK = 0x00000006
_BYTE_ORDER_MAGIC = 0x1A2B3C4D

_OPT_END = 0
_SHB_HARDWARE = 2
_SHB_OS = 3
_SHB_USERAPPL = 4

_LINKTYPE_IPV4 = 228
_SNAPLEN = 0xFFFF

IP_HEADER_LEN = 20
UDP_HEADER_LEN = 8
GSMTAP_PORT = 4729
_SRC_PORT = 13337
_LOCALHOST = 0x7F000001

_IP_HEADER = struct.Struct(">BBHHBBBBHII")
_UDP_HEADER = struct.Struct(">HHHH")

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _pad(data: bytes) -> bytes:
    return data + b"\x00" * (-len(data) % 4)


def _option(code: int, value: bytes) -> bytes:
    return struct.pack(">HH", code, len(value)) + _pad(value)


def _block(block_type: int, body: bytes) -> bytes:
    total = 12 + len(body)
    return struct.pack(">II", block_type, total) + body + struct.pack(">I", total)


class GsmtapPcapWriter:
    """Writes GSMTAP messages as big-endian pcapng packets.

    The section header is written on construction; call
    :meth:`write_iface_header` once before writing packets.
    """

    def __init__(self, writer: BinaryIO, metadata: Optional[RuntimeMetadata] = None) -> None:
        self._writer = writer
        self.ip_id = 0
        meta = metadata or RuntimeMetadata.current()
        options = (
            _option(_SHB_HARDWARE, meta.arch.encode())
            + _option(_SHB_OS, meta.system_os.encode())
            + _option(_SHB_USERAPPL, f"diagwatch {meta.version}".encode())
            + _option(_OPT_END, b"")
        )
        body = struct.pack(">IHHq", _BYTE_ORDER_MAGIC, 1, 0, -1) + options
        self._writer.write(_block(_SECTION_HEADER_BLOCK, body))

    def write_iface_header(self) -> None:
        """Write the IPv4 interface description block."""
        body = struct.pack(">HHI", _LINKTYPE_IPV4, 0, _SNAPLEN)
        self._writer.write(_block(_INTERFACE_DESCRIPTION_BLOCK, body))

    def write_gsmtap_message(self, msg: GsmtapMessage, timestamp: Timestamp) -> None:
        """Write ``msg`` as a UDP packet to the GSMTAP port at ``timestamp``."""
        delta = timestamp.to_datetime() - _UNIX_EPOCH
        if delta < timedelta(0):
            raise ValueError(f"Timestamp out of range: {timestamp.to_datetime()}")
        micros = delta // _MICROSECOND

        msg_bytes = msg.to_bytes()
        ip_header = _IP_HEADER.pack(
            0x45,
            0,
            (len(msg_bytes) + IP_HEADER_LEN + UDP_HEADER_LEN) & 0xFFFF,
            self.ip_id,
            0x40,
            0,
            64,
            0x11,
            0xFFFF,
            _LOCALHOST,
            _LOCALHOST,
        )
        udp_header = _UDP_HEADER.pack(
            _SRC_PORT,
            GSMTAP_PORT,
            (len(msg_bytes) + UDP_HEADER_LEN) & 0xFFFF,
            0xFFFF,
        )
        data = ip_header + udp_header + msg_bytes
        body = struct.pack(
            ">IIIII",
            0,
            (micros >> 32) & 0xFFFFFFFF,
            micros & 0xFFFFFFFF,
            len(data),
            len(data),
        ) + _pad(data)
        self._writer.write(_block(_ENHANCED_PACKET_BLOCK, body))
        self.ip_id = (self.ip_id + 1) & 0xFFFF