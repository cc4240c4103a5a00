[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "diagwatch"
version = "0.1.0"
description = "Parse Qualcomm diag logs and QMDL files, convert them to GSMTAP/pcapng, and provide building blocks for analysing cellular signalling"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "diag",
    "qmdl",
    "hdlc",
    "gsmtap",
    "pcapng",
    "lte",
    "nas",
    "cellular",
    "network-monitoring",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["diagwatch"]

[tool.hatch.build.targets.sdist]
include = ["diagwatch", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
