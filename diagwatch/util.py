"""Runtime information about this library and the system it runs on."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import asdict, dataclass

__all__ = ["VERSION", "RuntimeMetadata"]

VERSION = "0.1.0"


@dataclass(frozen=True)
class RuntimeMetadata:
    """Library version, operating system and CPU architecture."""

    version: str
    system_os: str
    arch: str

    @classmethod
    def current(cls) -> RuntimeMetadata:
        """Describe the running system from uname, falling back to platform data."""
        try:
            uts = os.uname()
        except AttributeError:
            return cls(
                version=VERSION,
                system_os=sys.platform,
                arch=platform.machine() or "unknown",
            )
        return cls(
            version=VERSION,
            system_os=f"{uts.sysname} {uts.release}",
            arch=uts.machine,
        )

    def to_dict(self) -> dict[str, str]:
        """A plain dictionary suitable for JSON serialization."""
        return asdict(self)