"""Diag requests: log configuration commands and the container they travel in."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from .diag import DATA_TYPE_USER_SPACE, LOG_CONFIG_OPCODE, RETRIEVE_ID_RANGES_SUBOPCODE, SET_MASK_SUBOPCODE

__all__ = [
    "RetrieveIdRangesRequest",
    "SetMaskRequest",
    "Request",
    "RequestContainer",
    "build_log_mask_request",
]


@dataclass(frozen=True)
class RetrieveIdRangesRequest:
    """Asks the device how many log codes each log type supports."""

    def to_bytes(self) -> bytes:
        return struct.pack("<II", LOG_CONFIG_OPCODE, RETRIEVE_ID_RANGES_SUBOPCODE)


@dataclass(frozen=True)
class SetMaskRequest:
    """Sets the log mask for one log type."""

    log_type: int
    log_mask_bitsize: int
    log_mask: bytes = b""

    def to_bytes(self) -> bytes:
        return struct.pack(
            "<IIII",
            LOG_CONFIG_OPCODE,
            SET_MASK_SUBOPCODE,
            self.log_type,
            self.log_mask_bitsize,
        ) + bytes(self.log_mask)


Request = Union[RetrieveIdRangesRequest, SetMaskRequest]


@dataclass
class RequestContainer:
    """Wraps an HDLC-encapsulated request for writing to the diag device."""

    hdlc_encapsulated_request: bytes
    data_type: int = DATA_TYPE_USER_SPACE
    use_mdm: bool = False
    mdm_field: int = field(default=-1)

    def to_bytes(self) -> bytes:
        out = struct.pack("<I", self.data_type)
        if self.use_mdm:
            out += struct.pack("<i", self.mdm_field)
        return out + bytes(self.hdlc_encapsulated_request)


def build_log_mask_request(
    log_type: int, log_mask_bitsize: int, accepted_log_codes: Iterable[int]
) -> SetMaskRequest:
    """Build a set-mask request enabling the accepted codes of ``log_type``."""
    accepted = frozenset(accepted_log_codes)
    base = log_type << 12
    mask = bytearray()
    for start in range(0, log_mask_bitsize, 8):
        width = min(8, log_mask_bitsize - start)
        mask.append(
            sum(1 << bit for bit in range(width) if (base | (start + bit)) in accepted)
        )
    return SetMaskRequest(log_type, log_mask_bitsize, bytes(mask))