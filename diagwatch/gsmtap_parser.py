"""Conversion of diag log messages into GSMTAP messages."""

from __future__ import annotations

import logging
from typing import Optional

from . import log_codes as lc
from .diag import (
    LogBody,
    LogMessage,
    LteRrcOtaMessage,
    Message,
    Nas4GMessage,
    Nas4GMessageDirection,
    Timestamp,
)
from .gsmtap import GsmtapHeader, GsmtapKind, GsmtapMessage, GsmtapType, LteNasSubtype, LteRrcSubtype

__all__ = [
    "GsmtapParserError",
    "InvalidLteRrcOtaExtHeaderVersion",
    "InvalidLteRrcOtaHeaderPduNum",
    "parse",
    "log_to_gsmtap",
]

log = logging.getLogger(__name__)

_MAX_U16 = 0xFFFF

_L = LteRrcSubtype

_PDU_V0 = {
    lc.LTE_BCCH_BCH_V0: _L.BCCH_BCH,
    lc.LTE_BCCH_DL_SCH_V0: _L.BCCH_DL_SCH,
    lc.LTE_MCCH_V0: _L.MCCH,
    lc.LTE_PCCH_V0: _L.PCCH,
    lc.LTE_DL_CCCH_V0: _L.DL_CCCH,
    lc.LTE_DL_DCCH_V0: _L.DL_DCCH,
    lc.LTE_UL_CCCH_V0: _L.UL_CCCH,
    lc.LTE_UL_DCCH_V0: _L.UL_DCCH,
}

_PDU_V9 = {
    lc.LTE_BCCH_BCH_V9: _L.BCCH_BCH,
    lc.LTE_BCCH_DL_SCH_V9: _L.BCCH_DL_SCH,
    lc.LTE_MCCH_V9: _L.MCCH,
    lc.LTE_PCCH_V9: _L.PCCH,
    lc.LTE_DL_CCCH_V9: _L.DL_CCCH,
    lc.LTE_DL_DCCH_V9: _L.DL_DCCH,
    lc.LTE_UL_CCCH_V9: _L.UL_CCCH,
    lc.LTE_UL_DCCH_V9: _L.UL_DCCH,
}

_PDU_V14 = {
    lc.LTE_BCCH_BCH_V14: _L.BCCH_BCH,
    lc.LTE_BCCH_DL_SCH_V14: _L.BCCH_DL_SCH,
    lc.LTE_MCCH_V14: _L.MCCH,
    lc.LTE_PCCH_V14: _L.PCCH,
    lc.LTE_DL_CCCH_V14: _L.DL_CCCH,
    lc.LTE_DL_DCCH_V14: _L.DL_DCCH,
    lc.LTE_UL_CCCH_V14: _L.UL_CCCH,
    lc.LTE_UL_DCCH_V14: _L.UL_DCCH,
}

_PDU_V19 = {
    lc.LTE_BCCH_BCH_V19: _L.BCCH_BCH,
    lc.LTE_BCCH_DL_SCH_V19: _L.BCCH_DL_SCH,
    lc.LTE_MCCH_V19: _L.MCCH,
    lc.LTE_PCCH_V19: _L.PCCH,
    lc.LTE_DL_CCCH_V19: _L.DL_CCCH,
    lc.LTE_DL_DCCH_V19: _L.DL_DCCH,
    lc.LTE_UL_CCCH_V19: _L.UL_CCCH,
    lc.LTE_UL_DCCH_V19: _L.UL_DCCH,
    lc.LTE_BCCH_BCH_NB: _L.BCCH_BCH_NB,
    lc.LTE_BCCH_DL_SCH_NB: _L.BCCH_DL_SCH_NB,
    lc.LTE_PCCH_NB: _L.PCCH_NB,
    lc.LTE_DL_CCCH_NB: _L.DL_CCCH_NB,
    lc.LTE_DL_DCCH_NB: _L.DL_DCCH_NB,
    lc.LTE_UL_CCCH_NB: _L.UL_CCCH_NB,
    lc.LTE_UL_DCCH_NB: _L.UL_DCCH_NB,
}

_PDU_V20 = {
    1: _L.BCCH_BCH,
    2: _L.BCCH_DL_SCH,
    4: _L.MCCH,
    5: _L.PCCH,
    6: _L.DL_CCCH,
    7: _L.DL_DCCH,
    8: _L.UL_CCCH,
    9: _L.UL_DCCH,
    54: _L.BCCH_BCH_NB,
    55: _L.BCCH_DL_SCH_NB,
    56: _L.PCCH_NB,
    57: _L.DL_CCCH_NB,
    58: _L.DL_DCCH_NB,
    59: _L.UL_CCCH_NB,
    61: _L.UL_DCCH_NB,
}

_PDU_TABLES: dict[int, dict[int, LteRrcSubtype]] = {
    **{version: _PDU_V0 for version in (0x02, 0x03, 0x04, 0x06, 0x07, 0x08, 0x0D, 0x16)},
    **{version: _PDU_V9 for version in (0x09, 0x0C)},
    **{version: _PDU_V14 for version in (0x0E, 0x0F, 0x10)},
    **{version: _PDU_V19 for version in (0x13, 0x1A, 0x1B)},
    **{version: _PDU_V20 for version in (0x14, 0x18, 0x19)},
}


class GsmtapParserError(ValueError):
    """Base class for errors converting diag logs to GSMTAP."""


class InvalidLteRrcOtaExtHeaderVersion(GsmtapParserError):
    """The LTE RRC OTA log uses an unknown extended header version."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Invalid LteRrcOtaMessage ext header version {version}")
        self.version = version


class InvalidLteRrcOtaHeaderPduNum(GsmtapParserError):
    """The PDU number is not valid for the LTE RRC OTA header version."""

    def __init__(self, version: int, pdu_num: int) -> None:
        super().__init__(
            f"Invalid LteRrcOtaMessage header/PDU number combination: {version}/{pdu_num}"
        )
        self.version = version
        self.pdu_num = pdu_num


def parse(msg: Message) -> Optional[tuple[Timestamp, GsmtapMessage]]:
    """Convert a diag message to a timestamped GSMTAP message, if it maps to one."""
    if not isinstance(msg, LogMessage):
        return None
    gsmtap_msg = log_to_gsmtap(msg.body)
    if gsmtap_msg is None:
        return None
    return msg.timestamp, gsmtap_msg


def _lte_rrc_to_gsmtap(body: LteRrcOtaMessage) -> GsmtapMessage:
    version = body.ext_header_version
    table = _PDU_TABLES.get(version)
    if table is None:
        raise InvalidLteRrcOtaExtHeaderVersion(version)
    packet = body.packet
    subtype = table.get(packet.pdu_num)
    if subtype is None:
        raise InvalidLteRrcOtaHeaderPduNum(version, packet.pdu_num)
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.LTE_RRC, subtype))
    header.arfcn = packet.earfcn if packet.earfcn <= _MAX_U16 else 0
    header.frame_number = packet.sfn
    header.subslot = packet.subfn
    return GsmtapMessage(header, bytes(packet.packet))


def log_to_gsmtap(body: LogBody) -> Optional[GsmtapMessage]:
    """Convert a log body to a GSMTAP message, or None for unhandled log types."""
    if isinstance(body, LteRrcOtaMessage):
        return _lte_rrc_to_gsmtap(body)
    if isinstance(body, Nas4GMessage):
        # Only plain (non-secure) NAS messages are handled.
        header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.LTE_NAS, LteNasSubtype.PLAIN))
        header.uplink = body.direction is Nas4GMessageDirection.UPLINK
        return GsmtapMessage(header, bytes(body.msg))
    log.error("gsmtap_sink: ignoring unhandled log type: %r", body)
    return None