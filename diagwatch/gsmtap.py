"""GSMTAP packet types and header serialization."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

__all__ = [
    "GsmtapKind",
    "LteNasSubtype",
    "UmSubtype",
    "UmtsRrcSubtype",
    "LteRrcSubtype",
    "GsmtapType",
    "GsmtapHeader",
    "GsmtapMessage",
]

GSMTAP_VERSION = 2
GSMTAP_HEADER_LEN_WORDS = 4
_MAX_ARFCN = 0x3FFF


class GsmtapKind(enum.IntEnum):
    """GSMTAP packet types with their wire codes."""

    UM = 0x01
    ABIS = 0x02
    UM_BURST = 0x03
    SIM = 0x04
    TETRA_I1 = 0x05
    TETRA_I1_BURST = 0x06
    WMX_BURST = 0x07
    GB_LLC = 0x08
    GB_SNDCP = 0x09
    GMR1_UM = 0x0A
    UMTS_RLC_MAC = 0x0B
    UMTS_RRC = 0x0C
    LTE_RRC = 0x0D
    LTE_MAC = 0x0E
    LTE_MAC_FRAMED = 0x0F
    OSMOCORE_LOG = 0x10
    QC_DIAG = 0x11
    LTE_NAS = 0x12
    E1_T1 = 0x13
    GSM_RLP = 0x14


class LteNasSubtype(enum.IntEnum):
    PLAIN = 0
    SECURE = 1


class UmSubtype(enum.IntEnum):
    UNKNOWN = 0x00
    BCCH = 0x01
    CCCH = 0x02
    RACH = 0x03
    AGCH = 0x04
    PCH = 0x05
    SDCCH = 0x06
    SDCCH4 = 0x07
    SDCCH8 = 0x08
    TCH_F = 0x09
    TCH_H = 0x0A
    PACCH = 0x0B
    CBCH52 = 0x0C
    PDCH = 0x0D
    PTCCH = 0x0E
    CBCH51 = 0x0F


class UmtsRrcSubtype(enum.IntEnum):
    DL_DCCH = 0
    UL_DCCH = 1
    DL_CCCH = 2
    UL_CCCH = 3
    PCCH = 4
    DL_SHCCH = 5
    UL_SHCCH = 6
    BCCH_FACH = 7
    BCCH_BCH = 8
    MCCH = 9
    MSCH = 10
    HANDOVER_TO_UTRAN_COMMAND = 11
    INTER_RAT_HANDOVER_INFO = 12
    SYSTEM_INFORMATION_BCH = 13
    SYSTEM_INFORMATION_CONTAINER = 14
    UE_RADIO_ACCESS_CAPABILITY_INFO = 15
    MASTER_INFORMATION_BLOCK = 16
    SYS_INFO_TYPE1 = 17
    SYS_INFO_TYPE2 = 18
    SYS_INFO_TYPE3 = 19
    SYS_INFO_TYPE4 = 20
    SYS_INFO_TYPE5 = 21
    SYS_INFO_TYPE5BIS = 22
    SYS_INFO_TYPE6 = 23
    SYS_INFO_TYPE7 = 24
    SYS_INFO_TYPE8 = 25
    SYS_INFO_TYPE9 = 26
    SYS_INFO_TYPE10 = 27
    SYS_INFO_TYPE11 = 28
    SYS_INFO_TYPE11BIS = 29
    SYS_INFO_TYPE12 = 30
    SYS_INFO_TYPE13 = 31
    SYS_INFO_TYPE13_1 = 32
    SYS_INFO_TYPE13_2 = 33
    SYS_INFO_TYPE13_3 = 34
    SYS_INFO_TYPE13_4 = 35
    SYS_INFO_TYPE14 = 36
    SYS_INFO_TYPE15 = 37
    SYS_INFO_TYPE15BIS = 38
    SYS_INFO_TYPE15_1 = 39
    SYS_INFO_TYPE15_1BIS = 40
    SYS_INFO_TYPE15_2 = 41
    SYS_INFO_TYPE15_2BIS = 42
    SYS_INFO_TYPE15_2TER = 43
    SYS_INFO_TYPE15_3 = 44
    SYS_INFO_TYPE15_3BIS = 45
    SYS_INFO_TYPE15_4 = 46
    SYS_INFO_TYPE15_5 = 47
    SYS_INFO_TYPE15_6 = 48
    SYS_INFO_TYPE15_7 = 49
    SYS_INFO_TYPE15_8 = 50
    SYS_INFO_TYPE16 = 51
    SYS_INFO_TYPE17 = 52
    SYS_INFO_TYPE18 = 53
    SYS_INFO_TYPE19 = 54
    SYS_INFO_TYPE20 = 55
    SYS_INFO_TYPE21 = 56
    SYS_INFO_TYPE22 = 57
    SYS_INFO_TYPE_SB1 = 58
    SYS_INFO_TYPE_SB2 = 59
    TO_TARGET_RNC_CONTAINER = 60
    TARGET_RNC_TO_SOURCE_RNC_CONTAINER = 61


class LteRrcSubtype(enum.IntEnum):
    DL_CCCH = 0
    DL_DCCH = 1
    UL_CCCH = 2
    UL_DCCH = 3
    BCCH_BCH = 4
    BCCH_DL_SCH = 5
    PCCH = 6
    MCCH = 7
    BCCH_BCH_MBMS = 8
    BCCH_DL_SCH_BR = 9
    BCCH_DL_SCH_MBMS = 10
    SC_MCCH = 11
    SBCCH_SL_BCH = 12
    SBCCH_SL_BCH_V2X = 13
    DL_CCCH_NB = 14
    DL_DCCH_NB = 15
    UL_CCCH_NB = 16
    UL_DCCH_NB = 17
    BCCH_BCH_NB = 18
    BCCH_BCH_TDD_NB = 19
    BCCH_DL_SCH_NB = 20
    PCCH_NB = 21
    SC_MCCH_NB = 22


Subtype = Union[UmSubtype, UmtsRrcSubtype, LteRrcSubtype, LteNasSubtype]

_SUBTYPE_CLASSES: dict[GsmtapKind, type] = {
    GsmtapKind.UM: UmSubtype,
    GsmtapKind.UMTS_RRC: UmtsRrcSubtype,
    GsmtapKind.LTE_RRC: LteRrcSubtype,
    GsmtapKind.LTE_NAS: LteNasSubtype,
}


@dataclass(frozen=True)
class GsmtapType:
    """A GSMTAP packet type, with a subtype for the kinds that carry one."""

    kind: GsmtapKind
    subtype: Optional[Subtype] = None

    def __post_init__(self) -> None:
        expected = _SUBTYPE_CLASSES.get(self.kind)
        if expected is None:
            if self.subtype is not None:
                raise ValueError(f"{self.kind.name} takes no subtype")
        elif not isinstance(self.subtype, expected):
            raise ValueError(f"{self.kind.name} needs a {expected.__name__} subtype")

    def type_code(self) -> int:
        """The GSMTAP type byte."""
        return int(self.kind)

    def subtype_code(self) -> int:
        """The GSMTAP subtype byte, 0 for kinds without a subtype."""
        return 0 if self.subtype is None else int(self.subtype)


_HEADER_FORMAT = struct.Struct(">BBBBHbBIBBBB")


@dataclass
class GsmtapHeader:
    """A GSMTAP version 2 header."""

    gsmtap_type: GsmtapType
    version: int = GSMTAP_VERSION
    header_len: int = GSMTAP_HEADER_LEN_WORDS
    packet_type: Optional[int] = None
    timeslot: int = 0
    pcs_band_indicator: bool = False
    uplink: bool = False
    arfcn: int = 0
    signal_dbm: int = 0
    signal_noise_ratio_db: int = 0
    frame_number: int = 0
    subtype: Optional[int] = None
    antenna_number: int = 0
    subslot: int = 0
    reserved: int = 0

    def __post_init__(self) -> None:
        if self.packet_type is None:
            self.packet_type = self.gsmtap_type.type_code()
        if self.subtype is None:
            self.subtype = self.gsmtap_type.subtype_code()

    @classmethod
    def for_type(cls, gsmtap_type: GsmtapType) -> GsmtapHeader:
        """A header for ``gsmtap_type`` with every other field at its default."""
        return cls(gsmtap_type)

    def to_bytes(self) -> bytes:
        """Serialize the header in network byte order."""
        if self.version != GSMTAP_VERSION:
            raise ValueError(f"version must be {GSMTAP_VERSION}, got {self.version}")
        if self.header_len != GSMTAP_HEADER_LEN_WORDS:
            raise ValueError(
                f"header_len must be {GSMTAP_HEADER_LEN_WORDS}, got {self.header_len}"
            )
        if self.reserved != 0:
            raise ValueError(f"reserved must be 0, got {self.reserved}")
        if not 0 <= self.arfcn <= _MAX_ARFCN:
            raise ValueError(f"arfcn {self.arfcn} does not fit in 14 bits")
        band_and_arfcn = (
            (int(bool(self.pcs_band_indicator)) << 15)
            | (int(bool(self.uplink)) << 14)
            | self.arfcn
        )
        try:
            return _HEADER_FORMAT.pack(
                self.version,
                self.header_len,
                self.packet_type,
                self.timeslot,
                band_and_arfcn,
                self.signal_dbm,
                self.signal_noise_ratio_db,
                self.frame_number,
                self.subtype,
                self.antenna_number,
                self.subslot,
                self.reserved,
            )
        except struct.error as exc:
            raise ValueError(f"header field out of range: {exc}") from None


@dataclass
class GsmtapMessage:
    """A GSMTAP header followed by its payload."""

    header: GsmtapHeader
    payload: bytes = field(default=b"")

    def to_bytes(self) -> bytes:
        return self.header.to_bytes() + bytes(self.payload)