import struct

import pytest

from diagwatch.gsmtap import (
    GsmtapHeader,
    GsmtapKind,
    GsmtapMessage,
    GsmtapType,
    LteNasSubtype,
    LteRrcSubtype,
    UmSubtype,
)

_FORMAT = ">BBBBHbBIBBBB"


def _unpack(data):
    return struct.unpack(_FORMAT, data)


def test_type_codes_follow_kind():
    lte = GsmtapType(GsmtapKind.LTE_RRC, LteRrcSubtype.BCCH_DL_SCH)
    assert lte.type_code() == 0x0D
    assert lte.subtype_code() == int(LteRrcSubtype.BCCH_DL_SCH)
    nas = GsmtapType(GsmtapKind.LTE_NAS, LteNasSubtype.PLAIN)
    assert nas.type_code() == 0x12
    assert nas.subtype_code() == 0


def test_kind_without_subtype_has_zero_subtype_code():
    assert GsmtapType(GsmtapKind.QC_DIAG).subtype_code() == 0
    assert GsmtapType(GsmtapKind.QC_DIAG).type_code() == int(GsmtapKind.QC_DIAG)


def test_subtype_must_match_kind():
    with pytest.raises(ValueError):
        GsmtapType(GsmtapKind.LTE_RRC, UmSubtype.BCCH)
    with pytest.raises(ValueError):
        GsmtapType(GsmtapKind.LTE_RRC)
    with pytest.raises(ValueError):
        GsmtapType(GsmtapKind.ABIS, UmSubtype.BCCH)


def test_for_type_fills_codes():
    gtype = GsmtapType(GsmtapKind.UM, UmSubtype.SDCCH)
    header = GsmtapHeader.for_type(gtype)
    assert header.packet_type == gtype.type_code()
    assert header.subtype == gtype.subtype_code()
    assert header.version == 2
    assert header.header_len == 4


def test_header_is_four_words_with_fixed_prefix():
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.LTE_RRC, LteRrcSubtype.DL_CCCH))
    data = header.to_bytes()
    assert len(data) == header.header_len * 4
    assert data[:3] == bytes([2, 4, 0x0D])


def test_header_round_trips_fields():
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.LTE_RRC, LteRrcSubtype.PCCH))
    header.arfcn = 2050
    header.frame_number = 253
    header.subslot = 9
    header.uplink = True
    header.signal_dbm = -70
    (version, hlen, ptype, timeslot, band, dbm, snr, fn, subtype, antenna, subslot,
     reserved) = _unpack(header.to_bytes())
    assert (version, hlen, ptype) == (2, 4, int(GsmtapKind.LTE_RRC))
    assert band & 0x3FFF == 2050
    assert band >> 15 == 0
    assert (band >> 14) & 1 == 1
    assert dbm == -70
    assert fn == 253
    assert subtype == int(LteRrcSubtype.PCCH)
    assert subslot == 9
    assert reserved == 0


def test_pcs_band_indicator_sets_top_bit():
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.GB_LLC))
    header.pcs_band_indicator = True
    band = _unpack(header.to_bytes())[4]
    assert band >> 15 == 1
    assert (band >> 14) & 1 == 0


def test_arfcn_beyond_fourteen_bits_is_rejected():
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.ABIS))
    header.arfcn = 1 << 14
    with pytest.raises(ValueError):
        header.to_bytes()


@pytest.mark.parametrize("field_name, value", [("version", 3), ("header_len", 5), ("reserved", 1)])
def test_fixed_fields_are_checked(field_name, value):
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.ABIS))
    setattr(header, field_name, value)
    with pytest.raises(ValueError):
        header.to_bytes()


def test_message_is_header_then_payload():
    header = GsmtapHeader.for_type(GsmtapType(GsmtapKind.LTE_NAS, LteNasSubtype.PLAIN))
    payload = bytes([0x07, 0x55, 0x01])
    message = GsmtapMessage(header, payload)
    data = message.to_bytes()
    assert data[:-len(payload)] == header.to_bytes()
    assert data[-len(payload):] == payload