from datetime import datetime, timezone

import pytest

from diagwatch.diag import (
    DATA_TYPE_USER_SPACE,
    GsmRrSignallingMessage,
    HdlcDecapsulationError,
    HdlcEncapsulatedMessage,
    IpTraffic,
    LogMessage,
    LteRrcOtaMessage,
    LteRrcOtaPacket,
    MessageParsingError,
    MessagesContainer,
    Nas4GMessage,
    Nas4GMessageDirection,
    NrRrcOtaMessage,
    ResponseMessage,
    RetrieveIdRangesResponse,
    SetMaskResponse,
    Timestamp,
    UmtsNasOtaMessage,
    WcdmaSignallingMessage,
    parse_message,
)
from diagwatch.hdlc import hdlc_encapsulate

TEST_TS = 72659535985485082


def _v8_packet(payload: bytes) -> LteRrcOtaPacket:
    return LteRrcOtaPacket(
        rrc_rel_maj=14,
        rrc_rel_min=48,
        bearer_id=0,
        phy_cell_id=160,
        earfcn=2050,
        sfn_subfn=4057,
        pdu_num=5,
        sib_mask=0,
        packet=payload,
    )


def get_test_message(payload: bytes):
    length = 31 + len(payload)
    message = LogMessage(
        pending_msgs=0,
        outer_length=length,
        inner_length=length,
        log_type=0xB0C0,
        timestamp=Timestamp(TEST_TS),
        body=LteRrcOtaMessage(ext_header_version=20, packet=_v8_packet(payload)),
    )
    encapsulated = HdlcEncapsulatedMessage(hdlc_encapsulate(message.to_bytes()))
    return encapsulated, message


def make_container(message: HdlcEncapsulatedMessage) -> MessagesContainer:
    return MessagesContainer(DATA_TYPE_USER_SPACE, [message])


def test_logs():
    data = bytes([
        16, 0, 38, 0, 38, 0, 192, 176, 26, 165, 245, 135, 118, 35, 2, 1, 20,
        14, 48, 0, 160, 0, 2, 8, 0, 0, 217, 15, 5, 0, 0, 0, 0, 7, 0, 64, 1,
        238, 173, 213, 77, 208,
    ])
    msg = parse_message(data)
    assert msg == LogMessage(
        pending_msgs=0,
        outer_length=38,
        inner_length=38,
        log_type=0xB0C0,
        timestamp=Timestamp(TEST_TS),
        body=LteRrcOtaMessage(
            ext_header_version=20,
            packet=_v8_packet(bytes([0x40, 0x1, 0xEE, 0xAD, 0xD5, 0x4D, 0xD0])),
        ),
    )
    assert msg.to_bytes() == data


def test_sfn_and_subfn():
    packet = _v8_packet(b"")
    assert packet.sfn == 253
    assert packet.subfn == 9


def test_containers_with_multiple_messages():
    enc1, msg1 = get_test_message(b"\x01")
    enc2, msg2 = get_test_message(b"\x02")
    container = make_container(enc1)
    container.messages.append(enc2)
    assert container.num_messages == 2
    assert container.into_messages() == [msg1, msg2]


def test_containers_with_concatenated_message():
    enc1, msg1 = get_test_message(b"\x01")
    enc2, msg2 = get_test_message(b"\x02")
    combined = HdlcEncapsulatedMessage(enc1.data + enc2.data)
    assert combined.length == enc1.length + enc2.length
    assert make_container(combined).into_messages() == [msg1, msg2]


def test_handles_parsing_errors():
    enc1, msg1 = get_test_message(b"\x01")
    bad = HdlcEncapsulatedMessage(hdlc_encapsulate(bytes([1, 2, 3, 4])))
    container = make_container(enc1)
    container.messages.append(bad)
    result = container.into_messages()
    assert result[0] == msg1
    assert isinstance(result[1], MessageParsingError)
    assert result[1].data == bytes([1, 2, 3, 4])


def test_handles_encapsulation_errors():
    enc1, msg1 = get_test_message(b"\x01")
    container = make_container(enc1)
    container.messages.append(HdlcEncapsulatedMessage(bytes([1, 2, 3, 4])))
    result = container.into_messages()
    assert result[0] == msg1
    assert isinstance(result[1], HdlcDecapsulationError)
    assert result[1].data == bytes([1, 2, 3, 4])


def test_container_bytes_round_trip():
    enc1, _ = get_test_message(b"\x01")
    enc2, _ = get_test_message(b"\x7e\x7d")
    container = MessagesContainer(DATA_TYPE_USER_SPACE, [enc1, enc2])
    raw = container.to_bytes()
    assert raw[:8] == bytes([32, 0, 0, 0, 2, 0, 0, 0])
    assert MessagesContainer.from_bytes(raw) == container


def test_container_from_truncated_bytes():
    with pytest.raises(MessageParsingError):
        MessagesContainer.from_bytes(bytes([32, 0, 0, 0, 1, 0, 0, 0, 9, 0, 0, 0, 1]))


def test_retrieve_id_ranges_response_round_trip():
    sizes = tuple(range(16))
    response = ResponseMessage(115, 1, 0, RetrieveIdRangesResponse(sizes))
    raw = response.to_bytes()
    assert raw[:12] == bytes([115, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0])
    assert len(raw) == 12 + 64
    assert parse_message(raw) == response


def test_set_mask_response():
    raw = bytes([115, 0, 0, 0, 3, 0, 0, 0, 5, 0, 0, 0])
    assert parse_message(raw) == ResponseMessage(115, 3, 5, SetMaskResponse())


def test_unknown_opcode_is_error():
    with pytest.raises(MessageParsingError):
        parse_message(bytes([99, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0]))


def test_empty_message_is_error():
    with pytest.raises(MessageParsingError):
        parse_message(b"")


def _log(log_type: int, body, inner_length: int) -> LogMessage:
    return LogMessage(0, inner_length, inner_length, log_type, Timestamp(1), body)


@pytest.mark.parametrize(
    "log_type, body, hdr_len",
    [
        (0x412F, WcdmaSignallingMessage(1, 2, b"abc"), 7),
        (0x512F, GsmRrSignallingMessage(1, 2, b"abc"), 6),
        (0x5226, GsmRrSignallingMessage(3, 4, b"xy"), 5),
        (0xB0E3, Nas4GMessage(Nas4GMessageDirection.UPLINK, 1, 2, 3, 4, b"\x07\x55\x01"), 7),
        (0xB0EC, Nas4GMessage(Nas4GMessageDirection.DOWNLINK, 1, 2, 3, 4, b"\x01"), 5),
        (0x11EB, IpTraffic(b"\x45\x00"), 10),
        (0x713A, UmtsNasOtaMessage(1, b"\x05\x06"), 7),
        (0xB821, NrRrcOtaMessage(b"\x01\x02\x03"), 3),
    ],
)
def test_log_body_round_trip(log_type, body, hdr_len):
    message = _log(log_type, body, hdr_len + 12)
    parsed = parse_message(message.to_bytes())
    assert parsed.log_type == log_type
    assert parsed.body.to_bytes() == body.to_bytes()
    if log_type != 0x5226:
        assert parsed == message


@pytest.mark.parametrize("version", [0, 5, 8, 25])
def test_lte_rrc_versions_round_trip(version):
    packet = LteRrcOtaPacket(
        rrc_rel_maj=1, rrc_rel_min=2, bearer_id=3, phy_cell_id=4, earfcn=500,
        sfn_subfn=0x123, pdu_num=6, packet=b"\x01\x02",
        sib_mask=0 if version == 0 else 7,
        nr_rrc_rel_maj=9 if version == 25 else 0,
        nr_rrc_rel_min=8 if version == 25 else 0,
    )
    body = LteRrcOtaMessage(version, packet)
    message = _log(0xB0C0, body, 12 + len(body.to_bytes()))
    assert parse_message(message.to_bytes()) == message


def test_unknown_log_type_is_error():
    message = _log(0x1234, IpTraffic(b""), 20)
    with pytest.raises(MessageParsingError):
        parse_message(message.to_bytes())


def test_timestamp_epoch():
    assert Timestamp(0).to_datetime() == datetime(1980, 1, 6, tzinfo=timezone.utc)


def test_timestamp_is_monotonic():
    assert Timestamp(1 << 40).to_datetime() < Timestamp(1 << 50).to_datetime()
    assert Timestamp(TEST_TS).to_datetime().year > 2000