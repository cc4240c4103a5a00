"""Diag protocol messages: parsing and serialization of logs and responses."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Union

from .hdlc import (
    ESCAPED_MESSAGE_ESCAPE_CHAR,
    ESCAPED_MESSAGE_TERMINATOR,
    MESSAGE_ESCAPE_CHAR,
    MESSAGE_TERMINATOR,
    HdlcError,
    hdlc_decapsulate,
)

__all__ = [
    "DATA_TYPE_USER_SPACE",
    "ESCAPED_MESSAGE_ESCAPE_CHAR",
    "ESCAPED_MESSAGE_TERMINATOR",
    "MESSAGE_ESCAPE_CHAR",
    "MESSAGE_TERMINATOR",
    "DiagParsingError",
    "MessageParsingError",
    "HdlcDecapsulationError",
    "Timestamp",
    "Nas4GMessageDirection",
    "LteRrcOtaPacket",
    "WcdmaSignallingMessage",
    "GsmRrSignallingMessage",
    "GprsMacSignallingMessage",
    "LteRrcOtaMessage",
    "Nas4GMessage",
    "IpTraffic",
    "UmtsNasOtaMessage",
    "NrRrcOtaMessage",
    "LogMessage",
    "RetrieveIdRangesResponse",
    "SetMaskResponse",
    "ResponseMessage",
    "parse_message",
    "HdlcEncapsulatedMessage",
    "MessagesContainer",
]

log = logging.getLogger(__name__)

DATA_TYPE_USER_SPACE = 32

LOG_MESSAGE_ID = 16
LOG_CONFIG_OPCODE = 115
RETRIEVE_ID_RANGES_SUBOPCODE = 1
SET_MASK_SUBOPCODE = 3

_NAS_DOWNLINK_CODES = frozenset({0xB0E2, 0xB0EC})
_NAS_UPLINK_CODES = frozenset({0xB0E3, 0xB0ED})

# Log header bytes counted in inner_length before the body (log_type + timestamp + lengths).
_LOG_HEADER_LEN = 12

_EPOCH = datetime(1980, 1, 6, tzinfo=timezone.utc)


class DiagParsingError(ValueError):
    """Base class for errors met while turning raw diag data into messages."""


class MessageParsingError(DiagParsingError):
    """The decapsulated bytes could not be parsed as a message."""

    def __init__(self, reason: str, data: bytes) -> None:
        super().__init__(f"Failed to parse Message: {reason}, data: {list(data)}")
        self.reason = reason
        self.data = bytes(data)


class HdlcDecapsulationError(DiagParsingError):
    """A frame could not be HDLC-decapsulated."""

    def __init__(self, error: HdlcError, data: bytes) -> None:
        super().__init__(f"HDLC decapsulation of message failed: {error}, data: {list(data)}")
        self.error = error
        self.data = bytes(data)


class _Truncated(Exception):
    pass


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, count: int) -> bytes:
        if count < 0:
            raise _Truncated(f"negative length {count}")
        if self._pos + count > len(self._data):
            raise _Truncated(
                f"need {count} bytes at offset {self._pos}, have {self.remaining}"
            )
        chunk = self._data[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def _int(self, size: int) -> int:
        return int.from_bytes(self.take(size), "little")

    def u8(self) -> int:
        return self._int(1)

    def u16(self) -> int:
        return self._int(2)

    def u32(self) -> int:
        return self._int(4)

    def u64(self) -> int:
        return self._int(8)


def _u8(value: int) -> bytes:
    return value.to_bytes(1, "little")


def _u16(value: int) -> bytes:
    return value.to_bytes(2, "little")


def _u32(value: int) -> bytes:
    return value.to_bytes(4, "little")


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


@dataclass(frozen=True)
class Timestamp:
    """Raw 64-bit diag timestamp."""

    ts: int

    def to_datetime(self) -> datetime:
        """Convert to a UTC datetime, counting from the 1980-01-06 epoch."""
        upper = self.ts >> 16
        lower = self.ts & 0xFFFF
        delta = upper * 1.25 + lower / 40960.0
        return _EPOCH + timedelta(milliseconds=int(delta))


class Nas4GMessageDirection(enum.Enum):
    DOWNLINK = "downlink"
    UPLINK = "uplink"

    @classmethod
    def from_log_type(cls, log_type: int) -> Nas4GMessageDirection:
        if log_type in _NAS_DOWNLINK_CODES:
            return cls.DOWNLINK
        if log_type in _NAS_UPLINK_CODES:
            return cls.UPLINK
        raise ValueError(f"log type {log_type:#x} is not a 4G NAS log type")


class _Layout(enum.Enum):
    V0 = 0
    V5 = 5
    V8 = 8
    V25 = 25

    @classmethod
    def for_version(cls, version: int) -> _Layout:
        if version <= 4:
            return cls.V0
        if version <= 7:
            return cls.V5
        if version <= 24:
            return cls.V8
        return cls.V25


@dataclass
class LteRrcOtaPacket:
    """An LTE RRC over-the-air packet; its layout depends on the header version."""

    rrc_rel_maj: int
    rrc_rel_min: int
    bearer_id: int
    phy_cell_id: int
    earfcn: int
    sfn_subfn: int
    pdu_num: int
    packet: bytes
    sib_mask: int = 0
    nr_rrc_rel_maj: int = 0
    nr_rrc_rel_min: int = 0

    @property
    def sfn(self) -> int:
        """System frame number."""
        return self.sfn_subfn >> 4

    @property
    def subfn(self) -> int:
        """Subframe number."""
        return self.sfn_subfn & 0xF

    @classmethod
    def _read(cls, reader: _Reader, version: int) -> LteRrcOtaPacket:
        layout = _Layout.for_version(version)
        rrc_rel_maj = reader.u8()
        rrc_rel_min = reader.u8()
        nr_maj = nr_min = 0
        if layout is _Layout.V25:
            nr_maj = reader.u8()
            nr_min = reader.u8()
        bearer_id = reader.u8()
        phy_cell_id = reader.u16()
        earfcn = reader.u16() if layout in (_Layout.V0, _Layout.V5) else reader.u32()
        sfn_subfn = reader.u16()
        pdu_num = reader.u8()
        sib_mask = 0 if layout is _Layout.V0 else reader.u32()
        length = reader.u16()
        packet = reader.take(length)
        return cls(
            rrc_rel_maj=rrc_rel_maj,
            rrc_rel_min=rrc_rel_min,
            bearer_id=bearer_id,
            phy_cell_id=phy_cell_id,
            earfcn=earfcn,
            sfn_subfn=sfn_subfn,
            pdu_num=pdu_num,
            packet=packet,
            sib_mask=sib_mask,
            nr_rrc_rel_maj=nr_maj,
            nr_rrc_rel_min=nr_min,
        )

    def _to_bytes(self, version: int) -> bytes:
        layout = _Layout.for_version(version)
        out = bytearray(_u8(self.rrc_rel_maj) + _u8(self.rrc_rel_min))
        if layout is _Layout.V25:
            out += _u8(self.nr_rrc_rel_maj) + _u8(self.nr_rrc_rel_min)
        out += _u8(self.bearer_id) + _u16(self.phy_cell_id)
        out += _u16(self.earfcn) if layout in (_Layout.V0, _Layout.V5) else _u32(self.earfcn)
        out += _u16(self.sfn_subfn) + _u8(self.pdu_num)
        if layout is not _Layout.V0:
            out += _u32(self.sib_mask)
        out += _u16(len(self.packet)) + bytes(self.packet)
        return bytes(out)


@dataclass
class WcdmaSignallingMessage:
    channel_type: int
    radio_bearer: int
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> WcdmaSignallingMessage:
        channel_type = reader.u8()
        radio_bearer = reader.u8()
        return cls(channel_type, radio_bearer, reader.take(reader.u16()))

    def to_bytes(self) -> bytes:
        return (
            _u8(self.channel_type) + _u8(self.radio_bearer)
            + _u16(len(self.msg)) + bytes(self.msg)
        )


@dataclass
class GsmRrSignallingMessage:
    channel_type: int
    message_type: int
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> GsmRrSignallingMessage:
        channel_type = reader.u8()
        message_type = reader.u8()
        return cls(channel_type, message_type, reader.take(reader.u8()))

    def to_bytes(self) -> bytes:
        return (
            _u8(self.channel_type) + _u8(self.message_type)
            + _u8(len(self.msg)) + bytes(self.msg)
        )


@dataclass
class GprsMacSignallingMessage:
    channel_type: int
    message_type: int
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> GprsMacSignallingMessage:
        channel_type = reader.u8()
        message_type = reader.u8()
        return cls(channel_type, message_type, reader.take(reader.u8()))

    def to_bytes(self) -> bytes:
        return (
            _u8(self.channel_type) + _u8(self.message_type)
            + _u8(len(self.msg)) + bytes(self.msg)
        )


@dataclass
class LteRrcOtaMessage:
    ext_header_version: int
    packet: LteRrcOtaPacket

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> LteRrcOtaMessage:
        version = reader.u8()
        return cls(version, LteRrcOtaPacket._read(reader, version))

    def to_bytes(self) -> bytes:
        return _u8(self.ext_header_version) + self.packet._to_bytes(self.ext_header_version)


@dataclass
class Nas4GMessage:
    direction: Nas4GMessageDirection
    ext_header_version: int
    rrc_rel: int
    rrc_version_minor: int
    rrc_version_major: int
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> Nas4GMessage:
        direction = Nas4GMessageDirection.from_log_type(log_type)
        ext = reader.u8()
        rrc_rel = reader.u8()
        minor = reader.u8()
        major = reader.u8()
        return cls(direction, ext, rrc_rel, minor, major, reader.take(hdr_len - 4))

    def to_bytes(self) -> bytes:
        return (
            _u8(self.ext_header_version) + _u8(self.rrc_rel)
            + _u8(self.rrc_version_minor) + _u8(self.rrc_version_major)
            + bytes(self.msg)
        )


@dataclass
class IpTraffic:
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> IpTraffic:
        return cls(reader.take(hdr_len - 8))

    def to_bytes(self) -> bytes:
        return bytes(self.msg)


@dataclass
class UmtsNasOtaMessage:
    is_uplink: int
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> UmtsNasOtaMessage:
        is_uplink = reader.u8()
        return cls(is_uplink, reader.take(reader.u32()))

    def to_bytes(self) -> bytes:
        return _u8(self.is_uplink) + _u32(len(self.msg)) + bytes(self.msg)


@dataclass
class NrRrcOtaMessage:
    msg: bytes

    @classmethod
    def _read(cls, reader: _Reader, log_type: int, hdr_len: int) -> NrRrcOtaMessage:
        return cls(reader.take(hdr_len))

    def to_bytes(self) -> bytes:
        return bytes(self.msg)


LogBody = Union[
    WcdmaSignallingMessage,
    GsmRrSignallingMessage,
    GprsMacSignallingMessage,
    LteRrcOtaMessage,
    Nas4GMessage,
    IpTraffic,
    UmtsNasOtaMessage,
    NrRrcOtaMessage,
]

_BODY_PARSERS = {
    0x412F: WcdmaSignallingMessage,
    0x512F: GsmRrSignallingMessage,
    0x5226: GprsMacSignallingMessage,
    0xB0C0: LteRrcOtaMessage,
    0xB0E2: Nas4GMessage,
    0xB0E3: Nas4GMessage,
    0xB0EC: Nas4GMessage,
    0xB0ED: Nas4GMessage,
    0x11EB: IpTraffic,
    0x713A: UmtsNasOtaMessage,
    0xB821: NrRrcOtaMessage,
}


@dataclass
class LogMessage:
    """A diag log record."""

    pending_msgs: int
    outer_length: int
    inner_length: int
    log_type: int
    timestamp: Timestamp
    body: LogBody

    def to_bytes(self) -> bytes:
        return (
            _u8(LOG_MESSAGE_ID) + _u8(self.pending_msgs)
            + _u16(self.outer_length) + _u16(self.inner_length)
            + _u16(self.log_type) + _u64(self.timestamp.ts)
            + self.body.to_bytes()
        )

    @classmethod
    def _read(cls, reader: _Reader) -> LogMessage:
        reader.u8()
        pending = reader.u8()
        outer = reader.u16()
        inner = reader.u16()
        log_type = reader.u16()
        timestamp = Timestamp(reader.u64())
        body_type = _BODY_PARSERS.get(log_type)
        if body_type is None:
            raise _Truncated(f"unknown log type {log_type:#x}")
        hdr_len = inner - _LOG_HEADER_LEN
        if hdr_len < 0:
            raise _Truncated(f"inner length {inner} too small")
        body = body_type._read(reader, log_type, hdr_len)
        return cls(pending, outer, inner, log_type, timestamp, body)


@dataclass
class RetrieveIdRangesResponse:
    log_mask_sizes: tuple[int, ...]

    def to_bytes(self) -> bytes:
        if len(self.log_mask_sizes) != 16:
            raise ValueError("log_mask_sizes must hold exactly 16 entries")
        return b"".join(_u32(size) for size in self.log_mask_sizes)


@dataclass
class SetMaskResponse:
    def to_bytes(self) -> bytes:
        return b""


ResponsePayload = Union[RetrieveIdRangesResponse, SetMaskResponse]


@dataclass
class ResponseMessage:
    """A response to a diag request."""

    opcode: int
    subopcode: int
    status: int
    payload: ResponsePayload

    def to_bytes(self) -> bytes:
        return (
            _u32(self.opcode) + _u32(self.subopcode) + _u32(self.status)
            + self.payload.to_bytes()
        )

    @classmethod
    def _read(cls, reader: _Reader) -> ResponseMessage:
        opcode = reader.u32()
        subopcode = reader.u32()
        status = reader.u32()
        if opcode != LOG_CONFIG_OPCODE:
            raise _Truncated(f"unknown response opcode {opcode}")
        payload: ResponsePayload
        if subopcode == RETRIEVE_ID_RANGES_SUBOPCODE:
            payload = RetrieveIdRangesResponse(tuple(reader.u32() for _ in range(16)))
        elif subopcode == SET_MASK_SUBOPCODE:
            payload = SetMaskResponse()
        else:
            raise _Truncated(f"unknown log config subopcode {subopcode}")
        return cls(opcode, subopcode, status, payload)


Message = Union[LogMessage, ResponseMessage]


def parse_message(data: bytes) -> Message:
    """Parse decapsulated bytes into a log or response message."""
    data = bytes(data)
    reader = _Reader(data)
    try:
        if not data:
            raise _Truncated("empty message")
        if data[0] == LOG_MESSAGE_ID:
            message: Message = LogMessage._read(reader)
        else:
            message = ResponseMessage._read(reader)
    except _Truncated as exc:
        raise MessageParsingError(str(exc), data) from None
    if reader.remaining:
        log.warning("warning: %d leftover bytes when parsing Message", reader.remaining)
    return message


@dataclass
class HdlcEncapsulatedMessage:
    """One length-prefixed chunk of HDLC-framed data."""

    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return _u32(len(self.data)) + bytes(self.data)


def _split_frames(data: bytes):
    start = 0
    while start < len(data):
        end = data.find(MESSAGE_TERMINATOR, start)
        stop = len(data) if end < 0 else end + 1
        yield data[start:stop]
        start = stop


@dataclass
class MessagesContainer:
    """A batch of HDLC-framed messages as delivered by the diag device."""

    data_type: int
    messages: list[HdlcEncapsulatedMessage] = field(default_factory=list)

    @property
    def num_messages(self) -> int:
        return len(self.messages)

    @classmethod
    def from_bytes(cls, data: bytes) -> MessagesContainer:
        data = bytes(data)
        reader = _Reader(data)
        try:
            data_type = reader.u32()
            count = reader.u32()
            messages = [HdlcEncapsulatedMessage(reader.take(reader.u32())) for _ in range(count)]
        except _Truncated as exc:
            raise MessageParsingError(str(exc), data) from None
        if reader.remaining:
            log.warning(
                "warning: %d leftover bytes when parsing MessagesContainer", reader.remaining
            )
        return cls(data_type, messages)

    def to_bytes(self) -> bytes:
        return (
            _u32(self.data_type) + _u32(len(self.messages))
            + b"".join(msg.to_bytes() for msg in self.messages)
        )

    def into_messages(self) -> list[Message | DiagParsingError]:
        """Decode every frame; failures appear in the list as error instances."""
        results: list[Message | DiagParsingError] = []
        for msg in self.messages:
            for frame in _split_frames(bytes(msg.data)):
                try:
                    payload = hdlc_decapsulate(frame)
                except HdlcError as err:
                    results.append(HdlcDecapsulationError(err, frame))
                    continue
                try:
                    results.append(parse_message(payload))
                except MessageParsingError as err:
                    results.append(err)
        return results