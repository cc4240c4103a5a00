"""HDLC-style framing used by the diag protocol: escaping, CRC and terminator."""

from __future__ import annotations

MESSAGE_TERMINATOR = 0x7E
MESSAGE_ESCAPE_CHAR = 0x7D
ESCAPED_MESSAGE_TERMINATOR = 0x5E
ESCAPED_MESSAGE_ESCAPE_CHAR = 0x5D

_CRC_POLY_REFLECTED = 0x8408  # 0x1021, bit-reversed
_CRC_INIT = 0xFFFF
_CRC_XOROUT = 0xFFFF


class HdlcError(ValueError):
    """Base class for HDLC framing errors."""


class InvalidChecksumError(HdlcError):
    """The frame's checksum does not match its contents."""

    def __init__(self, received: int, computed: int) -> None:
        super().__init__(f"Invalid checksum (expected {received}, got {computed})")
        self.received = received
        self.computed = computed


class InvalidEscapeSequenceError(HdlcError):
    """An escape character was followed by an unknown byte."""

    def __init__(self, byte: int) -> None:
        super().__init__(f"Invalid HDLC escape sequence: [0x7d, {byte}]")
        self.byte = byte


class NoTrailingCharacterError(HdlcError):
    """The frame does not end with the terminator byte."""

    def __init__(self, byte: int) -> None:
        super().__init__(f"No trailing character found (expected 0x7e, got {byte})")
        self.byte = byte


class MissingChecksumError(HdlcError):
    """The frame is too short to hold a checksum."""

    def __init__(self) -> None:
        super().__init__("Missing checksum")


class TooShortError(HdlcError):
    """The data is too short to be an HDLC frame."""

    def __init__(self) -> None:
        super().__init__("Data too short to be HDLC encapsulated")


def _build_table() -> tuple[int, ...]:
    table = []
    for value in range(256):
        crc = value
        for _ in range(8):
            crc = (crc >> 1) ^ _CRC_POLY_REFLECTED if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_table()


def crc_ccitt(data: bytes) -> int:
    """Return the 16-bit reflected CCITT checksum (X.25 parameters) of ``data``."""
    crc = _CRC_INIT
    for byte in data:
        crc = (crc >> 8) ^ _CRC_TABLE[(crc ^ byte) & 0xFF]
    return crc ^ _CRC_XOROUT


def _escape(data: bytes, out: bytearray) -> None:
    for byte in data:
        if byte == MESSAGE_TERMINATOR:
            out += bytes((MESSAGE_ESCAPE_CHAR, ESCAPED_MESSAGE_TERMINATOR))
        elif byte == MESSAGE_ESCAPE_CHAR:
            out += bytes((MESSAGE_ESCAPE_CHAR, ESCAPED_MESSAGE_ESCAPE_CHAR))
        else:
            out.append(byte)


def hdlc_encapsulate(data: bytes) -> bytes:
    """Escape ``data``, append its checksum and the terminator."""
    data = bytes(data)
    out = bytearray()
    _escape(data, out)
    _escape(crc_ccitt(data).to_bytes(2, "little"), out)
    out.append(MESSAGE_TERMINATOR)
    return bytes(out)


def hdlc_decapsulate(data: bytes) -> bytes:
    """Unescape a frame, verify its checksum and return the payload."""
    data = bytes(data)
    if len(data) < 3:
        raise TooShortError()
    if data[-1] != MESSAGE_TERMINATOR:
        raise NoTrailingCharacterError(data[-1])

    unescaped = bytearray()
    escaping = False
    for byte in data[:-1]:
        if escaping:
            if byte == ESCAPED_MESSAGE_TERMINATOR:
                unescaped.append(MESSAGE_TERMINATOR)
            elif byte == ESCAPED_MESSAGE_ESCAPE_CHAR:
                unescaped.append(MESSAGE_ESCAPE_CHAR)
            else:
                raise InvalidEscapeSequenceError(byte)
            escaping = False
        elif byte == MESSAGE_ESCAPE_CHAR:
            escaping = True
        else:
            unescaped.append(byte)

    if len(unescaped) < 2:
        raise MissingChecksumError()
    received = int.from_bytes(unescaped[-2:], "little")
    payload = bytes(unescaped[:-2])
    computed = crc_ccitt(payload)
    if received != computed:
        raise InvalidChecksumError(received, computed)
    return payload