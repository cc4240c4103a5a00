"""Reading and writing QMDL files: flat sequences of HDLC-framed diag messages."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import BinaryIO

from .diag import (
    DATA_TYPE_USER_SPACE,
    MESSAGE_TERMINATOR,
    HdlcEncapsulatedMessage,
    MessagesContainer,
)

__all__ = ["QmdlWriter", "QmdlReader"]

log = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class QmdlWriter:
    """Writes the raw frames of message containers to a binary stream."""

    def __init__(self, writer: BinaryIO, existing_size: int = 0) -> None:
        self._writer = writer
        self.total_written = existing_size

    def write_container(self, container: MessagesContainer) -> None:
        """Append every message of ``container`` to the stream."""
        for msg in container.messages:
            data = bytes(msg.data)
            self._writer.write(data)
            self.total_written += len(data)


class QmdlReader:
    """Reads frames from a QMDL stream, one container per frame.

    The original container boundaries cannot be recovered from a QMDL file,
    so each frame comes back as a container holding exactly one message.
    """

    def __init__(self, reader: BinaryIO, max_bytes: int | None = None) -> None:
        self._reader = reader
        self._buffer = bytearray()
        self._eof = False
        self.bytes_read = 0
        self.max_bytes = max_bytes

    def _read_frame(self) -> bytes:
        search_from = 0
        while True:
            end = self._buffer.find(MESSAGE_TERMINATOR, search_from)
            if end >= 0:
                frame = bytes(self._buffer[:end + 1])
                del self._buffer[:end + 1]
                return frame
            if self._eof:
                frame = bytes(self._buffer)
                self._buffer.clear()
                return frame
            search_from = len(self._buffer)
            chunk = self._reader.read(_CHUNK_SIZE)
            if not chunk:
                self._eof = True
            else:
                self._buffer += chunk

    def get_next_messages_container(self) -> MessagesContainer | None:
        """Return the next frame as a container, or None at the limit or end of stream."""
        if self.max_bytes is not None and self.bytes_read >= self.max_bytes:
            if self.bytes_read > self.max_bytes:
                log.error(
                    "warning: %d bytes read, but max_bytes was %d",
                    self.bytes_read,
                    self.max_bytes,
                )
            return None

        frame = self._read_frame()
        if not frame:
            return None
        self.bytes_read += len(frame)
        return MessagesContainer(DATA_TYPE_USER_SPACE, [HdlcEncapsulatedMessage(frame)])

    def __iter__(self) -> Iterator[MessagesContainer]:
        while (container := self.get_next_messages_container()) is not None:
            yield container