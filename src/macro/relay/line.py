"""Line assembly: turn a raw byte stream into bounded logical lines."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from typing import Callable

logger = logging.getLogger(__name__)

NEWLINE = 0x0A
SPACE = 0x20


class LineState(enum.Enum):
    """Where the assembler is within the current line."""

    AWAITING_LINE = "awaiting_line"  # Buffer empty, next byte starts a line
    PROCESSING_LINE = "processing_line"  # Collecting bytes of a line
    FLUSHING = "flushing"  # Discarding an over-long line up to its newline


class LineAssembler:
    """Accumulate bytes into logical lines.

    Bytes below space are normalized to spaces (the newline terminator
    excepted) and leading spaces are dropped while the buffer is empty.
    A line holds at most ``max_length - 1`` bytes; the byte that would
    fill it switches the assembler to FLUSHING, reports the overflow, and
    every byte up to and including the next newline is discarded.
    """

    def __init__(
        self,
        max_length: int = 1024,
        on_overflow: Callable[[], None] | None = None,
    ) -> None:
        if max_length < 2:
            raise ValueError("max_length must leave room for at least one byte")
        self._max_length = max_length
        self._on_overflow = on_overflow
        self._buf = bytearray()
        self._state = LineState.AWAITING_LINE

    def feed(self, data: bytes) -> Iterator[bytes]:
        """Consume ``data`` and yield each completed line, without its newline."""
        for byte in data:
            if byte == NEWLINE:
                if self._state is LineState.FLUSHING:
                    self._state = LineState.AWAITING_LINE
                    continue
                line = bytes(self._buf)
                self.reset()
                yield line
                continue

            if self._state is LineState.FLUSHING:
                continue

            if byte < SPACE:
                byte = SPACE
            if byte == SPACE and not self._buf:
                continue

            if len(self._buf) + 1 >= self._max_length:
                self._buf.clear()
                self._state = LineState.FLUSHING
                logger.debug("Line exceeded %d bytes, flushing", self._max_length)
                if self._on_overflow is not None:
                    self._on_overflow()
                continue

            self._buf.append(byte)
            self._state = LineState.PROCESSING_LINE

    def take_pending(self) -> bytes | None:
        """Return and clear an unterminated line, if one is being collected."""
        if self._state is not LineState.PROCESSING_LINE:
            self.reset()
            return None
        line = bytes(self._buf)
        self.reset()
        return line

    def reset(self) -> None:
        self._buf.clear()
        self._state = LineState.AWAITING_LINE

    @property
    def state(self) -> LineState:
        return self._state

    @property
    def pending(self) -> bytes:
        return bytes(self._buf)

    @property
    def max_length(self) -> int:
        return self._max_length
