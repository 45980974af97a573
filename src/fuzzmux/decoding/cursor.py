"""Byte cursor shared by every type decoder.

A single ByteCursor walks the post-selector bytes of one input. Decoders read
through it and the cursor position records exactly how many bytes each value
consumed, which is what the crash tooling uses for hex previews.

Unlike an immutable parse cursor, ByteCursor is mutable: a decoder that reads
a presence flag and then fails on its payload leaves the flag consumed. The
live dispatch path and the offline analysis path both depend on that partial
advance being identical, so decoders must never rewind.

Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass

from fuzzmux.diagnostics import ErrorTemplate, InsufficientDataError

__all__ = ["ByteCursor"]


@dataclass(slots=True)
class ByteCursor:
    """Read position over an immutable byte buffer.

    Example:
        >>> cursor = ByteCursor(b"\\x03abc")
        >>> cursor.read_byte()
        3
        >>> cursor.read_up_to(5)
        b'abc'
        >>> cursor.is_eof
        True
        >>> cursor.read(1)
        Traceback (most recent call last):
        ...
        fuzzmux.diagnostics.errors.InsufficientDataError: ...
    """

    data: bytes
    pos: int = 0

    @property
    def remaining(self) -> int:
        """Bytes left after the current position."""
        return max(0, len(self.data) - self.pos)

    @property
    def is_eof(self) -> bool:
        """True once every byte has been consumed."""
        return self.pos >= len(self.data)

    def read_byte(self, type_name: str = "byte") -> int:
        """Consume one byte.

        Args:
            type_name: Display name used in the diagnostic on failure

        Returns:
            The byte value (0-255)

        Raises:
            InsufficientDataError: If no bytes remain (cursor unchanged)
        """
        if self.is_eof:
            raise InsufficientDataError(
                ErrorTemplate.insufficient_data(type_name, 1, 0, self.pos)
            )
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read(self, count: int, type_name: str = "bytes") -> bytes:
        """Consume exactly count bytes, all or nothing.

        Args:
            count: Number of bytes required
            type_name: Display name used in the diagnostic on failure

        Returns:
            The consumed bytes

        Raises:
            InsufficientDataError: If fewer than count bytes remain. The
                cursor is not advanced.
        """
        available = self.remaining
        if count > available:
            raise InsufficientDataError(
                ErrorTemplate.insufficient_data(type_name, count, available, self.pos)
            )
        chunk = self.data[self.pos : self.pos + count]
        self.pos += count
        return chunk

    def read_up_to(self, count: int) -> bytes:
        """Consume at most count bytes, clamped to what remains. Never fails."""
        take = min(count, self.remaining)
        chunk = self.data[self.pos : self.pos + take]
        self.pos += take
        return chunk

    def read_rest(self) -> bytes:
        """Consume every remaining byte."""
        return self.read_up_to(self.remaining)

    def consumed_since(self, start: int) -> bytes:
        """Bytes consumed between position start and the current position."""
        return self.data[start : self.pos]
