"""Tests for ByteCursor read semantics."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fuzzmux.decoding.cursor import ByteCursor
from fuzzmux.diagnostics import DiagnosticCode, InsufficientDataError


class TestReadByte:
    """read_byte consumes exactly one byte or fails without advancing."""

    def test_reads_and_advances(self) -> None:
        cursor = ByteCursor(b"\x07\x08")
        assert cursor.read_byte() == 7
        assert cursor.pos == 1
        assert cursor.remaining == 1

    def test_empty_raises_without_advancing(self) -> None:
        cursor = ByteCursor(b"")
        with pytest.raises(InsufficientDataError) as exc_info:
            cursor.read_byte("bool")
        assert cursor.pos == 0
        diagnostic = exc_info.value.diagnostic
        assert diagnostic is not None
        assert diagnostic.code is DiagnosticCode.INSUFFICIENT_DATA
        assert diagnostic.type_name == "bool"
        assert diagnostic.offset == 0


class TestRead:
    """read(n) is all-or-nothing."""

    def test_exact_read(self) -> None:
        cursor = ByteCursor(b"abcd")
        assert cursor.read(4) == b"abcd"
        assert cursor.is_eof

    def test_short_read_leaves_cursor(self) -> None:
        cursor = ByteCursor(b"abc", pos=1)
        with pytest.raises(InsufficientDataError) as exc_info:
            cursor.read(8, "Int64")
        assert cursor.pos == 1
        assert "Need 8 byte(s) for Int64, 2 available" in str(exc_info.value)


class TestReadUpTo:
    """read_up_to clamps to the remaining bytes."""

    def test_clamps(self) -> None:
        cursor = ByteCursor(b"ab")
        assert cursor.read_up_to(10) == b"ab"
        assert cursor.is_eof

    def test_read_rest_on_empty(self) -> None:
        cursor = ByteCursor(b"xy", pos=2)
        assert cursor.read_rest() == b""

    def test_consumed_since(self) -> None:
        cursor = ByteCursor(b"\x01\x02\x03")
        cursor.read_byte()
        start = cursor.pos
        cursor.read(2)
        assert cursor.consumed_since(start) == b"\x02\x03"

    @given(data=st.binary(max_size=64), count=st.integers(min_value=0, max_value=100))
    def test_never_overruns(self, data: bytes, count: int) -> None:
        """read_up_to never moves pos past the end of data."""
        cursor = ByteCursor(data)
        chunk = cursor.read_up_to(count)
        assert len(chunk) == min(count, len(data))
        assert cursor.pos <= len(data)
        assert cursor.remaining == len(data) - len(chunk)
