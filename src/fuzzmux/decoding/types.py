"""Type decoders: the closed set of parameter types a fuzz target may declare.

Every decodable type is a FuzzType descriptor. Descriptors are resolved once
at registration time (see annotations.py) and then reused for every input, on
both the live dispatch path and the offline analysis path.

Decode Contract:
    - decode(cursor) returns a Python value and advances the cursor by the
      bytes actually consumed, including on graceful-truncation paths
    - InsufficientDataError is raised only when a mandatory fixed-size read
      runs out of bytes
    - Collections never fail once their count byte was read; they stop early
      and keep the elements decoded so far

Layout Reference (all multi-byte values little-endian):

    bool            1 byte, odd -> True
    Int8..UInt64    fixed width
    Float32/64      fixed width, NaN/inf -> 0.0
    Char            1 byte -> code point 0-255
    UnicodeScalar   4 bytes, mod 0x110000, surrogates -> 'A'
    str             1 length byte + up to that many UTF-8 bytes (clamped)
    T | None        1 presence byte (odd = present) + T
    list/set        1 count byte (capped at 32) + elements
    dict            1 count byte (capped at 32) + key/value pairs
    bytes           every remaining byte

Python 3.13+. Zero external dependencies.
"""

import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from fuzzmux.constants import (
    MAX_COLLECTION_COUNT,
    SCALAR_FALLBACK,
    SURROGATE_RANGE,
    UNICODE_SCALAR_LIMIT,
)
from fuzzmux.diagnostics import DecodeError, ErrorTemplate, UnsupportedTypeError

from .cursor import ByteCursor

__all__ = [
    "BOOL",
    "BYTES",
    "CHAR",
    "FLOAT32",
    "FLOAT64",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "STRING",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "UNICODE_SCALAR",
    "BoolType",
    "BytesType",
    "CharType",
    "FloatType",
    "FuzzType",
    "IntType",
    "MapType",
    "OptionalType",
    "ScalarType",
    "SequenceType",
    "SetType",
    "StringType",
]


class FuzzType(ABC):
    """Descriptor for a type that can be decoded from fuzzer bytes.

    Subclasses are frozen dataclasses, so descriptors compare by value and
    can be shared freely between targets.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Display name used in diagnostics and crash reports."""

    @property
    def size_hint(self) -> int | None:
        """Exact byte width for fixed-size types, None for variable-size types."""
        return None

    @property
    def hashable(self) -> bool:
        """Whether decoded values can be set elements or dict keys."""
        return True

    @abstractmethod
    def decode(self, cursor: ByteCursor) -> Any:
        """Decode one value, advancing cursor.

        Raises:
            InsufficientDataError: If a mandatory fixed-size read runs out
        """

    def format_value(self, value: Any) -> str:
        """Render a decoded value as a Python expression.

        The result is deterministic for a given value (sets are sorted) so
        crash reports and generated reproduction code are stable across runs.
        """
        return repr(value)

    def __str__(self) -> str:
        return self.type_name


# ============================================================================
# PRIMITIVES
# ============================================================================


@dataclass(frozen=True, slots=True)
class BoolType(FuzzType):
    """One byte; odd values are True."""

    @property
    def type_name(self) -> str:
        return "bool"

    @property
    def size_hint(self) -> int:
        return 1

    def decode(self, cursor: ByteCursor) -> bool:
        return cursor.read_byte(self.type_name) & 1 == 1


@dataclass(frozen=True, slots=True)
class IntType(FuzzType):
    """Fixed-width little-endian integer.

    Attributes:
        width: Size in bytes (1, 2, 4 or 8)
        signed: Two's complement when True
    """

    width: int
    signed: bool

    def __post_init__(self) -> None:
        if self.width not in (1, 2, 4, 8):
            msg = f"IntType width must be 1, 2, 4 or 8, got {self.width}"
            raise ValueError(msg)

    @property
    def type_name(self) -> str:
        prefix = "Int" if self.signed else "UInt"
        return f"{prefix}{self.width * 8}"

    @property
    def size_hint(self) -> int:
        return self.width

    def decode(self, cursor: ByteCursor) -> int:
        raw = cursor.read(self.width, self.type_name)
        return int.from_bytes(raw, "little", signed=self.signed)


@dataclass(frozen=True, slots=True)
class FloatType(FuzzType):
    """IEEE 754 binary32/binary64, little-endian.

    Non-finite results (NaN, +inf, -inf) are replaced with 0.0 so targets
    never see them.
    """

    width: int

    def __post_init__(self) -> None:
        if self.width not in (4, 8):
            msg = f"FloatType width must be 4 or 8, got {self.width}"
            raise ValueError(msg)

    @property
    def type_name(self) -> str:
        return f"Float{self.width * 8}"

    @property
    def size_hint(self) -> int:
        return self.width

    def decode(self, cursor: ByteCursor) -> float:
        raw = cursor.read(self.width, self.type_name)
        (value,) = struct.unpack("<f" if self.width == 4 else "<d", raw)
        if not math.isfinite(value):
            return 0.0
        return value


@dataclass(frozen=True, slots=True)
class CharType(FuzzType):
    """One byte mapped directly to code point 0-255 (Latin-1)."""

    @property
    def type_name(self) -> str:
        return "Char"

    @property
    def size_hint(self) -> int:
        return 1

    def decode(self, cursor: ByteCursor) -> str:
        return chr(cursor.read_byte(self.type_name))


@dataclass(frozen=True, slots=True)
class ScalarType(FuzzType):
    """Four bytes reduced to a valid Unicode scalar value.

    The little-endian u32 is taken modulo 0x110000. Results in the surrogate
    range become SCALAR_FALLBACK. Never fails once 4 bytes are available.
    """

    @property
    def type_name(self) -> str:
        return "UnicodeScalar"

    @property
    def size_hint(self) -> int:
        return 4

    def decode(self, cursor: ByteCursor) -> str:
        raw = cursor.read(4, self.type_name)
        code_point = int.from_bytes(raw, "little") % UNICODE_SCALAR_LIMIT
        if code_point in SURROGATE_RANGE:
            code_point = SCALAR_FALLBACK
        return chr(code_point)


@dataclass(frozen=True, slots=True)
class StringType(FuzzType):
    """Length-prefixed UTF-8 text.

    One length byte (0-255), then up to that many bytes, clamped to what the
    input still holds. A span that is not valid UTF-8 decodes to "" while the
    cursor still advances past it. Neither truncation nor bad UTF-8 raises;
    only a missing length byte does.
    """

    @property
    def type_name(self) -> str:
        return "str"

    def decode(self, cursor: ByteCursor) -> str:
        length = cursor.read_byte(self.type_name)
        raw = cursor.read_up_to(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            # Silent substitution, not InvalidDataError. Corpora depend on it.
            return ""


@dataclass(frozen=True, slots=True)
class BytesType(FuzzType):
    """Every remaining byte, unmodified. Never fails."""

    @property
    def type_name(self) -> str:
        return "bytes"

    def decode(self, cursor: ByteCursor) -> bytes:
        return cursor.read_rest()


# ============================================================================
# COMPOSITES
# ============================================================================


@dataclass(frozen=True, slots=True)
class OptionalType(FuzzType):
    """Presence byte (odd = present) followed by the wrapped value.

    An absent value consumes only the presence byte. A present value whose
    payload runs out propagates the wrapped type's error with the presence
    byte already consumed.
    """

    inner: FuzzType

    @property
    def type_name(self) -> str:
        return f"{self.inner.type_name} | None"

    @property
    def hashable(self) -> bool:
        return self.inner.hashable

    def decode(self, cursor: ByteCursor) -> Any:
        present = cursor.read_byte(self.type_name) & 1 == 1
        if not present:
            return None
        return self.inner.decode(cursor)

    def format_value(self, value: Any) -> str:
        if value is None:
            return "None"
        return self.inner.format_value(value)


def _decode_count(cursor: ByteCursor, type_name: str) -> int:
    """Read a collection count byte and clamp it to MAX_COLLECTION_COUNT."""
    return min(cursor.read_byte(type_name), MAX_COLLECTION_COUNT)


def _decode_elements(cursor: ByteCursor, element: FuzzType, type_name: str) -> list[Any]:
    """Decode a count-prefixed run of elements, stopping early on failure."""
    count = _decode_count(cursor, type_name)
    items: list[Any] = []
    for _ in range(count):
        if cursor.is_eof:
            break
        try:
            items.append(element.decode(cursor))
        except DecodeError:
            break
    return items


@dataclass(frozen=True, slots=True)
class SequenceType(FuzzType):
    """Count-prefixed list of elements.

    Decodes up to min(count, 32) elements one at a time and stops, without
    error, at end of input or at the first element that fails to decode.
    """

    element: FuzzType

    @property
    def type_name(self) -> str:
        return f"list[{self.element.type_name}]"

    @property
    def hashable(self) -> bool:
        return False

    def decode(self, cursor: ByteCursor) -> list[Any]:
        return _decode_elements(cursor, self.element, self.type_name)

    def format_value(self, value: Any) -> str:
        return "[" + ", ".join(self.element.format_value(v) for v in value) + "]"


@dataclass(frozen=True, slots=True)
class SetType(FuzzType):
    """Count-prefixed set; same layout and truncation policy as SequenceType.

    Attributes:
        element: Element descriptor (must be hashable)
        frozen: Produce a frozenset instead of a set
    """

    element: FuzzType
    frozen: bool = False

    def __post_init__(self) -> None:
        if not self.element.hashable:
            raise UnsupportedTypeError(
                ErrorTemplate.unsupported_type(self.element.type_name, "<set element>", "")
            )

    @property
    def type_name(self) -> str:
        kind = "frozenset" if self.frozen else "set"
        return f"{kind}[{self.element.type_name}]"

    @property
    def hashable(self) -> bool:
        return self.frozen

    def decode(self, cursor: ByteCursor) -> set[Any] | frozenset[Any]:
        items = _decode_elements(cursor, self.element, self.type_name)
        return frozenset(items) if self.frozen else set(items)

    def format_value(self, value: Any) -> str:
        rendered = sorted(self.element.format_value(v) for v in value)
        if self.frozen:
            return f"frozenset({{{', '.join(rendered)}}})" if rendered else "frozenset()"
        return "{" + ", ".join(rendered) + "}" if rendered else "set()"


@dataclass(frozen=True, slots=True)
class MapType(FuzzType):
    """Count-prefixed key/value pairs.

    Decodes up to min(count, 32) pairs; a repeated key keeps the later value.
    Stops without error at end of input or at the first pair whose key or
    value fails to decode. A half-decoded pair is dropped.
    """

    key: FuzzType
    value: FuzzType

    def __post_init__(self) -> None:
        if not self.key.hashable:
            raise UnsupportedTypeError(
                ErrorTemplate.unsupported_type(self.key.type_name, "<dict key>", "")
            )

    @property
    def type_name(self) -> str:
        return f"dict[{self.key.type_name}, {self.value.type_name}]"

    @property
    def hashable(self) -> bool:
        return False

    def decode(self, cursor: ByteCursor) -> dict[Any, Any]:
        count = _decode_count(cursor, self.type_name)
        result: dict[Any, Any] = {}
        for _ in range(count):
            if cursor.is_eof:
                break
            try:
                key = self.key.decode(cursor)
                item = self.value.decode(cursor)
            except DecodeError:
                break
            result[key] = item
        return result

    def format_value(self, value: Any) -> str:
        pairs = (
            f"{self.key.format_value(k)}: {self.value.format_value(v)}"
            for k, v in value.items()
        )
        return "{" + ", ".join(pairs) + "}"


# ============================================================================
# SHARED INSTANCES
# ============================================================================

BOOL = BoolType()
INT8 = IntType(1, signed=True)
INT16 = IntType(2, signed=True)
INT32 = IntType(4, signed=True)
INT64 = IntType(8, signed=True)
UINT8 = IntType(1, signed=False)
UINT16 = IntType(2, signed=False)
UINT32 = IntType(4, signed=False)
UINT64 = IntType(8, signed=False)
FLOAT32 = FloatType(4)
FLOAT64 = FloatType(8)
CHAR = CharType()
UNICODE_SCALAR = ScalarType()
STRING = StringType()
BYTES = BytesType()
