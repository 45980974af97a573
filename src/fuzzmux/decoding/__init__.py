"""Typed argument decoding from raw fuzzer bytes.

Submodules:
    cursor - ByteCursor, the shared read position
    types - FuzzType descriptors and their byte layouts
    annotations - Annotation to descriptor mapping and sized aliases

Python 3.13+. Zero external dependencies.
"""

from .annotations import (
    Char,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    UnicodeScalar,
    resolve_annotation,
)
from .cursor import ByteCursor
from .types import (
    BOOL,
    BYTES,
    CHAR,
    FLOAT32,
    FLOAT64,
    INT8,
    INT16,
    INT32,
    INT64,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    UNICODE_SCALAR,
    BoolType,
    BytesType,
    CharType,
    FloatType,
    FuzzType,
    IntType,
    MapType,
    OptionalType,
    ScalarType,
    SequenceType,
    SetType,
    StringType,
)

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
    "ByteCursor",
    "BytesType",
    "Char",
    "CharType",
    "Float32",
    "Float64",
    "FloatType",
    "FuzzType",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "IntType",
    "MapType",
    "OptionalType",
    "ScalarType",
    "SequenceType",
    "SetType",
    "StringType",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnicodeScalar",
    "resolve_annotation",
]
