"""Map Python parameter annotations to FuzzType descriptors.

Resolution happens once, when a target is registered. Plain builtins map to
their natural descriptor; sized integers, 32-bit floats and the character
types are spelled with the Annotated aliases exported here.

Supported Annotations:
    bool                        -> bool
    int / Int64                 -> Int64 (8 bytes)
    Int8, Int16, Int32          -> signed fixed width
    UInt8 .. UInt64             -> unsigned fixed width
    float / Float64, Float32    -> IEEE 754
    Char, UnicodeScalar         -> one-character str
    str                         -> length-prefixed UTF-8
    bytes                       -> rest of the input
    T | None, Optional[T]       -> presence byte + T
    list[T], set[T], frozenset[T], dict[K, V]

Example:
    >>> from fuzzmux.decoding.annotations import Int8, resolve_annotation
    >>> resolve_annotation(list[Int8 | None]).type_name
    'list[Int8 | None]'

Python 3.13+. Zero external dependencies.
"""

import types
from typing import Annotated, Any, TypeAliasType, Union, get_args, get_origin

from fuzzmux.diagnostics import ErrorTemplate, UnsupportedTypeError

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
    FuzzType,
    MapType,
    OptionalType,
    SequenceType,
    SetType,
)

__all__ = [
    "Char",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnicodeScalar",
    "resolve_annotation",
]

# Sized aliases: usable anywhere a type hint is, decoded with the attached descriptor.
type Int8 = Annotated[int, INT8]
type Int16 = Annotated[int, INT16]
type Int32 = Annotated[int, INT32]
type Int64 = Annotated[int, INT64]
type UInt8 = Annotated[int, UINT8]
type UInt16 = Annotated[int, UINT16]
type UInt32 = Annotated[int, UINT32]
type UInt64 = Annotated[int, UINT64]
type Float32 = Annotated[float, FLOAT32]
type Float64 = Annotated[float, FLOAT64]
type Char = Annotated[str, CHAR]
type UnicodeScalar = Annotated[str, UNICODE_SCALAR]

_BUILTINS: dict[Any, FuzzType] = {
    bool: BOOL,
    int: INT64,
    float: FLOAT64,
    str: STRING,
    bytes: BYTES,
}


def resolve_annotation(
    annotation: Any,
    *,
    parameter: str = "<value>",
    signature: str = "",
) -> FuzzType:
    """Resolve a type annotation to its decoder.

    Args:
        annotation: Evaluated annotation (from typing.get_type_hints with
            include_extras=True) or a FuzzType instance
        parameter: Parameter name for error messages
        signature: Target signature for error messages

    Returns:
        The FuzzType that decodes values of this annotation

    Raises:
        UnsupportedTypeError: If no decoder exists for the annotation
    """
    try:
        return _resolve(annotation)
    except UnsupportedTypeError:
        raise UnsupportedTypeError(
            ErrorTemplate.unsupported_type(_annotation_text(annotation), parameter, signature)
        ) from None


def _resolve(annotation: Any) -> FuzzType:
    if isinstance(annotation, FuzzType):
        return annotation

    # PEP 695 aliases (Int8, UInt16, ...) wrap their Annotated value
    if isinstance(annotation, TypeAliasType):
        return _resolve(annotation.__value__)

    if annotation in _BUILTINS:
        return _BUILTINS[annotation]

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        for meta in annotation.__metadata__:
            if isinstance(meta, FuzzType):
                return meta
        return _resolve(args[0])

    if origin in (Union, types.UnionType):
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(args) == 2:
            return OptionalType(_resolve(members[0]))
        raise UnsupportedTypeError(_annotation_text(annotation))

    if origin is list and len(args) == 1:
        return SequenceType(_resolve(args[0]))
    if origin is set and len(args) == 1:
        return SetType(_resolve(args[0]))
    if origin is frozenset and len(args) == 1:
        return SetType(_resolve(args[0]), frozen=True)
    if origin is dict and len(args) == 2:
        return MapType(_resolve(args[0]), _resolve(args[1]))

    raise UnsupportedTypeError(_annotation_text(annotation))


def _annotation_text(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation)
