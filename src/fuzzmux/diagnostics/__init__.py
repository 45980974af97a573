"""Diagnostic system for fuzzmux errors.

Provides structured error diagnostics with codes, hints and byte offsets.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode, ErrorCategory
from .errors import (
    DecodeError,
    FuzzError,
    InsufficientDataError,
    InvalidDataError,
    OversizedCollectionError,
    RegistrationError,
    TargetCollisionError,
    UnsupportedTypeError,
)
from .templates import ErrorTemplate

__all__ = [
    "DecodeError",
    "Diagnostic",
    "DiagnosticCode",
    "ErrorCategory",
    "ErrorTemplate",
    "FuzzError",
    "InsufficientDataError",
    "InvalidDataError",
    "OversizedCollectionError",
    "RegistrationError",
    "TargetCollisionError",
    "UnsupportedTypeError",
]
