"""Diagnostic codes and data structures.

Defines error codes and diagnostic messages shared by the decoders, the
registry and the offline analysis tooling.

Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Literal

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "ErrorCategory",
]


class ErrorCategory(StrEnum):
    """Error categorization for log aggregation and reports.

    Categories:
        DECODE: Byte stream could not produce a typed value
        REGISTRATION: Target could not be registered
        DISPATCH: Input could not be routed to a target
    """

    DECODE = "decode"
    REGISTRATION = "registration"
    DISPATCH = "dispatch"


class DiagnosticCode(Enum):
    """Error codes with unique identifiers.

    Organized by category:
        1000-1999: Decode errors (byte stream to typed value)
        2000-2999: Registration errors (target setup)
        3000-3999: Dispatch and analysis conditions
    """

    # Decode errors (1000-1999)
    INSUFFICIENT_DATA = 1001
    INVALID_DATA = 1002
    OVERSIZED_COLLECTION = 1003

    # Registration errors (2000-2999)
    HASH_COLLISION = 2001
    UNSUPPORTED_TYPE = 2002
    MISSING_ANNOTATION = 2003
    NO_PARAMETERS = 2004
    SIGNATURE_UNAVAILABLE = 2005

    # Dispatch and analysis (3000-3999)
    INPUT_TOO_SHORT = 3001
    NO_TARGETS = 3002
    TARGET_FAILED = 3003

    @property
    def category(self) -> ErrorCategory:
        """Category derived from the code's numeric range."""
        if self.value < 2000:
            return ErrorCategory.DECODE
        if self.value < 3000:
            return ErrorCategory.REGISTRATION
        return ErrorCategory.DISPATCH


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Structured diagnostic message.

    Attributes:
        code: Unique error code
        message: Human-readable error description
        hint: Suggestion for fixing the error
        offset: Byte offset in the input where the condition was detected
        type_name: Display name of the type being decoded or registered
        target_signature: Signature of the target involved, if any
        severity: Error severity level
    """

    code: DiagnosticCode
    message: str
    hint: str | None = None
    offset: int | None = None
    type_name: str | None = None
    target_signature: str | None = None
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        """Return human-readable error description."""
        return self.message

    def format_error(self) -> str:
        """Format diagnostic like a compiler message.

        Example output:
            error[INSUFFICIENT_DATA]: Need 8 bytes for Int64, 3 available
              --> byte 12
              = type: Int64
              = help: Inputs this short cannot reach the target

        Returns:
            Formatted error message
        """
        lines = [f"{self.severity}[{self.code.name}]: {self.message}"]
        if self.offset is not None:
            lines.append(f"  --> byte {self.offset}")
        if self.target_signature is not None:
            lines.append(f"  = target: {self.target_signature}")
        if self.type_name is not None:
            lines.append(f"  = type: {self.type_name}")
        if self.hint is not None:
            lines.append(f"  = help: {self.hint}")
        return "\n".join(lines)
