"""fuzzmux exception hierarchy with structured diagnostics.

All exceptions optionally carry a Diagnostic for rich error information.

Decode errors are local: they abort decoding of the current element or
target and never surface past Registry.dispatch(). Registration errors are
raised at process start, before any input is processed.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic


class FuzzError(Exception):
    """Base exception for all fuzzmux errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize FuzzError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.format_error())
        else:
            self.diagnostic = None
            super().__init__(message)


class DecodeError(FuzzError):
    """Byte stream could not produce a value of the requested type."""


class InsufficientDataError(DecodeError):
    """Not enough bytes remain for a mandatory fixed-size field.

    Aborts decoding of the current target (or the current collection
    element, which then ends the collection early).
    """


class InvalidDataError(DecodeError):
    """Bytes are present but structurally invalid for the type.

    Reserved. The string decoder substitutes an empty string for invalid
    UTF-8 instead of raising this.
    """


class OversizedCollectionError(DecodeError):
    """Collection count exceeds the allowed maximum.

    Reserved. Oversized counts are clamped to MAX_COLLECTION_COUNT.
    """


class RegistrationError(FuzzError):
    """Target could not be registered."""


class TargetCollisionError(RegistrationError):
    """Two distinct signatures hash to the same selector.

    Attributes:
        existing_signature: Signature already registered under the hash
        new_signature: Signature whose registration was rejected
        hash_value: The shared 32-bit hash
    """

    def __init__(
        self,
        message: str | Diagnostic,
        *,
        existing_signature: str = "",
        new_signature: str = "",
        hash_value: int = 0,
    ) -> None:
        """Initialize TargetCollisionError.

        Args:
            message: Error message string OR Diagnostic object
            existing_signature: Signature already registered under the hash
            new_signature: Signature whose registration was rejected
            hash_value: The shared 32-bit hash
        """
        super().__init__(message)
        self.existing_signature = existing_signature
        self.new_signature = new_signature
        self.hash_value = hash_value


class UnsupportedTypeError(RegistrationError):
    """Parameter annotation has no decoder."""
