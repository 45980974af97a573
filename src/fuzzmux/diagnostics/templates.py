"""Error message templates.

Centralized error message templates for testable, consistent error messages.
Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode


class ErrorTemplate:
    """Centralized error message templates.

    All error messages are created here. NO f-strings in exception constructors!
    This keeps messages testable and documents every error case in one place.
    """

    @staticmethod
    def insufficient_data(type_name: str, needed: int, available: int, offset: int) -> Diagnostic:
        """Fixed-size read ran past the end of the input.

        Args:
            type_name: Display name of the type being decoded
            needed: Bytes the read requires
            available: Bytes left in the input
            offset: Cursor position at the failed read

        Returns:
            Diagnostic for INSUFFICIENT_DATA
        """
        msg = f"Need {needed} byte(s) for {type_name}, {available} available"
        return Diagnostic(
            code=DiagnosticCode.INSUFFICIENT_DATA,
            message=msg,
            hint="Inputs this short cannot reach the target body",
            offset=offset,
            type_name=type_name,
        )

    @staticmethod
    def invalid_data(type_name: str, reason: str, offset: int) -> Diagnostic:
        """Bytes present but structurally invalid.

        Args:
            type_name: Display name of the type being decoded
            reason: What made the bytes invalid
            offset: Cursor position of the invalid span

        Returns:
            Diagnostic for INVALID_DATA
        """
        msg = f"Invalid data for {type_name}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.INVALID_DATA,
            message=msg,
            offset=offset,
            type_name=type_name,
        )

    @staticmethod
    def oversized_collection(type_name: str, count: int, limit: int) -> Diagnostic:
        """Collection count above the maximum.

        Args:
            type_name: Display name of the collection type
            count: Requested element count
            limit: Maximum allowed count

        Returns:
            Diagnostic for OVERSIZED_COLLECTION
        """
        msg = f"{type_name} count {count} exceeds limit {limit}"
        return Diagnostic(
            code=DiagnosticCode.OVERSIZED_COLLECTION,
            message=msg,
            type_name=type_name,
        )

    @staticmethod
    def hash_collision(existing: str, new: str, hash_value: int) -> Diagnostic:
        """Two signatures share one selector hash.

        Args:
            existing: Signature already registered
            new: Signature being registered
            hash_value: Shared hash

        Returns:
            Diagnostic for HASH_COLLISION
        """
        msg = (
            f"Signature '{new}' collides with '{existing}' "
            f"on hash 0x{hash_value:08X}"
        )
        return Diagnostic(
            code=DiagnosticCode.HASH_COLLISION,
            message=msg,
            hint="Rename one of the targets; the earlier one would become unreachable",
            target_signature=new,
        )

    @staticmethod
    def unsupported_type(annotation: str, parameter: str, signature: str) -> Diagnostic:
        """Parameter annotation has no decoder.

        Args:
            annotation: Text of the offending annotation
            parameter: Parameter name
            signature: Target signature being registered

        Returns:
            Diagnostic for UNSUPPORTED_TYPE
        """
        msg = f"Parameter '{parameter}' has unsupported type {annotation}"
        return Diagnostic(
            code=DiagnosticCode.UNSUPPORTED_TYPE,
            message=msg,
            hint=(
                "Use bool, int, float, str, bytes, the sized aliases from "
                "fuzzmux, or Optional/list/set/dict of those"
            ),
            type_name=annotation,
            target_signature=signature,
        )

    @staticmethod
    def missing_annotation(parameter: str, signature: str) -> Diagnostic:
        """Parameter has no type annotation.

        Args:
            parameter: Parameter name
            signature: Target signature being registered

        Returns:
            Diagnostic for MISSING_ANNOTATION
        """
        msg = f"Parameter '{parameter}' has no type annotation"
        return Diagnostic(
            code=DiagnosticCode.MISSING_ANNOTATION,
            message=msg,
            hint="Every fuzz target parameter needs an annotation to pick its decoder",
            target_signature=signature,
        )

    @staticmethod
    def no_parameters(signature: str) -> Diagnostic:
        """Target takes no parameters, so there is nothing to decode."""
        msg = f"Target '{signature}' takes no parameters"
        return Diagnostic(
            code=DiagnosticCode.NO_PARAMETERS,
            message=msg,
            hint="Register a raw bytes target instead if the input is unused",
            target_signature=signature,
        )

    @staticmethod
    def signature_unavailable(name: str, reason: str) -> Diagnostic:
        """Signature could not be read or its annotations could not be evaluated.

        Args:
            name: Target name
            reason: Text of the underlying error

        Returns:
            Diagnostic for SIGNATURE_UNAVAILABLE
        """
        msg = f"Cannot read the signature of {name}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.SIGNATURE_UNAVAILABLE,
            message=msg,
            hint="Targets must be Python functions whose annotations evaluate at registration",
        )

    @staticmethod
    def unsupported_parameter_kind(parameter: str, kind: str, signature: str) -> Diagnostic:
        """Variadic parameter on a decoded target.

        Args:
            parameter: Parameter name
            kind: Parameter kind description (e.g. "VAR_POSITIONAL")
            signature: Target signature being registered

        Returns:
            Diagnostic for UNSUPPORTED_TYPE
        """
        msg = f"Parameter '{parameter}' of kind {kind} cannot be decoded"
        return Diagnostic(
            code=DiagnosticCode.UNSUPPORTED_TYPE,
            message=msg,
            hint="Fuzz targets take a fixed list of annotated parameters",
            target_signature=signature,
        )
