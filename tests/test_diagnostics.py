"""Tests for diagnostic codes, templates and the exception hierarchy."""

import pytest

from fuzzmux.diagnostics import (
    DecodeError,
    Diagnostic,
    DiagnosticCode,
    ErrorCategory,
    ErrorTemplate,
    FuzzError,
    InsufficientDataError,
    RegistrationError,
    TargetCollisionError,
    UnsupportedTypeError,
)


class TestDiagnosticCode:
    """Category follows the numeric range."""

    @pytest.mark.parametrize(
        ("code", "category"),
        [
            (DiagnosticCode.INSUFFICIENT_DATA, ErrorCategory.DECODE),
            (DiagnosticCode.OVERSIZED_COLLECTION, ErrorCategory.DECODE),
            (DiagnosticCode.HASH_COLLISION, ErrorCategory.REGISTRATION),
            (DiagnosticCode.NO_PARAMETERS, ErrorCategory.REGISTRATION),
            (DiagnosticCode.INPUT_TOO_SHORT, ErrorCategory.DISPATCH),
            (DiagnosticCode.TARGET_FAILED, ErrorCategory.DISPATCH),
        ],
    )
    def test_category(self, code: DiagnosticCode, category: ErrorCategory) -> None:
        assert code.category is category

    def test_values_unique(self) -> None:
        values = [code.value for code in DiagnosticCode]
        assert len(values) == len(set(values))


class TestFormatError:
    """Compiler-style rendering."""

    def test_minimal(self) -> None:
        diagnostic = Diagnostic(code=DiagnosticCode.NO_TARGETS, message="empty")
        assert diagnostic.format_error() == "error[NO_TARGETS]: empty"
        assert str(diagnostic) == "empty"

    def test_full(self) -> None:
        diagnostic = ErrorTemplate.insufficient_data("Int64", 8, 3, 12)
        assert diagnostic.format_error() == (
            "error[INSUFFICIENT_DATA]: Need 8 byte(s) for Int64, 3 available\n"
            "  --> byte 12\n"
            "  = type: Int64\n"
            "  = help: Inputs this short cannot reach the target body"
        )

    def test_target_line(self) -> None:
        diagnostic = ErrorTemplate.missing_annotation("value", "f(value:)")
        assert "  = target: f(value:)" in diagnostic.format_error()

    def test_warning_severity(self) -> None:
        diagnostic = Diagnostic(code=DiagnosticCode.TARGET_FAILED, message="m", severity="warning")
        assert diagnostic.format_error().startswith("warning[TARGET_FAILED]")


class TestTemplates:
    """Each template pins its code and the identifying fields."""

    def test_hash_collision(self) -> None:
        diagnostic = ErrorTemplate.hash_collision("a(x:)", "b(x:)", 0xBEEF)
        assert diagnostic.code is DiagnosticCode.HASH_COLLISION
        assert "0x0000BEEF" in diagnostic.message
        assert diagnostic.target_signature == "b(x:)"

    def test_oversized_collection(self) -> None:
        diagnostic = ErrorTemplate.oversized_collection("list[Int64]", 9000, 1000)
        assert diagnostic.message == "list[Int64] count 9000 exceeds limit 1000"

    def test_unsupported_type(self) -> None:
        diagnostic = ErrorTemplate.unsupported_type("complex", "value", "f(value:)")
        assert diagnostic.code is DiagnosticCode.UNSUPPORTED_TYPE
        assert diagnostic.type_name == "complex"

    def test_unsupported_parameter_kind(self) -> None:
        diagnostic = ErrorTemplate.unsupported_parameter_kind("args", "VAR_POSITIONAL", "f()")
        assert diagnostic.code is DiagnosticCode.UNSUPPORTED_TYPE
        assert "VAR_POSITIONAL" in diagnostic.message

    def test_no_parameters(self) -> None:
        diagnostic = ErrorTemplate.no_parameters("f()")
        assert diagnostic.code is DiagnosticCode.NO_PARAMETERS

    def test_invalid_data(self) -> None:
        diagnostic = ErrorTemplate.invalid_data("str", "bad UTF-8", 4)
        assert diagnostic.offset == 4
        assert diagnostic.code is DiagnosticCode.INVALID_DATA


class TestErrors:
    """Exception hierarchy and diagnostic attachment."""

    def test_hierarchy(self) -> None:
        assert issubclass(InsufficientDataError, DecodeError)
        assert issubclass(DecodeError, FuzzError)
        assert issubclass(TargetCollisionError, RegistrationError)
        assert issubclass(UnsupportedTypeError, RegistrationError)

    def test_plain_message(self) -> None:
        err = FuzzError("plain")
        assert err.diagnostic is None
        assert str(err) == "plain"

    def test_diagnostic_message(self) -> None:
        diagnostic = ErrorTemplate.no_parameters("f()")
        err = RegistrationError(diagnostic)
        assert err.diagnostic is diagnostic
        assert str(err) == diagnostic.format_error()

    def test_collision_defaults(self) -> None:
        err = TargetCollisionError("clash")
        assert err.existing_signature == ""
        assert err.hash_value == 0
