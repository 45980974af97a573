"""Adapter between typed Python functions and the raw-bytes dispatch contract.

The registry only knows targets as `decode_and_invoke(remaining: bytes)`. A
FuzzerAdapter builds that callable for an ordinary annotated function: the
parameter list is resolved to FuzzType descriptors once, at registration,
and each input is decoded in declared order from one shared cursor.

Architecture:
    - FuzzerAdapter: per-target parameter table plus decode/invoke steps
    - DecodedCall: decoded arguments with the byte span each one consumed
    - fuzz_test: decorator that registers a function with a Registry

Example:
    >>> registry = Registry()
    >>> @fuzz_test(registry)
    ... def parse(text: str, count: int) -> None:
    ...     ...
    >>> "parse(text:count:)" in registry
    True

Python 3.13+. Zero external dependencies.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fuzzmux.decoding.annotations import resolve_annotation
from fuzzmux.decoding.cursor import ByteCursor
from fuzzmux.decoding.types import FuzzType
from fuzzmux.diagnostics import DecodeError, ErrorTemplate, RegistrationError, UnsupportedTypeError

if TYPE_CHECKING:
    from fuzzmux.registry import Registry

__all__ = [
    "DecodedCall",
    "FuzzerAdapter",
    "TargetParameter",
    "build_signature",
    "fuzz_test",
]

logger = logging.getLogger(__name__)

_DECODABLE_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


def build_signature(name: str, parameter_names: list[str] | tuple[str, ...]) -> str:
    """Build the canonical target signature.

    The format is the function name followed by every parameter label and a
    colon, in declared order: ``f(text:count:)``. Corpora store the hash of
    this string, so it must not change for an existing target.

    Args:
        name: Target name
        parameter_names: Parameter names in declared order

    Returns:
        Signature string
    """
    return f"{name}(" + "".join(f"{param}:" for param in parameter_names) + ")"


@dataclass(frozen=True, slots=True)
class TargetParameter:
    """One decodable parameter of a fuzz target.

    Attributes:
        name: Parameter name
        fuzz_type: Decoder for the parameter's annotation
        keyword_only: Pass by keyword when invoking
    """

    name: str
    fuzz_type: FuzzType
    keyword_only: bool = False


@dataclass(frozen=True, slots=True)
class DecodedCall:
    """Result of decoding a target's arguments from one input.

    Attributes:
        arguments: Decoded values, in declared order. When decoding stopped
            early this holds only the parameters decoded before the failure.
        spans: Bytes consumed by each decoded argument
        error: The decode failure that stopped decoding, or None
    """

    arguments: tuple[Any, ...]
    spans: tuple[bytes, ...]
    error: DecodeError | None = None

    @property
    def complete(self) -> bool:
        """True when every parameter decoded and the target may be invoked."""
        return self.error is None


class FuzzerAdapter:
    """Typed decode-and-invoke step for one fuzz target.

    Memory Optimization:
        Uses __slots__; one adapter exists per registered target.
    """

    __slots__ = ("_function", "_name", "_parameters", "_signature")

    def __init__(self, function: Callable[..., Any], *, name: str | None = None) -> None:
        """Resolve the function's parameters to decoders.

        Args:
            function: Annotated function to fuzz
            name: Target name used in the signature (default: function.__name__)

        Raises:
            RegistrationError: If a parameter has no annotation or the
                function takes no parameters
            UnsupportedTypeError: If an annotation has no decoder, or a
                parameter is variadic
        """
        self._function = function
        self._name = name if name is not None else getattr(function, "__name__", "target")

        try:
            sig = inspect.signature(function, eval_str=True)
        except (NameError, TypeError, ValueError) as exc:
            reason = f"{type(exc).__name__}: {exc}"
            diagnostic = ErrorTemplate.signature_unavailable(self._name, reason)
            raise RegistrationError(diagnostic) from exc

        names = list(sig.parameters)
        self._signature = build_signature(self._name, names)

        if not names:
            raise RegistrationError(ErrorTemplate.no_parameters(self._signature))

        parameters: list[TargetParameter] = []
        for param in sig.parameters.values():
            if param.kind not in _DECODABLE_KINDS:
                raise UnsupportedTypeError(
                    ErrorTemplate.unsupported_parameter_kind(
                        param.name, param.kind.name, self._signature
                    )
                )
            if param.annotation is inspect.Parameter.empty:
                raise RegistrationError(
                    ErrorTemplate.missing_annotation(param.name, self._signature)
                )
            fuzz_type = resolve_annotation(
                param.annotation, parameter=param.name, signature=self._signature
            )
            parameters.append(
                TargetParameter(
                    name=param.name,
                    fuzz_type=fuzz_type,
                    keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
                )
            )
        self._parameters = tuple(parameters)

    @property
    def function(self) -> Callable[..., Any]:
        """The wrapped target function."""
        return self._function

    @property
    def name(self) -> str:
        """Target name as it appears in the signature."""
        return self._name

    @property
    def signature(self) -> str:
        """Canonical signature, e.g. ``f(text:count:)``."""
        return self._signature

    @property
    def parameters(self) -> tuple[TargetParameter, ...]:
        """Decodable parameters in declared order."""
        return self._parameters

    @property
    def call_name(self) -> str:
        """Name that calls the function from its defining module."""
        return getattr(self._function, "__name__", self._name)

    @property
    def module(self) -> str | None:
        """Defining module of the function, if known."""
        return getattr(self._function, "__module__", None)

    @property
    def qualname(self) -> str:
        """Qualified name of the function within its module."""
        return getattr(self._function, "__qualname__", self.call_name)

    def decode(self, data: bytes) -> DecodedCall:
        """Decode every parameter from data, in declared order.

        Never raises for malformed input: a parameter that runs out of bytes
        stops decoding and is reported through DecodedCall.error.

        Args:
            data: Post-selector bytes of one input

        Returns:
            DecodedCall with the decoded arguments and their byte spans
        """
        cursor = ByteCursor(data)
        arguments: list[Any] = []
        spans: list[bytes] = []
        for param in self._parameters:
            start = cursor.pos
            try:
                value = param.fuzz_type.decode(cursor)
            except DecodeError as exc:
                return DecodedCall(tuple(arguments), tuple(spans), exc)
            arguments.append(value)
            spans.append(cursor.consumed_since(start))
        return DecodedCall(tuple(arguments), tuple(spans))

    def invoke(self, call: DecodedCall) -> Any:
        """Call the target with fully decoded arguments.

        Raises:
            ValueError: If call is incomplete
        """
        if not call.complete:
            msg = f"Cannot invoke {self._signature} with incomplete arguments"
            raise ValueError(msg)
        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for param, value in zip(self._parameters, call.arguments, strict=True):
            if param.keyword_only:
                keywords[param.name] = value
            else:
                positional.append(value)
        return self._function(*positional, **keywords)

    def decode_and_invoke(self, data: bytes) -> Any:
        """Decode arguments from data and call the target.

        Raises:
            DecodeError: If a parameter ran out of bytes (target not called)
        """
        call = self.decode(data)
        if call.error is not None:
            raise call.error
        return self.invoke(call)

    def format_arguments(self, call: DecodedCall) -> list[str]:
        """Render each decoded argument as Python source, keywords included."""
        rendered: list[str] = []
        for param, value in zip(self._parameters, call.arguments, strict=False):
            text = param.fuzz_type.format_value(value)
            rendered.append(f"{param.name}={text}" if param.keyword_only else text)
        return rendered

    def reproduction_code(self, call: DecodedCall) -> str:
        """Python call expression reproducing the decoded invocation.

        Example:
            >>> adapter.reproduction_code(call)
            "parse('abc', 42)"
        """
        return f"{self.call_name}({', '.join(self.format_arguments(call))})"

    def __repr__(self) -> str:
        types = ", ".join(p.fuzz_type.type_name for p in self._parameters)
        return f"FuzzerAdapter({self._signature!r}, types=[{types}])"


def fuzz_test(
    registry: "Registry",
    *,
    name: str | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the decorated function as a fuzz target.

    The function is returned unchanged, so it stays directly callable from
    regression tests.

    Args:
        registry: Registry that receives the target
        name: Target name override (default: function.__name__)

    Returns:
        Decorator

    Raises:
        RegistrationError: At decoration time, if the function cannot be
            adapted or its signature collides with another target
    """

    def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
        adapter = FuzzerAdapter(function, name=name)
        registry.register(adapter.signature, adapter.decode_and_invoke, adapter=adapter)
        logger.debug("Registered fuzz target %s", adapter.signature)
        return function

    return decorator
