"""Target registry and selector dispatch.

One Registry multiplexes a single fuzzing entry point over many targets. The
first SELECTOR_SIZE bytes of each input pick the target; the rest are the
target's argument bytes.

Selection:
    1. selector = first 4 bytes, little-endian
    2. exact match on a registered hash wins
    3. otherwise the smallest registered hash >= selector (lower bound)
    4. otherwise wrap to the smallest registered hash

Rules 3 and 4 make dispatch total over the 32-bit selector space whenever at
least one target exists, and keep small selector mutations on the same
target.

Example:
    >>> registry = Registry()
    >>> registry.register("ping(data:)", lambda data: None)
    >>> registry.dispatch(registry.selector_for("ping(data:)") + b"x").outcome
    <DispatchOutcome.INVOKED: 'invoked'>

Python 3.13+. Zero external dependencies.
"""

import bisect
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from fuzzmux.adapter import DecodedCall, FuzzerAdapter
from fuzzmux.constants import HASH_MASK, HASH_MULTIPLIER, HASH_SEED, SELECTOR_SIZE
from fuzzmux.diagnostics import ErrorTemplate, TargetCollisionError

if TYPE_CHECKING:
    from fuzzmux.crash import CrashRecorder

__all__ = [
    "DispatchOutcome",
    "DispatchResult",
    "FuzzTarget",
    "Registry",
    "Resolution",
    "stable_hash",
]

logger = logging.getLogger(__name__)


def stable_hash(signature: str) -> int:
    """djb2 hash of the UTF-8 encoded signature, reduced to 32 bits.

    Corpus files persist this value as their selector, so the result for a
    given signature must never change.

    Example:
        >>> stable_hash("")
        5381
    """
    h = HASH_SEED
    for byte in signature.encode("utf-8"):
        h = (h * HASH_MULTIPLIER + byte) & HASH_MASK
    return h


@dataclass(frozen=True, slots=True)
class FuzzTarget:
    """A registered target.

    Attributes:
        signature: Canonical signature; the target's identity
        hash: stable_hash(signature)
        decode_and_invoke: Callable taking the post-selector bytes
        adapter: Typed adapter, or None for raw-bytes targets
    """

    signature: str
    hash: int
    decode_and_invoke: Callable[[bytes], Any]
    adapter: FuzzerAdapter | None = None

    def decode(self, remaining: bytes) -> DecodedCall:
        """Decode arguments without invoking.

        Raw-bytes targets receive the whole remainder as one argument.
        """
        if self.adapter is not None:
            return self.adapter.decode(remaining)
        return DecodedCall((remaining,), (remaining,))

    def invoke(self, call: DecodedCall, remaining: bytes) -> Any:
        """Invoke with an already decoded call."""
        if self.adapter is not None:
            return self.adapter.invoke(call)
        return self.decode_and_invoke(remaining)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a selector.

    Attributes:
        selector: Selector read from the input
        target: Target chosen
        exact: False when the nearest-hash fallback picked the target
    """

    selector: int
    target: FuzzTarget
    exact: bool


class DispatchOutcome(StrEnum):
    """What dispatch did with one input."""

    TOO_SHORT = "too_short"
    NO_TARGETS = "no_targets"
    DECODE_ABORTED = "decode_aborted"
    TARGET_FAILED = "target_failed"
    INVOKED = "invoked"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Dispatch outcome plus the resolution, when one happened."""

    outcome: DispatchOutcome
    resolution: Resolution | None = None


class Registry:
    """Hash-keyed collection of fuzz targets.

    Supports dict-like introspection by signature:
        - __iter__: Iterate over signatures in hash order
        - __len__: Count registered targets
        - __contains__: Check if a signature is registered
        - get(signature): Look up a target

    Registration is expected once at process start; the registry is read-only
    afterwards.

    Attributes:
        fatal_exceptions: Exception types re-raised from targets instead of
            being absorbed, so the fuzzing engine records them as crashes
    """

    __slots__ = ("_by_signature", "_sorted_hashes", "_targets", "fatal_exceptions")

    def __init__(self, *, fatal_exceptions: tuple[type[BaseException], ...] = ()) -> None:
        """Initialize empty registry."""
        self._targets: dict[int, FuzzTarget] = {}
        self._sorted_hashes: list[int] = []
        self._by_signature: dict[str, FuzzTarget] = {}
        self.fatal_exceptions = fatal_exceptions

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        signature: str,
        decode_and_invoke: Callable[[bytes], Any],
        *,
        adapter: FuzzerAdapter | None = None,
    ) -> FuzzTarget:
        """Register a target under its signature.

        Args:
            signature: Canonical target signature
            decode_and_invoke: Callable receiving the post-selector bytes
            adapter: Typed adapter used for crash descriptions

        Returns:
            The registered target

        Raises:
            TargetCollisionError: If a different signature already owns the
                same hash. The registry is left unchanged.
        """
        return self.add(FuzzTarget(signature, stable_hash(signature), decode_and_invoke, adapter))

    def add(self, target: FuzzTarget) -> FuzzTarget:
        """Insert a prebuilt target under target.hash.

        register() is the normal entry point. add() accepts any hash, which
        lets tests lay out a registry with chosen hash values.

        Raises:
            TargetCollisionError: If a different signature already owns
                target.hash. The registry is left unchanged.
        """
        existing = self._targets.get(target.hash)
        if existing is not None and existing.signature != target.signature:
            raise TargetCollisionError(
                ErrorTemplate.hash_collision(existing.signature, target.signature, target.hash),
                existing_signature=existing.signature,
                new_signature=target.signature,
                hash_value=target.hash,
            )

        previous = self._by_signature.get(target.signature)
        if previous is not None and previous.hash != target.hash:
            del self._targets[previous.hash]
            self._sorted_hashes.remove(previous.hash)

        if existing is None:
            bisect.insort(self._sorted_hashes, target.hash)
        else:
            logger.debug("Replacing fuzz target %s", target.signature)
        self._targets[target.hash] = target
        self._by_signature[target.signature] = target
        return target

    def register_function(
        self, function: Callable[..., Any], *, name: str | None = None
    ) -> FuzzTarget:
        """Adapt an annotated function and register it.

        Equivalent to decorating the function with fuzz_test(self).
        """
        adapter = FuzzerAdapter(function, name=name)
        return self.register(adapter.signature, adapter.decode_and_invoke, adapter=adapter)

    def clear(self) -> None:
        """Remove every target."""
        self._targets.clear()
        self._sorted_hashes.clear()
        self._by_signature.clear()

    # ------------------------------------------------------------------
    # Resolution and dispatch
    # ------------------------------------------------------------------

    def resolve(self, selector: int) -> Resolution | None:
        """Pick the target for a selector.

        Returns:
            Resolution, or None if the registry is empty
        """
        target = self._targets.get(selector)
        if target is not None:
            return Resolution(selector, target, exact=True)
        if not self._sorted_hashes:
            return None
        index = bisect.bisect_left(self._sorted_hashes, selector)
        if index == len(self._sorted_hashes):
            index = 0
        return Resolution(selector, self._targets[self._sorted_hashes[index]], exact=False)

    def dispatch(self, data: bytes, recorder: "CrashRecorder | None" = None) -> DispatchResult:
        """Route one input to a target and invoke it.

        Never raises for any input: decode failures skip the target and
        target exceptions are logged and absorbed, except for types listed
        in fatal_exceptions.

        Args:
            data: Raw input from the fuzzing engine
            recorder: Receives a crash snapshot before each invocation

        Returns:
            DispatchResult describing what happened
        """
        if len(data) < SELECTOR_SIZE:
            return DispatchResult(DispatchOutcome.TOO_SHORT)

        selector = int.from_bytes(data[:SELECTOR_SIZE], "little")
        remaining = data[SELECTOR_SIZE:]
        resolution = self.resolve(selector)
        if resolution is None:
            return DispatchResult(DispatchOutcome.NO_TARGETS)

        target = resolution.target
        call = target.decode(remaining)
        if recorder is not None:
            recorder.record(target, remaining, call)
        if not call.complete:
            return DispatchResult(DispatchOutcome.DECODE_ABORTED, resolution)

        return DispatchResult(self._invoke(target, call, remaining), resolution)

    def _invoke(self, target: FuzzTarget, call: DecodedCall, remaining: bytes) -> DispatchOutcome:
        try:
            target.invoke(call, remaining)
        except self.fatal_exceptions:
            logger.error("Fatal exception in fuzz target %s", target.signature)
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning(
                "Fuzz target %s raised %s: %s", target.signature, type(exc).__name__, exc
            )
            return DispatchOutcome.TARGET_FAILED
        return DispatchOutcome.INVOKED

    def run_named(self, signature: str, data: bytes) -> DispatchOutcome:
        """Run one target by signature with argument bytes (no selector).

        Raises:
            KeyError: If no target has this signature
        """
        target = self.get(signature)
        if target is None:
            raise KeyError(signature)
        call = target.decode(data)
        if not call.complete:
            return DispatchOutcome.DECODE_ABORTED
        return self._invoke(target, call, data)

    def run_all(self, data: bytes) -> dict[str, DispatchOutcome]:
        """Run every target with the same argument bytes, in hash order."""
        return {
            target.signature: self.run_named(target.signature, data)
            for target in self.targets()
        }

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @staticmethod
    def selector_for(signature: str) -> bytes:
        """Selector bytes that address a signature exactly (seed corpora)."""
        return stable_hash(signature).to_bytes(SELECTOR_SIZE, "little")

    def get(self, signature: str) -> FuzzTarget | None:
        """Look up a target by signature."""
        return self._by_signature.get(signature)

    def targets(self) -> list[FuzzTarget]:
        """Registered targets, ordered by hash."""
        return [self._targets[h] for h in self._sorted_hashes]

    @property
    def hashes(self) -> tuple[int, ...]:
        """Registered hashes in ascending order."""
        return tuple(self._sorted_hashes)

    def __iter__(self) -> Iterator[str]:
        return (self._targets[h].signature for h in self._sorted_hashes)

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, signature: object) -> bool:
        return isinstance(signature, str) and self.get(signature) is not None

    def __repr__(self) -> str:
        return f"Registry(targets={len(self._targets)})"
