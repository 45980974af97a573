"""Crash snapshots: what was about to run when the process died.

Before every invocation the registry hands the decoded call to a
CrashRecorder, which keeps exactly one CrashInfo: the most recent. A fuzz
target that kills the process (native crash, os.abort, fatal exception)
leaves no chance to compute anything afterwards, so the snapshot is built
eagerly on every dispatch and must stay cheap.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fuzzmux.constants import DEFAULT_HEX_PREVIEW_BYTES

if TYPE_CHECKING:
    from pathlib import Path

    from fuzzmux.adapter import DecodedCall
    from fuzzmux.config import HarnessConfig
    from fuzzmux.registry import FuzzTarget

__all__ = [
    "CrashInfo",
    "CrashRecorder",
    "build_reproduction_code",
    "describe_arguments",
    "format_crash_banner",
    "hex_preview",
]

logger = logging.getLogger(__name__)

_BANNER_RULE = "=" * 60
_BANNER_RAW_BYTES = 32


def hex_preview(data: bytes, limit: int = DEFAULT_HEX_PREVIEW_BYTES) -> str:
    """Uppercase space-separated hex of the first limit bytes.

    Example:
        >>> hex_preview(b"\\x03abc")
        '03 61 62 63'
        >>> hex_preview(bytes(40), 2)
        '00 00...'
    """
    if not data:
        return "(empty)"
    text = " ".join(f"{byte:02X}" for byte in data[:limit])
    return text + "..." if len(data) > limit else text


def describe_arguments(
    target: FuzzTarget,
    call: DecodedCall,
    hex_limit: int = DEFAULT_HEX_PREVIEW_BYTES,
) -> tuple[str, ...]:
    """Describe each decoded argument as ``name: Type = value [hex: ..]``.

    Raw-bytes targets have a single ``data: bytes`` argument.
    """
    adapter = target.adapter
    if adapter is None:
        return tuple(
            f"data: bytes = {value!r} [hex: {hex_preview(span, hex_limit)}]"
            for value, span in zip(call.arguments, call.spans, strict=True)
        )
    return tuple(
        f"{param.name}: {param.fuzz_type.type_name} = "
        f"{param.fuzz_type.format_value(value)} [hex: {hex_preview(span, hex_limit)}]"
        for param, value, span in zip(adapter.parameters, call.arguments, call.spans, strict=False)
    )


def build_reproduction_code(target: FuzzTarget, call: DecodedCall) -> str:
    """Python call expression for the decoded invocation.

    Incomplete calls produce a comment stating the target was not invoked.
    """
    if not call.complete:
        return f"# {target.signature}: not invoked ({type(call.error).__name__})"
    if target.adapter is not None:
        return target.adapter.reproduction_code(call)
    name = target.signature.split("(", 1)[0]
    return f"{name}({', '.join(repr(arg) for arg in call.arguments)})"


@dataclass(frozen=True, slots=True)
class CrashInfo:
    """Snapshot of the most recent dispatch.

    Attributes:
        target_signature: Signature of the dispatched target
        target_hash: Hash of the dispatched target
        raw_input: Post-selector bytes handed to the target
        decoded_arguments: One description per decoded argument
        reproduction_code: Python call expression reproducing the call
        timestamp: UTC time the snapshot was taken
    """

    target_signature: str
    target_hash: int
    raw_input: bytes
    decoded_arguments: tuple[str, ...]
    reproduction_code: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


def format_crash_banner(info: CrashInfo) -> str:
    """Multi-line report printed when a fatal finding propagates."""
    arguments = ", ".join(info.decoded_arguments) if info.decoded_arguments else "(none)"
    lines = [
        _BANNER_RULE,
        "FATAL ERROR IN FUZZ TARGET",
        _BANNER_RULE,
        f"Crashed function: {info.target_signature}",
        f"Function hash: 0x{info.target_hash:08X}",
        f"Input: {len(info.raw_input)} bytes",
        "Reproduction code:",
        f"    {info.reproduction_code}",
        f"Arguments: {arguments}",
        f"Raw input: {hex_preview(info.raw_input, _BANNER_RAW_BYTES)}",
        f"Captured: {info.timestamp.isoformat()}",
        _BANNER_RULE,
    ]
    return "\n".join(lines)


class CrashRecorder:
    """Holds the single current CrashInfo and optionally mirrors it to disk."""

    __slots__ = ("_config", "_last")

    def __init__(self, config: HarnessConfig | None = None) -> None:
        self._config = config
        self._last: CrashInfo | None = None

    @property
    def last(self) -> CrashInfo | None:
        """Most recent snapshot, or None before the first dispatch."""
        return self._last

    def record(self, target: FuzzTarget, remaining: bytes, call: DecodedCall) -> CrashInfo:
        """Replace the current snapshot with one for this dispatch.

        With persist_crash_info set, complete calls are also written to
        crash_info_path; incomplete calls only replace the in-memory snapshot.

        Args:
            target: Target about to be invoked
            remaining: Post-selector bytes
            call: Decoded arguments (possibly incomplete)

        Returns:
            The new snapshot
        """
        hex_limit = (
            self._config.hex_preview_bytes
            if self._config is not None
            else DEFAULT_HEX_PREVIEW_BYTES
        )
        info = CrashInfo(
            target_signature=target.signature,
            target_hash=target.hash,
            raw_input=remaining,
            decoded_arguments=describe_arguments(target, call, hex_limit),
            reproduction_code=build_reproduction_code(target, call),
        )
        self._last = info
        if call.complete and self._config is not None and self._config.persist_crash_info:
            self._persist(info, self._config.crash_info_path)
        return info

    def clear(self) -> None:
        """Drop the current snapshot."""
        self._last = None

    @staticmethod
    def _persist(info: CrashInfo, path: Path) -> None:
        try:
            path.write_text(format_crash_banner(info), encoding="utf-8")
        except OSError:
            logger.debug("Could not persist crash info to %s", path)
