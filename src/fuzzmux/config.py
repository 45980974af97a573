"""Harness configuration.

One frozen dataclass gathers every runtime knob of FuzzHarness. The byte
layout itself (selector width, hash constants, collection cap) is fixed in
constants.py and deliberately not configurable: changing it would invalidate
every saved corpus.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from fuzzmux.constants import DEFAULT_CRASH_INFO_FILENAME, DEFAULT_HEX_PREVIEW_BYTES

__all__ = ["HarnessConfig"]


@dataclass(frozen=True, slots=True)
class HarnessConfig:
    """Immutable configuration for FuzzHarness.

    Constructing ``HarnessConfig()`` with no arguments gives the default
    policy: crash snapshots kept in memory only, every target exception
    absorbed, fuzzmux logging silenced below WARNING.

    Attributes:
        persist_crash_info: Write each crash snapshot to crash_info_path
            (default: False). Only snapshots taken before an invocation are
            written; decode aborts are not. Each write is a synchronous file
            rewrite per invoked input, which lowers fuzzing throughput.
            Writes are best-effort and never raise.
        crash_info_path: Snapshot file written when persist_crash_info is set.
        hex_preview_bytes: Maximum bytes shown per argument hex preview
            (default: 32).
        fatal_exceptions: Exception types re-raised from targets so the
            fuzzing engine saves a crash artifact (default: none).
        log_level: Level applied to the ``fuzzmux`` logger while fuzzing
            (default: WARNING).
        report_path: JSON summary file written at exit, or None.
        checkpoint_interval: Iterations between progress log lines
            (default: 10000).

    Example:
        >>> config = HarnessConfig(fatal_exceptions=(AssertionError,))
        >>> harness = FuzzHarness(registry, config)
    """

    persist_crash_info: bool = False
    crash_info_path: Path = Path(DEFAULT_CRASH_INFO_FILENAME)
    hex_preview_bytes: int = DEFAULT_HEX_PREVIEW_BYTES
    fatal_exceptions: tuple[type[BaseException], ...] = ()
    log_level: int = logging.WARNING
    report_path: Path | None = None
    checkpoint_interval: int = 10_000

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If hex_preview_bytes or checkpoint_interval is not
                positive
            TypeError: If fatal_exceptions holds something other than
                exception classes
        """
        if self.hex_preview_bytes <= 0:
            msg = "hex_preview_bytes must be positive"
            raise ValueError(msg)
        if self.checkpoint_interval <= 0:
            msg = "checkpoint_interval must be positive"
            raise ValueError(msg)
        for exc_type in self.fatal_exceptions:
            if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
                msg = f"fatal_exceptions entries must be exception classes, got {exc_type!r}"
                raise TypeError(msg)
