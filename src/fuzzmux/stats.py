"""Run statistics for the fuzzing harness.

Counts what dispatch did with each input and samples process memory, then
emits a crash-proof JSON summary at exit: the report goes to stderr between
``[SUMMARY-JSON-BEGIN]`` and ``[SUMMARY-JSON-END]`` markers (so it survives
even if the file write fails) and, best-effort, to a file.
"""

from __future__ import annotations

import json
import os
import statistics
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import psutil

from fuzzmux.registry import DispatchOutcome

if TYPE_CHECKING:
    from pathlib import Path

    from fuzzmux.registry import DispatchResult

__all__ = [
    "MEMORY_SAMPLE_INTERVAL",
    "HarnessStats",
    "build_stats_dict",
    "current_rss_mb",
    "emit_report",
    "get_process",
]

type FuzzStats = dict[str, int | str | float | list[Any]]

MEMORY_SAMPLE_INTERVAL = 100
"""Iterations between RSS memory samples."""

_MEMORY_LEAK_THRESHOLD_MB = 10.0


_process: psutil.Process | None = None


def get_process() -> psutil.Process:
    """Lazy-initialize psutil process handle."""
    global _process  # noqa: PLW0603  # pylint: disable=global-statement
    if _process is None:
        _process = psutil.Process(os.getpid())
    return _process


def current_rss_mb() -> float:
    """Resident set size of this process in MiB."""
    return get_process().memory_info().rss / (1024 * 1024)


@dataclass
class HarnessStats:
    """Counters for one fuzzing run."""

    iterations: int = 0
    status: str = "incomplete"

    outcomes: dict[str, int] = field(default_factory=dict)
    target_dispatches: dict[str, int] = field(default_factory=dict)
    fallback_dispatches: int = 0

    memory_history: deque[float] = field(default_factory=lambda: deque(maxlen=1000))
    initial_memory_mb: float = 0.0

    def record(self, result: DispatchResult) -> None:
        """Account for one dispatch."""
        self.iterations += 1
        self.outcomes[result.outcome] = self.outcomes.get(result.outcome, 0) + 1
        resolution = result.resolution
        if resolution is not None:
            signature = resolution.target.signature
            self.target_dispatches[signature] = self.target_dispatches.get(signature, 0) + 1
            if not resolution.exact:
                self.fallback_dispatches += 1
        if self.iterations % MEMORY_SAMPLE_INTERVAL == 0:
            self.memory_history.append(current_rss_mb())

    def count(self, outcome: DispatchOutcome) -> int:
        """Number of dispatches that ended with outcome."""
        return self.outcomes.get(outcome, 0)


def _add_memory_stats(stats_obj: HarnessStats, stats: FuzzStats) -> None:
    if not stats_obj.memory_history:
        return

    mem_data = list(stats_obj.memory_history)
    stats["memory_mean_mb"] = round(statistics.mean(mem_data), 2)
    stats["memory_peak_mb"] = round(max(mem_data), 2)
    stats["memory_delta_mb"] = round(max(mem_data) - stats_obj.initial_memory_mb, 2)

    if len(mem_data) >= 40:
        first_quarter = mem_data[: len(mem_data) // 4]
        last_quarter = mem_data[-(len(mem_data) // 4) :]
        growth_mb = statistics.mean(last_quarter) - statistics.mean(first_quarter)
        stats["memory_leak_detected"] = 1 if growth_mb > _MEMORY_LEAK_THRESHOLD_MB else 0
        stats["memory_growth_mb"] = round(growth_mb, 2)
    else:
        stats["memory_leak_detected"] = 0
        stats["memory_growth_mb"] = 0.0


def build_stats_dict(stats_obj: HarnessStats) -> FuzzStats:
    """Build the JSON summary dictionary.

    Args:
        stats_obj: Run statistics

    Returns:
        Stats dictionary suitable for JSON serialization
    """
    stats: FuzzStats = {
        "status": stats_obj.status,
        "iterations": stats_obj.iterations,
        "fallback_dispatches": stats_obj.fallback_dispatches,
        "targets_hit": len(stats_obj.target_dispatches),
    }
    for outcome in DispatchOutcome:
        stats[f"outcome_{outcome.value}"] = stats_obj.count(outcome)
    for signature, count in sorted(stats_obj.target_dispatches.items()):
        stats[f"target_{signature}"] = count
    _add_memory_stats(stats_obj, stats)
    return stats


def emit_report(stats_obj: HarnessStats, report_path: Path | None = None) -> FuzzStats:
    """Emit crash-proof JSON report to stderr and, optionally, a file.

    Args:
        stats_obj: Run statistics (status set to "complete")
        report_path: JSON file to write, or None

    Returns:
        The emitted stats dictionary
    """
    stats_obj.status = "complete"
    stats = build_stats_dict(stats_obj)
    report = json.dumps(stats, sort_keys=True)

    print(
        f"\n[SUMMARY-JSON-BEGIN]{report}[SUMMARY-JSON-END]",
        file=sys.stderr,
        flush=True,
    )

    if report_path is not None:
        try:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(report, encoding="utf-8")
        except OSError:
            pass
    return stats
