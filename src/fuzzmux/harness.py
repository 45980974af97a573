"""Fuzzing entry point.

FuzzHarness owns the per-process state around one Registry: the crash
recorder, the run statistics, and the configuration. run_fuzzer() hands its
run_one_input to Atheris as the libFuzzer TestOneInput callback.

Example (fuzz/fuzz_targets.py):
    import atheris

    with atheris.instrument_imports(include=["mypackage"]):
        from mypackage.targets import registry

    from fuzzmux import FuzzHarness, run_fuzzer

    run_fuzzer(FuzzHarness(registry))

Python 3.13+.
"""

from __future__ import annotations

import atexit
import logging
import sys
from typing import TYPE_CHECKING, Any

from fuzzmux.config import HarnessConfig
from fuzzmux.crash import CrashRecorder, format_crash_banner
from fuzzmux.stats import HarnessStats, current_rss_mb, emit_report

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fuzzmux.crash import CrashInfo
    from fuzzmux.registry import Registry
    from fuzzmux.stats import FuzzStats

__all__ = ["FuzzHarness", "check_dependencies", "run_fuzzer"]

logger = logging.getLogger(__name__)

_DEFAULT_RSS_LIMIT_ARG = "-rss_limit_mb=4096"


class FuzzHarness:
    """One fuzzing process: registry, crash snapshot and statistics.

    Attributes:
        registry: Targets to dispatch to
        config: Harness configuration
        recorder: Holds the snapshot of the most recent dispatch
        stats: Counters for this run
    """

    __slots__ = ("config", "recorder", "registry", "stats")

    def __init__(self, registry: Registry, config: HarnessConfig | None = None) -> None:
        """Initialize harness.

        Args:
            registry: Populated registry
            config: Harness configuration (default: HarnessConfig())
        """
        self.registry = registry
        self.config = config if config is not None else HarnessConfig()
        if self.config.fatal_exceptions:
            registry.fatal_exceptions = self.config.fatal_exceptions
        self.recorder = CrashRecorder(self.config)
        self.stats = HarnessStats()

    def run_one_input(self, data: bytes) -> int:
        """libFuzzer TestOneInput callback.

        Exceptions escape only for fatal_exceptions types (and
        non-Exception BaseExceptions); the crash banner for the last
        snapshot is printed to stderr before they propagate.

        Returns:
            Always 0
        """
        try:
            result = self.registry.dispatch(data, self.recorder)
        except BaseException:
            info = self.recorder.last
            if info is not None:
                print(format_crash_banner(info), file=sys.stderr, flush=True)
            raise

        self.stats.record(result)
        if self.stats.iterations % self.config.checkpoint_interval == 0:
            logger.info(
                "Checkpoint: %d iterations, %d targets hit, %d fallback dispatches",
                self.stats.iterations,
                len(self.stats.target_dispatches),
                self.stats.fallback_dispatches,
            )
        return 0

    @property
    def last_crash(self) -> CrashInfo | None:
        """Snapshot of the most recent dispatch."""
        return self.recorder.last

    def emit_report(self) -> FuzzStats:
        """Emit the JSON run summary (stderr plus config.report_path)."""
        return emit_report(self.stats, self.config.report_path)


def check_dependencies(dep_names: Sequence[str], dep_modules: Sequence[Any]) -> None:
    """Verify fuzzing dependencies are importable, exit with instructions if not.

    Args:
        dep_names: Human-readable names (e.g., ["atheris"])
        dep_modules: Corresponding module objects (None if import failed)
    """
    missing = [name for name, mod in zip(dep_names, dep_modules, strict=True) if mod is None]
    if missing:
        print("-" * 80, file=sys.stderr)
        print("ERROR: Missing required dependencies for fuzzing:", file=sys.stderr)
        for dep in missing:
            print(f"  - {dep}", file=sys.stderr)
        print("", file=sys.stderr)
        print("Install with: pip install 'fuzzmux[atheris]'", file=sys.stderr)
        print("-" * 80, file=sys.stderr)
        sys.exit(1)


def run_fuzzer(harness: FuzzHarness, argv: Sequence[str] | None = None) -> None:
    """Run libFuzzer through Atheris with harness.run_one_input.

    Unrecognized libFuzzer flags in argv are passed through. A default
    ``-rss_limit_mb=4096`` is added when argv sets none. The JSON summary
    is emitted at interpreter exit.

    Args:
        harness: Harness to drive
        argv: Command line (default: sys.argv)
    """
    atheris_mod: Any = None
    try:
        import atheris as atheris_mod  # pylint: disable=import-outside-toplevel
    except ImportError:
        pass
    check_dependencies(["atheris"], [atheris_mod])

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("fuzzmux").setLevel(harness.config.log_level)

    args = list(sys.argv if argv is None else argv)
    if not any(arg.startswith("-rss_limit_mb") for arg in args[1:]):
        args.append(_DEFAULT_RSS_LIMIT_ARG)

    harness.stats.initial_memory_mb = current_rss_mb()
    atexit.register(harness.emit_report)

    print()
    print("=" * 80)
    print("fuzzmux harness (Atheris)")
    print("=" * 80)
    print(f"Targets:    {len(harness.registry)}")
    print(f"Checkpoint: Every {harness.config.checkpoint_interval} iterations")
    fatal = ", ".join(exc.__name__ for exc in harness.config.fatal_exceptions) or "none"
    print(f"Fatal:      {fatal}")
    print("Stopping:   Press Ctrl+C (summary emitted at exit)")
    print("=" * 80)
    print()

    atheris_mod.Setup(args, harness.run_one_input)
    atheris_mod.Fuzz()
