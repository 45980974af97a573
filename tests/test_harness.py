"""Tests for FuzzHarness, HarnessConfig and run statistics."""

from __future__ import annotations

import json
import logging
import sys
import types
from typing import TYPE_CHECKING, Any

import pytest

from fuzzmux import FuzzHarness, HarnessConfig, Registry, fuzz_test, run_fuzzer
from fuzzmux.registry import DispatchOutcome, FuzzTarget
from fuzzmux.stats import HarnessStats, build_stats_dict, emit_report
from tests.helpers.encoding import enc_int, raw_selector, selector

if TYPE_CHECKING:
    from pathlib import Path


def _harness(config: HarnessConfig | None = None) -> tuple[FuzzHarness, list[int]]:
    registry = Registry()
    calls: list[int] = []

    @fuzz_test(registry)
    def count(value: int) -> None:
        calls.append(value)
        if value == 13:
            raise KeyError(value)

    return FuzzHarness(registry, config), calls


class TestHarnessConfig:
    """Validation at construction time."""

    def test_defaults(self) -> None:
        config = HarnessConfig()
        assert not config.persist_crash_info
        assert config.hex_preview_bytes == 32
        assert config.fatal_exceptions == ()
        assert config.log_level == logging.WARNING

    @pytest.mark.parametrize("field", ["hex_preview_bytes", "checkpoint_interval"])
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            HarnessConfig(**{field: 0})

    def test_fatal_exceptions_must_be_classes(self) -> None:
        with pytest.raises(TypeError, match="exception classes"):
            HarnessConfig(fatal_exceptions=("ValueError",))  # type: ignore[arg-type]


class TestRunOneInput:
    """The libFuzzer callback."""

    def test_returns_zero_for_everything(self) -> None:
        harness, calls = _harness()
        for data in (b"", b"\x01", selector("count(value:)") + enc_int(5, 8)):
            assert harness.run_one_input(data) == 0
        assert calls == [5]

    def test_absorbs_target_failure(self) -> None:
        harness, _ = _harness()
        assert harness.run_one_input(selector("count(value:)") + enc_int(13, 8)) == 0
        assert harness.stats.count(DispatchOutcome.TARGET_FAILED) == 1

    def test_fatal_exception_prints_banner(self, capsys: pytest.CaptureFixture[str]) -> None:
        harness, _ = _harness(HarnessConfig(fatal_exceptions=(KeyError,)))
        with pytest.raises(KeyError):
            harness.run_one_input(selector("count(value:)") + enc_int(13, 8))
        err = capsys.readouterr().err
        assert "FATAL ERROR IN FUZZ TARGET" in err
        assert "count(13)" in err

    def test_last_crash(self) -> None:
        harness, _ = _harness()
        harness.run_one_input(selector("count(value:)") + enc_int(7, 8))
        assert harness.last_crash is not None
        assert harness.last_crash.reproduction_code == "count(7)"


class TestStats:
    """Counters and the JSON summary."""

    def test_counts_outcomes(self) -> None:
        harness, _ = _harness()
        harness.run_one_input(b"\x00")
        harness.run_one_input(selector("count(value:)") + enc_int(1, 8))
        harness.run_one_input(selector("count(value:)"))
        stats = harness.stats
        assert stats.iterations == 3
        assert stats.count(DispatchOutcome.TOO_SHORT) == 1
        assert stats.count(DispatchOutcome.INVOKED) == 1
        assert stats.count(DispatchOutcome.DECODE_ABORTED) == 1
        assert stats.target_dispatches == {"count(value:)": 2}

    def test_fallback_counted(self) -> None:
        registry = Registry()
        registry.add(FuzzTarget("only(data:)", 100, lambda data: None))
        harness = FuzzHarness(registry)
        harness.run_one_input(raw_selector(5))
        harness.run_one_input(raw_selector(100))
        assert harness.stats.fallback_dispatches == 1

    def test_build_stats_dict(self) -> None:
        stats = HarnessStats()
        stats.iterations = 4
        stats.outcomes[DispatchOutcome.INVOKED] = 3
        stats.target_dispatches["f(x:)"] = 3
        result = build_stats_dict(stats)
        assert result["iterations"] == 4
        assert result["outcome_invoked"] == 3
        assert result["outcome_too_short"] == 0
        assert result["target_f(x:)"] == 3
        assert "memory_peak_mb" not in result

    def test_memory_sampled(self) -> None:
        harness, _ = _harness()
        for _ in range(100):
            harness.run_one_input(b"")
        assert len(harness.stats.memory_history) == 1
        assert harness.stats.memory_history[0] > 0

    def test_emit_report(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        stats = HarnessStats(iterations=2)
        path = tmp_path / "reports" / "summary.json"
        emitted = emit_report(stats, path)
        assert stats.status == "complete"
        err = capsys.readouterr().err
        assert "[SUMMARY-JSON-BEGIN]" in err
        assert "[SUMMARY-JSON-END]" in err
        assert json.loads(path.read_text(encoding="utf-8")) == emitted

    def test_harness_emit_report(self, tmp_path: Path) -> None:
        path = tmp_path / "summary.json"
        harness, _ = _harness(HarnessConfig(report_path=path))
        harness.run_one_input(b"")
        assert harness.emit_report()["iterations"] == 1
        assert path.exists()


class TestRunFuzzer:
    """Atheris wiring, with a stand-in module object."""

    def test_missing_atheris_exits(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setitem(sys.modules, "atheris", None)
        harness, _ = _harness()
        with pytest.raises(SystemExit) as exc_info:
            run_fuzzer(harness, ["prog"])
        assert exc_info.value.code == 1
        assert "atheris" in capsys.readouterr().err

    def test_setup_and_fuzz(self, monkeypatch: pytest.MonkeyPatch) -> None:
        recorded: dict[str, Any] = {}
        fake = types.ModuleType("atheris")
        fake.Setup = (  # type: ignore[attr-defined]
            lambda argv, callback: recorded.update(argv=argv, callback=callback)
        )
        fake.Fuzz = lambda: recorded.update(fuzzed=True)  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "atheris", fake)
        monkeypatch.setattr("atexit.register", lambda func: None)

        harness, _ = _harness()
        run_fuzzer(harness, ["prog", "-runs=10"])
        assert recorded["argv"] == ["prog", "-runs=10", "-rss_limit_mb=4096"]
        assert recorded["callback"] == harness.run_one_input
        assert recorded["fuzzed"] is True
        assert logging.getLogger("fuzzmux").level == logging.WARNING
        logging.getLogger("fuzzmux").setLevel(logging.NOTSET)

    def test_rss_limit_respected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        recorded: dict[str, Any] = {}
        fake = types.ModuleType("atheris")
        fake.Setup = lambda argv, callback: recorded.update(argv=argv)  # type: ignore[attr-defined]
        fake.Fuzz = lambda: None  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "atheris", fake)
        monkeypatch.setattr("atexit.register", lambda func: None)

        harness, _ = _harness()
        run_fuzzer(harness, ["prog", "-rss_limit_mb=1024"])
        assert recorded["argv"] == ["prog", "-rss_limit_mb=1024"]
        logging.getLogger("fuzzmux").setLevel(logging.NOTSET)
