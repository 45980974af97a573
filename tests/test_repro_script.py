"""Tests for scripts/fuzzmux_repro.py."""

import importlib.util
import json
from pathlib import Path
from types import ModuleType

import pytest

from tests.helpers.encoding import enc_int, enc_str, selector
from tests.helpers.sample_targets import registry as sample_registry

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "fuzzmux_repro.py"
REGISTRY = "tests.helpers.sample_targets:registry"
GOOD = selector("parse_header(name:length:)") + enc_str("h") + enc_int(-1, 8)


@pytest.fixture(scope="module")
def repro() -> ModuleType:
    spec = importlib.util.spec_from_file_location("fuzzmux_repro", SCRIPT)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestLoadRegistry:
    """module:attribute lookup."""

    def test_loads(self, repro: ModuleType) -> None:
        assert repro.load_registry(REGISTRY) is sample_registry

    @pytest.mark.parametrize(
        "spec", ["no_colon", ":registry", "tests.helpers.sample_targets:not_a_registry"]
    )
    def test_rejects(self, repro: ModuleType, spec: str) -> None:
        with pytest.raises(ValueError):
            repro.load_registry(spec)


class TestMain:
    """Exit codes and output modes."""

    def test_single_file(
        self, repro: ModuleType, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        artifact = tmp_path / "crash-abc"
        artifact.write_bytes(GOOD)
        assert repro.main([REGISTRY, str(artifact)]) == 0
        assert "parse_header('h', -1)" in capsys.readouterr().out

    def test_single_file_json(
        self, repro: ModuleType, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        artifact = tmp_path / "crash-abc"
        artifact.write_bytes(b"\x00")
        assert repro.main(["--json", REGISTRY, str(artifact)]) == 1
        result = json.loads(capsys.readouterr().out)
        assert result["result"] == "incomplete"
        assert result["input_length"] == 1

    def test_write_tests_single(self, repro: ModuleType, tmp_path: Path) -> None:
        artifact = tmp_path / "crash-abc"
        artifact.write_bytes(GOOD)
        output = tmp_path / "test_out.py"
        assert repro.main(["--write-tests", "--output", str(output), REGISTRY, str(artifact)]) == 0
        assert "parse_header('h', -1)" in output.read_text(encoding="utf-8")

    def test_directory(
        self, repro: ModuleType, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "crash-1").write_bytes(GOOD)
        (tmp_path / "oom-2").write_bytes(b"")
        assert repro.main(["--json", REGISTRY, str(tmp_path)]) == 1
        result = json.loads(capsys.readouterr().out)
        assert [Path(a["file"]).name for a in result["artifacts"]] == ["crash-1", "oom-2"]

    @pytest.mark.parametrize(
        "name", ["Decoding stopped", "Insufficient data", "No targets registered"]
    )
    def test_report_wording_in_arguments(
        self, repro: ModuleType, tmp_path: Path, name: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        artifact = tmp_path / "crash-text"
        data = selector("parse_header(name:length:)") + enc_str(name) + enc_int(7, 8)
        artifact.write_bytes(data)
        assert repro.main(["--json", REGISTRY, str(artifact)]) == 0
        assert json.loads(capsys.readouterr().out)["result"] == "finding"

    def test_directory_uses_decode_state(self, repro: ModuleType, tmp_path: Path) -> None:
        data = selector("parse_header(name:length:)") + enc_str("Decoding stopped") + enc_int(1, 8)
        (tmp_path / "crash-1").write_bytes(data)
        assert repro.main([REGISTRY, str(tmp_path)]) == 0

    def test_missing_file(self, repro: ModuleType, tmp_path: Path) -> None:
        assert repro.main([REGISTRY, str(tmp_path / "nope")]) == 2

    def test_bad_registry(self, repro: ModuleType, tmp_path: Path) -> None:
        assert repro.main(["missing_module_xyz:registry", str(tmp_path)]) == 2
