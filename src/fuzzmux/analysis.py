"""Offline crash analysis and reproduction test generation.

Runs the dispatch pipeline against saved inputs without invoking anything:
the selector is resolved by Registry.resolve() and arguments are decoded by
the same FuzzType descriptors the live harness uses, so a report always
describes the call the harness actually made.

Functions:
    analyze_input: Resolution, decoded call and report for one input
    analyze_crash: Human-readable report for one input
    create_reproduction_test: Write a pytest regression module for one input
    analyze_artifacts: Analyze every libFuzzer artifact in a directory

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from fuzzmux.constants import (
    ARTIFACT_HEX_PREVIEW_BYTES,
    ARTIFACT_PREFIXES,
    DEFAULT_HEX_PREVIEW_BYTES,
    SELECTOR_SIZE,
)
from fuzzmux.crash import build_reproduction_code, describe_arguments, hex_preview

if TYPE_CHECKING:
    from fuzzmux.adapter import DecodedCall
    from fuzzmux.registry import FuzzTarget, Registry, Resolution

__all__ = [
    "ArtifactReport",
    "CrashAnalysis",
    "analyze_artifacts",
    "analyze_crash",
    "analyze_input",
    "create_reproduction_test",
]

logger = logging.getLogger(__name__)


def _split(registry: Registry, data: bytes) -> tuple[Resolution, bytes] | None:
    if len(data) < SELECTOR_SIZE:
        return None
    resolution = registry.resolve(int.from_bytes(data[:SELECTOR_SIZE], "little"))
    if resolution is None:
        return None
    return resolution, data[SELECTOR_SIZE:]


def _failure_line(target: FuzzTarget, call: DecodedCall) -> str:
    error = call.error
    reason = error.diagnostic.message if error is not None and error.diagnostic else str(error)
    index = len(call.arguments)
    if target.adapter is not None and index < len(target.adapter.parameters):
        param = target.adapter.parameters[index]
        return (
            f"Decoding stopped at parameter {index} "
            f"({param.name}: {param.fuzz_type.type_name}): {reason}"
        )
    return f"Decoding stopped at parameter {index}: {reason}"


@dataclass(frozen=True, slots=True)
class CrashAnalysis:
    """Structured result of analyzing one input.

    Attributes:
        data: Raw input, selector included
        resolution: Where the selector led, or None for short input or an
            empty registry
        call: Decoded arguments, or None when nothing was resolved
        text: Human-readable report
    """

    data: bytes
    resolution: Resolution | None
    call: DecodedCall | None
    text: str

    @property
    def invocable(self) -> bool:
        """Whether dispatch would have invoked a target with this input."""
        return self.call is not None and self.call.complete


def analyze_input(
    registry: Registry,
    data: bytes,
    *,
    hex_limit: int = DEFAULT_HEX_PREVIEW_BYTES,
) -> CrashAnalysis:
    """Resolve and decode an input exactly as dispatch would, without invoking.

    Never raises for arbitrary bytes: short inputs and empty registries get
    a one-line explanation instead of a report.

    Args:
        registry: Registry the input was fuzzed against
        data: Raw input, selector included
        hex_limit: Maximum bytes per hex preview

    Returns:
        Resolution, decoded call and the multi-line report
    """
    if len(data) < SELECTOR_SIZE:
        text = (
            f"Insufficient data: {len(data)} byte(s), "
            f"need at least {SELECTOR_SIZE} for the target selector"
        )
        return CrashAnalysis(data, None, None, text)
    split = _split(registry, data)
    if split is None:
        return CrashAnalysis(data, None, None, "No targets registered: nothing to analyze")

    resolution, remaining = split
    target = resolution.target
    call = target.decode(remaining)

    lines = [
        f"Target: {target.signature}",
        f"Hash: 0x{target.hash:08X}",
    ]
    if resolution.exact:
        lines.append("Fallback: no (exact selector match)")
    else:
        lines.append(
            f"Fallback: yes (selector 0x{resolution.selector:08X} has no exact match, "
            f"dispatched to nearest hash 0x{target.hash:08X})"
        )
    lines.append(f"Argument bytes: {len(remaining)}")

    lines.append("Arguments:")
    descriptions = describe_arguments(target, call, hex_limit)
    if descriptions:
        lines.extend(f"  [{i}] {text}" for i, text in enumerate(descriptions))
    else:
        lines.append("  (none decoded)")

    if not call.complete:
        lines.append(_failure_line(target, call))
        lines.append("The target would not have been invoked for this input.")

    lines.append("Reproduction:")
    lines.append(f"    {build_reproduction_code(target, call)}")
    lines.append(f"Raw input ({len(data)} bytes): {hex_preview(data, hex_limit)}")
    return CrashAnalysis(data, resolution, call, "\n".join(lines))


def analyze_crash(
    registry: Registry,
    data: bytes,
    *,
    hex_limit: int = DEFAULT_HEX_PREVIEW_BYTES,
) -> str:
    """Describe which target an input reaches and with which arguments.

    Text-only form of analyze_input().
    """
    return analyze_input(registry, data, hex_limit=hex_limit).text


_TEST_TEMPLATE = '''"""Regression test for a fuzz crash.

Target: {signature}
Generated: {generated}
"""

from fuzzmux import Registry
from {module} import {import_name}

CRASH_INPUT = bytes.fromhex("{input_hex}")


def {test_name}() -> None:
    {call}


def {test_name}_replay() -> None:
    registry = Registry(fatal_exceptions=(Exception,))
    registry.register_function({qualname}, name={name!r})
    registry.dispatch(CRASH_INPUT)
'''


def create_reproduction_test(
    registry: Registry,
    data: bytes,
    output_path: Path | str,
    test_name: str,
) -> bool:
    """Write a pytest module reproducing one crash input.

    The module imports the target function from its defining module and
    calls it with the decoded arguments. A second test replays the raw
    input through a one-target registry that re-raises target exceptions.

    Args:
        registry: Registry the input was fuzzed against
        data: Raw input, selector included
        output_path: File to write
        test_name: Name of the generated test function

    Returns:
        True if the file was written; False (logged) for inputs that do
        not decode, targets that cannot be imported, or write failures
    """
    if not test_name.isidentifier():
        logger.warning("Invalid test name %r", test_name)
        return False

    split = _split(registry, data)
    if split is None:
        logger.warning("Input of %d byte(s) does not resolve to a target", len(data))
        return False
    resolution, remaining = split
    target = resolution.target
    adapter = target.adapter
    if adapter is None:
        logger.warning("Target %s is a raw callable; no function to import", target.signature)
        return False

    function = adapter.function
    qualname = adapter.qualname
    module = adapter.module
    if module is None or "<" in qualname or inspect.ismethod(function):
        logger.warning("Target %s is not importable by name", target.signature)
        return False

    call = adapter.decode(remaining)
    if not call.complete:
        logger.warning("Input does not decode for %s: %s", target.signature, call.error)
        return False

    source = _TEST_TEMPLATE.format(
        signature=target.signature,
        generated=datetime.now(UTC).isoformat(timespec="seconds"),
        module=module,
        import_name=qualname.split(".", 1)[0],
        input_hex=data.hex(),
        test_name=test_name,
        call=f"{qualname}({', '.join(adapter.format_arguments(call))})",
        qualname=qualname,
        name=adapter.name,
    )

    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    except OSError:
        logger.exception("Failed to write reproduction test to %s", path)
        return False
    logger.info("Wrote reproduction test %s", path)
    return True


@dataclass(frozen=True, slots=True)
class ArtifactReport:
    """Analysis of one libFuzzer artifact file.

    Attributes:
        path: Artifact file
        size: Size in bytes (0 if unreadable)
        raw_hex: Hex preview of the first bytes
        report: analyze_crash() output, or None if the file was unreadable
        reproduction_path: Generated test file, if one was written
        error: Read error message, if any
        invocable: Whether dispatch would have invoked a target
    """

    path: Path
    size: int
    raw_hex: str
    report: str | None
    reproduction_path: Path | None = None
    error: str | None = None
    invocable: bool = False


def analyze_artifacts(
    registry: Registry,
    crash_dir: Path | str,
    *,
    write_tests: bool = False,
) -> list[ArtifactReport]:
    """Analyze every crash-/leak-/timeout-/oom- artifact in a directory.

    Artifacts are processed in name order. With write_tests, each decodable
    artifact gets a ``test_crash_<n>_reproduction.py`` module next to it.

    Args:
        registry: Registry the artifacts were fuzzed against
        crash_dir: Directory holding the artifacts
        write_tests: Generate reproduction tests

    Returns:
        One report per artifact (empty if the directory does not exist)
    """
    directory = Path(crash_dir)
    if not directory.is_dir():
        logger.warning("Crash directory %s does not exist", directory)
        return []

    artifacts = sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_file() and entry.name.startswith(ARTIFACT_PREFIXES)
    )

    reports: list[ArtifactReport] = []
    for index, artifact in enumerate(artifacts, start=1):
        try:
            data = artifact.read_bytes()
        except OSError as exc:
            reports.append(ArtifactReport(artifact, 0, "", None, error=str(exc)))
            continue

        reproduction_path: Path | None = None
        if write_tests:
            candidate = directory / f"test_crash_{index}_reproduction.py"
            if create_reproduction_test(
                registry, data, candidate, f"test_crash_{index}_reproduction"
            ):
                reproduction_path = candidate

        analysis = analyze_input(registry, data)
        reports.append(
            ArtifactReport(
                path=artifact,
                size=len(data),
                raw_hex=hex_preview(data, ARTIFACT_HEX_PREVIEW_BYTES),
                report=analysis.text,
                reproduction_path=reproduction_path,
                invocable=analysis.invocable,
            )
        )
    return reports
