#!/usr/bin/env python3
"""Reproduce and document fuzzmux findings.

This tool closes the feedback loop for libFuzzer artifacts found through a
fuzzmux harness:
1. Import the module that builds the Registry (``module:attribute``)
2. Resolve and decode the artifact exactly as dispatch would
3. Print the report and, optionally, write a pytest reproduction module

Usage:
    uv run python scripts/fuzzmux_repro.py mypkg.targets:registry crash-xxx
    uv run python scripts/fuzzmux_repro.py mypkg.targets:registry artifacts/
    uv run python scripts/fuzzmux_repro.py --json mypkg.targets:registry crash-xxx
    uv run python scripts/fuzzmux_repro.py --write-tests mypkg.targets:registry artifacts/

Flags:
    --json          Output machine-readable JSON summary (for automation)
    --write-tests   Write test_crash_<n>_reproduction.py next to artifacts
                    (or --output for a single file)
    --verbose       Enable DEBUG logging for fuzzmux

Exit Codes:
    0   Every input resolved and decoded completely
    1   At least one input was too short or did not decode
    2   Registry import error or file read error

Python 3.13+.
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any

from fuzzmux import Registry, analyze_artifacts, analyze_input, create_reproduction_test

# Maximum input size (10 MB) - prevents memory exhaustion from malicious inputs
MAX_INPUT_SIZE = 10 * 1024 * 1024

logger = logging.getLogger("fuzzmux.repro")


def load_registry(spec: str) -> Registry:
    """Import ``module:attribute`` and return the Registry it names.

    Raises:
        ValueError: If spec is malformed or the attribute is not a Registry
        ImportError: If the module cannot be imported
    """
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        msg = f"Expected module:attribute, got {spec!r}"
        raise ValueError(msg)
    module = importlib.import_module(module_name)
    registry = getattr(module, attribute, None)
    if not isinstance(registry, Registry):
        msg = f"{spec} is not a fuzzmux Registry"
        raise ValueError(msg)
    return registry


def _error(use_json: bool, code: str, message: str, **extra: Any) -> None:
    if use_json:
        print(json.dumps({"result": "error", "error": code, "message": message, **extra}))
    else:
        print(f"[ERROR] {message}", file=sys.stderr)


def reproduce_file(registry: Registry, args: argparse.Namespace) -> int:
    """Analyze a single artifact file."""
    path: Path = args.path
    try:
        data = path.read_bytes()
    except OSError as e:
        _error(args.json, "read_error", f"Cannot read file: {e}", file=str(path))
        return 2

    if len(data) > MAX_INPUT_SIZE:
        size_mb = len(data) / (1024 * 1024)
        _error(
            args.json,
            "file_too_large",
            f"File too large: {size_mb:.1f} MB (max: 10 MB)",
            file=str(path),
        )
        return 2

    analysis = analyze_input(registry, data)
    report = analysis.text
    complete = analysis.invocable

    written: Path | None = None
    if args.write_tests:
        output = args.output or path.with_name(f"test_{_stem(path)}_reproduction.py")
        if create_reproduction_test(registry, data, output, f"test_{_stem(path)}"):
            written = output

    if args.json:
        print(json.dumps({
            "result": "finding" if complete else "incomplete",
            "file": str(path),
            "input_length": len(data),
            "report": report,
            "reproduction_test": str(written) if written else None,
        }))
    else:
        print(f"[INFO] Reproducing: {path}")
        print(f"[INFO] Input length: {len(data)} bytes")
        print()
        print(report)
        if written is not None:
            print()
            print(f"[OK] Wrote reproduction test: {written}")
        elif args.write_tests:
            print()
            print("[WARN] No reproduction test written for this input")
    return 0 if complete else 1


def reproduce_directory(registry: Registry, args: argparse.Namespace) -> int:
    """Analyze every artifact in a directory."""
    reports = analyze_artifacts(registry, args.path, write_tests=args.write_tests)
    exit_code = 0
    entries: list[dict[str, Any]] = []

    for item in reports:
        if item.error is not None:
            exit_code = 2
        elif not item.invocable and exit_code == 0:
            exit_code = 1
        entries.append({
            "file": str(item.path),
            "size": item.size,
            "raw_hex": item.raw_hex,
            "report": item.report,
            "reproduction_test": str(item.reproduction_path) if item.reproduction_path else None,
            "error": item.error,
            "invocable": item.invocable,
        })

    if args.json:
        print(json.dumps({"result": "directory", "path": str(args.path), "artifacts": entries}))
        return exit_code

    if not reports:
        print(f"[INFO] No artifacts found in {args.path}")
        return exit_code

    for item in reports:
        print("=" * 60)
        print(f"{item.path.name} ({item.size} bytes)")
        print("-" * 60)
        if item.error is not None:
            print(f"[ERROR] Cannot read file: {item.error}")
            continue
        print(f"Hex: {item.raw_hex}")
        print()
        print(item.report)
        if item.reproduction_path is not None:
            print(f"[OK] Wrote reproduction test: {item.reproduction_path}")
    print("=" * 60)
    print(f"[INFO] Analyzed {len(reports)} artifact(s)")
    return exit_code


def _stem(path: Path) -> str:
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in path.name)
    return cleaned.strip("_") or "artifact"


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Analyze fuzzmux crash artifacts and generate regression tests.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Explain a single crash:
  uv run python scripts/fuzzmux_repro.py mypkg.targets:registry crash-xxx

  # Scan a libFuzzer artifact directory and write pytest modules:
  uv run python scripts/fuzzmux_repro.py --write-tests mypkg.targets:registry artifacts/
""",
    )
    parser.add_argument("registry", help="Registry location as module:attribute")
    parser.add_argument("path", type=Path, help="Artifact file or directory of artifacts")
    parser.add_argument(
        "--write-tests",
        action="store_true",
        help="Write pytest reproduction modules for decodable inputs",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Reproduction test path (single file only)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output machine-readable JSON summary (for automation)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG logging for fuzzmux"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        registry = load_registry(args.registry)
    except (ImportError, ValueError) as e:
        _error(args.json, "import_error", f"Cannot load registry: {e}")
        return 2
    logger.debug("Loaded %s with %d target(s)", args.registry, len(registry))

    if args.path.is_dir():
        return reproduce_directory(registry, args)
    if not args.path.exists():
        _error(args.json, "file_not_found", f"File not found: {args.path}", file=str(args.path))
        return 2
    return reproduce_file(registry, args)


if __name__ == "__main__":
    sys.exit(main())
