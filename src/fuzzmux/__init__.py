"""fuzzmux - Typed fuzz-target multiplexing for Atheris/libFuzzer.

One fuzzing entry point drives many targets. The first four bytes of each
input select a target by stable hash (with nearest-hash fallback); the rest
are decoded into the target's typed arguments. The same decode path powers
offline crash analysis and pytest reproduction test generation.

Public API:
    Registry - Target registry and selector dispatch
    fuzz_test - Decorator registering an annotated function
    FuzzHarness - libFuzzer TestOneInput wrapper with crash snapshots
    run_fuzzer - Start Atheris with a harness
    HarnessConfig - Harness configuration
    analyze_input - Resolution, decoded call and report for one saved input
    analyze_crash - Report for one saved input
    create_reproduction_test - Write a pytest regression module
    analyze_artifacts - Analyze a libFuzzer crash directory
    stable_hash - Selector hash of a signature

Type aliases:
    Int8, Int16, Int32, Int64, UInt8, UInt16, UInt32, UInt64,
    Float32, Float64, Char, UnicodeScalar

Exceptions:
    FuzzError - Base exception class
    DecodeError, InsufficientDataError - Byte stream exhausted
    RegistrationError, TargetCollisionError, UnsupportedTypeError

Submodules:
    fuzzmux.decoding - Byte cursor and type decoders
    fuzzmux.diagnostics - Error types and diagnostic codes
    fuzzmux.crash - Crash snapshots and banners
    fuzzmux.stats - Run statistics and JSON summary
"""

from .adapter import FuzzerAdapter, fuzz_test
from .analysis import (
    CrashAnalysis,
    analyze_artifacts,
    analyze_crash,
    analyze_input,
    create_reproduction_test,
)
from .config import HarnessConfig
from .crash import CrashInfo, CrashRecorder
from .decoding import (
    Char,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    UnicodeScalar,
)
from .diagnostics import (
    DecodeError,
    FuzzError,
    InsufficientDataError,
    RegistrationError,
    TargetCollisionError,
    UnsupportedTypeError,
)
from .harness import FuzzHarness, run_fuzzer
from .registry import DispatchOutcome, Registry, stable_hash

# Version information - Auto-populated from package metadata
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _get_version
except ImportError as e:
    raise RuntimeError("importlib.metadata unavailable - Python version too old? " + str(e)) from e

try:
    __version__ = _get_version("fuzzmux")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "Char",
    "CrashAnalysis",
    "CrashInfo",
    "CrashRecorder",
    "DecodeError",
    "DispatchOutcome",
    "Float32",
    "Float64",
    "FuzzError",
    "FuzzHarness",
    "FuzzerAdapter",
    "HarnessConfig",
    "InsufficientDataError",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Registry",
    "RegistrationError",
    "TargetCollisionError",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnicodeScalar",
    "UnsupportedTypeError",
    "__version__",
    "analyze_artifacts",
    "analyze_crash",
    "analyze_input",
    "create_reproduction_test",
    "fuzz_test",
    "run_fuzzer",
    "stable_hash",
]
