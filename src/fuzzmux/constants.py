"""Shared constants for fuzzmux.

Centralizes the byte-layout constants used by the decoders, the registry and
the crash analysis tooling. Placing them here avoids circular imports and
provides a single source of truth.

Constants are grouped by domain:
- Selector: how the first bytes of an input choose a target
- Layout: per-type decoding limits and substitutions
- Reporting: crash report and artifact handling

Every constant in the Selector and Layout groups is baked into persisted
corpora. Changing one silently remaps every saved input to a different target
or a different argument list.

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Selector
    "SELECTOR_SIZE",
    "HASH_SEED",
    "HASH_MULTIPLIER",
    "HASH_MASK",
    # Layout
    "MAX_COLLECTION_COUNT",
    "UNICODE_SCALAR_LIMIT",
    "SURROGATE_RANGE",
    "SCALAR_FALLBACK",
    # Reporting
    "DEFAULT_HEX_PREVIEW_BYTES",
    "ARTIFACT_HEX_PREVIEW_BYTES",
    "ARTIFACT_PREFIXES",
    "DEFAULT_CRASH_INFO_FILENAME",
]

# ============================================================================
# SELECTOR
# ============================================================================

# Width of the little-endian target selector at the start of every input.
SELECTOR_SIZE: int = 4

# djb2 parameters. h = HASH_SEED; h = (h * HASH_MULTIPLIER + byte) & HASH_MASK
HASH_SEED: int = 5381
HASH_MULTIPLIER: int = 33
HASH_MASK: int = 0xFFFFFFFF

# ============================================================================
# LAYOUT
# ============================================================================

# Upper bound on elements decoded for sequences, sets and maps. The count byte
# ranges 0-255 and is clamped to this value, never rejected.
MAX_COLLECTION_COUNT: int = 32

# 4-byte scalars are reduced modulo this value (one past U+10FFFF).
UNICODE_SCALAR_LIMIT: int = 0x110000

# Surrogate code points cannot appear in a str that round-trips through UTF-8.
SURROGATE_RANGE: range = range(0xD800, 0xE000)

# Substituted for any decoded scalar in SURROGATE_RANGE ('A').
SCALAR_FALLBACK: int = 0x41

# ============================================================================
# REPORTING
# ============================================================================

# Bytes shown in per-argument hex previews and crash banners.
DEFAULT_HEX_PREVIEW_BYTES: int = 32

# Bytes of raw hex shown per artifact in directory scans.
ARTIFACT_HEX_PREVIEW_BYTES: int = 64

# File name prefixes libFuzzer uses for saved artifacts.
ARTIFACT_PREFIXES: tuple[str, ...] = ("crash-", "leak-", "timeout-", "oom-")

# Best-effort crash snapshot file, relative to the working directory.
DEFAULT_CRASH_INFO_FILENAME: str = "fuzzmux_crash_analysis.txt"
