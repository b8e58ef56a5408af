"""Runtime defaults for pixel comparison.

Every value can be overridden through an environment variable; CLI flags
override these per invocation.
"""

from __future__ import annotations

import os


def _float(key: str, default: float, low: float, high: float) -> float:
    raw = os.getenv(key, str(default))
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if not low <= value <= high:
        raise ValueError(f"{key} must be between {low:g} and {high:g}, got {value:g}")
    return value


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


def _bool(key: str, default: bool) -> bool:
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# 0 = exact match, 1 = any difference allowed
DEFAULT_THRESHOLD = _float("PIXELDIFF_THRESHOLD", 0.1, 0.0, 1.0)

# Minimum match percentage for a passing exit status
PASS_THRESHOLD = _float("PIXELDIFF_PASS_THRESHOLD", 95.0, 0.0, 100.0)

DEFAULT_OUTPUT_DIR = _str("PIXELDIFF_OUTPUT_DIR", "./output")
DIFF_FILENAME = _str("PIXELDIFF_DIFF_FILENAME", "diff.png")

# Count anti-aliased pixels as differences
INCLUDE_AA = _bool("PIXELDIFF_INCLUDE_AA", False)
