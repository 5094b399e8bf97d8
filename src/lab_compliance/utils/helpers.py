"""
Shared helper functions.
"""

from __future__ import annotations

import math
import re


def safe_filename(name: str) -> str:
    """Convert an arbitrary string to a filesystem-safe filename."""
    return re.sub(r"[^\w\-]", "_", name).strip("_")


def percent(part: int, total: int) -> int:
    """Whole-number percentage, rounded half-up. 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(part * 100 / total + 0.5))


def unique(items) -> tuple[str, ...]:
    """De-duplicate while keeping first-seen order."""
    return tuple(dict.fromkeys(items))
