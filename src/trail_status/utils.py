"""Small numeric helpers shared by the classifiers."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (``round()`` rounds halves to even)."""
    return math.floor(value + 0.5)
