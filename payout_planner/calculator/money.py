"""Rounding and display helpers shared by the calculators."""
from __future__ import annotations

import math


def round_money(amount: float) -> int:
    """Half-up rounding to whole currency units (round() would bank-round .5)."""
    return int(math.floor(amount + 0.5))


def kr(amount: float) -> str:
    return f"{round_money(amount):,} kr"


def pct(rate: float, digits: int = 1) -> str:
    return f"{rate * 100:.{digits}f}%"
