"""
utils/stats.py — Pure statistics helpers
=========================================
Small, side-effect-free helpers shared by every analyzer.  They take any
numeric sequence and return a Python float.

An empty sequence has mean 0 and standard deviation 0; callers that need
at least one sample must check the length themselves.
"""

import math
from typing import Sequence

import numpy as np

from config import NEAR_ZERO
from utils.errors import DegenerateSignal


def as_series(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return `values` as a 1-D float64 array (no copy when possible)."""
    return np.asarray(values, dtype=np.float64).reshape(-1)


def mean(values: Sequence[float] | np.ndarray) -> float:
    arr = as_series(values)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def std(values: Sequence[float] | np.ndarray) -> float:
    """Population standard deviation (ddof=0)."""
    arr = as_series(values)
    if arr.size == 0:
        return 0.0
    return float(arr.std())


def safe_divide(numerator: float, denominator: float, what: str = "value") -> float:
    """
    Divide, raising `DegenerateSignal` instead of returning inf / NaN.

    `what` names the quantity in the error message.
    """
    if not math.isfinite(denominator) or abs(denominator) < NEAR_ZERO:
        raise DegenerateSignal(f"Cannot compute {what}: divisor is {denominator!r}.")
    result = numerator / denominator
    if not math.isfinite(result):
        raise DegenerateSignal(f"Cannot compute {what}: result is {result!r}.")
    return result
