"""
Statistical primitives shared by every estimator.

Pure functions over numeric sequences. Empty or degenerate input returns a
neutral value (0) instead of raising, so estimators never need to guard
against messy but non-empty market data.
"""

import math
from typing import Sequence

import numpy as np
import pandas as pd


def mean(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0)."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return 0.0
    return float(arr.std())


def log_returns(prices: Sequence[float]) -> np.ndarray:
    arr = np.asarray(prices, dtype=float)
    if arr.size < 2:
        return np.empty(0)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.log(arr[1:] / arr[:-1])


def percentile(values: Sequence[float], p: float) -> float:
    """Linear interpolation between order statistics."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.percentile(arr, p))


def covariance(x: Sequence[float], y: Sequence[float]) -> float:
    a = np.asarray(x, dtype=float)
    b = np.asarray(y, dtype=float)
    if a.size == 0 or a.size != b.size:
        return 0.0
    return float(np.mean((a - a.mean()) * (b - b.mean())))


def simple_moving_average(values: Sequence[float], period: int) -> np.ndarray:
    """Rolling mean; the first ``period - 1`` positions are NaN."""
    return pd.Series(values, dtype=float).rolling(period).mean().to_numpy()


def exponential_moving_average(values: Sequence[float], period: int,
                               seed: str = "first") -> np.ndarray:
    """
    EMA with multiplier 2 / (period + 1).

    seed="first": the first output is the first input (pandas
    ``ewm(adjust=False)``). This is the variant MACD and EMA200 use.

    seed="sma": positions before ``period - 1`` pass the raw value through,
    position ``period - 1`` holds the SMA of the first ``period`` inputs,
    and the recurrence runs forward from there.
    """
    series = pd.Series(values, dtype=float)
    if series.empty:
        return np.empty(0)

    if seed == "first":
        return series.ewm(span=period, adjust=False).mean().to_numpy()
    if seed != "sma":
        raise ValueError(f"Unknown EMA seed mode: {seed!r}")

    out = series.to_numpy(copy=True)
    if len(out) < period:
        return out
    alpha = 2.0 / (period + 1)
    out[period - 1] = out[:period].mean()
    for i in range(period, len(out)):
        out[i] = (out[i] - out[i - 1]) * alpha + out[i - 1]
    return out


def normalize_to_100(value: float, lo: float, hi: float) -> float:
    """Map ``value`` from [lo, hi] onto [0, 100], clamped."""
    if hi == lo:
        return 50.0
    return clamp((value - lo) / (hi - lo) * 100.0, 0.0, 100.0)


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
    """Round .5 toward +inf; published scores use this, not banker's rounding."""
    return int(math.floor(x + 0.5))
