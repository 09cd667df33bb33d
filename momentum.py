"""
Momentum Estimator: speed and quality of recent returns.

Simple interface:
    calc_momentum_metrics(prices) -> MomentumMetrics
    momentum_score(metrics) -> int (0-100)
"""

import logging
import math
from typing import Sequence

import numpy as np

from config import INDICATORS, MOMENTUM
from models import MomentumMetrics
from quant_stats import (
    clamp, log_returns, mean, normalize_to_100, round_half_up,
    standard_deviation,
)

logger = logging.getLogger(__name__)

_ANNUALIZE = math.sqrt(INDICATORS["annualization"])


def z_score(prices: Sequence[float], window: int = INDICATORS["zscore_window"]) -> float:
    """Last price against the PREVIOUS ``window`` prices (no look-ahead)."""
    if len(prices) < window + 1:
        return 0.0
    previous = prices[-window - 1:-1]
    std = standard_deviation(previous)
    if std == 0:
        return 0.0
    return (prices[-1] - mean(previous)) / std


def sharpe_ratio(prices: Sequence[float], window: int = INDICATORS["sharpe_window"]) -> float:
    if len(prices) < window + 1:
        return 0.0
    returns = log_returns(prices[-window - 1:])
    vol = standard_deviation(returns)
    if vol == 0:
        return 0.0
    return mean(returns) / vol * _ANNUALIZE


def sortino_ratio(prices: Sequence[float], window: int = INDICATORS["sortino_window"]) -> float:
    """
    Mean log return over the std of the negative returns only.
    Without downside dispersion: 100 for a positive mean, else 0.
    """
    if len(prices) < window + 1:
        return 0.0
    returns = log_returns(prices[-window - 1:])
    avg = mean(returns)
    downside = standard_deviation(returns[returns < 0])
    if downside == 0:
        return MOMENTUM["sortino_no_downside"] if avg > 0 else 0.0
    return avg / downside * _ANNUALIZE


def rsi(prices: Sequence[float], period: int = INDICATORS["rsi_period"]) -> float:
    """
    Wilder-smoothed RSI.

    Seeded with the simple mean of the first ``period`` changes, smoothed
    from there. The average loss is floored so a one-way market reads ~100
    instead of dividing by zero; a market that never moved reads 50.
    """
    if len(prices) < period + 1:
        return 50.0

    changes = np.diff(np.asarray(prices, dtype=float))
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_gain == 0 and avg_loss == 0:
        return 50.0
    avg_loss = max(avg_loss, MOMENTUM["rsi_loss_floor"])
    rs = avg_gain / avg_loss
    return clamp(100.0 - 100.0 / (1.0 + rs), 0.0, 100.0)


def rsi_z(prices: Sequence[float], rsi_period: int = INDICATORS["rsi_period"],
          window: int = INDICATORS["rsi_z_window"]) -> float:
    """
    Z-score of the current RSI against the RSIs at each earlier offset in
    the window. Each RSI is computed on a trailing 2x period slice.
    """
    if len(prices) < window + rsi_period + 1:
        return 0.0

    values = []
    for i in range(window + 1):
        end = len(prices) - window + i
        subset = prices[max(0, end - rsi_period * 2):end]
        if len(subset) > rsi_period:
            values.append(rsi(subset, rsi_period))

    if len(values) < 2:
        return 0.0
    std = standard_deviation(values[:-1])
    if std == 0:
        return 0.0
    return (values[-1] - mean(values[:-1])) / std


def rate_of_change(prices: Sequence[float], period: int = INDICATORS["roc_period"]) -> float:
    if len(prices) < period + 1:
        return 0.0
    past = prices[-1 - period]
    if past == 0:
        return 0.0
    return (prices[-1] - past) / past * 100.0


def calc_momentum_metrics(prices: Sequence[float]) -> MomentumMetrics:
    return MomentumMetrics(
        z_score=z_score(prices),
        sharpe_ratio=sharpe_ratio(prices),
        sortino_ratio=sortino_ratio(prices),
        rsi=rsi(prices),
        rsi_z=rsi_z(prices),
        roc=rate_of_change(prices),
    )


def momentum_score(metrics: MomentumMetrics) -> int:
    ranges = MOMENTUM["ranges"]
    weights = MOMENTUM["weights"]
    components = {
        "zscore": normalize_to_100(metrics.z_score, *ranges["zscore"]),
        "sharpe": normalize_to_100(metrics.sharpe_ratio, *ranges["sharpe"]),
        "sortino": normalize_to_100(metrics.sortino_ratio, *ranges["sortino"]),
        "rsi": metrics.rsi,
        "rsi_z": normalize_to_100(metrics.rsi_z, *ranges["rsi_z"]),
        "roc": normalize_to_100(metrics.roc, *ranges["roc"]),
    }
    score = sum(components[k] * weights[k] for k in weights)
    return round_half_up(clamp(score, 0.0, 100.0))
