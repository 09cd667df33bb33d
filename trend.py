"""
Trend Estimator: direction and persistence of the price path.

Simple interface:
    calc_trend_metrics(prices) -> TrendMetrics
    trend_score(metrics) -> int (0-100)

Three views of trend are blended:
  • OLS regression slope of the last 20 closes (% of mean price per bar)
  • Hurst exponent from rescaled-range analysis (persistence vs mean reversion)
  • MACD histogram (fast/slow EMA convergence)
"""

import logging
from typing import Dict, Sequence

import numpy as np

from config import INDICATORS, TREND
from models import TrendDirection, TrendMetrics
from quant_stats import (
    clamp, exponential_moving_average, log_returns, normalize_to_100,
    round_half_up, standard_deviation,
)

logger = logging.getLogger(__name__)


def _ols_slope(x: np.ndarray, y: np.ndarray) -> float:
    n = len(x)
    denom = n * np.sum(x * x) - np.sum(x) ** 2
    if denom == 0:
        return 0.0
    return float((n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denom)


def regression_slope(prices: Sequence[float], window: int = INDICATORS["slope_window"]) -> float:
    """Least-squares slope of the last ``window`` prices, as % of their mean."""
    if len(prices) < window:
        return 0.0
    recent = np.asarray(prices[-window:], dtype=float)
    avg = recent.mean()
    if avg == 0:
        return 0.0
    slope = _ols_slope(np.arange(window, dtype=float), recent)
    return slope / avg * 100.0


def hurst_exponent(prices: Sequence[float], max_lag: int = INDICATORS["hurst_max_lag"]) -> float:
    """
    Simplified R/S analysis.
    H > 0.5 trending, H < 0.5 mean-reverting, H ~ 0.5 random walk.
    """
    if len(prices) < max_lag * 2:
        return 0.5

    returns = log_returns(prices)
    log_lags, log_rs = [], []

    for lag in range(2, min(max_lag, len(returns) // 2) + 1):
        rs_values = []
        for start in range(0, len(returns) - lag + 1, lag):
            chunk = returns[start:start + lag]
            cum_dev = np.cumsum(chunk - chunk.mean())
            std = standard_deviation(chunk)
            if std > 0:
                rs_values.append((cum_dev.max() - cum_dev.min()) / std)
        if rs_values:
            avg_rs = float(np.mean(rs_values))
            if avg_rs > 0:
                log_lags.append(np.log(lag))
                log_rs.append(np.log(avg_rs))

    if len(log_lags) < 2:
        return 0.5

    hurst = _ols_slope(np.asarray(log_lags), np.asarray(log_rs))
    return clamp(hurst, 0.0, 1.0)


def _macd_lines(prices: Sequence[float]):
    cfg = INDICATORS["macd"]
    fast = exponential_moving_average(prices, cfg["fast"])
    slow = exponential_moving_average(prices, cfg["slow"])
    macd_line = fast - slow
    return macd_line, exponential_moving_average(macd_line, cfg["signal"])


def macd(prices: Sequence[float]) -> Dict[str, float]:
    cfg = INDICATORS["macd"]
    if len(prices) < cfg["slow"] + cfg["signal"]:
        return {"macd": 0.0, "signal": 0.0, "histogram": 0.0}

    macd_line, signal = _macd_lines(prices)
    return {
        "macd": float(macd_line[-1]),
        "signal": float(signal[-1]),
        "histogram": float(macd_line[-1] - signal[-1]),
    }


def standardized_macd_histogram(prices: Sequence[float],
                                window: int = INDICATORS["macd_z_window"]) -> float:
    """Current histogram over the std of the last ``window`` histograms."""
    cfg = INDICATORS["macd"]
    if len(prices) < window + cfg["slow"]:
        return 0.0

    # pass-through EMAs make each prefix's histogram the full series' value at that bar
    macd_line, signal = _macd_lines(prices)
    histograms = np.asarray(macd_line - signal, dtype=float)
    prefix_len = np.arange(1, len(prices) + 1)
    histograms = np.where(prefix_len >= cfg["slow"] + cfg["signal"], histograms, 0.0)

    std = standard_deviation(histograms[cfg["slow"]:][-window:])
    if std == 0:
        return 0.0
    return float(histograms[-1] / std)


def trend_direction(slope: float) -> TrendDirection:
    threshold = TREND["direction_threshold"]
    if slope > threshold:
        return TrendDirection.UP
    if slope < -threshold:
        return TrendDirection.DOWN
    return TrendDirection.SIDEWAYS


def calc_trend_metrics(prices: Sequence[float]) -> TrendMetrics:
    slope = regression_slope(prices)
    return TrendMetrics(
        slope=slope,
        hurst_exponent=hurst_exponent(prices),
        macd_histogram=macd(prices)["histogram"],
        direction=trend_direction(slope),
        macd_z=standardized_macd_histogram(prices),
    )


def trend_score(metrics: TrendMetrics) -> int:
    """
    0-100 trend score: 0.4 slope + 0.3 Hurst + 0.3 MACD, then a
    ±10 bonus for a confirmed direction.
    """
    weights = TREND["weights"]
    slope_component = normalize_to_100(metrics.slope, *TREND["slope_range"])
    hurst_component = metrics.hurst_exponent * 100.0
    cap = TREND["macd_cap"]
    macd_component = 50.0 + clamp(metrics.macd_histogram * TREND["macd_scale"], -cap, cap)

    bonus = 0.0
    if metrics.direction is TrendDirection.UP:
        bonus = TREND["direction_bonus"]
    elif metrics.direction is TrendDirection.DOWN:
        bonus = -TREND["direction_bonus"]

    score = (
        slope_component * weights["slope"]
        + hurst_component * weights["hurst"]
        + macd_component * weights["macd"]
        + bonus
    )
    return round_half_up(clamp(score, 0.0, 100.0))
