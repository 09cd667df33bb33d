"""
Volatility Estimator: how much the asset moves, and whether that is unusual.

Simple interface:
    calc_volatility_metrics(prices, bars) -> VolatilityMetrics
    volatility_score(metrics) -> int (0-100)

Three annualised estimators are averaged for scoring: close-to-close,
Parkinson (high/low range) and Garman-Klass (OHLC). The score peaks for
"tradeable but not chaotic" volatility and penalises both flatness and chaos.
"""

import logging
from typing import Sequence

import numpy as np

from config import INDICATORS, VOLATILITY, VOLATILITY_CURVE
from models import OHLCBar, VolatilityMetrics, VolatilityRegime
from quant_stats import clamp, log_returns, round_half_up, standard_deviation

logger = logging.getLogger(__name__)

_ANNUALIZE = np.sqrt(INDICATORS["annualization"])


def historical_volatility(prices: Sequence[float], window: int = INDICATORS["vol_window"]) -> float:
    """Std of log returns, annualised, in percent."""
    if len(prices) < window + 1:
        return 0.0
    returns = log_returns(prices[-window - 1:])
    return standard_deviation(returns) * _ANNUALIZE * 100.0


def _ohlc_arrays(bars: Sequence[OHLCBar]):
    opens = np.array([b.open for b in bars], dtype=float)
    highs = np.array([b.high for b in bars], dtype=float)
    lows = np.array([b.low for b in bars], dtype=float)
    closes = np.array([b.close for b in bars], dtype=float)
    return opens, highs, lows, closes


def parkinson_volatility(bars: Sequence[OHLCBar], window: int = INDICATORS["vol_window"]) -> float:
    if len(bars) < window:
        return 0.0
    _, h, l, _ = _ohlc_arrays(bars[-window:])
    valid = (h > 0) & (l > 0)
    total = np.sum(np.log(h[valid] / l[valid]) ** 2)
    variance = total / (4 * window * np.log(2))
    return float(np.sqrt(variance) * _ANNUALIZE * 100.0)


def garman_klass_volatility(bars: Sequence[OHLCBar], window: int = INDICATORS["vol_window"]) -> float:
    if len(bars) < window:
        return 0.0
    o, h, l, c = _ohlc_arrays(bars[-window:])
    valid = (o > 0) & (h > 0) & (l > 0) & (c > 0)
    oc_coeff = 2 * np.log(2) - 1
    terms = (0.5 * np.log(h[valid] / l[valid]) ** 2
             - oc_coeff * np.log(c[valid] / o[valid]) ** 2)
    # wide open/close gaps on narrow ranges can push the estimate negative
    variance = max(float(np.sum(terms)) / window, 0.0)
    return float(np.sqrt(variance) * _ANNUALIZE * 100.0)


def average_true_range(bars: Sequence[OHLCBar], period: int = INDICATORS["atr_period"]) -> float:
    if len(bars) < period + 1:
        return 0.0
    _, h, l, c = _ohlc_arrays(bars)
    prev_close = c[:-1]
    h, l = h[1:], l[1:]
    true_range = np.maximum(h - l, np.maximum(np.abs(h - prev_close), np.abs(l - prev_close)))
    return float(np.mean(true_range[-period:]))


def volatility_regime(current_vol: float, prices: Sequence[float],
                      long_window: int = INDICATORS["vol_long_window"]) -> VolatilityRegime:
    """Short-window vol against the long-window baseline."""
    if len(prices) < long_window + 1:
        return VolatilityRegime.NORMAL
    long_vol = historical_volatility(prices, long_window)
    if long_vol == 0:
        return VolatilityRegime.NORMAL

    ratio = current_vol / long_vol
    if ratio > VOLATILITY["regime_high_ratio"]:
        return VolatilityRegime.HIGH
    if ratio < VOLATILITY["regime_low_ratio"]:
        return VolatilityRegime.LOW
    return VolatilityRegime.NORMAL


def calc_volatility_metrics(prices: Sequence[float], bars: Sequence[OHLCBar]) -> VolatilityMetrics:
    hv = historical_volatility(prices)
    return VolatilityMetrics(
        historical_vol=hv,
        parkinson_vol=parkinson_volatility(bars),
        garman_klass_vol=garman_klass_volatility(bars),
        atr=average_true_range(bars),
        regime=volatility_regime(hv, prices),
    )


def volatility_curve(avg_vol: float) -> float:
    """
    Piecewise-linear score over average annualised volatility.

    Segment bounds come from VOLATILITY_CURVE. The first segment is open at
    its upper bound (< 5%), the others are closed (<= 30%, <= 50%); the last
    one extends past its bound and is floored at 0.
    """
    lower = 0.0
    last = len(VOLATILITY_CURVE) - 1
    for i, (upper, start, end) in enumerate(VOLATILITY_CURVE):
        inside = avg_vol < upper if i == 0 else avg_vol <= upper
        if inside or i == last:
            frac = (avg_vol - lower) / (upper - lower)
            return max(0.0, start + frac * (end - start))
        lower = upper
    return 0.0


def volatility_score(metrics: VolatilityMetrics) -> int:
    avg_vol = metrics.average
    score = volatility_curve(avg_vol)

    # the low-regime bonus only applies to assets that actually move
    flat_bound = VOLATILITY_CURVE[0][0]
    if metrics.regime is not VolatilityRegime.LOW or avg_vol >= flat_bound:
        score += VOLATILITY["regime_bonus"][metrics.regime.value]

    return round_half_up(clamp(score, 0.0, 100.0))
