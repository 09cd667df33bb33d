"""
Risk Estimator: what the asset can cost you.

Simple interface:
    calc_risk_metrics(prices, benchmark_prices=None) -> RiskMetrics
    risk_score(metrics) -> int (0-100, higher = riskier)
"""

import logging
import math
from typing import Optional, Sequence

from config import INDICATORS, MIN_BETA_POINTS, MIN_VAR_POINTS, RISK_CAPS
from models import RiskMetrics
from quant_stats import (
    clamp, covariance, log_returns, percentile, round_half_up,
    standard_deviation,
)

logger = logging.getLogger(__name__)


def beta(asset_prices: Sequence[float], benchmark_prices: Optional[Sequence[float]]) -> float:
    """Cov(asset, benchmark) / Var(benchmark) on log returns; 1 when undetermined."""
    if benchmark_prices is None:
        return 1.0
    if len(asset_prices) != len(benchmark_prices) or len(asset_prices) < MIN_BETA_POINTS:
        logger.debug(
            f"Beta defaulted to 1: {len(asset_prices)} asset vs "
            f"{len(benchmark_prices)} benchmark points"
        )
        return 1.0

    asset_returns = log_returns(asset_prices)
    bench_returns = log_returns(benchmark_prices)
    bench_var = standard_deviation(bench_returns) ** 2
    if bench_var == 0:
        return 1.0
    return covariance(asset_returns, bench_returns) / bench_var


def downside_deviation(prices: Sequence[float], threshold: float = 0.0) -> float:
    """Std of returns below ``threshold``, annualised, in percent."""
    if len(prices) < 2:
        return 0.0
    returns = log_returns(prices)
    negative = returns[returns < threshold]
    if negative.size == 0:
        return 0.0
    return standard_deviation(negative) * math.sqrt(INDICATORS["annualization"]) * 100.0


def max_drawdown(prices: Sequence[float]) -> float:
    """Largest peak-to-trough decline, in percent."""
    if len(prices) < 2:
        return 0.0
    worst = 0.0
    peak = prices[0]
    for price in prices:
        if price > peak:
            peak = price
        if peak > 0:
            worst = max(worst, (peak - price) / peak * 100.0)
    return clamp(worst, 0.0, 100.0)


def value_at_risk(prices: Sequence[float], confidence: int = 95) -> float:
    """Historical VaR: |5th or 1st percentile of log returns|, in percent."""
    if confidence not in (95, 99):
        raise ValueError(f"VaR confidence must be 95 or 99, got {confidence}")
    if len(prices) < MIN_VAR_POINTS:
        return 0.0
    return abs(percentile(log_returns(prices), 100 - confidence) * 100.0)


def calc_risk_metrics(prices: Sequence[float],
                      benchmark_prices: Optional[Sequence[float]] = None) -> RiskMetrics:
    return RiskMetrics(
        beta=beta(prices, benchmark_prices),
        downside_deviation=downside_deviation(prices),
        max_drawdown=max_drawdown(prices),
        var95=value_at_risk(prices, 95),
        var99=value_at_risk(prices, 99),
    )


def _capped(value: float, component: str) -> float:
    cap, reference = RISK_CAPS[component]
    return min(cap, value / reference * cap)


def risk_score(metrics: RiskMetrics) -> int:
    """
    Sum of four capped sub-scores:
      beta deviation from 1 (30), downside deviation (25),
      max drawdown (25), VaR95 (20).
    """
    total = (
        _capped(abs(metrics.beta - 1), "beta")
        + _capped(metrics.downside_deviation, "downside_deviation")
        + _capped(metrics.max_drawdown, "max_drawdown")
        + _capped(metrics.var95, "var95")
    )
    return round_half_up(clamp(total, 0.0, 100.0))
