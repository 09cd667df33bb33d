"""
Normalization & Composite Scorer

Turns the six 0-100 factor scores into one composite score. Risk enters
inverted and capped; stablecoins are pinned to a neutral 50.

is_stablecoin() is the one canonical predicate: the composite override,
the signal override and the market-data adapter all call it.
"""

import logging
from typing import Optional

from config import RISK_BENEFIT_CAP, SCORE_WEIGHTS, STABLECOIN_SCORE, STABLECOINS, TREND
from models import EngineMetrics, FactorScores, TrendDirection, VolatilityRegime
from quant_stats import clamp, round_half_up

logger = logging.getLogger(__name__)


def is_stablecoin(symbol: str, current_price: Optional[float] = None) -> bool:
    """
    A symbol is treated as a stablecoin when its ticker matches a known
    stable asset, or when its price sits close enough to $1.00.
    Either signal alone is sufficient.
    """
    sym = (symbol or "").upper().strip()

    for pattern in STABLECOINS["symbols"]:
        if sym == pattern or (len(pattern) >= 3 and pattern in sym):
            return True
    if sym.startswith("USDT"):
        return True

    if current_price is None or current_price <= 0:
        return False
    diff = abs(current_price - 1.0)

    if "USD" in sym and not any(ns in sym for ns in STABLECOINS["non_stable_usd"]):
        if diff < STABLECOINS["usd_symbol_band"]:
            return True

    if diff <= STABLECOINS["price_band"] or diff <= STABLECOINS["exact_band"]:
        logger.info(f"Detected stablecoin by price: {symbol} at ${current_price:.2f}")
        return True
    return False


def inverted_risk(risk: float) -> float:
    """Lower risk scores higher, but never more than RISK_BENEFIT_CAP."""
    return min(RISK_BENEFIT_CAP, 100.0 - risk)


def raw_composite(scores: FactorScores) -> float:
    return (
        scores.trend * SCORE_WEIGHTS["trend"]
        + scores.momentum * SCORE_WEIGHTS["momentum"]
        + scores.volatility * SCORE_WEIGHTS["volatility"]
        + scores.volume * SCORE_WEIGHTS["volume"]
        + inverted_risk(scores.risk) * SCORE_WEIGHTS["risk"]
        + scores.sentiment * SCORE_WEIGHTS["sentiment"]
    )


def composite_score(scores: FactorScores, stablecoin: bool = False, symbol: str = "") -> int:
    raw = raw_composite(scores)
    if stablecoin:
        logger.info(f"Stablecoin {symbol}: composite forced to {STABLECOIN_SCORE} (was {raw:.2f})")
        raw = STABLECOIN_SCORE
    return int(clamp(round_half_up(raw), 0, 100))


def build_explanation(scores: FactorScores, metrics: EngineMetrics,
                      above_ema200: bool, stablecoin: bool = False) -> str:
    """Short human-readable summary of what drove the scores."""
    if stablecoin:
        return "Stablecoin pegged near $1.00, scored neutral."

    parts = []
    direction = metrics.trend.direction
    trending = direction is not TrendDirection.SIDEWAYS
    if scores.trend > 70 and trending:
        parts.append(f"Strong {direction.value.lower()}trend with "
                     f"{'positive' if metrics.trend.slope > 0 else 'negative'} slope")
    elif scores.trend > 50 and trending:
        parts.append(f"Moderate {direction.value.lower()}trend")
    else:
        parts.append("Weak or sideways trend")

    macd_z = metrics.trend.macd_z
    if abs(macd_z) > TREND["macd_z_extreme"]:
        parts.append(f"{'bullish' if macd_z > 0 else 'bearish'} MACD impulse")

    sharpe = metrics.momentum.sharpe_ratio
    if sharpe > 1.5:
        parts.append("excellent risk-adjusted returns")
    elif sharpe > 0.5:
        parts.append("positive Sharpe ratio")

    z = metrics.momentum.z_score
    if abs(z) > 2:
        parts.append("significantly overbought" if z > 0 else "oversold conditions")

    confirmation = metrics.volume.confirmation
    if confirmation.is_strong:
        parts.append(f"{confirmation.value.lower()} volume confirmation")

    parts.append("trading above 200 EMA" if above_ema200 else "trading below 200 EMA")
    regime = metrics.volatility.regime
    if regime is not VolatilityRegime.NORMAL:
        parts.append(f"{regime.value.lower()} volatility environment")

    return ", ".join(parts) + "."
