"""
Quant Engine Orchestrator

Deep module following Ousterhout's principles:
  Simple interface → run_quant_engine(engine_input) returns everything
  Complexity hidden → five estimators, normalization, composite,
                      signal, regime, forecast and confidence

run_quant_engine() is pure: the same input always yields the same output.
QuantEngine wraps it with an injected result cache for callers that score
the same symbol repeatedly.
"""

import logging
from dataclasses import replace
from typing import Mapping, Optional, Sequence, Union

from cache import ResultCache, cache_key
from config import MIN_DATA_POINTS
from forecast import (
    calculate_confidence, detect_trend_continuation, determine_market_regime,
    determine_signal, ema200_position, forecast_direction, price_target,
    support_resistance,
)
from models import EngineInput, EngineMetrics, EngineOutput, FactorScores, Forecast, OHLCBar
from momentum import calc_momentum_metrics, momentum_score
from quant_stats import clamp
from risk import calc_risk_metrics, risk_score
from scoring import build_explanation, composite_score, is_stablecoin
from trend import calc_trend_metrics, trend_score
from volatility import calc_volatility_metrics, volatility_score
from volume import calc_volume_metrics, volume_score

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════

class QuantEngineError(ValueError):
    """Input the engine refuses to score."""


class InsufficientDataError(QuantEngineError):
    pass


class ShapeMismatchError(QuantEngineError):
    pass


# ═══════════════════════════════════════════════════════════════════════════
# Pure pipeline
# ═══════════════════════════════════════════════════════════════════════════

def _as_bars(ohlc: Sequence[Union[OHLCBar, Mapping[str, float]]]) -> list:
    return [b if isinstance(b, OHLCBar) else OHLCBar.from_mapping(b) for b in ohlc]


def validate_input(engine_input: EngineInput) -> None:
    n = len(engine_input.prices)
    if n < MIN_DATA_POINTS:
        raise InsufficientDataError(
            f"{engine_input.symbol}: need at least {MIN_DATA_POINTS} prices, got {n}"
        )
    if len(engine_input.ohlc) != n:
        raise ShapeMismatchError(
            f"{engine_input.symbol}: {len(engine_input.ohlc)} OHLC bars for {n} prices"
        )
    if len(engine_input.volumes) != n:
        raise ShapeMismatchError(
            f"{engine_input.symbol}: {len(engine_input.volumes)} volumes for {n} prices"
        )


def run_quant_engine(engine_input: EngineInput) -> EngineOutput:
    """Score one asset. Raises QuantEngineError on unusable input."""
    validate_input(engine_input)

    symbol = engine_input.symbol
    prices = [float(p) for p in engine_input.prices]
    volumes = [float(v) for v in engine_input.volumes]
    bars = _as_bars(engine_input.ohlc)
    highs = [b.high for b in bars]
    lows = [b.low for b in bars]
    closes = [b.close for b in bars]
    current_price = prices[-1]

    # ── Estimators ──
    trend_m = calc_trend_metrics(prices)
    momentum_m = calc_momentum_metrics(prices)
    volatility_m = calc_volatility_metrics(prices, bars)
    volume_m = calc_volume_metrics(prices, volumes, highs, lows, closes)
    risk_m = calc_risk_metrics(prices, engine_input.benchmark_prices)
    metrics = EngineMetrics(
        trend=trend_m, momentum=momentum_m, volatility=volatility_m,
        volume=volume_m, risk=risk_m,
    )

    # ── Factor scores + composite ──
    scores = FactorScores(
        trend=trend_score(trend_m),
        momentum=momentum_score(momentum_m),
        volatility=volatility_score(volatility_m),
        volume=volume_score(volume_m),
        risk=risk_score(risk_m),
        sentiment=clamp(float(engine_input.sentiment_score), 0.0, 100.0),
    )
    stablecoin = is_stablecoin(symbol, current_price)
    composite = composite_score(scores, stablecoin=stablecoin, symbol=symbol)

    # ── Decisions ──
    signal = determine_signal(composite, stablecoin)
    regime = determine_market_regime(
        trend_m.direction, scores.trend, scores.momentum, scores.risk, prices
    )

    vote = forecast_direction(
        scores.trend, scores.momentum, trend_m.direction, momentum_m.rsi,
        trend_m.macd_histogram, volume_m.confirmation, trend_m.hurst_exponent,
    )
    continuation, reversal = detect_trend_continuation(
        prices, trend_m.direction, scores.momentum, momentum_m.rsi, volume_m.confirmation
    )
    support, resistance = support_resistance(bars)
    forecast = Forecast(
        direction=vote.direction,
        probability=vote.probability,
        trend_continuation=continuation,
        trend_reversal=reversal,
        support=support,
        resistance=resistance,
        price_target=price_target(vote, current_price, support, resistance),
    )
    confidence = calculate_confidence(scores, vote.probability)

    _, above_ema200 = ema200_position(prices)
    explanation = build_explanation(scores, metrics, above_ema200, stablecoin)

    logger.debug(
        f"{symbol}: composite={composite} signal={signal.value} regime={regime.value} "
        f"forecast={vote.direction.value}@{vote.probability}% confidence={confidence}"
    )

    return EngineOutput(
        symbol=symbol,
        interval=engine_input.interval,
        scores=scores,
        composite_score=composite,
        signal=signal,
        market_regime=regime,
        confidence=confidence,
        forecast=forecast,
        metrics=metrics,
        is_stablecoin=stablecoin,
        current_price=current_price,
        explanation=explanation,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Cached facade
# ═══════════════════════════════════════════════════════════════════════════

class QuantEngine:
    """
    Simple interface:
        analyze(engine_input) -> EngineOutput        (read/write-through cache)
        rescore_with_sentiment(engine_input, s)      (bypass + overwrite)
    """

    def __init__(self, cache: Optional[ResultCache] = None, ttl: Optional[float] = None):
        self.cache = cache if cache is not None else ResultCache()
        self.ttl = ttl

    def analyze(self, engine_input: EngineInput) -> EngineOutput:
        key = cache_key(engine_input.symbol, engine_input.interval)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        output = run_quant_engine(engine_input)
        self.cache.set(key, output, self.ttl)
        return output

    def rescore_with_sentiment(self, engine_input: EngineInput, sentiment: float) -> EngineOutput:
        """Re-run the full pipeline once a sentiment score is known."""
        updated = replace(engine_input, sentiment_score=sentiment)
        output = run_quant_engine(updated)
        self.cache.set(cache_key(updated.symbol, updated.interval), output, self.ttl)
        logger.info(
            f"{updated.symbol}: rescored with sentiment {sentiment:.0f} → "
            f"composite {output.composite_score} ({output.signal.value})"
        )
        return output
