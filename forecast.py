"""
Signal / Regime / Forecast Decision Layer

Everything downstream of the factor scores:
  • determine_signal        composite thresholds → BUY / SELL / HOLD
  • determine_market_regime bull / bear / sideways from trend, momentum, risk, EMA200
  • forecast_direction      weighted voting → UP / DOWN / SIDEWAYS + probability
  • detect_trend_continuation  continuation vs reversal heuristics
  • support_resistance      last-50-bar range
  • price_target            forecast-driven target, when conviction allows
  • calculate_confidence    factor agreement + forecast conviction

These are heuristic scoring rules, not calibrated probability models.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from config import CONFIDENCE, FORECAST, INDICATORS, REGIME, THRESHOLDS
from models import (
    FactorScores, ForecastDirection, MarketRegime, OHLCBar, Signal,
    TrendDirection, VolumeConfirmation,
)
from quant_stats import (
    clamp, exponential_moving_average, round_half_up, standard_deviation,
)

logger = logging.getLogger(__name__)


@dataclass
class DirectionVote:
    direction: ForecastDirection
    probability: int
    bullish: float
    bearish: float
    total: float


def determine_signal(composite: int, stablecoin: bool = False) -> Signal:
    """Pure step function of the composite score; stablecoins always HOLD."""
    if stablecoin:
        return Signal.HOLD
    if composite >= THRESHOLDS["buy_score"]:
        return Signal.BUY
    if composite <= THRESHOLDS["sell_score"]:
        return Signal.SELL
    return Signal.HOLD


def ema200_position(prices: Sequence[float]) -> Tuple[float, bool]:
    """(EMA200 value, price strictly above it). Pass-through seeded EMA."""
    ema = exponential_moving_average(prices, INDICATORS["ema_long"])
    current = float(prices[-1])
    value = float(ema[-1]) if len(ema) else current
    return value, current > value


def determine_market_regime(direction: TrendDirection, trend: int, momentum: int,
                            risk: int, prices: Sequence[float]) -> MarketRegime:
    _, above = ema200_position(prices)

    bull = REGIME["bull"]
    if (above and direction is TrendDirection.UP
            and trend > bull["trend_min"]
            and momentum > bull["momentum_min"]
            and risk < bull["risk_max"]):
        return MarketRegime.BULL

    bear = REGIME["bear"]
    if (not above and direction is TrendDirection.DOWN
            and trend < bear["trend_max"]
            and momentum < bear["momentum_max"]
            and risk > bear["risk_min"]):
        return MarketRegime.BEAR

    return MarketRegime.SIDEWAYS


def forecast_direction(trend: int, momentum: int, direction: TrendDirection, rsi: float,
                       macd_histogram: float, confirmation: VolumeConfirmation,
                       hurst: float) -> DirectionVote:
    """
    Five voters add bullish or bearish mass:
      trend (4), momentum incl. RSI confirmation (3), MACD sign (1.5),
      volume confirmation (1), Hurst persistence (1).
    """
    cfg = FORECAST
    bullish = bearish = 0.0

    # 1. Trend: mass grows with distance from 50, only when direction agrees
    w = cfg["trend_weight"]
    if direction is TrendDirection.UP and trend > 50:
        bullish += min(w, (trend - 50) / cfg["trend_step"] * w)
    elif direction is TrendDirection.DOWN and trend < 50:
        bearish += min(w, (50 - trend) / cfg["trend_step"] * w)
    total = w

    # 2. Momentum + RSI confirmation
    if momentum > cfg["momentum_upper"]:
        bullish += (momentum - 50) / 50 * cfg["momentum_mass"]
    elif momentum < cfg["momentum_lower"]:
        bearish += (50 - momentum) / 50 * cfg["momentum_mass"]
    if 50 < rsi < 75:
        bullish += cfg["rsi_bonus"]
    elif 25 < rsi < 50:
        bearish += cfg["rsi_bonus"]
    total += cfg["momentum_weight"]

    # 3. MACD histogram sign
    if macd_histogram > 0:
        bullish += cfg["macd_weight"]
    else:
        bearish += cfg["macd_weight"]
    total += cfg["macd_weight"]

    # 4. Volume confirmation
    if confirmation.is_up:
        bullish += cfg["volume_weight"]
    elif confirmation.is_down:
        bearish += cfg["volume_weight"]
    total += cfg["volume_weight"]

    # 5. Hurst: persistent markets follow the trend, mean-reverting ones fade it
    if hurst > cfg["hurst_trending"]:
        if direction is TrendDirection.UP:
            bullish += cfg["hurst_weight"]
        elif direction is TrendDirection.DOWN:
            bearish += cfg["hurst_weight"]
    elif hurst < cfg["hurst_reverting"]:
        if direction is TrendDirection.UP:
            bearish += cfg["hurst_weight"]
        elif direction is TrendDirection.DOWN:
            bullish += cfg["hurst_weight"]
    total += cfg["hurst_weight"]

    bull_pct = bullish / total * 100
    bear_pct = bearish / total * 100
    threshold = cfg["direction_threshold"]

    if bull_pct > threshold and bull_pct > bear_pct:
        result = ForecastDirection.UP
    elif bear_pct > threshold and bear_pct > bull_pct:
        result = ForecastDirection.DOWN
    else:
        result = ForecastDirection.SIDEWAYS

    probability = max(bull_pct, bear_pct)
    if probability < 50 and result is not ForecastDirection.SIDEWAYS:
        strength = abs(bullish - bearish) / total
        probability = cfg["boost_base"] + strength * cfg["boost_range"]

    return DirectionVote(
        direction=result,
        probability=round_half_up(clamp(probability, 0.0, 100.0)),
        bullish=bullish,
        bearish=bearish,
        total=total,
    )


def detect_trend_continuation(prices: Sequence[float], direction: TrendDirection,
                              momentum: int, rsi: float,
                              confirmation: VolumeConfirmation) -> Tuple[int, int]:
    """(continuation, reversal), each 0-100."""
    continuation = reversal = 0.0

    if direction is TrendDirection.UP:
        if momentum > 55:
            continuation += 30 + (momentum - 55) * 0.5
        if 45 < rsi < 70:
            continuation += 20
        if confirmation.is_up:
            continuation += 25
        elif confirmation.is_down:
            reversal += 15
    elif direction is TrendDirection.DOWN:
        if momentum < 45:
            continuation += 30 + (45 - momentum) * 0.5
        if 30 < rsi < 55:
            continuation += 20
        if confirmation.is_down:
            continuation += 25
        elif confirmation.is_up:
            reversal += 15

    # overbought / oversold
    if rsi > 70:
        reversal += 40 + (rsi - 70) * 0.5
    elif rsi < 30:
        reversal += 40 + (30 - rsi) * 0.5

    # price moving against the prevailing trend over the divergence window
    window = FORECAST["divergence_window"]
    if len(prices) >= window and prices[-window] != 0:
        change = (prices[-1] - prices[-window]) / prices[-window]
        limit = FORECAST["divergence_pct"]
        if ((direction is TrendDirection.UP and change < -limit)
                or (direction is TrendDirection.DOWN and change > limit)):
            reversal += 20 + abs(change) * 200

    # momentum disagreeing with the trend
    if direction is TrendDirection.UP and momentum < 50:
        reversal += 15
    elif direction is TrendDirection.DOWN and momentum > 50:
        reversal += 15

    return (
        int(min(100, round_half_up(continuation))),
        int(min(100, round_half_up(reversal))),
    )


def support_resistance(bars: Sequence[OHLCBar],
                       lookback: int = INDICATORS["sr_lookback"]) -> Tuple[float, float]:
    """(support, resistance): lowest low / highest high of the last ``lookback`` bars."""
    recent = bars[-lookback:]
    return min(b.low for b in recent), max(b.high for b in recent)


def price_target(vote: DirectionVote, price: float, support: float,
                 resistance: float) -> Optional[float]:
    if vote.probability <= FORECAST["target_probability"]:
        return None
    pct = FORECAST["target_pct"]
    if vote.direction is ForecastDirection.UP:
        return max(resistance, price * (1 + pct))
    if vote.direction is ForecastDirection.DOWN:
        return min(support, price * (1 - pct))
    return None


def calculate_confidence(scores: FactorScores, forecast_probability: float) -> int:
    """Tighter factor agreement → higher confidence, plus a forecast boost."""
    std = standard_deviation(np.asarray(scores.values(), dtype=float))
    base = round_half_up(clamp(100 - CONFIDENCE["dispersion_penalty"] * std,
                               CONFIDENCE["floor"], 100))
    for above, bonus in CONFIDENCE["boosts"]:
        if forecast_probability > above:
            return min(100, base + bonus)
    return base
