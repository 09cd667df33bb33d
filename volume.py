"""
Volume Estimator: is participation confirming the price move?

Simple interface:
    calc_volume_metrics(prices, volumes, highs, lows, closes) -> VolumeMetrics
    volume_score(metrics) -> int (0-100)
"""

import logging
from typing import Sequence

import numpy as np

from config import INDICATORS, VOLUME
from models import VolumeConfirmation, VolumeMetrics
from quant_stats import clamp, mean, round_half_up, standard_deviation

logger = logging.getLogger(__name__)


def volume_z_score(volumes: Sequence[float], window: int = INDICATORS["volume_z_window"]) -> float:
    """Current volume against the mean/std of the last ``window`` volumes."""
    if len(volumes) < window:
        return 0.0
    recent = volumes[-window:]
    std = standard_deviation(recent)
    if std == 0:
        return 0.0
    return (volumes[-1] - mean(recent)) / std


def money_flow_index(highs: Sequence[float], lows: Sequence[float],
                     closes: Sequence[float], volumes: Sequence[float],
                     period: int = INDICATORS["mfi_period"]) -> float:
    """Money Flow Index: volume-weighted RSI on typical price."""
    if len(closes) < period + 1:
        return 50.0

    typical = (np.asarray(highs, dtype=float) + np.asarray(lows, dtype=float)
               + np.asarray(closes, dtype=float)) / 3
    flow = typical * np.asarray(volumes, dtype=float)

    typical = typical[-period - 1:]
    flow = flow[-period - 1:]
    delta = np.diff(typical)
    positive = float(flow[1:][delta > 0].sum())
    negative = float(flow[1:][delta < 0].sum())

    if negative == 0:
        return 100.0
    ratio = positive / negative
    return 100.0 - 100.0 / (1.0 + ratio)


def price_volume_confirmation(prices: Sequence[float], volumes: Sequence[float]) -> VolumeConfirmation:
    if len(prices) < 2 or len(volumes) < 2:
        return VolumeConfirmation.NEUTRAL

    price_up = prices[-1] - prices[-2] > 0
    volume_high = volume_z_score(volumes) > VOLUME["strong_z"]

    if price_up:
        return VolumeConfirmation.STRONG_UP if volume_high else VolumeConfirmation.WEAK_UP
    return VolumeConfirmation.STRONG_DOWN if volume_high else VolumeConfirmation.WEAK_DOWN


def calc_volume_metrics(prices: Sequence[float], volumes: Sequence[float],
                        highs: Sequence[float], lows: Sequence[float],
                        closes: Sequence[float]) -> VolumeMetrics:
    return VolumeMetrics(
        volume_z_score=volume_z_score(volumes),
        mfi=money_flow_index(highs, lows, closes, volumes),
        confirmation=price_volume_confirmation(prices, volumes),
    )


def volume_score(metrics: VolumeMetrics) -> int:
    """
    Volume-z component (0-50) + MFI/2 (0-50), +10 for a strong
    confirmation, -5 for a weak one.
    """
    z_component = clamp(VOLUME["z_center"] + metrics.volume_z_score * VOLUME["z_scale"],
                        0.0, VOLUME["z_cap"])
    mfi_component = metrics.mfi / 2

    bonus = 0.0
    if metrics.confirmation.is_strong:
        bonus = VOLUME["strong_bonus"]
    elif metrics.confirmation is not VolumeConfirmation.NEUTRAL:
        bonus = VOLUME["weak_penalty"]

    return round_half_up(clamp(z_component + mfi_component + bonus, 0.0, 100.0))
