"""Core data models: single source of truth for engine inputs and outputs.

Everything the engine produces is assembled into these dataclasses so the
runner, display and any caller read one shape. Enums carry the exact labels
downstream consumers expect.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from config import DEFAULT_INTERVAL, DEFAULT_SENTIMENT


class Signal(Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class MarketRegime(Enum):
    BULL = "bull"
    BEAR = "bear"
    SIDEWAYS = "sideways"


class TrendDirection(Enum):
    UP = "Up"
    DOWN = "Down"
    SIDEWAYS = "Sideways"


class VolatilityRegime(Enum):
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class VolumeConfirmation(Enum):
    STRONG_UP = "Strong Up"
    WEAK_UP = "Weak Up"
    STRONG_DOWN = "Strong Down"
    WEAK_DOWN = "Weak Down"
    NEUTRAL = "Neutral"

    @property
    def is_up(self) -> bool:
        return self in (VolumeConfirmation.STRONG_UP, VolumeConfirmation.WEAK_UP)

    @property
    def is_down(self) -> bool:
        return self in (VolumeConfirmation.STRONG_DOWN, VolumeConfirmation.WEAK_DOWN)

    @property
    def is_strong(self) -> bool:
        return self in (VolumeConfirmation.STRONG_UP, VolumeConfirmation.STRONG_DOWN)


class ForecastDirection(Enum):
    UP = "UP"
    DOWN = "DOWN"
    SIDEWAYS = "SIDEWAYS"


@dataclass(frozen=True)
class OHLCBar:
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_mapping(cls, bar: Mapping[str, float]) -> "OHLCBar":
        return cls(
            open=float(bar["open"]), high=float(bar["high"]),
            low=float(bar["low"]), close=float(bar["close"]),
        )


@dataclass
class EngineInput:
    """One scoring request. Arrays are read, never mutated."""
    symbol: str
    prices: Sequence[float]
    ohlc: Sequence[OHLCBar]
    volumes: Sequence[float]
    benchmark_prices: Optional[Sequence[float]] = None
    sentiment_score: float = DEFAULT_SENTIMENT
    interval: str = DEFAULT_INTERVAL


# ── Per-estimator metric bundles ─────────────────────────────────────────────

@dataclass
class TrendMetrics:
    slope: float
    hurst_exponent: float
    macd_histogram: float
    direction: TrendDirection
    macd_z: float = 0.0           # histogram in units of its recent std


@dataclass
class MomentumMetrics:
    z_score: float
    sharpe_ratio: float
    sortino_ratio: float
    rsi: float
    rsi_z: float
    roc: float


@dataclass
class VolatilityMetrics:
    historical_vol: float
    parkinson_vol: float
    garman_klass_vol: float
    atr: float
    regime: VolatilityRegime

    @property
    def average(self) -> float:
        return (self.historical_vol + self.parkinson_vol + self.garman_klass_vol) / 3


@dataclass
class VolumeMetrics:
    volume_z_score: float
    mfi: float
    confirmation: VolumeConfirmation


@dataclass
class RiskMetrics:
    beta: float
    downside_deviation: float
    max_drawdown: float
    var95: float
    var99: float


@dataclass
class EngineMetrics:
    trend: TrendMetrics
    momentum: MomentumMetrics
    volatility: VolatilityMetrics
    volume: VolumeMetrics
    risk: RiskMetrics


# ── Scores and decisions ─────────────────────────────────────────────────────

@dataclass
class FactorScores:
    trend: int
    momentum: int
    volatility: int
    volume: int
    risk: int
    sentiment: float

    def values(self) -> List[float]:
        return [self.trend, self.momentum, self.volatility,
                self.volume, self.risk, self.sentiment]


@dataclass
class Forecast:
    direction: ForecastDirection
    probability: int
    trend_continuation: int
    trend_reversal: int
    support: float
    resistance: float
    price_target: Optional[float] = None


@dataclass
class EngineOutput:
    symbol: str
    interval: str
    scores: FactorScores
    composite_score: int
    signal: Signal
    market_regime: MarketRegime
    confidence: int
    forecast: Forecast
    metrics: EngineMetrics
    is_stablecoin: bool = False
    current_price: float = 0.0
    explanation: str = ""

    def to_dict(self) -> Dict:
        """JSON-friendly view: enums flattened to their labels."""
        return _flatten_enums(asdict(self))


def _flatten_enums(node):
    if isinstance(node, dict):
        return {k: _flatten_enums(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_flatten_enums(v) for v in node]
    if isinstance(node, Enum):
        return node.value
    return node


@dataclass
class ScanResult:
    """A scored ticker as tracked by the runner."""
    ticker: str
    output: Optional[EngineOutput] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.output is not None
