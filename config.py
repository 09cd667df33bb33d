"""
Configuration for the Quant Scoring Engine
Centralized configuration: every window, weight and breakpoint the engine
uses lives here so it can be audited and tested in isolation.

Key scoring settings:
- Indicator windows per estimator
- Factor weights for the composite score
- Piecewise volatility curve and risk caps
- Signal thresholds, regime gates and forecast voting weights
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Base directories ────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).parent
LOGS_DIR = BASE_DIR / "logs"

# ── Universe ────────────────────────────────────────────────────────────────
# yfinance format; override with a comma-separated QUANT_TICKERS env var
TICKERS = [
    t.strip() for t in os.getenv(
        "QUANT_TICKERS", "BTC-USD,ETH-USD,SOL-USD,USDC-USD,SPY,NVDA"
    ).split(",") if t.strip()
]

# Benchmark for beta
BENCHMARK_TICKER = os.getenv("QUANT_BENCHMARK", "SPY")

# ── Timing ──────────────────────────────────────────────────────────────────
UPDATE_INTERVAL = 300        # 5 min between scan cycles
CACHE_TTL = int(os.getenv("QUANT_CACHE_TTL", "60"))  # seconds

# ── Data ────────────────────────────────────────────────────────────────────
HISTORICAL_DAYS = 400        # enough for EMA200 and the 365-bar vol regime
INTERVALS = {
    "1d": {"yf_interval": "1d", "period": f"{HISTORICAL_DAYS}d"},
    "1h": {"yf_interval": "1h", "period": "60d"},
}
DEFAULT_INTERVAL = "1d"

# ── Engine preconditions ────────────────────────────────────────────────────
MIN_DATA_POINTS = 30
DEFAULT_SENTIMENT = 50.0

# ── Technical Indicators ────────────────────────────────────────────────────
INDICATORS = {
    # Trend
    "slope_window": 20,
    "hurst_max_lag": 20,
    "macd": {"fast": 12, "slow": 26, "signal": 9},
    "macd_z_window": 50,
    "ema_long": 200,

    # Momentum
    "zscore_window": 20,
    "sharpe_window": 30,
    "sortino_window": 30,
    "rsi_period": 14,
    "rsi_z_window": 30,
    "roc_period": 10,

    # Volatility
    "vol_window": 30,
    "vol_long_window": 365,
    "atr_period": 14,
    "annualization": 365,

    # Volume
    "volume_z_window": 20,
    "mfi_period": 14,

    # Support / Resistance
    "sr_lookback": 50,
}

# ── Trend ───────────────────────────────────────────────────────────────────
TREND = {
    "direction_threshold": 0.5,   # slope % beyond which the trend is Up/Down
    "slope_range": (-2.0, 2.0),   # slope % mapped onto 0-100
    "macd_scale": 10.0,           # histogram units per score point
    "macd_cap": 50.0,
    "direction_bonus": 10.0,
    "weights": {"slope": 0.4, "hurst": 0.3, "macd": 0.3},
    "macd_z_extreme": 2.0,        # |standardized histogram| worth a mention in the explanation
}

# ── Momentum ────────────────────────────────────────────────────────────────
MOMENTUM = {
    "ranges": {
        "zscore": (-3.0, 3.0),
        "sharpe": (-1.0, 3.0),
        "sortino": (-1.0, 3.0),
        "rsi_z": (-2.0, 2.0),
        "roc": (-20.0, 20.0),
    },
    "weights": {
        "zscore": 0.20,
        "sharpe": 0.20,
        "sortino": 0.15,
        "rsi": 0.15,
        "rsi_z": 0.10,
        "roc": 0.20,
    },
    "rsi_loss_floor": 1e-10,
    "sortino_no_downside": 100.0,
}

# ── Volatility ──────────────────────────────────────────────────────────────
VOLATILITY = {
    "regime_high_ratio": 1.5,
    "regime_low_ratio": 0.7,
    "regime_bonus": {"Low": 5.0, "Normal": 0.0, "High": -10.0},
}

# Piecewise-linear curve over the average annualised volatility (%).
# Each segment: (upper bound, score at lower bound, score at upper bound).
# Peaks at 5% and stays high through 30% ("tradeable but not chaotic").
VOLATILITY_CURVE = [
    (5.0, 40.0, 70.0),     # < 5%: stablecoin-like flatness
    (30.0, 100.0, 70.0),   # 5-30%: sweet spot, lower is better
    (50.0, 100.0, 60.0),   # 30-50%: elevated
    (100.0, 60.0, 0.0),    # > 50%: chaotic, floored at 0 beyond 100%
]

# ── Volume ──────────────────────────────────────────────────────────────────
VOLUME = {
    "strong_z": 0.5,              # volume z above this = "Strong" move
    "z_center": 25.0,
    "z_scale": 10.0,
    "z_cap": 50.0,
    "strong_bonus": 10.0,
    "weak_penalty": -5.0,
}

# ── Risk ────────────────────────────────────────────────────────────────────
# component: (cap, reference level that maps onto the cap)
RISK_CAPS = {
    "beta": (30.0, 2.0),                  # |beta - 1| of 2 = full cap
    "downside_deviation": (25.0, 50.0),   # 50% annualised
    "max_drawdown": (25.0, 50.0),         # 50% drawdown
    "var95": (20.0, 10.0),                # 10% daily VaR
}
MIN_BETA_POINTS = 30
MIN_VAR_POINTS = 30

# ── Quantitative Scoring ────────────────────────────────────────────────────
SCORE_WEIGHTS = {
    "trend":      0.25,
    "momentum":   0.25,
    "volatility": 0.15,
    "volume":     0.15,
    "risk":       0.10,   # applied to the inverted, capped risk score
    "sentiment":  0.10,
}
RISK_BENEFIT_CAP = 70.0       # max contribution of (100 - risk)
STABLECOIN_SCORE = 50

# ── Thresholds ──────────────────────────────────────────────────────────────
THRESHOLDS = {
    "buy_score":  65,
    "sell_score": 35,
}

# Market regime gates
REGIME = {
    "bull": {"trend_min": 60, "momentum_min": 55, "risk_max": 50},
    "bear": {"trend_max": 40, "momentum_max": 45, "risk_min": 60},
}

# ── Forecast ────────────────────────────────────────────────────────────────
FORECAST = {
    "trend_weight": 4.0,
    "trend_step": 12.5,
    "momentum_weight": 3.0,
    "momentum_mass": 2.5,
    "momentum_upper": 55,
    "momentum_lower": 45,
    "rsi_bonus": 0.5,
    "macd_weight": 1.5,
    "volume_weight": 1.0,
    "hurst_weight": 1.0,
    "hurst_trending": 0.55,
    "hurst_reverting": 0.45,
    "direction_threshold": 45.0,
    "boost_base": 50.0,
    "boost_range": 30.0,
    "target_probability": 60,
    "target_pct": 0.05,
    "divergence_window": 20,
    "divergence_pct": 0.03,
}

# ── Confidence ──────────────────────────────────────────────────────────────
CONFIDENCE = {
    "floor": 50,
    "dispersion_penalty": 2.0,
    "boosts": [(70, 10), (60, 5)],   # (probability above, bonus)
}

# ── Stablecoins ─────────────────────────────────────────────────────────────
STABLECOINS = {
    "symbols": [
        "USDT", "USDC", "BUSD", "DAI", "TUSD", "USDP", "USDD", "GUSD",
        "FRAX", "LUSD", "SUSD", "MIM", "USDX", "USDN", "EURS", "USDS",
        "USDK", "HUSD", "PAX", "CUSD", "USDJ", "USDE", "USD1", "USDT0",
    ],
    "non_stable_usd": ["USDM", "USDTM", "USDXBT", "USDXRP"],
    "usd_symbol_band": 0.20,   # USD-named symbol within 20 cents of $1
    "price_band": 0.15,        # any symbol within 15 cents of $1
    "exact_band": 0.05,
}

# ── Display ─────────────────────────────────────────────────────────────────
TERMINAL_WIDTH = 130

# ── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("QUANT_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
