"""
Market Data Collector: yfinance history → EngineInput → EngineOutput

Deep module following Ousterhout's principles:
  Simple interface → get_analysis(ticker, interval) returns a scored EngineOutput
  Complexity hidden → fetching, benchmark alignment, stablecoin routing,
                      result caching, error recovery

The engine itself never touches the network; this is the only module that does.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

import pandas as pd
import yfinance as yf

from cache import ResultCache, cache_key
from config import BENCHMARK_TICKER, DEFAULT_INTERVAL, DEFAULT_SENTIMENT, INTERVALS
from models import EngineInput, EngineOutput, OHLCBar
from quant_engine import QuantEngine, QuantEngineError
from quant_stats import clamp
from scoring import is_stablecoin

logger = logging.getLogger(__name__)

_BENCHMARK_TTL = timedelta(minutes=5)


class DataCollector:
    """
    Simple interface:
        get_analysis(ticker, interval="1d", sentiment=50) -> Optional[EngineOutput]

    Stablecoins skip the benchmark fetch: their beta is irrelevant once the
    composite is pinned to neutral.
    """

    def __init__(self, engine: Optional[QuantEngine] = None):
        self.engine = engine if engine is not None else QuantEngine(ResultCache())
        self._benchmark_cache: Dict[str, Tuple[pd.Series, datetime]] = {}

    # ── Public Interface ────────────────────────────────────────────────

    def get_analysis(self, ticker: str, interval: str = DEFAULT_INTERVAL,
                     sentiment: float = DEFAULT_SENTIMENT) -> Optional[EngineOutput]:
        """
        Fetch, score and cache one ticker. Returns None on any failure.

        A cached result is reused only when it was scored with the same
        sentiment; a new sentiment re-fetches and overwrites the entry.
        """
        cached = self.engine.cache.get(cache_key(ticker, interval))
        if cached is not None and cached.scores.sentiment == clamp(float(sentiment), 0.0, 100.0):
            return cached

        try:
            engine_input = self.build_input(ticker, interval, sentiment)
            if cached is not None:
                return self.engine.rescore_with_sentiment(engine_input, sentiment)
            return self.engine.analyze(engine_input)
        except QuantEngineError as e:
            logger.warning(f"Cannot score {ticker}: {e}")
            return None
        except Exception as e:
            logger.error(f"Failed to fetch data for {ticker}: {e}", exc_info=True)
            return None

    def build_input(self, ticker: str, interval: str = DEFAULT_INTERVAL,
                    sentiment: float = DEFAULT_SENTIMENT) -> EngineInput:
        hist = self.fetch_history(ticker, interval)
        current_price = float(hist["Close"].iloc[-1])

        benchmark = None
        if is_stablecoin(ticker, current_price):
            logger.info(f"{ticker} routed as stablecoin, skipping benchmark")
        elif ticker.upper() != BENCHMARK_TICKER.upper():
            bench = self._get_benchmark(interval)
            benchmark = align_benchmark(hist, bench, interval)

        return frame_to_input(ticker, hist, interval, benchmark, sentiment)

    # ── Internal: fetching ──────────────────────────────────────────────

    def fetch_history(self, ticker: str, interval: str) -> pd.DataFrame:
        if interval not in INTERVALS:
            raise ValueError(f"Unsupported interval {interval!r}, expected one of {list(INTERVALS)}")
        params = INTERVALS[interval]

        logger.info(f"Fetching fresh {interval} data for {ticker}")
        hist = yf.Ticker(ticker).history(period=params["period"], interval=params["yf_interval"])
        if hist is None or hist.empty:
            raise ValueError(f"No data available for {ticker}")
        return hist.dropna(subset=["Open", "High", "Low", "Close"])

    def _get_benchmark(self, interval: str) -> Optional[pd.Series]:
        entry = self._benchmark_cache.get(interval)
        if entry:
            series, ts = entry
            if datetime.now() - ts < _BENCHMARK_TTL:
                return series
        try:
            hist = self.fetch_history(BENCHMARK_TICKER, interval)
        except Exception as e:
            logger.warning(f"Benchmark {BENCHMARK_TICKER} unavailable, beta defaults to 1: {e}")
            return None
        series = hist["Close"]
        self._benchmark_cache[interval] = (series, datetime.now())
        return series


# ── Frame conversion ────────────────────────────────────────────────────

def _naive_index(index: pd.Index, interval: str) -> pd.DatetimeIndex:
    idx = pd.DatetimeIndex(index)
    if interval == "1d":
        # daily bars from different exchanges carry different session times,
        # so each keeps its own local trading date
        if idx.tz is not None:
            idx = idx.tz_localize(None)
        return idx.normalize()
    # intraday bars line up on the instant, not the local wall clock
    if idx.tz is not None:
        idx = idx.tz_convert("UTC").tz_localize(None)
    return idx


def align_benchmark(hist: pd.DataFrame, bench: Optional[pd.Series],
                    interval: str = DEFAULT_INTERVAL) -> Optional[list]:
    """
    Benchmark closes on the asset's timestamps: each asset bar takes the last
    benchmark close at or before it, which carries prices across days (or
    hours) the benchmark did not trade. None when the benchmark cannot cover
    the asset.
    """
    if bench is None or bench.empty:
        return None
    bench = bench.copy()
    bench.index = _naive_index(bench.index, interval)
    bench = bench[~bench.index.duplicated(keep="last")].sort_index()

    aligned = bench.reindex(_naive_index(hist.index, interval), method="ffill")
    if aligned.isna().any():
        logger.debug("Benchmark does not cover the asset history, skipping beta")
        return None
    return aligned.astype(float).tolist()


def frame_to_input(ticker: str, hist: pd.DataFrame, interval: str = DEFAULT_INTERVAL,
                   benchmark: Optional[list] = None,
                   sentiment: float = DEFAULT_SENTIMENT) -> EngineInput:
    """yfinance OHLCV frame → EngineInput (oldest first)."""
    bars = [
        OHLCBar(open=float(r.Open), high=float(r.High), low=float(r.Low), close=float(r.Close))
        for r in hist.itertuples()
    ]
    return EngineInput(
        symbol=ticker,
        prices=hist["Close"].astype(float).tolist(),
        ohlc=bars,
        volumes=hist["Volume"].fillna(0).astype(float).tolist(),
        benchmark_prices=benchmark,
        sentiment_score=sentiment,
        interval=interval,
    )
