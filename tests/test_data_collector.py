"""Tests for data_collector.py with yfinance replaced by an in-memory fake"""

import numpy as np
import pandas as pd
import pytest

import data_collector
from cache import ResultCache
from data_collector import DataCollector, align_benchmark, frame_to_input
from models import Signal
from quant_engine import QuantEngine


def _frame(prices, start="2024-01-01", freq="D", tz="UTC"):
    prices = np.asarray(prices, dtype=float)
    index = pd.date_range(start, periods=len(prices), freq=freq, tz=tz)
    return pd.DataFrame({
        "Open": prices * 0.995,
        "High": prices * 1.01,
        "Low": prices * 0.99,
        "Close": prices,
        "Volume": np.linspace(1e6, 2e6, len(prices)),
    }, index=index)


class FakeYF:
    """Stands in for yfinance.Ticker; records every history request."""

    def __init__(self, frames):
        self.frames = frames
        self.requests = []

    def Ticker(self, symbol):
        fake = self

        class _Ticker:
            def history(self, period=None, interval=None):
                fake.requests.append((symbol, period, interval))
                return fake.frames.get(symbol, pd.DataFrame())

        return _Ticker()


@pytest.fixture
def frames(rising_prices, random_walk_prices):
    return {
        "TREND": _frame(rising_prices),
        "SPY": _frame(random_walk_prices(n=60, seed=5, vol=0.01), freq="B", tz="America/New_York"),
        "USDC-USD": _frame([1.0] * 60),
        "TINY": _frame(rising_prices[:10]),
    }


@pytest.fixture
def fake_yf(monkeypatch, frames):
    fake = FakeYF(frames)
    monkeypatch.setattr(data_collector.yf, "Ticker", fake.Ticker)
    return fake


@pytest.fixture
def collector():
    return DataCollector(QuantEngine(ResultCache()))


class TestFrameConversion:

    def test_frame_to_input(self, rising_prices):
        engine_input = frame_to_input("TREND", _frame(rising_prices), "1d", None, 70.0)
        assert engine_input.symbol == "TREND"
        assert len(engine_input.prices) == len(engine_input.ohlc) == len(engine_input.volumes) == 60
        assert engine_input.prices[-1] == pytest.approx(150.0)
        assert engine_input.ohlc[0].high == pytest.approx(101.0)
        assert engine_input.sentiment_score == 70.0
        assert engine_input.benchmark_prices is None

    def test_align_fills_non_trading_days(self):
        asset = _frame(np.linspace(10, 20, 14))
        bench = _frame(np.linspace(100, 110, 10), freq="B", tz="America/New_York")["Close"]
        aligned = align_benchmark(asset, bench, "1d")
        assert len(aligned) == 14
        # 2024-01-06/07 is a weekend: carries Friday's close
        assert aligned[5] == aligned[4]
        assert aligned[6] == aligned[4]

    def test_align_rejects_late_benchmark(self):
        asset = _frame(np.linspace(10, 20, 14))
        bench = _frame(np.linspace(100, 110, 10), start="2024-01-03", freq="B")["Close"]
        assert align_benchmark(asset, bench, "1d") is None

    def test_align_missing_benchmark(self):
        assert align_benchmark(_frame([1.0] * 5), None) is None

    def test_align_hourly_matches_same_instant(self):
        hour = pd.Timedelta(hours=1)
        asset = _frame(np.linspace(10, 20, 6), start="2024-01-02 14:00", freq=hour)
        # 09:00 New York is 14:00 UTC in January; each close is its UTC hour
        bench = _frame([14.0, 15.0, 16.0, 17.0, 18.0, 19.0], start="2024-01-02 09:00",
                       freq=hour, tz="America/New_York")["Close"]
        assert align_benchmark(asset, bench, "1h") == [14.0, 15.0, 16.0, 17.0, 18.0, 19.0]

    def test_align_hourly_takes_last_close_at_or_before(self):
        hour = pd.Timedelta(hours=1)
        asset = _frame(np.linspace(10, 20, 6), start="2024-01-02 14:00", freq=hour)
        # benchmark bars open on the half hour (13:30 UTC onwards)
        bench = _frame([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], start="2024-01-02 08:30",
                       freq=hour, tz="America/New_York")["Close"]
        assert align_benchmark(asset, bench, "1h") == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


class TestGetAnalysis:

    def test_scores_ticker_with_benchmark(self, collector, fake_yf):
        output = collector.get_analysis("TREND")
        assert output is not None
        assert output.symbol == "TREND"
        assert output.metrics.risk.beta != 1.0
        requested = [r[0] for r in fake_yf.requests]
        assert requested == ["TREND", "SPY"]

    def test_second_call_served_from_cache(self, collector, fake_yf):
        first = collector.get_analysis("TREND")
        second = collector.get_analysis("TREND")
        assert second is first
        assert [r[0] for r in fake_yf.requests].count("TREND") == 1

    def test_stablecoin_skips_benchmark(self, collector, fake_yf):
        output = collector.get_analysis("USDC-USD")
        assert output.is_stablecoin
        assert output.composite_score == 50
        assert output.signal is Signal.HOLD
        assert [r[0] for r in fake_yf.requests] == ["USDC-USD"]

    def test_unknown_ticker_returns_none(self, collector, fake_yf):
        assert collector.get_analysis("NOPE") is None

    def test_short_history_returns_none(self, collector, fake_yf):
        assert collector.get_analysis("TINY") is None

    def test_unsupported_interval_returns_none(self, collector, fake_yf):
        assert collector.get_analysis("TREND", interval="1w") is None
        assert fake_yf.requests == []

    def test_hourly_uses_hourly_params(self, collector, fake_yf):
        collector.get_analysis("TREND", interval="1h")
        assert fake_yf.requests[0] == ("TREND", "60d", "1h")

    def test_benchmark_fetched_once(self, collector, fake_yf, frames):
        frames["OTHER"] = frames["TREND"]
        collector.get_analysis("TREND")
        collector.get_analysis("OTHER")
        assert [r[0] for r in fake_yf.requests].count("SPY") == 1

    def test_same_sentiment_served_from_cache(self, collector, fake_yf):
        first = collector.get_analysis("TREND", sentiment=70)
        assert collector.get_analysis("TREND", sentiment=70) is first
        assert [r[0] for r in fake_yf.requests].count("TREND") == 1

    def test_new_sentiment_rescores_and_overwrites(self, collector, fake_yf):
        first = collector.get_analysis("TREND")
        rescored = collector.get_analysis("TREND", sentiment=100)
        assert rescored is not first
        assert rescored.scores.sentiment == 100.0
        assert rescored.composite_score > first.composite_score
        assert collector.get_analysis("TREND", sentiment=100) is rescored
