"""Shared fixtures for quant engine tests: synthetic OHLCV series."""

from __future__ import annotations

import numpy as np
import pytest

from models import EngineInput, OHLCBar


def _bars(prices, spread=0.01):
    bars = []
    prev = prices[0]
    for price in prices:
        open_ = prev
        bars.append(OHLCBar(
            open=open_,
            high=max(open_, price) * (1 + spread),
            low=min(open_, price) * (1 - spread),
            close=price,
        ))
        prev = price
    return bars


def _input(symbol, prices, volumes=None, spread=0.01, **kwargs):
    prices = [float(p) for p in prices]
    if volumes is None:
        volumes = [1_000_000.0] * len(prices)
    return EngineInput(
        symbol=symbol,
        prices=prices,
        ohlc=_bars(prices, spread),
        volumes=[float(v) for v in volumes],
        **kwargs,
    )


@pytest.fixture
def make_bars():
    """Factory: prices -> OHLC bars opening at the previous close."""
    return _bars


@pytest.fixture
def make_input():
    """Factory: (symbol, prices, volumes=None, spread=0.01, **EngineInput kwargs)."""
    return _input


@pytest.fixture
def rising_prices() -> list:
    """Linear rise from 100 to 150 over 60 points."""
    return list(np.linspace(100.0, 150.0, 60))


@pytest.fixture
def rising_volumes() -> list:
    """Moderately increasing volume with a confirming spike on the last bar."""
    volumes = list(np.linspace(1_000_000.0, 1_500_000.0, 60))
    volumes[-1] = 2_500_000.0
    return volumes


@pytest.fixture
def linear_rise(make_input, rising_prices, rising_volumes) -> EngineInput:
    return make_input("TREND", rising_prices, rising_volumes)


@pytest.fixture
def sawtooth(make_input) -> EngineInput:
    """Strictly alternating 100 / 102 with no net drift, 60 points."""
    prices = [100.0 if i % 2 == 0 else 102.0 for i in range(60)]
    return make_input("SAW", prices)


@pytest.fixture
def usdc_flat() -> EngineInput:
    """40 bars pinned at exactly $1.00."""
    bar = OHLCBar(open=1.0, high=1.0, low=1.0, close=1.0)
    return EngineInput(
        symbol="USDC",
        prices=[1.0] * 40,
        ohlc=[bar] * 40,
        volumes=[5_000_000.0] * 40,
    )


@pytest.fixture
def random_walk_prices():
    """Factory: reproducible geometric random walk."""
    def build(n=400, seed=7, start=100.0, vol=0.02, drift=0.0):
        rng = np.random.default_rng(seed)
        returns = rng.normal(drift, vol, n - 1)
        return list(start * np.exp(np.concatenate([[0.0], np.cumsum(returns)])))
    return build


@pytest.fixture
def random_walk(make_input, random_walk_prices) -> EngineInput:
    rng = np.random.default_rng(11)
    prices = random_walk_prices()
    volumes = rng.uniform(500_000, 1_500_000, len(prices))
    benchmark = random_walk_prices(seed=3, vol=0.01)
    return make_input("RW", prices, volumes, spread=0.015, benchmark_prices=benchmark)
