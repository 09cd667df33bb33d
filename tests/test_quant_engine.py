"""Tests for quant_engine.py: end-to-end scoring scenarios"""

from dataclasses import replace

import pytest

from cache import ResultCache, cache_key
from models import ForecastDirection, MarketRegime, Signal, TrendDirection
from quant_engine import (
    InsufficientDataError, QuantEngine, QuantEngineError, ShapeMismatchError,
    run_quant_engine,
)


def _assert_well_formed(output):
    for value in output.scores.values():
        assert 0 <= value <= 100
    assert 0 <= output.composite_score <= 100
    assert 0 <= output.confidence <= 100
    assert 0 <= output.forecast.probability <= 100
    assert 0 <= output.forecast.trend_continuation <= 100
    assert 0 <= output.forecast.trend_reversal <= 100
    assert output.signal in set(Signal)
    assert output.market_regime in set(MarketRegime)
    assert output.forecast.direction in set(ForecastDirection)
    assert output.forecast.support <= output.forecast.resistance


class TestValidation:

    def test_29_prices_is_insufficient(self, make_input, rising_prices):
        with pytest.raises(InsufficientDataError):
            run_quant_engine(make_input("X", rising_prices[:29]))

    def test_ohlc_length_mismatch(self, make_input, rising_prices):
        good = make_input("X", rising_prices[:30])
        bad = replace(good, ohlc=good.ohlc[:29])
        with pytest.raises(ShapeMismatchError):
            run_quant_engine(bad)

    def test_volume_length_mismatch(self, make_input, rising_prices):
        good = make_input("X", rising_prices[:30])
        bad = replace(good, volumes=good.volumes[:29])
        with pytest.raises(ShapeMismatchError):
            run_quant_engine(bad)

    def test_errors_share_a_base(self):
        assert issubclass(InsufficientDataError, QuantEngineError)
        assert issubclass(ShapeMismatchError, QuantEngineError)
        assert issubclass(QuantEngineError, ValueError)

    def test_minimum_length_is_accepted(self, make_input, rising_prices):
        _assert_well_formed(run_quant_engine(make_input("X", rising_prices[:30])))


class TestScenarios:

    def test_linear_rise(self, linear_rise):
        out = run_quant_engine(linear_rise)
        assert out.metrics.trend.direction is TrendDirection.UP
        assert out.scores.trend > 60
        assert out.forecast.direction is ForecastDirection.UP
        assert out.market_regime is MarketRegime.BULL
        assert not out.is_stablecoin
        _assert_well_formed(out)

    def test_sawtooth(self, sawtooth):
        out = run_quant_engine(sawtooth)
        assert out.metrics.trend.hurst_exponent < 0.5
        assert out.market_regime is MarketRegime.SIDEWAYS
        _assert_well_formed(out)

    @pytest.mark.parametrize("sentiment", [0.0, 50.0, 100.0])
    def test_usdc_flat_is_neutral(self, usdc_flat, sentiment):
        out = run_quant_engine(replace(usdc_flat, sentiment_score=sentiment))
        assert out.is_stablecoin
        assert out.composite_score == 50
        assert out.signal is Signal.HOLD

    def test_price_pegged_unknown_symbol_is_stablecoin(self, make_input, rising_prices):
        # strong uptrend in shape, but the last price sits at $1.02
        prices = [p / 147.0 for p in rising_prices]
        out = run_quant_engine(make_input("NEWCOIN", prices))
        assert out.composite_score == 50
        assert out.signal is Signal.HOLD

    def test_random_walk_is_well_formed(self, random_walk):
        _assert_well_formed(run_quant_engine(random_walk))

    @pytest.mark.parametrize("seed", range(5))
    def test_scores_bounded_across_walks(self, make_input, random_walk_prices, seed):
        prices = random_walk_prices(n=250, seed=seed, vol=0.04, drift=0.002 * (seed - 2))
        _assert_well_formed(run_quant_engine(make_input(f"W{seed}", prices)))


class TestEngineProperties:

    def test_idempotent(self, random_walk):
        first = run_quant_engine(random_walk)
        second = run_quant_engine(random_walk)
        assert first.to_dict() == second.to_dict()

    def test_input_not_mutated(self, random_walk):
        before = list(random_walk.prices)
        run_quant_engine(random_walk)
        assert list(random_walk.prices) == before

    def test_signal_follows_composite(self, random_walk, linear_rise, sawtooth):
        for engine_input in (random_walk, linear_rise, sawtooth):
            out = run_quant_engine(engine_input)
            if out.composite_score >= 65:
                assert out.signal is Signal.BUY
            elif out.composite_score <= 35:
                assert out.signal is Signal.SELL
            else:
                assert out.signal is Signal.HOLD

    def test_sentiment_only_moves_composite(self, linear_rise):
        low = run_quant_engine(replace(linear_rise, sentiment_score=0.0))
        high = run_quant_engine(replace(linear_rise, sentiment_score=100.0))
        assert high.scores.trend == low.scores.trend
        assert high.scores.momentum == low.scores.momentum
        assert 9 <= high.composite_score - low.composite_score <= 11

    def test_sentiment_clamped(self, linear_rise):
        out = run_quant_engine(replace(linear_rise, sentiment_score=250.0))
        assert out.scores.sentiment == 100.0

    def test_mapping_bars_accepted(self, linear_rise):
        as_dicts = [
            {"open": b.open, "high": b.high, "low": b.low, "close": b.close}
            for b in linear_rise.ohlc
        ]
        out = run_quant_engine(replace(linear_rise, ohlc=as_dicts))
        assert out.to_dict() == run_quant_engine(linear_rise).to_dict()

    def test_benchmark_feeds_beta(self, random_walk):
        with_bench = run_quant_engine(random_walk)
        without = run_quant_engine(replace(random_walk, benchmark_prices=None))
        assert without.metrics.risk.beta == 1.0
        assert with_bench.metrics.risk.beta != 1.0

    def test_to_dict_flattens_enums(self, linear_rise):
        data = run_quant_engine(linear_rise).to_dict()
        assert data["signal"] in {"BUY", "SELL", "HOLD"}
        assert data["market_regime"] == "bull"
        assert data["forecast"]["direction"] == "UP"
        assert data["metrics"]["trend"]["direction"] == "Up"
        assert isinstance(data["scores"]["trend"], int)


class TestQuantEngine:

    def test_analyze_caches_by_symbol_and_interval(self, linear_rise):
        cache = ResultCache()
        engine = QuantEngine(cache)
        first = engine.analyze(linear_rise)
        assert engine.analyze(linear_rise) is first
        assert cache.get(cache_key("TREND", "1d")) is first

        hourly = engine.analyze(replace(linear_rise, interval="1h"))
        assert hourly is not first
        assert cache.size() == 2

    def test_errors_are_not_cached(self, make_input, rising_prices):
        engine = QuantEngine(ResultCache())
        with pytest.raises(InsufficientDataError):
            engine.analyze(make_input("X", rising_prices[:10]))
        assert engine.cache.size() == 0

    def test_rescore_bypasses_and_overwrites(self, linear_rise):
        engine = QuantEngine(ResultCache())
        original = engine.analyze(linear_rise)

        rescored = engine.rescore_with_sentiment(linear_rise, 100.0)
        assert rescored is not original
        assert rescored.scores.sentiment == 100.0
        assert rescored.composite_score > original.composite_score
        assert engine.analyze(linear_rise) is rescored

    def test_rescore_leaves_input_untouched(self, linear_rise):
        engine = QuantEngine(ResultCache())
        engine.rescore_with_sentiment(linear_rise, 90.0)
        assert linear_rise.sentiment_score == 50.0

    def test_default_cache(self):
        assert isinstance(QuantEngine().cache, ResultCache)
