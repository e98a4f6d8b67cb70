"""
Tests for momentum indicators.
"""
import numpy as np
import pandas as pd
import pytest

from tradefeatures.exceptions import InvalidParameter, MissingColumn, UndersizedInput
from tradefeatures.momentum import (add_cci, add_macd, add_momentum, add_returns, add_rsi, add_stochastic,
                                    add_williams_r, calc_returns, cci, macd, momentum, rsi, stochastic,
                                    williams_r)


@pytest.fixture
def sample_data():
    """Create sample OHLCV data for testing."""
    np.random.seed(42)
    n = 200

    returns = np.random.normal(0, 0.02, n)
    prices = 100 * np.exp(np.cumsum(returns))

    return pd.DataFrame({
        'symbol': 'TEST',
        'datetime': pd.date_range('2024-01-01', periods=n, freq='D'),
        'open': prices * (1 + np.random.normal(0, 0.001, n)),
        'high': prices * (1 + abs(np.random.normal(0, 0.005, n))),
        'low': prices * (1 - abs(np.random.normal(0, 0.005, n))),
        'close': prices,
        'volume': np.random.lognormal(10, 1, n)
    })


def test_rsi_bounds(sample_data):
    """Relative Strength Index stays within [0, 100]."""
    result = rsi(sample_data['close'], 14)
    valid = result.dropna()

    assert len(result) == len(sample_data)
    assert not valid.empty
    assert (valid >= 0).all() and (valid <= 100).all()


def test_rsi_warmup(sample_data):
    """The first change is undefined, so RSI starts one row after the EMA window."""
    result = rsi(sample_data['close'], 14)

    assert result.iloc[:14].isna().all()
    assert result.iloc[14:].notna().all()


def test_rsi_only_gains_is_100():
    result = rsi(np.arange(1.0, 31.0), 14)
    assert (result.dropna() == 100).all()


def test_rsi_first_value_follows_undefined_change():
    result = rsi(np.arange(1.0, 31.0), 14)

    assert np.isnan(result.iloc[13])
    assert result.iloc[14] == 100


def test_rsi_flat_prices_is_50():
    result = rsi([100.0] * 30, 14)
    valid = result.dropna()

    assert not valid.empty
    assert (valid == 50).all()


def test_rsi_only_losses_is_0():
    result = rsi(np.arange(30.0, 0.0, -1.0), 14)
    assert (result.dropna() == 0).all()


def test_macd(sample_data):
    """MACD line, signal and histogram."""
    result = macd(sample_data['close'], 12, 26, 9)

    assert list(result.columns) == ['macd', 'macd_signal', 'macd_histogram']
    assert len(result) == len(sample_data)
    valid = result.dropna()
    np.testing.assert_allclose(valid['macd_histogram'], valid['macd'] - valid['macd_signal'])


def test_macd_signal_starts_after_macd_warmup():
    result = macd(np.linspace(100, 130, 30), fast=3, slow=6, signal=3)

    assert result['macd'].iloc[:5].isna().all()
    assert result['macd'].iloc[5:].notna().all()
    assert result['macd_signal'].iloc[:7].isna().all()
    assert result['macd_signal'].iloc[7:].notna().all()


def test_macd_rejects_fast_not_shorter_than_slow():
    with pytest.raises(InvalidParameter):
        macd([1.0] * 40, fast=26, slow=12)


def test_stochastic():
    result = stochastic([3, 4, 5], [1, 2, 3], [2, 3, 4], n=3, smooth=1)

    assert list(result.columns) == ['stoch_k', 'stoch_d']
    assert result['stoch_k'].iloc[2] == pytest.approx(75.0)
    assert result['stoch_d'].iloc[2] == pytest.approx(75.0)


def test_stochastic_flat_range_is_undefined():
    result = stochastic([5.0] * 10, [5.0] * 10, [5.0] * 10, n=3)
    assert result['stoch_k'].isna().all()
    assert result['stoch_d'].isna().all()


def test_cci():
    """Typical price 1, 2, 3: (3 - 2) / (0.015 * 2/3) = 100."""
    values = [1.0, 2.0, 3.0]
    result = cci(values, values, values, n=3)

    assert result.iloc[:2].isna().all()
    assert result.iloc[2] == pytest.approx(100.0)


def test_cci_zero_deviation_is_undefined():
    flat = [10.0] * 5
    assert cci(flat, flat, flat, n=3).isna().all()


def test_williams_r():
    result = williams_r([3, 4, 5], [1, 2, 3], [2, 3, 4], n=3)
    assert result.iloc[2] == pytest.approx(-25.0)


def test_williams_r_bounds(sample_data):
    result = williams_r(sample_data['high'], sample_data['low'], sample_data['close'], 14).dropna()

    assert (result >= -100).all()
    assert (result <= 0).all()


def test_williams_r_flat_range_is_undefined():
    flat = [10.0] * 5
    assert williams_r(flat, flat, flat, n=3).isna().all()


def test_mismatched_lengths():
    with pytest.raises(InvalidParameter):
        williams_r([1, 2, 3], [1, 2], [1, 2, 3], n=2)


def test_momentum():
    """Percentage change over n periods."""
    result = momentum([100, 102, 104, 106, 108, 110], n=3)

    assert len(result) == 6
    assert result.iloc[:3].isna().all()
    assert result.iloc[3] == pytest.approx((106 / 100 - 1) * 100)


def test_momentum_short_series_warns():
    with pytest.warns(UndersizedInput):
        result = momentum([100, 101, 102], n=3)
    assert result.isna().all()


def test_calc_returns_simple():
    result = calc_returns([100, 105, 102, 108], kind='simple')

    assert len(result) == 4
    assert np.isnan(result.iloc[0])
    assert result.iloc[1] == pytest.approx(0.05)


def test_calc_returns_log():
    prices = [100, 105, 102, 108]
    log_returns = calc_returns(prices, kind='log')
    simple = calc_returns(prices, kind='simple')

    assert np.isnan(log_returns.iloc[0])
    assert log_returns.iloc[1] == pytest.approx(np.log(1.05))
    assert abs(log_returns.iloc[1] - simple.iloc[1]) < 0.01


def test_calc_returns_multi_period():
    result = calc_returns([100, 105, 102, 110], lag=2)
    assert result.iloc[2] == pytest.approx(0.02)
    assert result.iloc[3] == pytest.approx(110 / 105 - 1)


def test_calc_returns_unknown_kind():
    with pytest.raises(InvalidParameter, match="return type"):
        calc_returns([100, 105], kind='arithmetic')


def test_add_rsi(sample_data):
    result = add_rsi(sample_data, n=14)

    assert 'rsi' in result.columns
    assert len(result) == len(sample_data)


def test_add_macd(sample_data):
    result = add_macd(sample_data)

    for col in ('macd', 'macd_signal', 'macd_histogram'):
        assert col in result.columns
    assert len(result) == len(sample_data)


def test_add_stochastic(sample_data):
    result = add_stochastic(sample_data, n=14)

    assert 'stoch_k' in result.columns
    assert 'stoch_d' in result.columns
    assert len(result) == len(sample_data)


def test_add_cci_and_williams_r(sample_data):
    result = add_williams_r(add_cci(sample_data), n=10, name='wr_10')

    assert 'cci' in result.columns
    assert 'wr_10' in result.columns


def test_add_momentum_and_returns_default_names(sample_data):
    result = add_returns(add_momentum(sample_data, n=5), kind='log', lag=2)

    assert 'momentum_5' in result.columns
    assert 'return_log_2' in result.columns


def test_high_low_close_required(sample_data):
    with pytest.raises(MissingColumn) as excinfo:
        add_stochastic(sample_data[['close']])
    assert excinfo.value.missing == ['high', 'low']


def test_inputs_left_unmodified(sample_data):
    original = sample_data.copy()
    add_rsi(sample_data)
    add_macd(sample_data)
    add_stochastic(sample_data)

    pd.testing.assert_frame_equal(sample_data, original)


if __name__ == "__main__":
    pytest.main([__file__])
