"""
Momentum oscillators: RSI, MACD, Stochastic, CCI, Williams %R, momentum and returns.
"""
import logging
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import InvalidParameter
from .grouping import GroupKey, apply_by_group
from .moving_averages import ema, sma
from .rolling import rolling_max, rolling_mean_abs_dev, rolling_min
from .utils import as_series, check_required_columns, validate_window

logger = logging.getLogger(__name__)

CCI_CONSTANT = 0.015
RETURN_KINDS = ('simple', 'log')


def _check_lengths(*series: pd.Series) -> None:
    lengths = {len(s) for s in series}
    if len(lengths) > 1:
        raise InvalidParameter(f"Input series lengths differ: {sorted(lengths)}")


def _safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Divide, leaving NaN where the denominator is zero."""
    return numerator / denominator.where(denominator != 0)


def rsi(prices, n: int = 14) -> pd.Series:
    """Relative Strength Index.

    Average gains and losses are EMAs of the per-step price change. When
    both averages are zero the RSI is 50; when only losses are zero it is 100.

    The change at row 0 is undefined and the EMAs skip it, so their seed
    window covers rows 1..n and the first RSI value lands at row ``n``
    (0-based), one row later than an EMA seeded over rows 0..n-1 that
    ignores the missing change.
    """
    prices = as_series(prices)
    n = validate_window(n)

    delta = prices.diff()
    gains = delta.clip(lower=0)
    losses = (-delta).clip(lower=0)

    avg_gains = ema(gains, n)
    avg_losses = ema(losses, n)

    rs = _safe_ratio(avg_gains, avg_losses)
    result = 100 - (100 / (1 + rs))
    result = result.mask((avg_gains == 0) & (avg_losses == 0), 50.0)
    result = result.mask((avg_gains > 0) & (avg_losses == 0), 100.0)
    return result.rename('rsi')


def macd(prices, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """Calculate MACD (Moving Average Convergence Divergence)."""
    prices = as_series(prices)
    fast = validate_window(fast, param='fast')
    slow = validate_window(slow, param='slow')
    signal = validate_window(signal, param='signal')
    if fast >= slow:
        raise InvalidParameter(f"MACD fast period ({fast}) must be shorter than slow period ({slow})")

    macd_line = ema(prices, fast) - ema(prices, slow)
    signal_line = ema(macd_line, signal)
    histogram = macd_line - signal_line

    return pd.DataFrame({
        'macd': macd_line,
        'macd_signal': signal_line,
        'macd_histogram': histogram
    })


def stochastic(high, low, close, n: int = 14, smooth: int = 3) -> pd.DataFrame:
    """Stochastic Oscillator. %K is NaN where the window's range is flat."""
    high, low, close = as_series(high), as_series(low), as_series(close)
    _check_lengths(high, low, close)
    smooth = validate_window(smooth, param='smooth')

    lowest_low = rolling_min(low, n)
    highest_high = rolling_max(high, n)
    k_percent = 100 * _safe_ratio(close - lowest_low, highest_high - lowest_low)
    d_percent = sma(k_percent, smooth)

    return pd.DataFrame({
        'stoch_k': k_percent,
        'stoch_d': d_percent
    })


def cci(high, low, close, n: int = 20) -> pd.Series:
    """Commodity Channel Index; NaN where the mean deviation is zero."""
    high, low, close = as_series(high), as_series(low), as_series(close)
    _check_lengths(high, low, close)

    typical_price = (high + low + close) / 3
    sma_tp = sma(typical_price, n)
    mean_deviation = rolling_mean_abs_dev(typical_price, n)
    return _safe_ratio(typical_price - sma_tp, CCI_CONSTANT * mean_deviation).rename('cci')


def williams_r(high, low, close, n: int = 14) -> pd.Series:
    """Williams %R in [-100, 0]; NaN where the window's range is flat."""
    high, low, close = as_series(high), as_series(low), as_series(close)
    _check_lengths(high, low, close)

    highest_high = rolling_max(high, n)
    lowest_low = rolling_min(low, n)
    return (-100 * _safe_ratio(highest_high - close, highest_high - lowest_low)).rename('williams_r')


def momentum(prices, n: int = 10) -> pd.Series:
    """Percentage change over ``n`` periods: 100 * (x[i] / x[i-n] - 1)."""
    prices = as_series(prices)
    n = validate_window(n)
    validate_window(n, len(prices), required=n + 1)
    return (100 * (prices / prices.shift(n) - 1)).rename('momentum')


def calc_returns(prices, kind: str = 'simple', lag: int = 1) -> pd.Series:
    """Simple (x[i]/x[i-lag] - 1) or log returns over ``lag`` periods."""
    if kind not in RETURN_KINDS:
        raise InvalidParameter(f"Unknown return type {kind!r}; expected one of {RETURN_KINDS}")
    prices = as_series(prices)
    lag = validate_window(lag, param='lag')

    ratio = prices / prices.shift(lag)
    if kind == 'simple':
        return (ratio - 1).rename('returns')
    return pd.Series(np.log(ratio.to_numpy()), index=prices.index, name='returns')


def add_rsi(data: pd.DataFrame, n: int = 14, price: str = 'close', name: str = 'rsi',
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add RSI column."""
    n = validate_window(n)
    check_required_columns(data, [price])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: rsi(sub[price], n)})

    return apply_by_group(data, compute, group_by)


def add_macd(data: pd.DataFrame, fast: int = 12, slow: int = 26, signal: int = 9,
             price: str = 'close', group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add ``macd``, ``macd_signal`` and ``macd_histogram`` columns."""
    fast = validate_window(fast, param='fast')
    slow = validate_window(slow, param='slow')
    signal = validate_window(signal, param='signal')
    if fast >= slow:
        raise InvalidParameter(f"MACD fast period ({fast}) must be shorter than slow period ({slow})")
    check_required_columns(data, [price])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**macd(sub[price], fast, slow, signal))

    return apply_by_group(data, compute, group_by)


def add_stochastic(data: pd.DataFrame, n: int = 14, smooth: int = 3,
                   group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add ``stoch_k`` and ``stoch_d`` columns."""
    n = validate_window(n)
    smooth = validate_window(smooth, param='smooth')
    check_required_columns(data, ['high', 'low', 'close'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**stochastic(sub['high'], sub['low'], sub['close'], n, smooth))

    return apply_by_group(data, compute, group_by)


def add_cci(data: pd.DataFrame, n: int = 20, name: str = 'cci',
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add Commodity Channel Index column."""
    n = validate_window(n)
    check_required_columns(data, ['high', 'low', 'close'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: cci(sub['high'], sub['low'], sub['close'], n)})

    return apply_by_group(data, compute, group_by)


def add_williams_r(data: pd.DataFrame, n: int = 14, name: str = 'williams_r',
                   group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add Williams %R column."""
    n = validate_window(n)
    check_required_columns(data, ['high', 'low', 'close'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: williams_r(sub['high'], sub['low'], sub['close'], n)})

    return apply_by_group(data, compute, group_by)


def add_momentum(data: pd.DataFrame, n: int = 10, price: str = 'close', name: Optional[str] = None,
                 group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add momentum column (default name ``momentum_<n>``)."""
    n = validate_window(n)
    check_required_columns(data, [price])
    name = name or f"momentum_{n}"

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: momentum(sub[price], n)})

    return apply_by_group(data, compute, group_by)


def add_returns(data: pd.DataFrame, kind: str = 'simple', lag: int = 1, price: str = 'close',
                name: Optional[str] = None, group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add returns column (default name ``return_<kind>_<lag>``)."""
    if kind not in RETURN_KINDS:
        raise InvalidParameter(f"Unknown return type {kind!r}; expected one of {RETURN_KINDS}")
    lag = validate_window(lag, param='lag')
    check_required_columns(data, [price])
    name = name or f"return_{kind}_{lag}"

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: calc_returns(sub[price], kind, lag)})

    return apply_by_group(data, compute, group_by)
