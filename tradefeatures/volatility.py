"""
Volatility indicators: Bollinger Bands and Average True Range.
"""
import logging
import numbers
from typing import Optional

import pandas as pd

from .exceptions import InvalidParameter
from .grouping import GroupKey, apply_by_group
from .moving_averages import ema, sma
from .rolling import rolling_std
from .utils import as_series, check_required_columns, validate_window

logger = logging.getLogger(__name__)


def _validate_multiplier(k) -> float:
    if isinstance(k, bool) or not isinstance(k, numbers.Real) or k < 0:
        raise InvalidParameter(f"Band multiplier must be a non-negative number, got {k!r}")
    return float(k)


def bollinger_bands(prices, n: int = 20, k: float = 2.0) -> pd.DataFrame:
    """Bollinger Bands: SMA plus/minus ``k`` rolling sample standard deviations."""
    k = _validate_multiplier(k)
    prices = as_series(prices)

    middle = sma(prices, n)
    std = rolling_std(prices, n)

    return pd.DataFrame({
        'bb_upper': middle + (k * std),
        'bb_middle': middle,
        'bb_lower': middle - (k * std)
    })


def true_range(high, low, close) -> pd.Series:
    """True Range; the first row has no prior close and uses high - low only."""
    high, low, close = as_series(high), as_series(low), as_series(close)
    if not len(high) == len(low) == len(close):
        raise InvalidParameter("high, low and close must have equal lengths")

    prev_close = close.shift(1)
    tr1 = high - low
    tr2 = (high - prev_close).abs()
    tr3 = (low - prev_close).abs()
    return pd.concat([tr1, tr2, tr3], axis=1).max(axis=1).rename('true_range')


def atr(high, low, close, n: int = 14) -> pd.Series:
    """Average True Range: EMA of the true range."""
    return ema(true_range(high, low, close), n).rename('atr')


def add_bbands(data: pd.DataFrame, n: int = 20, k: float = 2.0, price: str = 'close',
               group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add ``bb_upper``, ``bb_middle`` and ``bb_lower`` columns."""
    n = validate_window(n)
    k = _validate_multiplier(k)
    check_required_columns(data, [price])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**bollinger_bands(sub[price], n, k))

    return apply_by_group(data, compute, group_by)


def add_atr(data: pd.DataFrame, n: int = 14, name: str = 'atr',
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add Average True Range column."""
    n = validate_window(n)
    check_required_columns(data, ['high', 'low', 'close'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: atr(sub['high'], sub['low'], sub['close'], n)})

    return apply_by_group(data, compute, group_by)
