"""
Simple and exponential moving averages, plus cumulative VWAP.
"""
import logging
from typing import Optional

import numpy as np
import pandas as pd
from numba import jit

from .exceptions import InvalidParameter
from .grouping import GroupKey, apply_by_group
from .rolling import rolling_mean
from .utils import as_series, check_required_columns, validate_window

logger = logging.getLogger(__name__)


@jit(nopython=True)
def _ema_kernel(values: np.ndarray, window: int, alpha: float) -> np.ndarray:
    """EMA seeded by the mean of the first full window.

    Leading NaNs are skipped. After the seed, the first NaN (in the input or
    inside the seed window) ends the recursion: every later output stays NaN.
    """
    n = len(values)
    result = np.full(n, np.nan)

    start = 0
    while start < n and np.isnan(values[start]):
        start += 1

    seed_end = start + window - 1
    if seed_end >= n:
        return result

    total = 0.0
    for i in range(start, seed_end + 1):
        if np.isnan(values[i]):
            return result
        total += values[i]
    result[seed_end] = total / window

    for i in range(seed_end + 1, n):
        if np.isnan(values[i]):
            break
        result[i] = alpha * values[i] + (1.0 - alpha) * result[i - 1]

    return result


def sma(series, n: int = 20) -> pd.Series:
    """Simple Moving Average."""
    return rolling_mean(series, n)


def ema(series, n: int = 20) -> pd.Series:
    """Exponential Moving Average with smoothing factor 2/(n+1)."""
    values = as_series(series)
    n = validate_window(n, len(values))
    data = np.ascontiguousarray(values.to_numpy(), dtype=np.float64)
    result = _ema_kernel(data, n, 2.0 / (n + 1))
    return pd.Series(result, index=values.index, name=values.name)


def vwap(price, volume) -> pd.Series:
    """Cumulative volume weighted average price; NaN while cumulative volume is 0."""
    price = as_series(price)
    volume = as_series(volume)
    if len(price) != len(volume):
        raise InvalidParameter(f"price and volume lengths differ: {len(price)} != {len(volume)}")

    cum_pv = (price.to_numpy() * volume.to_numpy()).cumsum()
    cum_vol = volume.to_numpy().cumsum()
    with np.errstate(divide='ignore', invalid='ignore'):
        result = np.where(cum_vol != 0, cum_pv / cum_vol, np.nan)
    return pd.Series(result, index=price.index, name='vwap')


def add_sma(data: pd.DataFrame, n: int = 20, price: str = 'close', name: Optional[str] = None,
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add a simple moving average column (default name ``sma_<n>``)."""
    n = validate_window(n)
    check_required_columns(data, [price])
    name = name or f"sma_{n}"
    logger.debug(f"Adding {name} from '{price}'")

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: sma(sub[price], n)})

    return apply_by_group(data, compute, group_by)


def add_ema(data: pd.DataFrame, n: int = 20, price: str = 'close', name: Optional[str] = None,
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add an exponential moving average column (default name ``ema_<n>``)."""
    n = validate_window(n)
    check_required_columns(data, [price])
    name = name or f"ema_{n}"
    logger.debug(f"Adding {name} from '{price}'")

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: ema(sub[price], n)})

    return apply_by_group(data, compute, group_by)


def add_vwap(data: pd.DataFrame, name: str = 'vwap', price: str = 'close',
             group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add cumulative VWAP.

    ``price='typical'`` weights the typical price (high+low+close)/3 instead
    of a single column.
    """
    if price == 'typical':
        check_required_columns(data, ['high', 'low', 'close', 'volume'])
    else:
        check_required_columns(data, [price, 'volume'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        if price == 'typical':
            source = (sub['high'] + sub['low'] + sub['close']) / 3
        else:
            source = sub[price]
        return sub.assign(**{name: vwap(source, sub['volume'])})

    return apply_by_group(data, compute, group_by)
