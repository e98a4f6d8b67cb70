"""
Right-aligned rolling window reductions.

Every reducer produces NaN until a full window of defined values is
available, and NaN for any window that contains an undefined value.
"""
import logging
from typing import Callable, Union

import numpy as np
import pandas as pd
from numba import jit

from .exceptions import InvalidParameter
from .utils import as_series, validate_window

logger = logging.getLogger(__name__)

Reducer = Union[str, Callable[[np.ndarray], float]]


@jit(nopython=True)
def _rolling_mad_kernel(values: np.ndarray, window: int) -> np.ndarray:
    """Rolling mean absolute deviation around the window mean."""
    n = len(values)
    result = np.full(n, np.nan)

    for i in range(window - 1, n):
        chunk = values[i - window + 1:i + 1]
        if np.isnan(chunk).any():
            continue
        center = chunk.mean()
        result[i] = np.abs(chunk - center).mean()

    return result


def _mean(roller) -> pd.Series:
    return roller.mean()


def _std(roller) -> pd.Series:
    return roller.std(ddof=1)


def _min(roller) -> pd.Series:
    return roller.min()


def _max(roller) -> pd.Series:
    return roller.max()


def _sum(roller) -> pd.Series:
    return roller.sum()


_REDUCERS = {
    'mean': _mean,
    'std': _std,
    'min': _min,
    'max': _max,
    'sum': _sum,
}


def rolling(series, n: int, reducer: Reducer = 'mean') -> pd.Series:
    """Apply ``reducer`` over a trailing window of ``n`` rows.

    Args:
        series: numeric values in time order.
        n: window length, at least 1.
        reducer: one of ``mean``, ``std``, ``min``, ``max``, ``sum``, ``mad``
            or a callable reducing a 1-D array to a float.

    Returns:
        Series of the same length; NaN during warm-up and wherever the
        window holds an undefined value.
    """
    if not callable(reducer) and reducer not in _REDUCERS and reducer != 'mad':
        raise InvalidParameter(f"Unknown rolling reducer: {reducer!r}")

    values = as_series(series)
    n = validate_window(n, len(values))

    if reducer == 'mad':
        data = np.ascontiguousarray(values.to_numpy(), dtype=np.float64)
        return pd.Series(_rolling_mad_kernel(data, n), index=values.index, name=values.name)

    roller = values.rolling(window=n, min_periods=n)
    if callable(reducer):
        return roller.apply(reducer, raw=True)
    return _REDUCERS[reducer](roller)


def rolling_mean(series, n: int) -> pd.Series:
    return rolling(series, n, 'mean')


def rolling_std(series, n: int) -> pd.Series:
    """Rolling sample standard deviation (ddof=1)."""
    return rolling(series, n, 'std')


def rolling_min(series, n: int) -> pd.Series:
    return rolling(series, n, 'min')


def rolling_max(series, n: int) -> pd.Series:
    return rolling(series, n, 'max')


def rolling_sum(series, n: int) -> pd.Series:
    return rolling(series, n, 'sum')


def rolling_mean_abs_dev(series, n: int) -> pd.Series:
    """Rolling ``mean(|x - mean(x)|)`` over each window."""
    return rolling(series, n, 'mad')
