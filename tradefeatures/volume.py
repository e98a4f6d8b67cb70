"""
Volume flow indicators.
"""
import logging
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import InvalidParameter
from .grouping import GroupKey, apply_by_group
from .utils import as_series, check_required_columns

logger = logging.getLogger(__name__)


def obv(close, volume) -> pd.Series:
    """On-Balance Volume.

    Volume is added on an up close, subtracted on a down close and ignored on
    an unchanged close. The first row is always 0 and the result is never
    NaN: undefined closes or volumes contribute nothing.
    """
    close = as_series(close)
    volume = as_series(volume)
    if len(close) != len(volume):
        raise InvalidParameter(f"close and volume lengths differ: {len(close)} != {len(volume)}")

    direction = np.sign(close.diff()).fillna(0.0)
    flow = (direction * volume).fillna(0.0)
    return flow.cumsum().rename('obv')


def add_obv(data: pd.DataFrame, name: str = 'obv',
            group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add On-Balance Volume column."""
    check_required_columns(data, ['close', 'volume'])

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: obv(sub['close'], sub['volume'])})

    return apply_by_group(data, compute, group_by)
