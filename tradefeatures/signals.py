"""
Crossover detection between two aligned series.
"""
import logging
from enum import Enum
from typing import Optional, Union

import pandas as pd

from .exceptions import InvalidParameter
from .grouping import GroupKey, apply_by_group
from .utils import as_series, check_required_columns

logger = logging.getLogger(__name__)


class CrossDirection(str, Enum):
    GOLDEN = 'golden'
    DEATH = 'death'


def _parse_direction(direction: Union[str, CrossDirection]) -> CrossDirection:
    try:
        return CrossDirection(direction)
    except ValueError:
        raise InvalidParameter(
            f"Unknown cross direction {direction!r}; expected 'golden' or 'death'"
        ) from None


def detect_cross(direction: Union[str, CrossDirection], short, long) -> pd.Series:
    """Flag rows where ``short`` crosses ``long``.

    A golden cross needs ``short <= long`` on the previous row and
    ``short > long`` on the current one; a death cross mirrors it. The first
    row and any comparison involving NaN yield False.
    """
    direction = _parse_direction(direction)
    short = as_series(short)
    long = as_series(long)
    if len(short) != len(long):
        raise InvalidParameter(f"Series lengths differ: {len(short)} != {len(long)}")

    # NaN comparisons are False, which covers the first row as well
    prev_short = short.shift(1).to_numpy()
    prev_long = long.shift(1).to_numpy()
    cur_short = short.to_numpy()
    cur_long = long.to_numpy()

    if direction is CrossDirection.GOLDEN:
        crossed = (prev_short <= prev_long) & (cur_short > cur_long)
    else:
        crossed = (prev_short >= prev_long) & (cur_short < cur_long)

    return pd.Series(crossed, index=short.index, name=f"{direction.value}_cross", dtype=bool)


def detect_golden_cross(short, long) -> pd.Series:
    """Short series crossing above the long one (bullish)."""
    return detect_cross(CrossDirection.GOLDEN, short, long)


def detect_death_cross(short, long) -> pd.Series:
    """Short series crossing below the long one (bearish)."""
    return detect_cross(CrossDirection.DEATH, short, long)


def add_crossover(data: pd.DataFrame, short: str, long: str,
                  direction: Union[str, CrossDirection] = CrossDirection.GOLDEN,
                  name: Optional[str] = None, group_by: Optional[GroupKey] = None) -> pd.DataFrame:
    """Add a boolean crossover column computed within each group."""
    direction = _parse_direction(direction)
    check_required_columns(data, [short, long])
    name = name or f"{direction.value}_cross"

    def compute(sub: pd.DataFrame) -> pd.DataFrame:
        return sub.assign(**{name: detect_cross(direction, sub[short], sub[long])})

    return apply_by_group(data, compute, group_by)
