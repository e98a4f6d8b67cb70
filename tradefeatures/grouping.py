"""
Per-group application of table transforms.

A group key is given explicitly, either as a column label or as an accessor
returning one key per row. Without a key the whole table is a single group.
"""
import logging
import warnings
from typing import Callable, Hashable, List, Optional, Tuple, Union

import joblib
import numpy as np
import pandas as pd

from .exceptions import InvalidParameter, MissingColumn

logger = logging.getLogger(__name__)

GroupKey = Union[Hashable, Callable[[pd.DataFrame], object]]
TableFunc = Callable[[pd.DataFrame], pd.DataFrame]


def resolve_group_keys(table: pd.DataFrame, group_by: Optional[GroupKey]) -> Optional[np.ndarray]:
    """Return one group key per row, or None for an ungrouped table."""
    if group_by is None:
        return None

    if callable(group_by):
        keys = group_by(table)
    elif isinstance(group_by, Hashable):
        if group_by not in table.columns:
            raise MissingColumn([group_by])
        keys = table[group_by]
    else:
        raise InvalidParameter(f"group_by must be a column label or a callable, got {type(group_by).__name__}")

    keys = np.asarray(keys, dtype=object)
    if keys.ndim != 1 or len(keys) != len(table):
        raise InvalidParameter(
            f"Group accessor returned {keys.shape} keys for a table of {len(table)} rows"
        )
    return keys


def _apply_checked(func: TableFunc, sub: pd.DataFrame) -> pd.DataFrame:
    result = func(sub)
    if len(result) != len(sub):
        raise InvalidParameter(
            f"Group transform changed row count from {len(sub)} to {len(result)}"
        )
    return result


def _apply_recorded(func: TableFunc, sub: pd.DataFrame) -> Tuple[pd.DataFrame, List[tuple]]:
    """Run a group in a worker, capturing its warnings for the parent process."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        result = _apply_checked(func, sub)
    return result, [(w.message, w.category, w.filename, w.lineno) for w in caught]


def apply_by_group(table: pd.DataFrame, func: TableFunc,
                   group_by: Optional[GroupKey] = None, n_jobs: int = 1) -> pd.DataFrame:
    """Apply ``func`` to each group's rows and reassemble in original order.

    ``func`` receives a sub-table with a fresh RangeIndex holding the group's
    rows in their original relative order, and must return a table with the
    same number of rows. The returned table carries the input's index. The
    input table is never modified.

    Groups run through joblib when ``n_jobs`` is not 1; results are placed by
    row position, so completion order does not matter. Warnings raised in
    the workers are re-issued in the calling process, in group order.
    """
    keys = resolve_group_keys(table, group_by)

    if keys is None or len(table) == 0:
        result = _apply_checked(func, table.reset_index(drop=True))
        result.index = table.index
        return result

    # Positional row indices per group, ascending within each group
    codes, _ = pd.factorize(pd.Series(keys), use_na_sentinel=False)
    positions = [np.flatnonzero(codes == code) for code in range(codes.max() + 1)]
    subs = [table.iloc[pos].reset_index(drop=True) for pos in positions]
    logger.debug(f"Applying {getattr(func, '__name__', 'transform')} to {len(subs)} groups")

    if n_jobs == 1:
        results = [_apply_checked(func, sub) for sub in subs]
    else:
        outcomes = joblib.Parallel(n_jobs=n_jobs)(
            joblib.delayed(_apply_recorded)(func, sub) for sub in subs
        )
        results = []
        for result, caught in outcomes:
            for message, category, filename, lineno in caught:
                warnings.warn_explicit(message, category, filename, lineno)
            results.append(result)

    combined = pd.concat(results, ignore_index=True)
    order = np.argsort(np.concatenate(positions), kind='stable')
    combined = combined.iloc[order]
    combined.index = table.index
    return combined
