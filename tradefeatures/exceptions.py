"""
Error and warning types raised by indicator entry points.
"""
from typing import Hashable, Iterable


class IndicatorError(Exception):
    """Base class for indicator failures."""


class InvalidParameter(IndicatorError, ValueError):
    """A period, multiplier or mode argument is out of range."""


class MissingColumn(IndicatorError, KeyError):
    """Required source columns are absent from the input table."""

    def __init__(self, missing: Iterable[Hashable]):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(map(str, self.missing))}")

    def __str__(self) -> str:
        return self.args[0]


class UndersizedInput(UserWarning):
    """Window period exceeds the number of available rows."""
