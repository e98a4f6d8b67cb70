"""
Config-driven technical indicator pipeline.
"""
import logging
from typing import Hashable, List

import pandas as pd

from .exceptions import InvalidParameter, MissingColumn
from .grouping import apply_by_group
from .momentum import (RETURN_KINDS, add_cci, add_macd, add_momentum, add_returns, add_rsi,
                       add_stochastic, add_williams_r)
from .moving_averages import add_ema, add_sma, add_vwap
from .signals import add_crossover
from .utils import Config, check_required_columns, performance_monitor, validate_window
from .volatility import _validate_multiplier, add_atr, add_bbands
from .volume import add_obv

logger = logging.getLogger(__name__)


class TechnicalIndicators:
    """Adds every indicator configured under ``config.indicators`` to a table.

    Indicator sections missing from the configuration are skipped. Groups
    named by ``config.grouping['group_by']`` are computed independently and
    may run in parallel (``config.grouping['n_jobs']``).
    """

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

    @property
    def params(self):
        return self.config.indicators

    def required_columns(self) -> List[Hashable]:
        """Source columns needed by the configured indicators."""
        required = set()
        for key in ('sma', 'ema', 'macd', 'rsi', 'momentum', 'returns'):
            if key in self.params:
                required.add('close')
        for key in ('stochastic', 'cci', 'williams_r', 'atr'):
            if key in self.params:
                required.update(['high', 'low', 'close'])
        if 'bollinger' in self.params:
            required.add('close')
        if self.params.get('obv'):
            required.update(['close', 'volume'])
        if 'vwap' in self.params:
            price = self.params['vwap'][0]
            required.update(['high', 'low', 'close', 'volume'] if price == 'typical' else [price, 'volume'])
        group_by = self.config.grouping.get('group_by')
        if group_by is not None and not callable(group_by):
            required.add(group_by)
        return sorted(required, key=str)

    def output_columns(self) -> List[str]:
        """Columns added by the configured indicators, crossovers excluded."""
        columns = [f"sma_{int(n)}" for n in self.params.get('sma', [])]
        columns += [f"ema_{int(n)}" for n in self.params.get('ema', [])]
        if 'macd' in self.params:
            columns += ['macd', 'macd_signal', 'macd_histogram']
        for key in ('rsi', 'cci', 'williams_r', 'atr'):
            if key in self.params:
                columns.append(key)
        if 'stochastic' in self.params:
            columns += ['stoch_k', 'stoch_d']
        if 'momentum' in self.params:
            columns.append(f"momentum_{int(self.params['momentum'][0])}")
        if 'returns' in self.params:
            kind, lag = self.params['returns']
            columns.append(f"return_{kind}_{int(lag)}")
        if 'bollinger' in self.params:
            columns += ['bb_upper', 'bb_middle', 'bb_lower']
        if self.params.get('obv'):
            columns.append('obv')
        if 'vwap' in self.params:
            columns.append('vwap')
        return columns

    def _entries(self, key: str, size: int) -> list:
        """Return a configured parameter list after checking its length."""
        values = self.params[key]
        if not isinstance(values, (list, tuple)) or len(values) != size:
            raise InvalidParameter(f"Indicator '{key}' expects {size} parameters, got {values!r}")
        return list(values)

    def _validate_params(self) -> None:
        """Check every configured parameter before any group is computed."""
        for key in ('sma', 'ema'):
            for window in self.params.get(key, []):
                validate_window(window, param=key)
        for key in ('rsi', 'atr', 'cci', 'williams_r', 'momentum'):
            if key in self.params:
                validate_window(self._entries(key, 1)[0], param=key)
        if 'stochastic' in self.params:
            for window in self._entries('stochastic', 2):
                validate_window(window, param='stochastic')
        if 'bollinger' in self.params:
            n, k = self._entries('bollinger', 2)
            validate_window(n, param='bollinger')
            _validate_multiplier(k)
        if 'macd' in self.params:
            fast, slow, _ = [validate_window(window, param='macd') for window in self._entries('macd', 3)]
            if fast >= slow:
                raise InvalidParameter(f"MACD fast period ({fast}) must be shorter than slow period ({slow})")
        if 'returns' in self.params:
            kind, lag = self._entries('returns', 2)
            if kind not in RETURN_KINDS:
                raise InvalidParameter(f"Unknown return type {kind!r}")
            validate_window(lag, param='returns')

    def _validate_crossovers(self, df: pd.DataFrame) -> None:
        """Check that every crossover pair names an input or indicator column."""
        pairs = self.params.get('crossovers', [])
        for pair in pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise InvalidParameter(f"Crossover entries must be [short, long] pairs, got {pair!r}")
        available = set(df.columns) | set(self.output_columns())
        missing = [name for pair in pairs for name in pair if name not in available]
        if missing:
            raise MissingColumn(dict.fromkeys(missing))

    @performance_monitor
    def calculate_all_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        """Calculate all configured indicators, returning a new table."""
        self.logger.info("Calculating configured technical indicators")

        self._validate_params()
        check_required_columns(df, self.required_columns())
        self._validate_crossovers(df)

        group_by = self.config.grouping.get('group_by')
        n_jobs = self.config.grouping.get('n_jobs', 1)

        try:
            result_df = apply_by_group(df, self._calculate_group, group_by, n_jobs=n_jobs)
        except Exception as e:
            self.logger.error(f"Error calculating indicators: {e}")
            raise

        new_indicators = [col for col in result_df.columns if col not in df.columns]
        self.logger.info(f"Calculated {len(new_indicators)} technical indicators")
        return result_df

    def _calculate_group(self, df: pd.DataFrame) -> pd.DataFrame:
        """Run the indicator chain on a single group's rows."""
        df = self._add_moving_averages(df)
        df = self._add_momentum_indicators(df)
        df = self._add_volatility_indicators(df)
        df = self._add_volume_indicators(df)
        df = self._add_crossovers(df)
        return df

    def _add_moving_averages(self, df: pd.DataFrame) -> pd.DataFrame:
        for window in self.params.get('sma', []):
            df = add_sma(df, window)
        for window in self.params.get('ema', []):
            df = add_ema(df, window)
        return df

    def _add_momentum_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        if 'macd' in self.params:
            fast, slow, signal = self.params['macd']
            df = add_macd(df, fast, slow, signal)
        if 'rsi' in self.params:
            df = add_rsi(df, self.params['rsi'][0])
        if 'stochastic' in self.params:
            n, smooth = self.params['stochastic']
            df = add_stochastic(df, n, smooth)
        if 'cci' in self.params:
            df = add_cci(df, self.params['cci'][0])
        if 'williams_r' in self.params:
            df = add_williams_r(df, self.params['williams_r'][0])
        if 'momentum' in self.params:
            df = add_momentum(df, self.params['momentum'][0])
        if 'returns' in self.params:
            kind, lag = self.params['returns']
            df = add_returns(df, kind, lag)
        return df

    def _add_volatility_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        if 'bollinger' in self.params:
            n, k = self.params['bollinger']
            df = add_bbands(df, n, k)
        if 'atr' in self.params:
            df = add_atr(df, self.params['atr'][0])
        return df

    def _add_volume_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.params.get('obv'):
            df = add_obv(df)
        if 'vwap' in self.params:
            df = add_vwap(df, price=self.params['vwap'][0])
        return df

    def _add_crossovers(self, df: pd.DataFrame) -> pd.DataFrame:
        for short, long in self.params.get('crossovers', []):
            df = add_crossover(df, short, long, 'golden', name=f"golden_cross_{short}_{long}")
            df = add_crossover(df, short, long, 'death', name=f"death_cross_{short}_{long}")
        return df
