#!/usr/bin/env python3
"""
Demo script: run the configured indicator pipeline on synthetic multi-symbol data.
"""

import logging

import numpy as np
import pandas as pd

from tradefeatures.indicators import TechnicalIndicators
from tradefeatures.signals import detect_golden_cross
from tradefeatures.utils import load_config, setup_logging


def create_sample_data(symbols=("AAA", "BBB"), n: int = 300, seed: int = 42) -> pd.DataFrame:
    """Generate random-walk OHLCV rows for each symbol, interleaved by date."""
    rng = np.random.default_rng(seed)
    frames = []
    for symbol in symbols:
        returns = rng.normal(0, 0.02, n)
        prices = 100 * np.exp(np.cumsum(returns))
        frames.append(pd.DataFrame({
            'symbol': symbol,
            'datetime': pd.date_range('2024-01-01', periods=n, freq='D'),
            'open': prices * (1 + rng.normal(0, 0.001, n)),
            'high': prices * (1 + abs(rng.normal(0, 0.005, n))),
            'low': prices * (1 - abs(rng.normal(0, 0.005, n))),
            'close': prices,
            'volume': rng.lognormal(10, 1, n)
        }))
    return pd.concat(frames).sort_values(['datetime', 'symbol'], kind='stable').reset_index(drop=True)


def main():
    config = load_config("config/settings.yaml")
    setup_logging(config)
    logger = logging.getLogger(__name__)

    df = create_sample_data()
    logger.info(f"Sample data: {df.shape}")

    indicators = TechnicalIndicators(config)
    enriched = indicators.calculate_all_indicators(df)
    logger.info(f"Columns: {list(enriched.columns)}")

    for symbol, rows in enriched.groupby('symbol', sort=False):
        last = rows.iloc[-1]
        logger.info(
            f"{symbol}: close={last['close']:.2f} rsi={last['rsi']:.1f} "
            f"macd={last['macd']:.3f} atr={last['atr']:.3f} obv={last['obv']:.0f}"
        )
        crosses = detect_golden_cross(rows['sma_20'], rows['sma_50'])
        logger.info(f"{symbol}: {int(crosses.sum())} golden crosses (sma_20 over sma_50)")


if __name__ == "__main__":
    main()
