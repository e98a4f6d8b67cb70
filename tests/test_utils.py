"""
Tests for configuration, logging and validation helpers.
"""
import logging
import warnings
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tradefeatures.exceptions import IndicatorError, InvalidParameter, MissingColumn, UndersizedInput
from tradefeatures.utils import (Config, as_series, check_required_columns, get_config_hash, load_config,
                                 save_config, setup_logging, validate_window)


@pytest.fixture
def config():
    return Config(
        indicators={"sma": [20], "rsi": [14]},
        grouping={"group_by": "symbol", "n_jobs": 1},
        logging={"level": "DEBUG", "format": "%(levelname)s %(message)s", "file": "test.log"},
        paths={"logs": "logs"}
    )


def test_validate_window_accepts_integral_numbers():
    assert validate_window(3) == 3
    assert validate_window(np.int64(5)) == 5
    assert validate_window(4.0) == 4


def test_validate_window_rejects_bad_periods():
    with pytest.raises(InvalidParameter, match="must be >= 5"):
        validate_window(3, min_n=5)
    with pytest.raises(InvalidParameter):
        validate_window("ten")
    with pytest.raises(InvalidParameter):
        validate_window(float('nan'))


def test_validate_window_warns_on_short_data():
    with pytest.warns(UndersizedInput, match="fewer rows"):
        validate_window(15, length=10)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        validate_window(10, length=10)


def test_check_required_columns():
    data = pd.DataFrame({'close': [1.0, 2.0]})

    with pytest.raises(MissingColumn, match="Missing required columns: high, low"):
        check_required_columns(data, ['high', 'low'])

    check_required_columns(pd.DataFrame({'high': [1.0], 'low': [1.0], 'close': [1.0]}),
                           ['high', 'low', 'close'])


def test_error_hierarchy():
    assert issubclass(InvalidParameter, ValueError)
    assert issubclass(MissingColumn, KeyError)
    assert issubclass(InvalidParameter, IndicatorError)
    assert issubclass(MissingColumn, IndicatorError)


def test_as_series():
    result = as_series([1, None, 3])

    assert result.dtype == np.float64
    assert np.isnan(result.iloc[1])

    nullable = pd.Series([1.0, pd.NA], dtype='Float64', index=['a', 'b'], name='close')
    converted = as_series(nullable)
    assert converted.dtype == np.float64
    assert list(converted.index) == ['a', 'b']
    assert converted.name == 'close'
    assert np.isnan(converted.iloc[1])


def test_as_series_rejects_non_numeric():
    with pytest.raises(InvalidParameter):
        as_series(['a', 'b'])
    with pytest.raises(InvalidParameter):
        as_series([[1, 2], [3, 4]])


def test_config_round_trip(config, tmp_path):
    path = tmp_path / "settings.yaml"
    save_config(config, str(path))
    loaded = load_config(str(path))

    assert loaded == config
    assert get_config_hash(loaded) == get_config_hash(config)


def test_config_hash_changes_with_parameters(config):
    changed = config.model_copy(update={"indicators": {"sma": [50], "rsi": [14]}})
    assert get_config_hash(changed) != get_config_hash(config)


def test_shipped_settings_load():
    config = load_config(str(Path(__file__).resolve().parent.parent / "config" / "settings.yaml"))
    assert config.grouping["group_by"] == "symbol"
    assert config.indicators["macd"] == [12, 26, 9]


def test_setup_logging(config, tmp_path):
    config.paths["logs"] = str(tmp_path / "logs")
    root = setup_logging(config)
    try:
        logging.getLogger("tradefeatures.test").debug("hello")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "DEBUG hello" in (tmp_path / "logs" / "test.log").read_text()
    finally:
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)


if __name__ == "__main__":
    pytest.main([__file__])
