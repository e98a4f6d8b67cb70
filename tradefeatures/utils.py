"""
Utility functions for configuration, logging and input validation.
"""
import functools
import hashlib
import json
import logging
import numbers
import time
import warnings
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import numpy as np
import pandas as pd
import yaml
from pydantic import BaseModel

from .exceptions import InvalidParameter, MissingColumn, UndersizedInput

logger = logging.getLogger(__name__)


class Config(BaseModel):
    """Configuration model for the indicator pipeline."""
    indicators: Dict[str, Any]
    grouping: Dict[str, Any]
    logging: Dict[str, str]
    paths: Dict[str, str]


def setup_logging(config: Config) -> logging.Logger:
    """Setup logging configuration."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, config.logging["level"].upper()))

    # Clear existing handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(config.logging["format"])

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file = config.logging.get("file")
    if log_file:
        log_dir = Path(config.paths["logs"])
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config(**config_dict)


def save_config(config: Config, output_path: str) -> None:
    """Save configuration to YAML file."""
    with open(output_path, 'w') as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False)


def get_config_hash(config: Config) -> str:
    """Generate hash of configuration for reproducibility."""
    config_str = json.dumps(config.model_dump(), sort_keys=True)
    return hashlib.md5(config_str.encode()).hexdigest()[:8]


def performance_monitor(func: Callable) -> Callable:
    """Decorator to log execution time of a function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        execution_time = time.time() - start_time

        # Prefer the instance logger when decorating a method
        log = args[0].logger if args and hasattr(args[0], 'logger') else logger
        log.info(f"{func.__name__} executed in {execution_time:.4f} seconds")
        return result
    return wrapper


def as_series(values, name: Optional[str] = None) -> pd.Series:
    """Coerce a list, array or Series to a float64 Series.

    A Series keeps its index; undefined entries (None, pd.NA) become NaN.
    """
    try:
        if isinstance(values, pd.Series):
            data = values.to_numpy(dtype='float64', na_value=np.nan)
            return pd.Series(data, index=values.index, name=name if name is not None else values.name)
        data = np.asarray(values, dtype='float64')
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"Series values must be numeric: {e}") from e
    if data.ndim != 1:
        raise InvalidParameter(f"Series must be one-dimensional, got shape {data.shape}")
    return pd.Series(data, name=name)


def validate_window(n, length: Optional[int] = None, required: Optional[int] = None,
                    min_n: int = 1, param: str = 'n') -> int:
    """Check a window period and warn when the input is too short for it.

    Returns the period as an int. ``required`` is the number of rows needed
    for at least one defined output (defaults to ``n``).
    """
    if isinstance(n, bool) or not isinstance(n, numbers.Real) or not float(n).is_integer():
        raise InvalidParameter(f"Parameter '{param}' must be an integer >= {min_n}, got {n!r}")
    n = int(n)
    if n < min_n:
        raise InvalidParameter(f"Parameter '{param}' must be >= {min_n}, got {n}")

    if length is not None:
        needed = n if required is None else required
        if length < needed:
            warnings.warn(
                f"Data has fewer rows ({length}) than indicator period ({n})",
                UndersizedInput,
                stacklevel=3,
            )
    return n


def check_required_columns(data: pd.DataFrame, required: Iterable[str]) -> None:
    """Raise MissingColumn naming every required column absent from data."""
    missing = [col for col in required if col not in data.columns]
    if missing:
        raise MissingColumn(missing)
