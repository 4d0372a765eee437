"""Utility modules"""

from .config_loader import load_config, save_config, get_source_config
from .errors import (
    SpendWatchError,
    ConfigurationError,
    DataSourceError,
    DataLoadError,
    ExportError
)

__all__ = [
    "load_config",
    "save_config",
    "get_source_config",
    "SpendWatchError",
    "ConfigurationError",
    "DataSourceError",
    "DataLoadError",
    "ExportError"
]
