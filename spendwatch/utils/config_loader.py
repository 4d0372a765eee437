"""Configuration file loader with validation"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from spendwatch.constants import DEFAULT_CONFIG_PATH
from .errors import ConfigurationError

REQUIRED_KEYS = ['version', 'rules', 'sources']

# Built-in source settings; YAML values are merged over these
DEFAULT_SOURCES = {
    'boston': {
        'base_url': 'https://data.boston.gov/api/3/action',
        'fiscal_year': 'fy25',
        'datasets': {
            'fy26': 'd22fdd5c-7e4c-41b7-a3eb-dfc57a87b245',
            'fy25': '84dfc1af-28bd-4f17-804a-9cc0c09a237e',
            'fy24': '0b7c9c5f-d1c2-46e7-b738-6ab37a110eef',
            'fy23': '5ce2ff98-3313-40d2-88bd-47eae9e5a654',
        },
        'timeout_seconds': 30,
        'max_retries': 3,
        'retry_base_delay': 2,
    },
    'massachusetts': {
        'base_url': 'https://cthru.data.socrata.com/resource',
        'dataset': 'pegc-naaa',
        'timeout_seconds': 30,
        'max_retries': 3,
        'retry_base_delay': 2,
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML configuration file with validation.

    Args:
        config_path: Path to configuration file. Defaults to $SPENDWATCH_CONFIG,
            then config/rules.yaml

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If file doesn't exist, is invalid YAML or misses keys
    """
    if config_path is None:
        config_path = os.getenv("SPENDWATCH_CONFIG", DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading configuration: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration must be a mapping: {config_path}")

    missing_keys = [key for key in REQUIRED_KEYS if key not in config]
    if missing_keys:
        raise ConfigurationError(f"Missing required configuration keys: {missing_keys}")

    return config


def save_config(config_path: str, config: Dict[str, Any]) -> None:
    """
    Save configuration to YAML file

    Raises:
        ConfigurationError: If unable to write file
    """
    try:
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    except OSError as e:
        raise ConfigurationError(f"Error saving configuration: {e}") from e


def get_source_config(config: Optional[Dict[str, Any]], source: str) -> Dict[str, Any]:
    """
    Get settings for one data source, merged over the built-in defaults

    Args:
        config: Full configuration dictionary (may be None)
        source: Source name ("boston" or "massachusetts")

    Returns:
        Source configuration dictionary
    """
    merged = copy.deepcopy(DEFAULT_SOURCES.get(source, {}))
    overrides = ((config or {}).get('sources') or {}).get(source) or {}

    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value

    return merged
