"""
Configuration management for the effects editor
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

import processors
from errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_ENV_VAR = "PYWEB_EFFECTS_CONFIG"

DEFAULTS: Dict[str, Any] = {
    'preview': {
        'width': 200,
        'resample': 'bilinear',
    },
    'output': {
        'format': 'JPEG',
        'quality': 90,
    },
    'pipeline': {
        'strict_updates': False,
    },
    'logging': {
        'level': 'INFO',
    },
    'server': {
        'host': '127.0.0.1',
        'port': 5000,
        'debug': False,
        'max_content_length': 16 * 1024 * 1024,
    },
}


def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """
    Recursively expand environment variables in config values.
    Supports ${VAR_NAME} syntax.
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_var(match):
            return os.getenv(match.group(1), match.group(0))
        return re.sub(r'\$\{([^}]+)\}', replace_var, obj)
    return obj


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce and check values that may arrive as strings from env vars."""
    try:
        config['preview']['width'] = int(config['preview']['width'])
        config['output']['quality'] = int(config['output']['quality'])
        config['server']['port'] = int(config['server']['port'])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid numeric config value: {e}") from e

    if config['preview']['width'] <= 0:
        raise ConfigError(f"preview.width must be positive, got {config['preview']['width']}")
    if config['preview']['resample'] not in processors.RESAMPLE_FILTERS:
        raise ConfigError(f"unknown preview.resample: {config['preview']['resample']}")
    if not 1 <= config['output']['quality'] <= 100:
        raise ConfigError(f"output.quality must be within 1..100, got {config['output']['quality']}")

    config['output']['format'] = str(config['output']['format']).upper()
    if config['output']['format'] not in processors.DATA_URL_PREFIXES:
        raise ConfigError(f"unsupported output.format: {config['output']['format']}")

    strict = config['pipeline']['strict_updates']
    if isinstance(strict, str):
        config['pipeline']['strict_updates'] = strict.lower() in ('1', 'true', 'yes')
    return config


def get_default_config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file on top of the defaults

    Args:
        config_path: Path to config file. Falls back to $PYWEB_EFFECTS_CONFIG,
            then to the bundled config.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return validate_config(get_default_config())

    try:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {config_path}: {e}") from e
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    logger.info(f"Loaded configuration from {config_path}")
    return validate_config(_merge(DEFAULTS, _expand_env_vars(loaded)))
