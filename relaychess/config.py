import copy
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger


CONFIG_ENV_VAR = "RELAYCHESS_CONFIG"
DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULT_CONFIG: Dict = {
    'server': {
        'host': '0.0.0.0',
        'port': 3000
    },
    'game': {
        'initial_seconds': 600,
        'tick_seconds': 1.0
    },
    'engine': {
        'url': 'https://stockfish.online/api/s/v2.php',
        'timeout': 10.0,
        'default_depth': 10,
        'min_depth': 1,
        'max_depth': 15,
        'max_attempts': 3,
        'backoff_seconds': 0.5,
        'backoff_factor': 2.0,
        'notify_on_failure': True
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs/relaychess.log',
        'rotation': '100 MB',
        'retention': '30 days'
    }
}


def merge_config(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict:
    """
    Load configuration from a YAML file, falling back to defaults.

    Args:
        config_path: Path to the YAML file. Defaults to $RELAYCHESS_CONFIG or config/config.yaml

    Returns:
        Configuration dictionary
    """
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))

    if not path.exists():
        logger.warning(f"Configuration file {path} not found, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path) as f:
        loaded = yaml.safe_load(f) or {}
    logger.info(f"Configuration loaded from {path}")
    return merge_config(DEFAULT_CONFIG, loaded)
