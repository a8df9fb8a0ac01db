"""
Configuration utilities
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'importer': {
        'account_id': 'default',
        'money_places': 2,
    },
    'logging': {
        'level': 'INFO',
        'json_format': False,
        'log_file': None,
    },
    'export': {
        'format': 'csv',
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Manages configuration loading and validation"""

    def __init__(self, config_dir: str = "config"):
        self.config_dir = Path(config_dir)

    def load_config(self, config_type: str) -> Dict[str, Any]:
        """Load configuration of specified type"""
        try:
            # Try local overrides first, then fall back to the shipped file
            local_file = self.config_dir / f"{config_type}_local.yml"
            template_file = self.config_dir / f"{config_type}.yml"

            config_file = local_file if local_file.exists() else template_file

            if not config_file.exists():
                logger.info(f"Config file not found: {config_file}, using defaults")
                return {}

            with open(config_file, 'r') as f:
                config = yaml.safe_load(f) or {}

            logger.info(f"Loaded config from {config_file}")
            return config

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config {config_type}: {e}")
            return {}

    def get_importer_config(self) -> Dict[str, Any]:
        """Importer configuration merged onto defaults"""
        config = _deep_merge(DEFAULT_CONFIG, self.load_config("importer"))
        self.validate_importer_config(config)
        return config

    @staticmethod
    def validate_importer_config(config: Dict[str, Any]) -> None:
        """
        Validate importer settings

        Raises:
            ValueError: If a setting is out of range
        """
        places = config['importer'].get('money_places')
        if not isinstance(places, int) or isinstance(places, bool) or not 0 <= places <= 8:
            raise ValueError(f"importer.money_places must be an integer between 0 and 8, got {places!r}")

        account_id = config['importer'].get('account_id')
        if not isinstance(account_id, str) or not account_id.strip():
            raise ValueError("importer.account_id must be a non-empty string")

        export_format = config['export'].get('format')
        if export_format not in ('csv', 'json'):
            raise ValueError(f"export.format must be 'csv' or 'json', got {export_format!r}")


def get_importer_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """Convenience loader; defaults only when no directory is given"""
    if config_dir is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    return ConfigManager(config_dir).get_importer_config()
