# sleepio/config/config_manager.py
import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'model_config.yaml')


class ConfigManager:
    """Central configuration manager"""

    def __init__(self, config_path=None, overrides=None):
        self.config_path = config_path or os.environ.get('SLEEPIO_CONFIG', DEFAULT_CONFIG_PATH)
        self.config = self._load_config()
        if overrides:
            self._merge(self.config, overrides)

    def _load_config(self):
        """Load configuration from file"""
        with open(self.config_path, 'r') as file:
            config = yaml.safe_load(file) or {}
        logger.debug(f"Loaded configuration from {self.config_path}")
        return config

    def _merge(self, base, overrides):
        """Recursively merge override values into the loaded config"""
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = copy.deepcopy(value)

    def get(self, key, default=None):
        """Get configuration value"""
        # Support nested keys with dot notation
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def section(self, name):
        """Return a copy of a top-level section, empty if missing"""
        return copy.deepcopy(self.config.get(name, {}))
