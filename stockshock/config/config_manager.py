"""
Configuration management for the stock monitor.
"""
import os
import yaml
import json
import logging
from typing import Any, Dict, Optional
from pathlib import Path

from ..exceptions import ConfigurationError
from ..models.interfaces import IConfigManager
from ..models.stores import StoreConfiguration


class ConfigManager(IConfigManager):
    """Configuration manager implementation."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager."""
        self.logger = logging.getLogger(__name__)
        self._config: Dict[str, Any] = {}
        self._config_path = config_path
        self._load_default_config()
        self._load_environment_variables()

        if config_path:
            self.load_config(config_path)

    def _load_default_config(self) -> None:
        """Load default configuration values."""
        self._config = {
            # Polling loop settings
            'monitoring': {
                'cycle_sleep_seconds': 5,
                'rate_limit_pause_seconds': 300,
                'request_timeout': 10,
                'graphql_client_version': '8.0.0'
            },

            # Notification settings
            'notifications': {
                'rate_limit_announce_threshold': 300,
                'telegram_timeout': 10
            },

            # Logging settings
            'logging': {
                'level': 'INFO',
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'file_path': 'stockshock.log',
                'max_file_size': 10485760,  # 10MB
                'backup_count': 5
            },

            # One section per store short code (mmde, saturn, ...)
            'stores': {}
        }

    def _load_environment_variables(self) -> None:
        """Load configuration from environment variables."""
        env_mappings = {
            'LOG_LEVEL': 'logging.level',
            'CYCLE_SLEEP_SECONDS': 'monitoring.cycle_sleep_seconds',
            'REQUEST_TIMEOUT': 'monitoring.request_timeout',
            'GRAPHQL_CLIENT_VERSION': 'monitoring.graphql_client_version'
        }

        for env_var, config_key in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                self._set_nested_value(config_key, value)

    def _set_nested_value(self, key: str, value: Any) -> None:
        """Set a nested configuration value using dot notation."""
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        # Convert string values to appropriate types
        if isinstance(value, str):
            if value.lower() in ('true', 'false'):
                value = value.lower() == 'true'
            elif value.isdigit():
                value = int(value)
            elif value.replace('.', '').isdigit() and value.count('.') == 1:
                try:
                    value = float(value)
                except ValueError:
                    pass

        config[keys[-1]] = value

    def _get_nested_value(self, key: str, default: Any = None) -> Any:
        """Get a nested configuration value using dot notation."""
        keys = key.split('.')
        config = self._config

        try:
            for k in keys:
                config = config[k]
            return config
        except (KeyError, TypeError):
            return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._get_nested_value(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._set_nested_value(key, value)

    def load_config(self, config_path: str) -> None:
        """Load configuration from a YAML or JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yml', '.yaml'):
                    file_config = yaml.safe_load(f) or {}
                elif path.suffix.lower() == '.json':
                    file_config = json.load(f)
                else:
                    raise ValueError(f"Unsupported configuration file format: {path.suffix}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration root in {config_path} must be a mapping")

        self._merge_config(self._config, file_config)
        self._config_path = config_path
        self.logger.info(f"Loaded configuration from {config_path}")

    def save_config(self, config_path: str) -> None:
        """Save configuration to file."""
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, 'w', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yml', '.yaml'):
                    yaml.dump(self._config, f, default_flow_style=False, indent=2)
                elif path.suffix.lower() == '.json':
                    json.dump(self._config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported configuration file format: {path.suffix}")
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e

    def _merge_config(self, base: dict, override: dict) -> None:
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get_monitoring_config(self) -> dict:
        """Get polling loop configuration."""
        return self.get('monitoring', {})

    def get_notification_config(self) -> dict:
        """Get notification-specific configuration."""
        return self.get('notifications', {})

    def get_logging_config(self) -> dict:
        """Get logging-specific configuration."""
        return self.get('logging', {})

    def get_store_configuration(self, short_code: str) -> StoreConfiguration:
        """Get the typed configuration of one store section."""
        section = self.get(f'stores.{short_code.lower()}')
        if section is None:
            raise ConfigurationError(f"No configuration section for store '{short_code}'")
        if not isinstance(section, dict):
            raise ConfigurationError(f"Store section '{short_code}' must be a mapping")
        return StoreConfiguration.from_dict(section)
