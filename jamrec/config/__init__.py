"""YAML + environment configuration loader for jamrec."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "gojam": {
        "host": "localhost",
        "port": 9999,
    },
    "gateway": {
        "host": "localhost",
        "port": 63127,
        "api_key": None,
        "debug": False,
    },
    "recording": {
        "directory_prefix": "/var/local/jamulus/recordings",
    },
    "session": {
        "poll_attempts": 10,
        "poll_interval": 0.25,
        "countdown_ticks": 601,
        "tick_interval": 1.0,
    },
    "upload": {
        "endpoint_url": None,
        "endpoint_key": None,
        "manifest_pattern": "*.lof",
        "manifest_attempts": 30,
        "manifest_interval": 1.0,
        "attempts": 3,
        "backoff_seconds": 2.0,
    },
    "cleanup": {
        "max_age_seconds": 3600,
    },
    "logging": {
        "level": "INFO",
        "file_path": None,
    },
}

# env var -> (key path, type)
ENV_OVERRIDES = {
    "GOJAM_API_HOST": ("gojam.host", str),
    "GOJAM_API_PORT": ("gojam.port", int),
    "API_GATEWAY_HOST": ("gateway.host", str),
    "API_GATEWAY_PORT": ("gateway.port", int),
    "API_GATEWAY_API_KEY": ("gateway.api_key", str),
    "API_GATEWAY_DEBUG": ("gateway.debug", bool),
    "RECORDING_DIRECTORY_PREFIX": ("recording.directory_prefix", str),
    "UPLOAD_ENDPOINT_URL": ("upload.endpoint_url", str),
    "UPLOAD_ENDPOINT_KEY": ("upload.endpoint_key", str),
    "LOG_LEVEL": ("logging.level", str),
    "LOG_FILE_PATH": ("logging.file_path", str),
}

TRUTHY = {"1", "true", "yes", "on"}


def _coerce(raw: str, kind: type) -> Any:
    if kind is bool:
        return raw.strip().lower() in TRUTHY
    return kind(raw)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


class JamRecConfig:
    """jamrec configuration loader.

    Values come from built-in defaults, then the optional YAML file, then
    environment variables, each layer overriding the previous one.
    """

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, only defaults and
                        environment variables are used.
            environ: Environment mapping to read overrides from (defaults to os.environ)
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = self._load_config(os.environ if environ is None else environ)

    def _load_config(self, environ: Dict[str, str]) -> Dict[str, Any]:
        """Load defaults, YAML file and environment overrides."""
        config = copy.deepcopy(DEFAULTS)

        if self.config_file is not None:
            logger.info(f"Loading configuration from: {self.config_file}")
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in configuration file: {e}")

            if loaded is not None:
                if not isinstance(loaded, dict):
                    raise ValueError("Configuration file must contain a mapping")
                _merge(config, loaded)

        self.config = config
        self._apply_env(environ)
        self._resolve_paths()
        return self.config

    def _apply_env(self, environ: Dict[str, str]) -> None:
        """Apply environment variable overrides."""
        for name, (key_path, kind) in ENV_OVERRIDES.items():
            raw = environ.get(name)
            if raw is None or raw == "":
                continue
            try:
                self.set(key_path, _coerce(raw, kind))
            except ValueError:
                raise ValueError(f"Invalid value for {name}: {raw!r}")

    def _resolve_paths(self) -> None:
        """Resolve a relative log file path against the config file location."""
        if self.config_file is None:
            return
        log_path = self.get('logging.file_path')
        if log_path and not os.path.isabs(log_path):
            self.set('logging.file_path', str(self.config_file.parent / log_path))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'gateway.port').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return default if value is None else value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'gojam.port')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict or not isinstance(config_dict[key], dict):
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set")

    def get_api_key(self) -> str:
        """Get the RPC gateway API key - raises if not configured."""
        api_key = self.get('gateway.api_key')
        if not api_key:
            raise ValueError("API gateway key not configured (set API_GATEWAY_API_KEY)")
        return api_key

    def get_gojam_url(self) -> str:
        """Base URL of the event feed and chat service."""
        return f"http://{self.get('gojam.host')}:{self.get('gojam.port')}"

    def get_gateway_url(self) -> str:
        """Base URL of the RPC gateway."""
        return f"http://{self.get('gateway.host')}:{self.get('gateway.port')}"

    def get_recording_prefix(self) -> str:
        return str(self.get('recording.directory_prefix'))

    def is_upload_configured(self) -> bool:
        return bool(self.get('upload.endpoint_url') and self.get('upload.endpoint_key'))
