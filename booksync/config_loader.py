"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml


DEFAULT_CONFIG: Dict[str, Any] = {
    'github': {
        'api_url': 'https://api.github.com',
        'access_token': None,
        'timeout': 10,
        'max_retries': 3,
        'retry_backoff_factor': 0.5,
        'rate_limit': 0.0,
        'verify_ssl': True
    },
    'storage': {
        'backend': 'memory',
        'mongo_url': 'mongodb://localhost:27017',
        'database': 'booksync'
    },
    'sync': {
        'max_workers': 5,
        'show_progress': False
    },
    'slug': {
        'max_attempts': 1000
    },
    'rendering': {
        'image_alt': 'Builder Book',
        'image_border': '1px solid #ddd',
        'breaks': True,
        'highlight': True,
        'sanitize': True
    },
    'logging': {
        'level': None,
        'file': None
    }
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: Optional[str] = None, required: bool = True) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file fall back to DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file
            required: Raise when the file is missing instead of using defaults

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If a required config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not config_path or not os.path.exists(config_path):
            if required:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return copy.deepcopy(DEFAULT_CONFIG)

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Deep-merge config over DEFAULT_CONFIG."""
        return _deep_merge(DEFAULT_CONFIG, config or {})

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        api_url = get_nested(config, 'github.api_url', 'https://api.github.com')
        cls._validate_url(api_url, 'github.api_url')

        token = get_nested(config, 'github.access_token')
        if isinstance(token, str) and '${' in token:
            match = cls.ENV_VAR_PATTERN.search(token)
            var_name = match.group(1) if match else token
            raise ValueError(
                f"Configuration field 'github.access_token' contains unsubstituted environment variable: {token}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

        timeout = get_nested(config, 'github.timeout', 10)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("github.timeout must be a positive number")

        max_retries = get_nested(config, 'github.max_retries', 3)
        if not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("github.max_retries must be a non-negative integer")

        backend = get_nested(config, 'storage.backend', 'memory')
        if backend not in ['memory', 'mongodb']:
            raise ValueError("storage.backend must be 'memory' or 'mongodb'")

        if backend == 'mongodb':
            cls._validate_required_field(config, 'storage.mongo_url')
            cls._validate_required_field(config, 'storage.database')

        max_workers = get_nested(config, 'sync.max_workers', 5)
        if not isinstance(max_workers, int) or max_workers < 1:
            raise ValueError("sync.max_workers must be a positive integer")

        max_attempts = get_nested(config, 'slug.max_attempts', 1000)
        if not isinstance(max_attempts, int) or max_attempts < 1:
            raise ValueError("slug.max_attempts must be a positive integer")

        for flag in ('breaks', 'highlight', 'sanitize'):
            value = get_nested(config, f'rendering.{flag}', True)
            if not isinstance(value, bool):
                raise ValueError(f"rendering.{flag} must be a boolean")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('github', 'storage', 'sync', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'token', None):
            merged['github']['access_token'] = args.token

        if getattr(args, 'storage', None):
            merged['storage']['backend'] = args.storage

        if getattr(args, 'mongo_url', None):
            merged['storage']['mongo_url'] = args.mongo_url

        if getattr(args, 'workers', None):
            merged['sync']['max_workers'] = args.workers

        if getattr(args, 'progress', None) is not None:
            merged['sync']['show_progress'] = args.progress

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url or '')
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "github.api_url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
