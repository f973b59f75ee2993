"""Converter configuration loading and validation.

Configuration comes from three places, later ones overriding earlier ones:

1. Environment variables (a ``.env`` file is loaded with python-dotenv):
   ``CONFLUENCE_URL`` and ``CONFLUENCE_MD_TABLE_STYLE``
2. An optional YAML file
3. Command-line options

YAML file structure:
    base_url: "https://example.atlassian.net/wiki"
    table_style: placeholder
    timestamp_format: "%Y-%m-%d %H:%M:%S"
    include_comments: true
"""

import os
from dataclasses import asdict, replace
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from src.models.converter_config import TABLE_STYLES, ConverterConfig

from .errors import ConfigError, InputFileError


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    ENV_BASE_URL = 'CONFLUENCE_URL'
    ENV_TABLE_STYLE = 'CONFLUENCE_MD_TABLE_STYLE'

    KNOWN_FIELDS = {'base_url', 'table_style', 'timestamp_format', 'include_comments'}

    @classmethod
    def load(cls, config_path: str, base: Optional[ConverterConfig] = None) -> ConverterConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            base: Config whose values are kept for fields the file omits

        Returns:
            ConverterConfig with the file's values applied

        Raises:
            InputFileError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise InputFileError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise InputFileError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise InputFileError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return base or ConverterConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict, base or ConverterConfig())

    @classmethod
    def save(cls, config_path: str, config: ConverterConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            InputFileError: If file cannot be written
        """
        yaml_str = yaml.safe_dump(
            asdict(config),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise InputFileError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise InputFileError(config_path, 'write', str(e))

    @classmethod
    def from_environment(cls, dotenv: bool = True) -> ConverterConfig:
        """Build a config from environment variables.

        Args:
            dotenv: Load a ``.env`` file from the working directory first

        Raises:
            ConfigError: If CONFLUENCE_MD_TABLE_STYLE has an unknown value
        """
        if dotenv:
            load_dotenv()
        values: Dict[str, Any] = {}
        base_url = os.getenv(cls.ENV_BASE_URL)
        if base_url:
            values['base_url'] = base_url
        table_style = os.getenv(cls.ENV_TABLE_STYLE)
        if table_style:
            values['table_style'] = table_style
        return cls._parse_config(values, ConverterConfig())

    @classmethod
    def resolve(
        cls,
        config_path: Optional[str] = None,
        **overrides: Any,
    ) -> ConverterConfig:
        """Combine environment, optional YAML file and explicit overrides.

        Overrides whose value is None are ignored.
        """
        config = cls.from_environment()
        if config_path:
            config = cls.load(config_path, base=config)
        explicit = {key: value for key, value in overrides.items() if value is not None}
        if explicit:
            config = cls._parse_config(explicit, config)
        return config

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any], base: ConverterConfig) -> ConverterConfig:
        """Validate ``config_dict`` and apply it on top of ``base``.

        Raises:
            ConfigError: If a field is unknown or has an invalid value
        """
        unknown = set(config_dict) - cls.KNOWN_FIELDS
        if unknown:
            raise ConfigError(f"Unknown fields: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}

        if 'base_url' in config_dict:
            base_url = config_dict['base_url']
            if base_url is not None and not isinstance(base_url, str):
                raise ConfigError(
                    f"Field 'base_url' must be a string, got {type(base_url).__name__}",
                    'base_url'
                )
            base_url = (base_url or '').strip()
            if base_url and not base_url.startswith(('http://', 'https://')):
                raise ConfigError(
                    f"Field 'base_url' must start with http:// or https://, got '{base_url}'",
                    'base_url'
                )
            values['base_url'] = base_url.rstrip('/')

        if 'table_style' in config_dict:
            table_style = str(config_dict['table_style']).strip().lower()
            if table_style not in TABLE_STYLES:
                raise ConfigError(
                    f"Field 'table_style' must be one of {', '.join(TABLE_STYLES)}, got '{table_style}'",
                    'table_style'
                )
            values['table_style'] = table_style

        if 'timestamp_format' in config_dict:
            timestamp_format = config_dict['timestamp_format']
            if not isinstance(timestamp_format, str) or not timestamp_format.strip():
                raise ConfigError(
                    "Field 'timestamp_format' must be a non-empty string",
                    'timestamp_format'
                )
            values['timestamp_format'] = timestamp_format

        if 'include_comments' in config_dict:
            include_comments = config_dict['include_comments']
            if not isinstance(include_comments, bool):
                raise ConfigError(
                    f"Field 'include_comments' must be a boolean, got {type(include_comments).__name__}",
                    'include_comments'
                )
            values['include_comments'] = include_comments

        return replace(base, **values)
