"""
Configuration management for the Prometheus query client.

This module handles loading, parsing, and validating client settings from
YAML files. A configuration file looks like::

    prometheus:
      url: ${PROMETHEUS_URL}
      timeout: 10
    output:
      format: csv
      delimiter: ";"
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from jsonschema import Draft7Validator

from .client import DEFAULT_TIMEOUT, PrometheusClient
from .errors import ConfigError
from .render import validate_delimiter

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:9090"
VALID_OUTPUT_FORMATS = ["text", "csv"]


# JSON Schema for configuration validation
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "prometheus": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "minLength": 1},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "output": {
            "type": "object",
            "properties": {
                "format": {"type": "string", "enum": VALID_OUTPUT_FORMATS},
                "delimiter": {"type": "string", "minLength": 1, "maxLength": 1},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


def validate_config(data: Any) -> list[str]:
    """
    Validate configuration data against the schema.

    Args:
        data: Configuration dictionary to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors = []
    for error in validator.iter_errors(data):
        path = ".".join(str(p) for p in error.path) if error.path else "root"
        errors.append(f"{path}: {error.message}")
    return errors


def expand_env_vars(value: str) -> str:
    """
    Expand environment variables in a string.

    Supports ${VAR_NAME} syntax; unset variables expand to an empty string.
    """
    if not isinstance(value, str):
        return value

    def replace_env(match):
        return os.environ.get(match.group(1), "")

    return re.sub(r'\$\{([^}]+)\}', replace_env, value)


@dataclass
class ClientConfig:
    """
    Settings for talking to a Prometheus server and rendering results.

    Attributes:
        url: Base URL of the Prometheus API
        timeout: Whole-request deadline in seconds
        output_format: ``text`` or ``csv``
        delimiter: Field separator for csv output
    """

    url: str = DEFAULT_URL
    timeout: float = DEFAULT_TIMEOUT
    output_format: str = "text"
    delimiter: str = ","

    def __post_init__(self):
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) \
                or self.timeout <= 0:
            raise ConfigError(f"Invalid timeout: {self.timeout!r}. Must be a positive number")
        if self.output_format not in VALID_OUTPUT_FORMATS:
            raise ConfigError(
                f"Invalid output format: {self.output_format}. Must be one of {VALID_OUTPUT_FORMATS}"
            )
        try:
            validate_delimiter(self.delimiter)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def from_yaml(cls, path: Path | str, validate: bool = True) -> "ClientConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file
            validate: Whether to validate the configuration against schema

        Returns:
            ClientConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigError: If the YAML is invalid or validation fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        data = data or {}
        if validate:
            errors = validate_config(data)
            if errors:
                raise ConfigError(
                    f"Configuration validation failed with {len(errors)} error(s)",
                    errors=errors,
                )

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientConfig":
        """
        Create configuration from a dictionary.

        Args:
            data: Dictionary containing configuration values

        Returns:
            ClientConfig instance with loaded values
        """
        prom_data = data.get("prometheus") or {}
        output_data = data.get("output") or {}
        return cls(
            url=expand_env_vars(prom_data.get("url", DEFAULT_URL)) or DEFAULT_URL,
            timeout=prom_data.get("timeout", DEFAULT_TIMEOUT),
            output_format=output_data.get("format", "text"),
            delimiter=output_data.get("delimiter", ","),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to the dictionary layout of the YAML file."""
        return {
            "prometheus": {"url": self.url, "timeout": self.timeout},
            "output": {"format": self.output_format, "delimiter": self.delimiter},
        }

    def merge_cli_args(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        output_format: Optional[str] = None,
        delimiter: Optional[str] = None,
    ) -> "ClientConfig":
        """
        Return a copy with command-line overrides applied.

        Arguments that are None leave the configured value in place.
        """
        return ClientConfig(
            url=url if url is not None else self.url,
            timeout=timeout if timeout is not None else self.timeout,
            output_format=output_format if output_format is not None else self.output_format,
            delimiter=delimiter if delimiter is not None else self.delimiter,
        )

    def create_client(self, logger: Optional[logging.Logger] = None) -> PrometheusClient:
        """Build a PrometheusClient from these settings."""
        return PrometheusClient(self.url, timeout=self.timeout, logger=logger)


def load_config(
    config_path: Optional[Path | str] = None,
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    output_format: Optional[str] = None,
    delimiter: Optional[str] = None,
    validate: bool = True,
) -> ClientConfig:
    """
    Load configuration from a file and merge command-line overrides.

    Args:
        config_path: Optional path to a YAML configuration file
        url: Prometheus URL override
        timeout: Timeout override in seconds
        output_format: Output format override
        delimiter: CSV delimiter override
        validate: Whether to validate the file against the schema

    Returns:
        ClientConfig with merged values
    """
    if config_path:
        config = ClientConfig.from_yaml(config_path, validate=validate)
    else:
        config = ClientConfig()

    return config.merge_cli_args(
        url=url,
        timeout=timeout,
        output_format=output_format,
        delimiter=delimiter,
    )
