"""Configuration manager for loading and validating .journeyscribe.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from journeyscribe.domain.config import (
    AmadeusConfig,
    AppConfig,
    CurrencyConfig,
    HttpConfig,
    PlacesConfig,
    RetryPolicy,
    TimezoneConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".journeyscribe.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .journeyscribe.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .journeyscribe.yml file (searched from current directory)
    3. Environment variables (AMADEUS_*, TIMEZONEDB_API_KEY, GOOGLE_MAPS_API_KEY, JOURNEYSCRIBE_*)
    4. CLI arguments (handled by CLI layer)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .journeyscribe.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            # Format validation errors for user
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .journeyscribe.yml file starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file cannot be parsed
        """
        config_dict: Dict[str, Any] = {
            "retry": {},
            "http": {},
            "amadeus": {},
            "currency": {},
            "timezone": {},
            "places": {},
        }

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(copy.deepcopy(config_dict))

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        for section in ("retry", "amadeus", "currency", "timezone", "places"):
            if not isinstance(config.get(section), dict):
                config[section] = {}

        # Credentials
        if os.getenv("AMADEUS_API_KEY"):
            config["amadeus"]["api_key"] = os.getenv("AMADEUS_API_KEY")
        if os.getenv("AMADEUS_API_SECRET"):
            config["amadeus"]["api_secret"] = os.getenv("AMADEUS_API_SECRET")
        if os.getenv("TIMEZONEDB_API_KEY"):
            config["timezone"]["api_key"] = os.getenv("TIMEZONEDB_API_KEY")
        if os.getenv("GOOGLE_MAPS_API_KEY"):
            config["places"]["api_key"] = os.getenv("GOOGLE_MAPS_API_KEY")

        if os.getenv("JOURNEYSCRIBE_TARGET_CURRENCY"):
            config["currency"]["target_currency"] = os.getenv("JOURNEYSCRIBE_TARGET_CURRENCY")
        if os.getenv("JOURNEYSCRIBE_RETRY_MAX_ATTEMPTS"):
            config["retry"]["max_attempts"] = os.getenv("JOURNEYSCRIBE_RETRY_MAX_ATTEMPTS")

        return config

    def get_retry_policy(self) -> RetryPolicy:
        """Retry policy shared by every upstream call"""
        return self.config.retry

    def get_http_config(self) -> HttpConfig:
        return self.config.http

    def get_amadeus_config(self) -> AmadeusConfig:
        return self.config.amadeus

    def get_currency_config(self) -> CurrencyConfig:
        return self.config.currency

    def get_timezone_config(self) -> TimezoneConfig:
        return self.config.timezone

    def get_places_config(self) -> PlacesConfig:
        return self.config.places

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "retry.max_attempts" or "retry")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
