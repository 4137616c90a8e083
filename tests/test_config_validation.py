"""Tests for configuration validation with Pydantic."""

from pathlib import Path

import pytest
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
from journeyscribe.infrastructure.config.config_manager import ConfigManager, ConfigurationError

ENV_VARS = (
    "AMADEUS_API_KEY",
    "AMADEUS_API_SECRET",
    "TIMEZONEDB_API_KEY",
    "GOOGLE_MAPS_API_KEY",
    "JOURNEYSCRIBE_TARGET_CURRENCY",
    "JOURNEYSCRIBE_RETRY_MAX_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and working directory"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _write_config(path: Path, data) -> Path:
    config_file = path / ".journeyscribe.yml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_file


class TestRetryPolicyValidation:
    """Tests for RetryPolicy validation."""

    def test_defaults(self):
        """Test default retry policy"""
        policy = RetryPolicy()
        assert policy.max_attempts == 5
        assert policy.initial_delay == 1.0
        assert policy.backoff_multiplier == 2.0
        assert policy.retryable_status_codes == (429,)
        assert "Too many requests" in policy.retryable_body_patterns
        assert "network rate limit is exceeded" in policy.retryable_body_patterns

    def test_zero_attempts_rejected(self):
        """Test max_attempts must be positive"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_large_attempt_count_allowed(self):
        """Test max_attempts has no upper cap"""
        assert RetryPolicy(max_attempts=25).max_attempts == 25

    def test_negative_delay_rejected(self):
        """Test negative initial delay"""
        with pytest.raises(ValidationError, match="initial_delay"):
            RetryPolicy(initial_delay=-0.1)

    def test_zero_delay_allowed(self):
        """Test zero delay (useful in tests)"""
        assert RetryPolicy(initial_delay=0).initial_delay == 0.0

    def test_backoff_below_one_rejected(self):
        """Test backoff multiplier below 1.0"""
        with pytest.raises(ValidationError, match="backoff_multiplier"):
            RetryPolicy(backoff_multiplier=0.5)

    def test_backoff_above_ten_rejected(self):
        """Test backoff multiplier above 10.0"""
        with pytest.raises(ValidationError, match="backoff_multiplier"):
            RetryPolicy(backoff_multiplier=11)

    def test_unknown_field_rejected(self):
        """Test typos are reported instead of ignored"""
        with pytest.raises(ValidationError):
            RetryPolicy(max_retries=3)

    def test_policy_is_immutable(self):
        """Test policy cannot be mutated after creation"""
        policy = RetryPolicy()
        with pytest.raises(ValidationError):
            policy.max_attempts = 10


class TestSectionValidation:
    """Tests for the other configuration sections."""

    def test_http_timeout_must_be_positive(self):
        """Test HTTP timeout validation"""
        with pytest.raises(ValidationError, match="timeout"):
            HttpConfig(timeout=0)

    def test_target_currency_must_be_iso_code(self):
        """Test currency code format"""
        assert CurrencyConfig(target_currency="EUR").target_currency == "EUR"
        with pytest.raises(ValidationError, match="target_currency"):
            CurrencyConfig(target_currency="euro")

    def test_token_refresh_margin_not_negative(self):
        """Test Amadeus token refresh margin"""
        with pytest.raises(ValidationError, match="token_refresh_margin"):
            AmadeusConfig(token_refresh_margin=-1)

    def test_timezone_defaults(self):
        """Test timezone defaults"""
        config = TimezoneConfig()
        assert config.api_key is None
        assert "timezonedb" in config.base_url
        assert config.position_url.endswith("/v2.1/get-time-zone")

    def test_places_defaults(self):
        config = PlacesConfig()
        assert config.radius == 2000
        assert config.default_type == "restaurant"
        assert config.base_url.endswith("/place/nearbysearch/json")

    def test_places_radius_limits(self):
        """Test the nearby search radius stays within 1..50000 meters"""
        with pytest.raises(ValidationError, match="radius"):
            PlacesConfig(radius=0)
        with pytest.raises(ValidationError, match="radius"):
            PlacesConfig(radius=50001)


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_defaults(self):
        """Test default app configuration"""
        config = AppConfig()
        assert config.retry == RetryPolicy()
        assert config.currency.target_currency == "BDT"
        assert config.amadeus.base_url == "https://test.api.amadeus.com"

    def test_nested_dicts(self):
        """Test configuration from nested dicts"""
        config = AppConfig(retry={"max_attempts": 3}, currency={"target_currency": "USD"})
        assert config.retry.max_attempts == 3
        assert config.currency.target_currency == "USD"

    def test_unknown_section_rejected(self):
        """Test unknown top-level sections"""
        with pytest.raises(ValidationError):
            AppConfig(llm={"provider": "x"})


class TestConfigManager:
    """Tests for ConfigManager loading."""

    def test_defaults_without_file(self):
        """Test defaults when no config file exists"""
        manager = ConfigManager()
        assert manager.config_path is None
        assert manager.get_retry_policy() == RetryPolicy()
        assert manager.get_amadeus_config().api_key is None

    def test_load_from_explicit_path(self, tmp_path):
        """Test loading a config file passed explicitly"""
        config_file = _write_config(
            tmp_path,
            {
                "retry": {"max_attempts": 3, "initial_delay": 0.5},
                "currency": {"target_currency": "EUR"},
                "http": {"timeout": 10},
            },
        )
        manager = ConfigManager(config_path=config_file)
        assert manager.get_retry_policy().max_attempts == 3
        assert manager.get_retry_policy().initial_delay == 0.5
        assert manager.get_retry_policy().backoff_multiplier == 2.0
        assert manager.get_currency_config().target_currency == "EUR"
        assert manager.get_http_config().timeout == 10

    def test_finds_file_in_current_directory(self, tmp_path):
        """Test config discovery from the working directory"""
        _write_config(tmp_path, {"timezone": {"api_key": "tz-key"}})
        manager = ConfigManager()
        assert manager.config_path == tmp_path / ".journeyscribe.yml"
        assert manager.get_timezone_config().api_key == "tz-key"

    def test_finds_file_in_parent_directory(self, tmp_path, monkeypatch):
        """Test config discovery walks up to parent directories"""
        _write_config(tmp_path, {"currency": {"target_currency": "GBP"}})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert ConfigManager().get_currency_config().target_currency == "GBP"

    def test_invalid_value_reports_field(self, tmp_path):
        """Test validation errors name the offending field"""
        config_file = _write_config(tmp_path, {"retry": {"max_attempts": 0}})
        with pytest.raises(ConfigurationError, match="retry.max_attempts"):
            ConfigManager(config_path=config_file)

    def test_unknown_key_rejected(self, tmp_path):
        """Test unknown keys inside a section"""
        config_file = _write_config(tmp_path, {"retry": {"jitter": True}})
        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            ConfigManager(config_path=config_file)

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML"""
        config_file = tmp_path / ".journeyscribe.yml"
        config_file.write_text("retry: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to load config"):
            ConfigManager(config_path=config_file)

    def test_non_mapping_file(self, tmp_path):
        """Test a YAML file that is not a mapping"""
        config_file = tmp_path / ".journeyscribe.yml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigManager(config_path=config_file)

    def test_empty_file_uses_defaults(self, tmp_path):
        """Test empty config file"""
        config_file = tmp_path / ".journeyscribe.yml"
        config_file.write_text("", encoding="utf-8")
        assert ConfigManager(config_path=config_file).config == AppConfig()

    def test_string_path_accepted(self, tmp_path):
        """Test config path given as a string"""
        config_file = _write_config(tmp_path, {"retry": {"max_attempts": 2}})
        assert ConfigManager(config_path=str(config_file)).get_retry_policy().max_attempts == 2

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Test environment variables override the file"""
        config_file = _write_config(
            tmp_path,
            {"amadeus": {"api_key": "file-key"}, "retry": {"max_attempts": 2}},
        )
        monkeypatch.setenv("AMADEUS_API_KEY", "env-key")
        monkeypatch.setenv("AMADEUS_API_SECRET", "env-secret")
        monkeypatch.setenv("TIMEZONEDB_API_KEY", "env-tz")
        monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-maps")
        monkeypatch.setenv("JOURNEYSCRIBE_TARGET_CURRENCY", "USD")
        monkeypatch.setenv("JOURNEYSCRIBE_RETRY_MAX_ATTEMPTS", "7")

        manager = ConfigManager(config_path=config_file)

        assert manager.get_amadeus_config().api_key == "env-key"
        assert manager.get_amadeus_config().api_secret == "env-secret"
        assert manager.get_timezone_config().api_key == "env-tz"
        assert manager.get_places_config().api_key == "env-maps"
        assert manager.get_currency_config().target_currency == "USD"
        assert manager.get_retry_policy().max_attempts == 7

    def test_invalid_env_override(self, monkeypatch):
        """Test invalid environment values fail validation"""
        monkeypatch.setenv("JOURNEYSCRIBE_RETRY_MAX_ATTEMPTS", "zero")
        with pytest.raises(ConfigurationError, match="retry.max_attempts"):
            ConfigManager()

    def test_get_dot_notation(self, tmp_path):
        """Test dot-notation lookups"""
        config_file = _write_config(tmp_path, {"retry": {"max_attempts": 4}})
        manager = ConfigManager(config_path=config_file)
        assert manager.get("retry.max_attempts") == 4
        assert manager.get("currency")["target_currency"] == "BDT"
        assert manager.get("retry.missing", "fallback") == "fallback"
