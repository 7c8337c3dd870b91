"""Tests for configuration management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

import funpay_tools.core.config as config_module
from funpay_tools.core.config import ConfigError, ConfigLoader, get_config

EXPECTED_TIMEOUT = 30
EXPECTED_POLL_INTERVAL = 15
EXPECTED_MAX_ORDERS = 5


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_load_default_config(self) -> None:
        """Load the packaged settings.yaml with env placeholders applied."""
        loader = ConfigLoader()
        assert loader.get("environment") is not None
        assert loader.get("funpay.golden_key") == "test-golden-key"
        assert loader.get("funpay.base_url") == "https://funpay.test"
        assert loader.get("watcher.poll_interval_seconds") == EXPECTED_POLL_INTERVAL

    def test_get_with_dot_notation(self, tmp_path: Path) -> None:
        """Test getting config values with dot notation."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
funpay:
  golden_key: abc123
  base_url: https://mirror.example
environment: test
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("funpay.golden_key") == "abc123"
        assert loader.get("funpay.base_url") == "https://mirror.example"
        assert loader.get("environment") == "test"

    def test_get_with_default(self, tmp_path: Path) -> None:
        """Test getting non-existent key returns default."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("environment: test")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("nonexistent.key", "default_value") == "default_value"

    def test_missing_settings_file_gives_empty_config(self, tmp_path: Path) -> None:
        """Return defaults when the config directory has no settings file."""
        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("funpay") is None
        assert loader.get_watcher_config() == {}

    def test_env_var_substitution(self, tmp_path: Path) -> None:
        """Test environment variable substitution."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
funpay:
  golden_key: ${TEST_GOLDEN_KEY}
  base_url: ${TEST_FUNPAY_URL:https://default.example}
""")

        with patch.dict(os.environ, {"TEST_GOLDEN_KEY": "env_key_123"}):
            loader = ConfigLoader(config_dir=tmp_path)
            assert loader.get("funpay.golden_key") == "env_key_123"
            # TEST_FUNPAY_URL not set, should use default
            assert loader.get("funpay.base_url") == "https://default.example"

    def test_empty_default_substitutes_empty_string(self, tmp_path: Path) -> None:
        """Substitute an empty string for ``${VAR:}`` when VAR is unset."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
funpay:
  golden_key: ${NONEXISTENT_FUNPAY_KEY_VAR:}
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("funpay.golden_key") == ""

    def test_local_settings_override(self, tmp_path: Path) -> None:
        """Test that local settings override base settings."""
        (tmp_path / "settings.yaml").write_text("""
funpay:
  golden_key: base_key
  base_url: https://base.example
environment: production
""")
        (tmp_path / "settings.local.yaml").write_text("""
funpay:
  golden_key: local_key
environment: development
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("funpay.golden_key") == "local_key"
        assert loader.get("funpay.base_url") == "https://base.example"
        assert loader.get("environment") == "development"

    def test_get_funpay_config(self, tmp_path: Path) -> None:
        """Return the funpay section as a dictionary."""
        (tmp_path / "settings.yaml").write_text("""
funpay:
  golden_key: test_key
  timeout_seconds: 30
""")

        loader = ConfigLoader(config_dir=tmp_path)
        funpay_config = loader.get_funpay_config()
        assert funpay_config["golden_key"] == "test_key"
        assert funpay_config["timeout_seconds"] == EXPECTED_TIMEOUT

    def test_get_watcher_config(self, tmp_path: Path) -> None:
        """Return the watcher section as a dictionary."""
        (tmp_path / "settings.yaml").write_text("""
watcher:
  max_orders: 5
  concurrent_fetch: true
""")

        loader = ConfigLoader(config_dir=tmp_path)
        watcher_config = loader.get_watcher_config()
        assert watcher_config["max_orders"] == EXPECTED_MAX_ORDERS
        assert watcher_config["concurrent_fetch"] is True

    def test_non_mapping_section_raises_config_error(self, tmp_path: Path) -> None:
        """Raise ConfigError when a section is a scalar instead of a mapping."""
        (tmp_path / "settings.yaml").write_text("watcher: fast\n")

        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="watcher config must be a dict"):
            loader.get_watcher_config()

    def test_full_string_unresolved_env_var_raises_config_error(self, tmp_path: Path) -> None:
        """Raise ConfigError when env var is unset and has no default."""
        (tmp_path / "settings.yaml").write_text("""
funpay:
  golden_key: ${NONEXISTENT_FUNPAY_TOOLS_VAR}
""")

        with pytest.raises(ConfigError, match="Required environment variable"):
            ConfigLoader(config_dir=tmp_path)

    def test_embedded_env_var_reference_raises_config_error(self, tmp_path: Path) -> None:
        """Raise ConfigError when an env var reference is embedded in a larger string."""
        (tmp_path / "settings.yaml").write_text("""
funpay:
  base_url: https://funpay.example/${NONEXISTENT_PATH_VAR}/
""")

        with pytest.raises(ConfigError, match="Unresolved environment variable reference"):
            ConfigLoader(config_dir=tmp_path)

    def test_deep_merge(self, tmp_path: Path) -> None:
        """Test deep merging of nested configurations."""
        (tmp_path / "settings.yaml").write_text("""
funpay:
  golden_key: base_key
  timeout_seconds: 30
watcher:
  poll_interval_seconds: 15
  max_orders: 10
""")
        (tmp_path / "settings.local.yaml").write_text("""
funpay:
  golden_key: local_key
watcher:
  max_orders: 5
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("funpay.golden_key") == "local_key"
        assert loader.get("funpay.timeout_seconds") == EXPECTED_TIMEOUT
        assert loader.get("watcher.poll_interval_seconds") == EXPECTED_POLL_INTERVAL
        assert loader.get("watcher.max_orders") == EXPECTED_MAX_ORDERS


class TestGetConfig:
    """Test suite for the lazy singleton get_config() function."""

    def test_returns_config_loader_instance(self) -> None:
        """Return a ConfigLoader instance on first call."""
        config_module._config = None
        try:
            result = get_config()
            assert isinstance(result, ConfigLoader)
        finally:
            config_module._config = None

    def test_returns_same_instance(self) -> None:
        """Return the same ConfigLoader on subsequent calls."""
        config_module._config = None
        try:
            first = get_config()
            second = get_config()
            assert first is second
        finally:
            config_module._config = None
