"""Tests for the account watcher configuration."""

import pytest

from funpay_tools.apps.account_watcher.config import WatcherConfig
from funpay_tools.clients.funpay._constants import DEFAULT_BASE_URL

_DEFAULT_INTERVAL = 15.0
_DEFAULT_TIMEOUT = 10.0
_DEFAULT_MAX_ORDERS = 10
_CUSTOM_INTERVAL = 30.0
_CUSTOM_MAX_ORDERS = 5


class TestWatcherConfig:
    """Test suite for WatcherConfig."""

    def test_defaults(self) -> None:
        """Use a 15s interval, a 10s fetch timeout and ten orders."""
        config = WatcherConfig()
        assert config.poll_interval_seconds == pytest.approx(_DEFAULT_INTERVAL)
        assert config.fetch_timeout_seconds == pytest.approx(_DEFAULT_TIMEOUT)
        assert config.max_orders == _DEFAULT_MAX_ORDERS
        assert config.base_url == DEFAULT_BASE_URL
        assert config.concurrent_fetch is False
        assert config.resolve_buyers is True

    @pytest.mark.parametrize(
        "field",
        ["poll_interval_seconds", "fetch_timeout_seconds", "max_orders"],
    )
    def test_non_positive_values_raise(self, field: str) -> None:
        """Reject zero intervals, timeouts and order limits."""
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            WatcherConfig(**{field: 0})

    def test_from_mapping_coerces_strings(self) -> None:
        """Coerce env-substituted strings to numbers and booleans."""
        config = WatcherConfig.from_mapping(
            {
                "poll_interval_seconds": "30",
                "max_orders": "5",
                "concurrent_fetch": "true",
            },
            base_url="https://funpay.test",
        )
        assert config.poll_interval_seconds == pytest.approx(_CUSTOM_INTERVAL)
        assert config.fetch_timeout_seconds == pytest.approx(_DEFAULT_TIMEOUT)
        assert config.max_orders == _CUSTOM_MAX_ORDERS
        assert config.concurrent_fetch is True
        assert config.base_url == "https://funpay.test"

    def test_from_mapping_empty_uses_defaults(self) -> None:
        """Fall back to defaults for an empty section."""
        assert WatcherConfig.from_mapping({}) == WatcherConfig()

    def test_from_mapping_false_string(self) -> None:
        """Treat unrecognised boolean strings as false."""
        config = WatcherConfig.from_mapping({"concurrent_fetch": "no", "resolve_buyers": "off"})
        assert config.concurrent_fetch is False
        assert config.resolve_buyers is False
