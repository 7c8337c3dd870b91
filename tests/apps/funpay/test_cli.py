"""Tests for the FunPay CLI commands.

Drive every subcommand through Typer's runner with a mocked client so no
request reaches the site.
"""

import os
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

import funpay_tools.core.config as config_module
from funpay_tools.apps.account_watcher.config import WatcherConfig
from funpay_tools.apps.account_watcher.models import (
    BalanceChanged,
    EngineError,
    NewMessage,
    NewOrder,
    OrderStatusChanged,
)
from funpay_tools.apps.funpay.cli import app
from funpay_tools.apps.funpay.cli._helpers import build_client, format_event
from funpay_tools.clients.funpay.exceptions import FunPayTransportError
from funpay_tools.clients.funpay.models import Chat, ChatMessage, Order, Profile, Resource

_ACCOUNT_CMD = "funpay_tools.apps.funpay.cli.account_cmd"
_ACTIONS_CMD = "funpay_tools.apps.funpay.cli.actions_cmd"
_WATCH_CMD = "funpay_tools.apps.funpay.cli.watch_cmd"
_BASE_URL = "https://funpay.test"
_CHAT_ID = 1001
_OFFER_ID = 77
_WATCH_INTERVAL = 5.0
_WATCH_MAX_ORDERS = 3
_DEFAULT_INTERVAL = 15.0
_WATCH_TIMEOUT = 2.5

_BUYER = Profile(id=42, name="buyer_one", avatar_url="", rating=4.9, url="")
_ORDER = Order(
    id="#AAA", date="12 March", buyer=_BUYER, status="Paid", price=Decimal("9.99"), amount=2
)


@pytest.fixture
def runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


def _mock_client(**returns: Any) -> AsyncMock:
    """Build a mocked FunPayClient usable as an async context manager.

    Args:
        returns: Return values keyed by client method name.

    Returns:
        AsyncMock configured as a FunPayClient.

    """
    mock = AsyncMock()
    mock.base_url = _BASE_URL
    for name, value in returns.items():
        setattr(mock, name, AsyncMock(return_value=value))
    mock.__aenter__ = AsyncMock(return_value=mock)
    mock.__aexit__ = AsyncMock(return_value=None)
    return mock


class TestBuildClient:
    """Test suite for the build_client helper."""

    def test_builds_client_from_settings(self) -> None:
        """Return a client configured from the funpay settings section."""
        client = build_client()
        assert client.base_url == _BASE_URL
        assert client.is_authenticated

    def test_timeout_override(self) -> None:
        """Pass an explicit timeout through to the client."""
        client = build_client(timeout=_WATCH_TIMEOUT)
        assert client.timeout == pytest.approx(_WATCH_TIMEOUT)

    def test_missing_golden_key_exits(self) -> None:
        """Exit with code 1 when no session cookie is configured."""
        config_module._config = None
        with patch.dict(os.environ, {"FUNPAY_GOLDEN_KEY": ""}), pytest.raises(typer.Exit):
            build_client()

    def test_missing_golden_key_fails_command(self, runner: CliRunner) -> None:
        """Fail a command before any request when the cookie is missing."""
        config_module._config = None
        with patch.dict(os.environ, {"FUNPAY_GOLDEN_KEY": ""}):
            result = runner.invoke(app, ["balance"])

        assert result.exit_code == 1
        assert "FUNPAY_GOLDEN_KEY" in result.output


class TestFormatEvent:
    """Test suite for event rendering."""

    def test_new_order(self) -> None:
        """Render a new order with id, status and buyer."""
        line = format_event(NewOrder(order=_ORDER))
        assert line.startswith("[new order]")
        assert "#AAA" in line
        assert "buyer_one" in line

    def test_status_change(self) -> None:
        """Render old and new status tokens."""
        closed = Order(
            id="#AAA", date="", buyer=_BUYER, status="Closed", price=Decimal("9.99")
        )
        assert format_event(OrderStatusChanged(old=_ORDER, new=closed)) == (
            "[order status] #AAA: Paid -> Closed"
        )

    def test_message_from_system(self) -> None:
        """Label messages without an author as system messages."""
        message = ChatMessage(id=1, chat_id=_CHAT_ID, author=None, text="Order paid", date="")
        assert format_event(NewMessage(message=message)) == (
            "[message] chat 1001 system: Order paid"
        )

    def test_balance_change(self) -> None:
        """Render the signed delta."""
        line = format_event(BalanceChanged(old=Decimal(100), new=Decimal(80)))
        assert line == "[balance] 100 -> 80 (-20)"

    def test_engine_error(self) -> None:
        """Render the failed resource and the error."""
        error = FunPayTransportError("down", status_code=502)
        line = format_event(EngineError(resource=Resource.ORDERS, error=error))
        assert line == "[error] orders: [502] down"


class TestAccountCommands:
    """Test suite for the read-only account commands."""

    def test_orders(self, runner: CliRunner) -> None:
        """List orders as a table."""
        mock = _mock_client(get_orders=[_ORDER])
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["orders", "--limit", "5"])

        assert result.exit_code == 0
        assert "#AAA" in result.output
        assert "buyer_one" in result.output
        mock.get_orders.assert_awaited_once_with(0, 5, resolve_buyers=False)

    def test_orders_empty(self, runner: CliRunner) -> None:
        """Say so when there are no orders."""
        mock = _mock_client(get_orders=[])
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["orders"])

        assert result.exit_code == 0
        assert "No orders." in result.output

    def test_balance(self, runner: CliRunner) -> None:
        """Print the balance."""
        mock = _mock_client(get_balance=Decimal("1250.50"))
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["balance"])

        assert result.exit_code == 0
        assert "Balance: 1250.50" in result.output

    def test_balance_transport_error(self, runner: CliRunner) -> None:
        """Exit with code 1 when the page cannot be fetched."""
        mock = _mock_client()
        mock.get_balance = AsyncMock(side_effect=FunPayTransportError("down", status_code=503))
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["balance"])

        assert result.exit_code == 1
        assert "[503] down" in result.output

    def test_chats(self, runner: CliRunner) -> None:
        """List chats with their latest message preview."""
        chat = Chat(id=_CHAT_ID, author=_BUYER, date="14:05", last_message_text="Hello")
        mock = _mock_client(get_chats=[chat])
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["chats"])

        assert result.exit_code == 0
        assert "1001" in result.output
        assert "Hello" in result.output

    def test_messages(self, runner: CliRunner) -> None:
        """Print a chat thread."""
        message = ChatMessage(id=1, chat_id=_CHAT_ID, author=_BUYER, text="Hi", date="14:04")
        mock = _mock_client(get_chat_messages=[message])
        with patch(f"{_ACCOUNT_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["messages", "1001"])

        assert result.exit_code == 0
        assert "[14:04] buyer_one: Hi" in result.output
        mock.get_chat_messages.assert_awaited_once_with(_CHAT_ID)


class TestActionCommands:
    """Test suite for the one-shot action commands."""

    @pytest.mark.parametrize(
        ("args", "method_name", "expected_args", "expected_kwargs"),
        [
            (["accept", "#AAA"], "accept_order", ("#AAA",), {}),
            (["cancel", "#AAA", "--reason", "sold out"], "cancel_order", ("#AAA", "sold out"), {}),
            (["deliver", "#AAA"], "mark_as_delivered", ("#AAA",), {}),
            (["send", "#AAA", "thanks!"], "send_message", ("#AAA", "thanks!"), {}),
            (
                ["offer-price", "77", "12.50"],
                "change_offer_price",
                (_OFFER_ID, Decimal("12.50")),
                {},
            ),
            (
                ["offer-toggle", "77", "--off"],
                "change_offer_availability",
                (_OFFER_ID,),
                {"available": False},
            ),
        ],
    )
    def test_action_accepted(
        self,
        runner: CliRunner,
        args: list[str],
        method_name: str,
        expected_args: tuple[Any, ...],
        expected_kwargs: dict[str, Any],
    ) -> None:
        """Call the matching client method and report success."""
        mock = _mock_client(**{method_name: True})
        with patch(f"{_ACTIONS_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, args)

        assert result.exit_code == 0
        assert "Done:" in result.output
        getattr(mock, method_name).assert_awaited_once_with(*expected_args, **expected_kwargs)

    def test_action_rejected_exits_non_zero(self, runner: CliRunner) -> None:
        """Exit with code 1 when the site rejects the action."""
        mock = _mock_client(accept_order=False)
        with patch(f"{_ACTIONS_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["accept", "#AAA"])

        assert result.exit_code == 1
        assert "Rejected" in result.output

    def test_action_transport_error_exits_non_zero(self, runner: CliRunner) -> None:
        """Exit with code 1 when the site is unreachable."""
        mock = _mock_client()
        mock.mark_as_delivered = AsyncMock(side_effect=FunPayTransportError("timed out"))
        with patch(f"{_ACTIONS_CMD}.build_client", return_value=mock):
            result = runner.invoke(app, ["deliver", "#AAA"])

        assert result.exit_code == 1
        assert "[network] timed out" in result.output

    def test_invalid_price(self, runner: CliRunner) -> None:
        """Reject a price that is not a number before contacting the site."""
        with patch(f"{_ACTIONS_CMD}.build_client") as mock_build:
            result = runner.invoke(app, ["offer-price", "77", "cheap"])

        assert result.exit_code == 1
        mock_build.assert_not_called()

    def test_empty_message(self, runner: CliRunner) -> None:
        """Reject an empty message before contacting the site."""
        with patch(f"{_ACTIONS_CMD}.build_client") as mock_build:
            result = runner.invoke(app, ["send", "#AAA", "   "])

        assert result.exit_code == 1
        mock_build.assert_not_called()


class TestWatchCommand:
    """Test suite for the watch command."""

    def test_watch_builds_config_and_runs(self, runner: CliRunner) -> None:
        """Apply option overrides on top of settings and run the watcher."""
        mock = _mock_client()
        watcher = MagicMock()
        watcher.run = AsyncMock()
        with (
            patch(f"{_WATCH_CMD}.build_client", return_value=mock),
            patch(f"{_WATCH_CMD}.AccountWatcher", return_value=watcher) as mock_watcher_cls,
        ):
            result = runner.invoke(
                app,
                ["watch", "--interval", "5", "--max-orders", "3", "--concurrent"],
            )

        assert result.exit_code == 0
        assert "Watching https://funpay.test every 5s" in result.output
        source, config = mock_watcher_cls.call_args.args
        assert source is mock
        assert isinstance(config, WatcherConfig)
        assert config.poll_interval_seconds == pytest.approx(_WATCH_INTERVAL)
        assert config.max_orders == _WATCH_MAX_ORDERS
        assert config.concurrent_fetch is True
        assert config.base_url == _BASE_URL
        watcher.subscribe_all.assert_called_once()
        watcher.run.assert_awaited_once()
        mock.__aexit__.assert_awaited_once()

    def test_watch_uses_settings_defaults(self, runner: CliRunner) -> None:
        """Use the watcher settings section when no options are given."""
        watcher = MagicMock()
        watcher.run = AsyncMock()
        with (
            patch(f"{_WATCH_CMD}.build_client", return_value=_mock_client()),
            patch(f"{_WATCH_CMD}.AccountWatcher", return_value=watcher) as mock_watcher_cls,
        ):
            result = runner.invoke(app, ["watch"])

        assert result.exit_code == 0
        config = mock_watcher_cls.call_args.args[1]
        assert config.poll_interval_seconds == pytest.approx(_DEFAULT_INTERVAL)
        assert config.concurrent_fetch is False

    def test_watch_timeout_reaches_client(self, runner: CliRunner) -> None:
        """Apply --timeout to both the HTTP client and the per-page bound."""
        watcher = MagicMock()
        watcher.run = AsyncMock()
        with (
            patch(f"{_WATCH_CMD}.build_client", return_value=_mock_client()) as mock_build,
            patch(f"{_WATCH_CMD}.AccountWatcher", return_value=watcher) as mock_watcher_cls,
        ):
            result = runner.invoke(app, ["watch", "--timeout", "2.5"])

        assert result.exit_code == 0
        mock_build.assert_called_once_with(timeout=_WATCH_TIMEOUT)
        config = mock_watcher_cls.call_args.args[1]
        assert config.fetch_timeout_seconds == pytest.approx(_WATCH_TIMEOUT)

    def test_watch_rejects_invalid_interval(self, runner: CliRunner) -> None:
        """Exit with code 1 for a non-positive interval."""
        with (
            patch(f"{_WATCH_CMD}.build_client", return_value=_mock_client()),
            patch(f"{_WATCH_CMD}.AccountWatcher") as mock_watcher_cls,
        ):
            result = runner.invoke(app, ["watch", "--interval", "0"])

        assert result.exit_code == 1
        mock_watcher_cls.assert_not_called()
