"""Shared helpers for FunPay CLI commands.

Centralise logging setup, client construction from settings, and the
one-line rendering of watcher events and records used by several command
modules.
"""

import logging

import typer

from funpay_tools.apps.account_watcher.models import (
    BalanceChanged,
    EngineError,
    NewMessage,
    NewOrder,
    OrderStatusChanged,
    WatcherEvent,
)
from funpay_tools.clients.funpay.client import FunPayClient
from funpay_tools.clients.funpay.models import Order, Profile


def configure_logging(*, verbose: bool = False) -> None:
    """Configure root logging for CLI commands.

    Args:
        verbose: Log at DEBUG instead of INFO.

    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_client(timeout: float | None = None) -> FunPayClient:
    """Build a FunPayClient from settings, requiring a session cookie.

    Args:
        timeout: Per-request timeout override in seconds.

    Returns:
        Client authenticated with the configured ``golden_key``.

    """
    client = FunPayClient.from_config(timeout=timeout)
    if not client.is_authenticated:
        typer.echo("Error: FUNPAY_GOLDEN_KEY environment variable is required.", err=True)
        raise typer.Exit(code=1)
    return client


def profile_label(profile: Profile | None) -> str:
    """Return a short label for a profile, ``"system"`` when absent."""
    if profile is None:
        return "system"
    return profile.name or (f"user {profile.id}" if profile.id else "unknown")


def format_order(order: Order) -> str:
    """Render an order as a single table row."""
    return (
        f"{order.id:<14} {order.status:<12} {order.price:>10} x{order.amount:<4} "
        f"{profile_label(order.buyer):<20} {order.date}"
    )


def format_event(event: WatcherEvent) -> str:
    """Render a watcher event as a single human-readable line.

    Args:
        event: Any watcher event.

    Returns:
        One-line description.

    """
    if isinstance(event, NewOrder):
        return f"[new order] {format_order(event.order)}"
    if isinstance(event, OrderStatusChanged):
        return f"[order status] {event.new.id}: {event.old_status} -> {event.new_status}"
    if isinstance(event, NewMessage):
        message = event.message
        return f"[message] chat {message.chat_id} {profile_label(message.author)}: {message.text}"
    if isinstance(event, BalanceChanged):
        return f"[balance] {event.old} -> {event.new} ({event.delta:+})"
    if isinstance(event, EngineError):
        return f"[error] {event.resource}: {event.error}"
    return repr(event)
