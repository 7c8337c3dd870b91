"""CLI command for running the FunPay account watcher.

Poll the account on a fixed interval and print one line per change event
(new orders, order status changes, new chat messages, balance changes)
until interrupted with Ctrl-C.
"""

import asyncio
import dataclasses
from typing import Annotated, Any

import typer

from funpay_tools.apps.account_watcher.config import WatcherConfig
from funpay_tools.apps.account_watcher.models import WatcherEvent
from funpay_tools.apps.account_watcher.watcher import AccountWatcher
from funpay_tools.apps.funpay.cli._helpers import build_client, configure_logging, format_event
from funpay_tools.clients.funpay.client import FunPayClient
from funpay_tools.core.config import get_config


def watch(
    interval: Annotated[
        float | None, typer.Option(help="Seconds between polling cycles (default from settings)")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option(help="Per-page fetch timeout in seconds")
    ] = None,
    max_orders: Annotated[
        int | None, typer.Option(help="Orders read from the top of the trade page")
    ] = None,
    concurrent: Annotated[  # noqa: FBT002
        bool, typer.Option("--concurrent", help="Fetch balance, orders and chats concurrently")
    ] = False,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Watch a FunPay account and print change events.

    The first cycle records the current state silently; only changes seen
    afterwards are printed. Stop with Ctrl-C.
    """
    configure_logging(verbose=verbose)
    client = build_client(timeout=timeout)

    try:
        config = WatcherConfig.from_mapping(
            get_config().get_watcher_config(), base_url=client.base_url
        )
        overrides: dict[str, Any] = {}
        if interval is not None:
            overrides["poll_interval_seconds"] = interval
        if timeout is not None:
            overrides["fetch_timeout_seconds"] = timeout
        if max_orders is not None:
            overrides["max_orders"] = max_orders
        if concurrent:
            overrides["concurrent_fetch"] = True
        config = dataclasses.replace(config, **overrides)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"Watching {config.base_url} every {config.poll_interval_seconds:g}s (Ctrl-C to stop)"
    )
    asyncio.run(_watch(client, config))


async def _watch(client: FunPayClient, config: WatcherConfig) -> None:
    """Run the watcher in the foreground, echoing every event."""

    def _echo(event: WatcherEvent) -> None:
        typer.echo(format_event(event))

    async with client:
        watcher = AccountWatcher(client, config)
        watcher.subscribe_all(_echo)
        await watcher.run()
