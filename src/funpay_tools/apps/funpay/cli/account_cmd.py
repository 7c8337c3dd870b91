"""CLI commands for reading FunPay account state.

Provide ``orders``, ``balance``, ``chats`` and ``messages`` commands that
fetch one page each and print it as a plain table.
"""

import asyncio
from typing import Annotated

import typer

from funpay_tools.apps.funpay.cli._helpers import (
    build_client,
    configure_logging,
    format_order,
    profile_label,
)
from funpay_tools.clients.funpay.exceptions import FunPayError


def orders(
    limit: Annotated[int, typer.Option(help="Number of orders to show")] = 10,
    resolve_buyers: Annotated[  # noqa: FBT002
        bool,
        typer.Option("--resolve-buyers/--no-resolve-buyers", help="Fetch each buyer's profile"),
    ] = False,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """List the most recent orders from the trade page."""
    configure_logging(verbose=verbose)
    asyncio.run(_orders(limit, resolve_buyers=resolve_buyers))


async def _orders(limit: int, *, resolve_buyers: bool) -> None:
    client = build_client()
    try:
        async with client:
            result = await client.get_orders(0, limit, resolve_buyers=resolve_buyers)
    except FunPayError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not result:
        typer.echo("No orders.")
        return

    typer.echo(f"{'Order':<14} {'Status':<12} {'Price':>10} {'Qty':<5} {'Buyer':<20} Date")
    typer.echo("-" * 80)
    for order in result:
        typer.echo(format_order(order))


def balance(
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Show the account balance."""
    configure_logging(verbose=verbose)
    asyncio.run(_balance())


async def _balance() -> None:
    client = build_client()
    try:
        async with client:
            amount = await client.get_balance()
    except FunPayError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if amount is None:
        typer.echo("Balance not shown on the page.")
        return
    typer.echo(f"Balance: {amount}")


def chats(
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """List chats with their latest message."""
    configure_logging(verbose=verbose)
    asyncio.run(_chats())


async def _chats() -> None:
    client = build_client()
    try:
        async with client:
            result = await client.get_chats()
    except FunPayError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not result:
        typer.echo("No chats.")
        return

    for chat in result:
        typer.echo(
            f"{chat.id:<12} {profile_label(chat.author):<20} {chat.date:<12} "
            f"{chat.last_message_text}"
        )


def messages(
    chat_id: Annotated[int, typer.Argument(help="Chat (node) id")],
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Show the messages of one chat thread."""
    configure_logging(verbose=verbose)
    asyncio.run(_messages(chat_id))


async def _messages(chat_id: int) -> None:
    client = build_client()
    try:
        async with client:
            result = await client.get_chat_messages(chat_id)
    except FunPayError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not result:
        typer.echo("No messages.")
        return

    for message in result:
        typer.echo(f"[{message.date}] {profile_label(message.author)}: {message.text}")
