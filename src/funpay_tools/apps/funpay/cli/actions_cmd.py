"""CLI commands for one-shot FunPay actions.

Each command posts a single form (accept, cancel or deliver an order, send a
message, update or toggle an offer) and exits non-zero when the site rejects
it or cannot be reached.
"""

import asyncio
from collections.abc import Awaitable, Callable
from decimal import Decimal, InvalidOperation
from typing import Annotated

import typer

from funpay_tools.apps.funpay.cli._helpers import build_client, configure_logging
from funpay_tools.clients.funpay.client import FunPayClient
from funpay_tools.clients.funpay.exceptions import FunPayError

type _ActionCall = Callable[[FunPayClient], Awaitable[bool]]


async def _submit(call: _ActionCall, description: str) -> None:
    """Run one action against a fresh client and report the outcome."""
    client = build_client()
    try:
        async with client:
            accepted = await call(client)
    except FunPayError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not accepted:
        typer.echo(f"Rejected: {description}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Done: {description}")


def accept(
    order_id: Annotated[str, typer.Argument(help="Order id, with or without '#'")],
) -> None:
    """Accept (confirm) an order."""
    configure_logging()
    asyncio.run(_submit(lambda c: c.accept_order(order_id), f"accepted order {order_id}"))


def cancel(
    order_id: Annotated[str, typer.Argument(help="Order id, with or without '#'")],
    reason: Annotated[str, typer.Option(help="Reason shown to the buyer")] = "cancel",
) -> None:
    """Cancel an order and refund the buyer."""
    configure_logging()
    asyncio.run(
        _submit(lambda c: c.cancel_order(order_id, reason), f"cancelled order {order_id}")
    )


def deliver(
    order_id: Annotated[str, typer.Argument(help="Order id, with or without '#'")],
) -> None:
    """Mark an order as delivered."""
    configure_logging()
    asyncio.run(
        _submit(lambda c: c.mark_as_delivered(order_id), f"delivered order {order_id}")
    )


def send(
    order_id: Annotated[str, typer.Argument(help="Order whose chat receives the message")],
    text: Annotated[str, typer.Argument(help="Message text")],
) -> None:
    """Send a chat message to an order's buyer."""
    if not text.strip():
        typer.echo("Error: message text must not be empty", err=True)
        raise typer.Exit(code=1)
    configure_logging()
    asyncio.run(_submit(lambda c: c.send_message(order_id, text), f"message sent to {order_id}"))


def offer_price(
    offer_id: Annotated[int, typer.Argument(help="Offer id")],
    price: Annotated[str, typer.Argument(help="New price")],
) -> None:
    """Change the price of an offer."""
    try:
        new_price = Decimal(price)
    except InvalidOperation as exc:
        typer.echo(f"Error: invalid price {price!r}", err=True)
        raise typer.Exit(code=1) from exc
    if new_price < 0:
        typer.echo("Error: price must not be negative", err=True)
        raise typer.Exit(code=1)

    configure_logging()
    asyncio.run(
        _submit(
            lambda c: c.change_offer_price(offer_id, new_price),
            f"offer {offer_id} price set to {new_price}",
        )
    )


def offer_toggle(
    offer_id: Annotated[int, typer.Argument(help="Offer id")],
    available: Annotated[  # noqa: FBT002
        bool, typer.Option("--on/--off", help="Show or hide the offer")
    ] = True,
) -> None:
    """Show or hide an offer."""
    configure_logging()
    state = "shown" if available else "hidden"
    asyncio.run(
        _submit(
            lambda c: c.change_offer_availability(offer_id, available=available),
            f"offer {offer_id} {state}",
        )
    )
