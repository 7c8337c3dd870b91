"""CLI subpackage for the FunPay seller app.

Create the Typer application and register all command modules.
"""

import typer

from funpay_tools.apps.funpay.cli.account_cmd import balance, chats, messages, orders
from funpay_tools.apps.funpay.cli.actions_cmd import (
    accept,
    cancel,
    deliver,
    offer_price,
    offer_toggle,
    send,
)
from funpay_tools.apps.funpay.cli.watch_cmd import watch

app = typer.Typer(help="FunPay seller account tools")

app.command()(watch)
app.command()(orders)
app.command()(balance)
app.command()(chats)
app.command()(messages)
app.command()(accept)
app.command()(cancel)
app.command()(deliver)
app.command()(send)
app.command(name="offer-price")(offer_price)
app.command(name="offer-toggle")(offer_toggle)

__all__ = ["app"]
