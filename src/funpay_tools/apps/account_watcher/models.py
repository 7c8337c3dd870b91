"""Change events published by the account watcher.

Each event is an immutable value object describing one observed change in
the account. Subscribers register per event type; ``WatcherEvent`` is the
common base so a subscriber can also receive everything.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from funpay_tools.clients.funpay.models import ChatMessage, Order, Resource


class WatcherState(StrEnum):
    """Lifecycle state of the polling loop."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class WatcherEvent:
    """Base class for all watcher events."""


@dataclass(frozen=True)
class BalanceChanged(WatcherEvent):
    """The account balance moved between two observations.

    Args:
        old: Previously observed balance.
        new: Newly observed balance.

    """

    old: Decimal
    new: Decimal

    @property
    def delta(self) -> Decimal:
        """Return the signed change in balance."""
        return self.new - self.old


@dataclass(frozen=True)
class NewOrder(WatcherEvent):
    """An order id was seen for the first time."""

    order: Order


@dataclass(frozen=True)
class OrderStatusChanged(WatcherEvent):
    """A known order's status token changed.

    Args:
        old: The order as previously observed.
        new: The order as just observed.

    """

    old: Order
    new: Order

    @property
    def old_status(self) -> str:
        """Return the previous status token."""
        return self.old.status

    @property
    def new_status(self) -> str:
        """Return the new status token."""
        return self.new.status


@dataclass(frozen=True)
class NewMessage(WatcherEvent):
    """A message marker was seen for the first time."""

    message: ChatMessage


@dataclass(frozen=True)
class EngineError(WatcherEvent):
    """Fetching or extracting one resource failed during a cycle.

    The remaining resources of the cycle are still processed and the
    resource is retried on the next cycle.

    Args:
        resource: The resource that failed.
        error: The underlying exception.

    """

    resource: Resource
    error: Exception
