"""Account watcher: poll a FunPay account and publish what changed.

Fetch the balance page, trade page, and chat list on a fixed interval, diff
each against the latest snapshot, and broadcast ``NewOrder``,
``OrderStatusChanged``, ``NewMessage``, ``BalanceChanged`` and ``EngineError``
events to subscribers.
"""

from funpay_tools.apps.account_watcher.config import WatcherConfig
from funpay_tools.apps.account_watcher.models import (
    BalanceChanged,
    EngineError,
    NewMessage,
    NewOrder,
    OrderStatusChanged,
    WatcherEvent,
    WatcherState,
)
from funpay_tools.apps.account_watcher.publisher import EventPublisher
from funpay_tools.apps.account_watcher.watcher import AccountWatcher

__all__ = [
    "AccountWatcher",
    "BalanceChanged",
    "EngineError",
    "EventPublisher",
    "NewMessage",
    "NewOrder",
    "OrderStatusChanged",
    "WatcherConfig",
    "WatcherEvent",
    "WatcherState",
]
