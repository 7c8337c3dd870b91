"""Compare freshly fetched batches with the snapshot and derive change events.

The diff engine is the only writer of the ``SnapshotStore``. For each
resource kind it looks up every new record, decides which event (if any) it
implies, and then overwrites the stored record with the new observation.
It never interprets absence as deletion: a record missing from a batch is
left untouched and produces no event. End states such as completion or
refund arrive from the site as status changes.
"""

from collections.abc import Iterable
from decimal import Decimal

from funpay_tools.apps.account_watcher.models import (
    BalanceChanged,
    NewMessage,
    NewOrder,
    OrderStatusChanged,
    WatcherEvent,
)
from funpay_tools.apps.account_watcher.snapshot import SENTINEL_BALANCE, SnapshotStore
from funpay_tools.clients.funpay.models import Chat, ChatMessage, Order, RecordKind


def message_key(message: ChatMessage) -> tuple[int, int]:
    """Return the snapshot key of a message marker: ``(chat_id, message_id)``."""
    return (message.chat_id, message.id)


class DiffEngine:
    """Derive change events from new batches and keep the snapshot current.

    Args:
        snapshot: The store this engine owns and mutates.

    """

    def __init__(self, snapshot: SnapshotStore) -> None:
        """Initialize the engine over ``snapshot``."""
        self._snapshot = snapshot

    @property
    def snapshot(self) -> SnapshotStore:
        """Return the snapshot this engine maintains."""
        return self._snapshot

    # ------------------------------------------------------------------
    # Bootstrap seeding (write-only, no events)
    # ------------------------------------------------------------------

    def seed_balance(self, balance: Decimal) -> None:
        """Store the balance without comparing."""
        self._snapshot.balance = balance

    def seed_orders(self, orders: Iterable[Order]) -> None:
        """Store orders without comparing."""
        for order in orders:
            self._snapshot.put(RecordKind.ORDER, order.id, order)

    def seed_chats(self, chats: Iterable[Chat]) -> None:
        """Store chats and mark their latest messages as seen."""
        for chat in chats:
            self._snapshot.put(RecordKind.CHAT, chat.id, chat)
            message = chat.latest_message()
            self._snapshot.put(RecordKind.MESSAGE, message_key(message), message)

    # ------------------------------------------------------------------
    # Steady-state diffs
    # ------------------------------------------------------------------

    def diff_balance(self, balance: Decimal) -> list[WatcherEvent]:
        """Compare a new balance with the stored one.

        A stored zero is the "nothing observed yet" sentinel and never
        yields an event. The stored value is always overwritten, so the
        sentinel heals as soon as a real balance is read.

        Args:
            balance: Newly observed balance.

        Returns:
            ``[BalanceChanged]`` or an empty list.

        """
        old = self._snapshot.balance
        events: list[WatcherEvent] = []
        if old != SENTINEL_BALANCE and balance != old:
            events.append(BalanceChanged(old=old, new=balance))
        self._snapshot.balance = balance
        return events

    def diff_orders(self, orders: Iterable[Order]) -> list[WatcherEvent]:
        """Compare a batch of orders with the stored ones.

        An unknown id yields ``NewOrder``; a known id whose status token
        differs yields ``OrderStatusChanged``. Every order is then stored
        (last write wins), so price or buyer updates are captured silently.

        Args:
            orders: Newly observed orders, in page order.

        Returns:
            Events in the order of the batch.

        """
        events: list[WatcherEvent] = []
        for order in orders:
            previous: Order | None = self._snapshot.get(RecordKind.ORDER, order.id)
            if previous is None:
                events.append(NewOrder(order=order))
            elif previous.status != order.status:
                events.append(OrderStatusChanged(old=previous, new=order))
            self._snapshot.put(RecordKind.ORDER, order.id, order)
        return events

    def diff_messages(self, messages: Iterable[ChatMessage]) -> list[WatcherEvent]:
        """Emit ``NewMessage`` for each message marker not seen before.

        Messages are append-only: a marker already in the snapshot is never
        reported again, even if its text differs. Markers are scoped to their
        chat, so a chat whose id stands in for a message id never hides a
        real message of another chat.

        Args:
            messages: Newly observed messages, in page order.

        Returns:
            Events in the order of the batch.

        """
        events: list[WatcherEvent] = []
        for message in messages:
            key = message_key(message)
            if (RecordKind.MESSAGE, key) in self._snapshot:
                continue
            self._snapshot.put(RecordKind.MESSAGE, key, message)
            events.append(NewMessage(message=message))
        return events

    def diff_chats(self, chats: Iterable[Chat]) -> list[WatcherEvent]:
        """Store the chat list and report the latest message of each chat.

        Args:
            chats: Newly observed chat-list entries, in page order.

        Returns:
            ``NewMessage`` events for chats whose latest message marker is new.

        """
        chat_list = list(chats)
        for chat in chat_list:
            self._snapshot.put(RecordKind.CHAT, chat.id, chat)
        return self.diff_messages(chat.latest_message() for chat in chat_list)
