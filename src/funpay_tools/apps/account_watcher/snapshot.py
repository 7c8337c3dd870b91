"""In-memory store of the latest observed account state.

Hold the most recently seen orders, chats, and message markers keyed by id,
plus the scalar balance. Keys are only ever added or overwritten: an entry
that is missing from one fetch stays in place, because a page that failed to
list it says nothing about whether it still exists.

The store has a single writer (the diff engine, inside one active cycle) and
does no locking; the watcher guarantees one cycle at a time.
"""

from decimal import Decimal
from typing import Any

from funpay_tools.clients.funpay.models import Chat, Order, RecordKind

SENTINEL_BALANCE = Decimal(0)

_KEYED_KINDS = (RecordKind.ORDER, RecordKind.CHAT, RecordKind.MESSAGE)


class SnapshotStore:
    """Latest-known account state keyed per record kind.

    Orders are keyed by order id, chats by chat id, and messages by
    ``(chat_id, marker_id)`` (the message record itself is kept so late
    subscribers can inspect it). The balance starts at the zero sentinel, meaning "no
    balance observed yet".
    """

    def __init__(self) -> None:
        """Initialize an empty snapshot."""
        self._records: dict[RecordKind, dict[Any, Any]] = {kind: {} for kind in _KEYED_KINDS}
        self.balance: Decimal = SENTINEL_BALANCE

    def _collection(self, kind: RecordKind) -> dict[Any, Any]:
        try:
            return self._records[kind]
        except KeyError:
            msg = f"{kind} records are not keyed in the snapshot"
            raise ValueError(msg) from None

    def get(self, kind: RecordKind, key: Any) -> Any | None:
        """Return the stored record for ``key``, or ``None``."""
        return self._collection(kind).get(key)

    def put(self, kind: RecordKind, key: Any, record: Any) -> None:
        """Store ``record`` under ``key``, replacing any previous record."""
        self._collection(kind)[key] = record

    def keys(self, kind: RecordKind) -> set[Any]:
        """Return the set of stored keys for ``kind``."""
        return set(self._collection(kind))

    def values(self, kind: RecordKind) -> list[Any]:
        """Return stored records for ``kind`` in first-seen order."""
        return list(self._collection(kind).values())

    def __contains__(self, item: tuple[RecordKind, Any]) -> bool:
        """Return whether ``(kind, key)`` is stored."""
        kind, key = item
        return key in self._collection(kind)

    @property
    def orders(self) -> list[Order]:
        """Return stored orders in first-seen order."""
        return self.values(RecordKind.ORDER)

    @property
    def chats(self) -> list[Chat]:
        """Return stored chats in first-seen order."""
        return self.values(RecordKind.CHAT)
