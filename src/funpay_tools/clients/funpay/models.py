"""Typed data models for FunPay account data.

Provide frozen dataclasses that insulate the rest of the codebase from the
raw HTML served by the FunPay site. All monetary values use ``Decimal`` for
precision. Timestamps are kept as the opaque strings the site renders
(e.g. ``"12 March, 14:05"``); nothing in the watcher compares them.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

UNKNOWN_PROFILE_ID = 0


class RecordKind(StrEnum):
    """Kind of structured record the extractor can produce."""

    PROFILE = "profile"
    ORDER = "order"
    CHAT = "chat"
    MESSAGE = "message"
    BALANCE = "balance"


class Resource(StrEnum):
    """Logical FunPay resource fetched by the data source.

    Each resource maps to one page on the site and to the record kind the
    extractor reads from that page.
    """

    BALANCE = "balance"
    ORDERS = "orders"
    CHATS = "chats"
    CHAT_THREAD = "chat_thread"
    PROFILE = "profile"

    @property
    def record_kind(self) -> RecordKind:
        """Return the record kind extracted from this resource's page."""
        return _RESOURCE_RECORDS[self]


_RESOURCE_RECORDS: dict[Resource, RecordKind] = {
    Resource.BALANCE: RecordKind.BALANCE,
    Resource.ORDERS: RecordKind.ORDER,
    Resource.CHATS: RecordKind.CHAT,
    Resource.CHAT_THREAD: RecordKind.MESSAGE,
    Resource.PROFILE: RecordKind.PROFILE,
}


@dataclass(frozen=True)
class Profile:
    """Public profile of a FunPay user.

    Args:
        id: Numeric user identifier, ``0`` when the markup carried no user link.
        name: Display name.
        avatar_url: Absolute URL of the avatar image.
        rating: Reputation score, ``0.0`` when the user has none.
        url: Canonical profile URL.

    """

    id: int
    name: str
    avatar_url: str
    rating: float
    url: str


@dataclass(frozen=True)
class Order:
    """A sale order as listed on the seller's trade page.

    The status is an opaque token owned by the site (e.g. ``"Paid"``,
    ``"Closed"``, ``"Refund"``); new statuses must flow through untouched.

    Args:
        id: Order identifier, unique per account (e.g. ``"#ABCD1234"``).
        date: Creation time as rendered by the site.
        buyer: Profile of the buyer.
        status: Status token.
        price: Unit price, non-negative.
        amount: Quantity, 1 when the description carries none.

    Raises:
        ValueError: If the price is negative or the amount is not positive.

    """

    id: str
    date: str
    buyer: Profile
    status: str
    price: Decimal
    amount: int = 1

    def __post_init__(self) -> None:
        """Validate price and amount."""
        if self.price < 0:
            msg = f"price must be non-negative, got {self.price}"
            raise ValueError(msg)
        if self.amount < 1:
            msg = f"amount must be positive, got {self.amount}"
            raise ValueError(msg)


@dataclass(frozen=True)
class ChatMessage:
    """A single message, related to its chat by id only.

    Args:
        id: Message identifier. For chat-list previews that expose no
            message id, the chat id stands in as the marker.
        chat_id: Identifier of the owning chat.
        author: Author profile, ``None`` for system or unknown authors.
        text: Message body.
        date: Send time as rendered by the site.

    """

    id: int
    chat_id: int
    author: Profile | None
    text: str
    date: str


@dataclass(frozen=True)
class Chat:
    """A conversation entry from the chat list.

    Args:
        id: Chat identifier.
        author: Counterpart profile, ``None`` for system or unknown chats.
        date: Last activity time as rendered by the site.
        last_message_id: Identifier of the latest message, when the list
            exposes it.
        last_message_text: Preview of the latest message.

    """

    id: int
    author: Profile | None
    date: str
    last_message_id: int | None = None
    last_message_text: str = ""

    @property
    def message_marker(self) -> int:
        """Return the marker identifying the latest message in this chat."""
        return self.last_message_id if self.last_message_id is not None else self.id

    def latest_message(self) -> ChatMessage:
        """Build the latest message of this chat from the list preview."""
        return ChatMessage(
            id=self.message_marker,
            chat_id=self.id,
            author=self.author,
            text=self.last_message_text,
            date=self.date,
        )
