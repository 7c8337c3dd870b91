"""Turn FunPay HTML pages into typed records.

Every function here is pure and best-effort: a record whose required fields
cannot be read is skipped (logged at DEBUG) instead of failing the batch, and
``extract`` never raises. Selectors list both the current FunPay markup and
the older class names the site has used, so a partial redesign degrades to
fewer records rather than an error.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from funpay_tools.clients.funpay._constants import DEFAULT_AVATAR_PATH, DEFAULT_BASE_URL
from funpay_tools.clients.funpay._html import Node, parse_html
from funpay_tools.clients.funpay.models import (
    UNKNOWN_PROFILE_ID,
    Chat,
    ChatMessage,
    Order,
    Profile,
    RecordKind,
)

logger = logging.getLogger(__name__)

_ORDER_ROW = ".tc-item"
_ORDER_DATE = ".tc-date-time"
_ORDER_ID = ".tc-order"
_ORDER_BUYER = "span.pseudo-a[data-href], .media-user-name"
_ORDER_STATUS = ".tc-status"
_ORDER_PRICE = ".tc-price"
_ORDER_DESC = ".order-desc"

_CHAT_ITEM = ".contact-item, .chat, .chat-item, [data-chat-id]"
_CHAT_AUTHOR = ".media-user-name, .chat__name, .author"
_CHAT_PREVIEW = ".contact-item-message, .chat__msg, .last-message"
_CHAT_DATE = ".contact-item-time, .chat__date, .time"

_MESSAGE_ITEM = ".chat-msg-item, .message, .chat-message"
_MESSAGE_AUTHOR = ".chat-msg-author-link, .message__author, .author"
_MESSAGE_TEXT = ".chat-msg-text, .message__text, .text"
_MESSAGE_DATE = ".chat-msg-date, .message__time, .time"

_PROFILE_NAME_BLOCK = ".mb40"
_PROFILE_AVATAR = ".avatar-photo"
_PROFILE_RATING = ".rating-value"

_BALANCE_VALUE = ".balances-value"

_AMOUNT_RE = re.compile(r"(\d+)\s*шт", re.IGNORECASE)
_NUMBER_RE = re.compile(r"-?\d[\d\s]*(?:[.,]\d+)?")
_AVATAR_RE = re.compile(r"url\([\"']?(.*?)[\"']?\)", re.IGNORECASE)
_PROFILE_ID_RE = re.compile(r"(\d+)/?$")


def parse_decimal(text: str) -> Decimal | None:
    """Parse the first number in a rendered amount such as ``"1 250,50 ₽"``.

    Args:
        text: Text containing a number, possibly with thousands separators
            (spaces or non-breaking spaces), a comma decimal mark, and a
            currency sign.

    Returns:
        The parsed ``Decimal``, or ``None`` when no number is present.

    """
    match = _NUMBER_RE.search(text)
    if match is None:
        return None
    raw = re.sub(r"\s", "", match.group(0)).replace(",", ".")
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def profile_id_from_url(url: str) -> int:
    """Return the numeric user id at the end of a profile URL, or ``0``."""
    match = _PROFILE_ID_RE.search(url.strip())
    return int(match.group(1)) if match else UNKNOWN_PROFILE_ID


def _default_avatar(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{DEFAULT_AVATAR_PATH}"


def _link_profile(node: Node | None, base_url: str) -> Profile | None:
    """Build a partial ``Profile`` from a user link or name element.

    Read the profile URL from ``data-href`` or ``href`` (on the element or a
    nested anchor) and the display name from its text. Avatar and rating are
    not shown in lists, so they take their defaults.
    """
    if node is None:
        return None
    name = node.text()
    url = node.attr("data-href") or node.attr("href") or ""
    if not url:
        link = node.select_one("[data-href], a[href]")
        if link is not None:
            url = link.attr("data-href") or link.attr("href") or ""
    if not name and not url:
        return None
    return Profile(
        id=profile_id_from_url(url),
        name=name,
        avatar_url=_default_avatar(base_url),
        rating=0.0,
        url=url,
    )


def _first_text(node: Node, selector: str) -> str:
    found = node.select_one(selector)
    return found.text() if found is not None else ""


def _int_attr(node: Node, *names: str) -> int | None:
    for name in names:
        value = node.attr(name)
        if value is None:
            continue
        try:
            return int(value)
        except ValueError:
            continue
    return None


def extract_profile(document: str, url: str, base_url: str = DEFAULT_BASE_URL) -> Profile:
    """Extract a full ``Profile`` from a user's profile page.

    Args:
        document: HTML of ``/users/<id>/``.
        url: The profile URL the page was fetched from.
        base_url: Site root used to build the default avatar URL.

    Returns:
        The profile. Missing fields fall back to an empty name, the site's
        default avatar, and a zero rating.

    """
    root = parse_html(document)
    name = ""
    name_block = root.select_one(_PROFILE_NAME_BLOCK)
    if name_block is not None and name_block.elements:
        name = name_block.elements[0].text()

    avatar_url = _default_avatar(base_url)
    avatar = root.select_one(_PROFILE_AVATAR)
    if avatar is not None:
        match = _AVATAR_RE.search(avatar.attr("style", "") or "")
        if match and match.group(1):
            avatar_url = match.group(1)

    rating_value = parse_decimal(_first_text(root, _PROFILE_RATING))
    rating = float(rating_value) if rating_value is not None else 0.0

    return Profile(
        id=profile_id_from_url(url),
        name=name,
        avatar_url=avatar_url,
        rating=rating,
        url=url,
    )


def extract_orders(document: str, base_url: str = DEFAULT_BASE_URL) -> list[Order]:
    """Extract sale orders from the trade page, in page order.

    Rows without an order id or a readable price are skipped. The quantity
    is read from the ``"<n> шт"`` marker in the description and defaults
    to 1.

    Args:
        document: HTML of ``/orders/trade``.
        base_url: Site root used for buyer avatar defaults.

    Returns:
        Orders in the order they appear on the page.

    """
    orders: list[Order] = []
    for row in parse_html(document).select(_ORDER_ROW):
        order_id = _first_text(row, _ORDER_ID)
        price = parse_decimal(_first_text(row, _ORDER_PRICE))
        if not order_id or price is None or price < 0:
            logger.debug("Skipping order row without id or price: %r", row.text()[:100])
            continue

        amount = 1
        desc = row.select_one(_ORDER_DESC)
        if desc is not None:
            desc_text = desc.elements[0].text() if desc.elements else desc.text()
            match = _AMOUNT_RE.search(desc_text)
            if match and int(match.group(1)) > 0:
                amount = int(match.group(1))

        buyer = _link_profile(row.select_one(_ORDER_BUYER), base_url) or Profile(
            id=UNKNOWN_PROFILE_ID,
            name="",
            avatar_url=_default_avatar(base_url),
            rating=0.0,
            url="",
        )
        orders.append(
            Order(
                id=order_id,
                date=_first_text(row, _ORDER_DATE),
                buyer=buyer,
                status=_first_text(row, _ORDER_STATUS),
                price=price,
                amount=amount,
            )
        )
    return orders


def extract_chats(document: str, base_url: str = DEFAULT_BASE_URL) -> list[Chat]:
    """Extract chat-list entries, in page order.

    The chat id is read from ``data-id`` or ``data-chat-id``; entries without
    a numeric id are skipped. Nested matches (an item inside another item)
    are reported once, for the outermost element.

    Args:
        document: HTML of the chat list page.
        base_url: Site root used for author avatar defaults.

    Returns:
        Chats in the order they appear on the page.

    """
    chats: list[Chat] = []
    seen: set[int] = set()
    for item in parse_html(document).select(_CHAT_ITEM):
        chat_id = _int_attr(item, "data-id", "data-chat-id")
        if not chat_id:
            logger.debug("Skipping chat entry without id: %r", item.text()[:100])
            continue
        if chat_id in seen:
            continue
        seen.add(chat_id)
        chats.append(
            Chat(
                id=chat_id,
                author=_link_profile(item.select_one(_CHAT_AUTHOR), base_url),
                date=_first_text(item, _CHAT_DATE),
                last_message_id=_int_attr(item, "data-node-msg"),
                last_message_text=_first_text(item, _CHAT_PREVIEW),
            )
        )
    return chats


def extract_messages(
    document: str,
    chat_id: int = 0,
    base_url: str = DEFAULT_BASE_URL,
) -> list[ChatMessage]:
    """Extract the messages of a single chat thread, oldest first.

    Messages without a numeric ``data-id`` are skipped.

    Args:
        document: HTML of the chat thread page.
        chat_id: Identifier of the chat the page belongs to.
        base_url: Site root used for author avatar defaults.

    Returns:
        Messages in page order.

    """
    messages: list[ChatMessage] = []
    for item in parse_html(document).select(_MESSAGE_ITEM):
        message_id = _int_attr(item, "data-id")
        if not message_id:
            logger.debug("Skipping message without id: %r", item.text()[:100])
            continue
        messages.append(
            ChatMessage(
                id=message_id,
                chat_id=chat_id,
                author=_link_profile(item.select_one(_MESSAGE_AUTHOR), base_url),
                text=_first_text(item, _MESSAGE_TEXT),
                date=_first_text(item, _MESSAGE_DATE),
            )
        )
    return messages


def extract_balances(document: str) -> list[Decimal]:
    """Extract the account balance from the balance page.

    Returns:
        A one-element list with the first readable balance, or an empty
        list when the page shows none.

    """
    for node in parse_html(document).select(_BALANCE_VALUE):
        value = parse_decimal(node.text())
        if value is not None:
            return [value]
    logger.debug("No balance value found on page")
    return []


def extract(
    document: str,
    kind: RecordKind,
    *,
    base_url: str = DEFAULT_BASE_URL,
    source_url: str = "",
    chat_id: int = 0,
) -> list[Any]:
    """Extract records of ``kind`` from a raw document.

    Dispatch to the kind-specific extractor. Never raises: an unexpected
    parsing failure is logged and yields an empty list.

    Args:
        document: Raw HTML.
        kind: Record kind to read.
        base_url: Site root used for default avatar URLs.
        source_url: URL the document came from (profile pages only).
        chat_id: Owning chat id (message pages only).

    Returns:
        The extracted records, possibly empty.

    """
    try:
        if kind is RecordKind.ORDER:
            return extract_orders(document, base_url)
        if kind is RecordKind.CHAT:
            return extract_chats(document, base_url)
        if kind is RecordKind.MESSAGE:
            return extract_messages(document, chat_id, base_url)
        if kind is RecordKind.BALANCE:
            return extract_balances(document)
        if kind is RecordKind.PROFILE:
            return [extract_profile(document, source_url, base_url)]
    except Exception:  # noqa: BLE001
        logger.warning("Extraction of %s records failed", kind, exc_info=True)
        return []
    return []
