"""Async HTTP client for the FunPay marketplace website.

FunPay has no public API: account state is read from the HTML pages a logged
in seller sees, and actions are plain form posts. This client is the data
source and mutation gateway for the rest of the package. It authenticates
with the ``golden_key`` session cookie, retrieves one logical page per call
(orders, chats, balance, a chat thread, or a user profile), and posts
one-shot actions. It holds no state between calls.
"""

import asyncio
import dataclasses
import logging
from decimal import Decimal
from enum import StrEnum
from typing import Any

import httpx

from funpay_tools.clients.funpay import _constants as const
from funpay_tools.clients.funpay.exceptions import FunPayError, FunPayTransportError
from funpay_tools.clients.funpay.extractor import (
    extract_balances,
    extract_chats,
    extract_messages,
    extract_orders,
    extract_profile,
    profile_id_from_url,
)
from funpay_tools.clients.funpay.models import Chat, ChatMessage, Order, Profile, Resource
from funpay_tools.core.config import get_config

logger = logging.getLogger(__name__)

_RESOURCE_PATHS: dict[Resource, str] = {
    Resource.BALANCE: const.BALANCE_PATH,
    Resource.ORDERS: const.ORDERS_PATH,
    Resource.CHATS: const.CHATS_PATH,
    Resource.CHAT_THREAD: const.CHAT_THREAD_PATH,
    Resource.PROFILE: const.PROFILE_PATH,
}


class Action(StrEnum):
    """State-changing request accepted by the mutation gateway."""

    ACCEPT_ORDER = "accept_order"
    CANCEL_ORDER = "cancel_order"
    DELIVER_ORDER = "deliver_order"
    SEND_MESSAGE = "send_message"
    UPDATE_OFFER_PRICE = "update_offer_price"
    TOGGLE_OFFER = "toggle_offer"


_ACTION_PATHS: dict[Action, str] = {
    Action.ACCEPT_ORDER: const.ACCEPT_ORDER_PATH,
    Action.CANCEL_ORDER: const.CANCEL_ORDER_PATH,
    Action.DELIVER_ORDER: const.DELIVER_ORDER_PATH,
    Action.SEND_MESSAGE: const.SEND_MESSAGE_PATH,
    Action.UPDATE_OFFER_PRICE: const.OFFER_UPDATE_PATH,
    Action.TOGGLE_OFFER: const.OFFER_TOGGLE_PATH,
}


def _order_form_id(order_id: str) -> str:
    """Return the order id as the site's forms expect it (no leading ``#``)."""
    return order_id.strip().lstrip("#")


class FunPayClient:
    """Async HTTP client for FunPay account pages and actions.

    Args:
        golden_key: Value of the ``golden_key`` session cookie.
        base_url: Site root, overridable for mirrors and tests.
        timeout: Per-request timeout in seconds.
        http_client: Pre-built ``httpx.AsyncClient``; created when omitted.

    """

    def __init__(
        self,
        golden_key: str = "",
        base_url: str = const.DEFAULT_BASE_URL,
        timeout: float = const.DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the FunPay client.

        Args:
            golden_key: Value of the ``golden_key`` session cookie.
            base_url: Site root, overridable for mirrors and tests.
            timeout: Per-request timeout in seconds.
            http_client: Pre-built ``httpx.AsyncClient``; created when omitted.

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._golden_key = golden_key
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, timeout: float | None = None) -> "FunPayClient":
        """Create a client from the ``funpay`` settings section.

        Args:
            timeout: Override for the configured ``timeout_seconds``.

        Returns:
            Configured FunPayClient instance.

        """
        settings = get_config().get_funpay_config()
        return cls(
            golden_key=str(settings.get("golden_key") or ""),
            base_url=str(settings.get("base_url") or const.DEFAULT_BASE_URL),
            timeout=(
                timeout
                if timeout is not None
                else float(settings.get("timeout_seconds", const.DEFAULT_TIMEOUT_SECONDS))
            ),
        )

    @property
    def is_authenticated(self) -> bool:
        """Return whether a session cookie is configured."""
        return bool(self._golden_key)

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Build request headers carrying the session cookie."""
        headers = {
            "User-Agent": const.USER_AGENT,
            "Cookie": f"golden_key={self._golden_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def url_for(self, resource: Resource, resource_id: int | str | None = None) -> str:
        """Return the absolute URL of a resource page.

        Args:
            resource: Logical resource to locate.
            resource_id: Chat id or user id for per-item resources.

        Returns:
            Absolute page URL.

        Raises:
            ValueError: If a per-item resource is requested without an id.

        """
        path = _RESOURCE_PATHS[resource]
        if "{resource_id}" in path:
            if resource_id is None:
                msg = f"{resource} requires a resource_id"
                raise ValueError(msg)
            path = path.format(resource_id=resource_id)
        return f"{self.base_url}{path}"

    async def fetch(self, resource: Resource, *, resource_id: int | str | None = None) -> str:
        """Retrieve the raw HTML of one resource page.

        Args:
            resource: Logical resource to fetch.
            resource_id: Chat id or user id for per-item resources.

        Returns:
            The page HTML.

        Raises:
            FunPayTransportError: On network failure, timeout, or a
                non-success response.

        """
        return await self._get(self.url_for(resource, resource_id))

    async def _get(self, url: str) -> str:
        """Send a GET request and return the response text.

        Raises:
            FunPayTransportError: On network failure, timeout, or a
                non-success response.

        """
        try:
            response = await self._http_client.request("GET", url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise FunPayTransportError(
                msg=f"HTTP request failed: {exc!r}",
                status_code=None,
                url=url,
            ) from exc

        if response.status_code >= const.HTTP_BAD_REQUEST:
            raise FunPayTransportError(
                msg=f"HTTP {response.status_code} ({url})",
                status_code=response.status_code,
                url=url,
            )
        return response.text

    async def submit(self, action: Action, params: dict[str, str]) -> bool:
        """Post a one-shot action form.

        Args:
            action: The action to perform.
            params: Form fields sent URL-encoded.

        Returns:
            ``True`` if the site accepted the action (2xx response).

        Raises:
            FunPayTransportError: When no response was received.

        """
        url = f"{self.base_url}{_ACTION_PATHS[action]}"
        try:
            response = await self._http_client.request(
                "POST",
                url,
                headers=self._headers({"Content-Type": "application/x-www-form-urlencoded"}),
                data=params,
            )
        except httpx.HTTPError as exc:
            raise FunPayTransportError(
                msg=f"HTTP request failed: {exc!r}",
                status_code=None,
                url=url,
            ) from exc

        accepted = response.status_code < const.HTTP_BAD_REQUEST
        if not accepted:
            logger.warning("Action %s rejected with HTTP %d", action, response.status_code)
        return accepted

    async def accept_order(self, order_id: str) -> bool:
        """Accept (confirm) an order."""
        return await self.submit(Action.ACCEPT_ORDER, {"id": _order_form_id(order_id)})

    async def cancel_order(self, order_id: str, reason: str = "cancel") -> bool:
        """Cancel an order and refund the buyer.

        Args:
            order_id: Order identifier, with or without the leading ``#``.
            reason: Free-text reason shown to the buyer.

        Returns:
            ``True`` if the site accepted the cancellation.

        """
        return await self.submit(
            Action.CANCEL_ORDER,
            {"id": _order_form_id(order_id), "reason": reason},
        )

    async def mark_as_delivered(self, order_id: str) -> bool:
        """Mark an order as delivered."""
        return await self.submit(Action.DELIVER_ORDER, {"id": _order_form_id(order_id)})

    async def change_offer_price(self, offer_id: int, new_price: Decimal) -> bool:
        """Change the price of one of the seller's offers."""
        return await self.submit(
            Action.UPDATE_OFFER_PRICE,
            {"id": str(offer_id), "price": str(new_price)},
        )

    async def change_offer_availability(self, offer_id: int, *, available: bool) -> bool:
        """Show or hide one of the seller's offers."""
        return await self.submit(
            Action.TOGGLE_OFFER,
            {"id": str(offer_id), "available": "1" if available else "0"},
        )

    async def send_message(self, order_id: str, message: str) -> bool:
        """Send a chat message in the conversation attached to an order."""
        return await self.submit(
            Action.SEND_MESSAGE,
            {"order_id": _order_form_id(order_id), "message": message},
        )

    async def get_profile(self, profile_url: str) -> Profile:
        """Fetch and parse a user's profile page.

        Args:
            profile_url: Profile URL ending in the numeric user id.

        Returns:
            The parsed profile.

        Raises:
            FunPayError: If the URL carries no user id.
            FunPayTransportError: If the page cannot be retrieved.

        """
        user_id = profile_id_from_url(profile_url)
        if not user_id:
            msg = f"No user id in profile URL: {profile_url!r}"
            raise FunPayError(msg)
        document = await self.fetch(Resource.PROFILE, resource_id=user_id)
        return extract_profile(document, profile_url, self.base_url)

    async def get_orders(
        self,
        start: int = 0,
        stop: int = 10,
        *,
        resolve_buyers: bool = True,
    ) -> list[Order]:
        """Fetch the seller's orders from the trade page.

        Args:
            start: Index of the first order to return.
            stop: Index one past the last order to return.
            resolve_buyers: Fetch each buyer's profile page to fill in the
                avatar and rating. A buyer whose profile cannot be fetched
                keeps the partial profile read from the order row.

        Returns:
            Orders in page order.

        """
        document = await self.fetch(Resource.ORDERS)
        orders = extract_orders(document, self.base_url)[start:stop]
        if not resolve_buyers:
            return orders

        async def _resolve(order: Order) -> Order:
            if not order.buyer.id:
                return order
            try:
                buyer = await self.get_profile(order.buyer.url)
            except FunPayError:
                logger.warning("Failed to fetch buyer profile %s", order.buyer.url, exc_info=True)
                return order
            return dataclasses.replace(order, buyer=buyer)

        return list(await asyncio.gather(*(_resolve(order) for order in orders)))

    async def get_chats(self) -> list[Chat]:
        """Fetch the chat list."""
        document = await self.fetch(Resource.CHATS)
        return extract_chats(document, self.base_url)

    async def get_chat_messages(self, chat_id: int) -> list[ChatMessage]:
        """Fetch the messages of one chat thread, oldest first."""
        document = await self.fetch(Resource.CHAT_THREAD, resource_id=chat_id)
        return extract_messages(document, chat_id, self.base_url)

    async def get_balance(self) -> Decimal | None:
        """Fetch the account balance.

        Returns:
            The balance, or ``None`` when the page shows none.

        """
        document = await self.fetch(Resource.BALANCE)
        balances = extract_balances(document)
        return balances[0] if balances else None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "FunPayClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
