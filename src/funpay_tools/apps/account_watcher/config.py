"""Configuration dataclass for the account watcher.

Hold the tuneable parameters of a watcher session: polling cadence, the
per-fetch timeout, the site root, and batch options. Immutable after
construction so a long-running loop never sees its settings change.
"""

from dataclasses import dataclass
from typing import Any

from funpay_tools.clients.funpay._constants import DEFAULT_BASE_URL

_DEFAULT_POLL_INTERVAL = 15.0
_DEFAULT_FETCH_TIMEOUT = 10.0
_DEFAULT_MAX_ORDERS = 10
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def _as_bool(value: Any) -> bool:
    """Coerce a YAML or env-substituted value to a boolean."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


@dataclass(frozen=True)
class WatcherConfig:
    """Immutable configuration for an account watcher session.

    Attributes:
        poll_interval_seconds: Sleep between the end of one cycle and the
            start of the next.
        fetch_timeout_seconds: Upper bound on a single page fetch. Also
            bounds how long ``stop()`` can take to be honoured.
        base_url: FunPay site root.
        max_orders: Number of orders read from the top of the trade page
            each cycle.
        concurrent_fetch: Fetch balance, orders and chats concurrently.
            Diffs are still applied one resource at a time, in order.
        resolve_buyers: Fetch the buyer profile of every new or
            status-changed order before publishing, so events carry the
            avatar and rating the trade page does not show.

    Raises:
        ValueError: If an interval, the timeout, or ``max_orders`` is not
            positive.

    """

    poll_interval_seconds: float = _DEFAULT_POLL_INTERVAL
    fetch_timeout_seconds: float = _DEFAULT_FETCH_TIMEOUT
    base_url: str = DEFAULT_BASE_URL
    max_orders: int = _DEFAULT_MAX_ORDERS
    concurrent_fetch: bool = False
    resolve_buyers: bool = True

    def __post_init__(self) -> None:
        """Validate that intervals and limits are positive."""
        if self.poll_interval_seconds <= 0:
            msg = f"poll_interval_seconds must be positive, got {self.poll_interval_seconds}"
            raise ValueError(msg)
        if self.fetch_timeout_seconds <= 0:
            msg = f"fetch_timeout_seconds must be positive, got {self.fetch_timeout_seconds}"
            raise ValueError(msg)
        if self.max_orders <= 0:
            msg = f"max_orders must be positive, got {self.max_orders}"
            raise ValueError(msg)

    @classmethod
    def from_mapping(cls, settings: dict[str, Any], base_url: str | None = None) -> "WatcherConfig":
        """Build a config from a ``watcher`` settings section.

        Missing keys take their defaults. YAML substitution yields strings,
        so numeric and boolean values are coerced here.

        Args:
            settings: The ``watcher`` section of the loaded settings.
            base_url: Site root from the ``funpay`` section, if any.

        Returns:
            A validated ``WatcherConfig``.

        """
        return cls(
            poll_interval_seconds=float(
                settings.get("poll_interval_seconds", _DEFAULT_POLL_INTERVAL)
            ),
            fetch_timeout_seconds=float(
                settings.get("fetch_timeout_seconds", _DEFAULT_FETCH_TIMEOUT)
            ),
            base_url=base_url or DEFAULT_BASE_URL,
            max_orders=int(settings.get("max_orders", _DEFAULT_MAX_ORDERS)),
            concurrent_fetch=_as_bool(settings.get("concurrent_fetch", False)),
            resolve_buyers=_as_bool(settings.get("resolve_buyers", True)),
        )
