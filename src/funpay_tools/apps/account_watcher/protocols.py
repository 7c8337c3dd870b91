"""Structural protocols for the watcher's external collaborators.

Define the ``PageSource`` and ``RecordExtractor`` interfaces that decouple
the polling engine from the concrete HTTP client and HTML extractor. Any
object whose shape matches can be plugged in without inheritance, which is
how the tests drive the watcher with canned pages.
"""

from typing import Any, Protocol, runtime_checkable

from funpay_tools.clients.funpay.models import RecordKind, Resource


@runtime_checkable
class PageSource(Protocol):
    """Async retrieval of one FunPay resource page.

    Implementors raise on network failure, timeout, or a non-success
    response; the watcher converts the failure into an ``EngineError``.
    """

    async def fetch(self, resource: Resource, *, resource_id: int | str | None = None) -> str:
        """Return the raw HTML of ``resource``."""
        ...


class RecordExtractor(Protocol):
    """Pure conversion of a raw page into records of one kind.

    Implementors should skip unreadable records rather than raise.
    """

    def __call__(
        self,
        document: str,
        kind: RecordKind,
        *,
        base_url: str = ...,
        source_url: str = ...,
    ) -> list[Any]:
        """Return the records of ``kind`` found in ``document``."""
        ...
