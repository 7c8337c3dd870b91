"""Snapshot-diff polling engine for a FunPay account.

Poll the balance page, the trade page, and the chat list on a fixed
interval, convert each page into records, diff them against the latest
snapshot, and publish the resulting change events. The first run seeds the
snapshot without publishing anything.

A failure while fetching or extracting one resource becomes an
``EngineError`` event for that resource; the rest of the cycle still runs
and the loop keeps going. Only ``stop()`` ends the loop.
"""

import asyncio
import dataclasses
import logging
import signal
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from funpay_tools.apps.account_watcher.config import WatcherConfig
from funpay_tools.apps.account_watcher.diff import DiffEngine
from funpay_tools.apps.account_watcher.models import EngineError, WatcherEvent, WatcherState
from funpay_tools.apps.account_watcher.protocols import PageSource, RecordExtractor
from funpay_tools.apps.account_watcher.publisher import EventPublisher
from funpay_tools.apps.account_watcher.snapshot import SnapshotStore
from funpay_tools.clients.funpay.extractor import extract
from funpay_tools.clients.funpay.models import Chat, Order, Profile, RecordKind, Resource

logger = logging.getLogger(__name__)

CYCLE_RESOURCES: tuple[Resource, ...] = (Resource.BALANCE, Resource.ORDERS, Resource.CHATS)

type _Outcome = list[Any] | Exception


class AccountWatcher:
    """Poll a FunPay account and publish what changed between cycles.

    Lifecycle: ``IDLE`` -> ``RUNNING`` on ``start()``; ``stop()`` moves to
    ``STOPPING`` and the loop returns to ``IDLE`` at its next suspension
    point (the inter-cycle sleep, or the boundary between two resource
    fetches). Exactly one cycle runs at a time, which keeps the snapshot
    single-writer.

    Args:
        source: Page retrieval, usually a ``FunPayClient``.
        config: Polling configuration.
        publisher: Event channel; a fresh one is created when omitted.
        extractor: Page-to-records function.

    """

    def __init__(
        self,
        source: PageSource,
        config: WatcherConfig | None = None,
        *,
        publisher: EventPublisher | None = None,
        extractor: RecordExtractor = extract,
    ) -> None:
        """Initialize an idle watcher with an empty snapshot.

        Args:
            source: Page retrieval, usually a ``FunPayClient``.
            config: Polling configuration. Defaults apply when omitted.
            publisher: Event channel; a fresh one is created when omitted.
            extractor: Page-to-records function.

        """
        self._source = source
        self._config = config or WatcherConfig()
        self._publisher = publisher or EventPublisher()
        self._extractor = extractor
        self._snapshot = SnapshotStore()
        self._diff = DiffEngine(self._snapshot)
        self._state = WatcherState.IDLE
        self._stop_event = asyncio.Event()
        self._cycle_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._bootstrapped = False
        self._cycles_completed = 0

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def publisher(self) -> EventPublisher:
        """Return the event channel."""
        return self._publisher

    @property
    def cycles_completed(self) -> int:
        """Return the number of steady-state cycles run so far."""
        return self._cycles_completed

    def subscribe[E: WatcherEvent](
        self,
        event_type: type[E],
        handler: Callable[[E], None],
    ) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``; return an unsubscribe callable."""
        return self._publisher.subscribe(event_type, handler)

    def subscribe_all(self, handler: Callable[[WatcherEvent], None]) -> Callable[[], None]:
        """Register ``handler`` for every event; return an unsubscribe callable."""
        return self._publisher.subscribe_all(handler)

    def current_balance(self) -> Decimal:
        """Return the last observed balance (zero when none observed yet)."""
        return self._snapshot.balance

    def current_orders(self) -> list[Order]:
        """Return the last observed version of every known order."""
        return self._snapshot.orders

    def current_chats(self) -> list[Chat]:
        """Return the last observed version of every known chat."""
        return self._snapshot.chats

    def start(self, interval_seconds: float | None = None) -> asyncio.Task[None]:
        """Start the polling loop as a background task.

        Idempotent: calling ``start()`` while the loop is running returns
        the existing task. Calling it while a stopped loop is still winding
        down schedules a fresh loop that begins once the old one has
        finished, and the watcher reports ``RUNNING`` from this call on. The
        first start bootstraps the snapshot; later restarts keep the
        snapshot and go straight to steady-state cycles.

        Args:
            interval_seconds: Override for the configured poll interval.

        Returns:
            The task running the loop.

        Raises:
            ValueError: If ``interval_seconds`` is not positive.

        """
        previous: asyncio.Task[None] | None = None
        if self._task is not None and not self._task.done():
            if self._state is WatcherState.RUNNING:
                return self._task
            previous = self._task

        interval = (
            interval_seconds if interval_seconds is not None else self._config.poll_interval_seconds
        )
        if interval <= 0:
            msg = f"interval_seconds must be positive, got {interval}"
            raise ValueError(msg)

        if previous is None:
            self._stop_event.clear()
        self._state = WatcherState.RUNNING
        self._task = asyncio.create_task(
            self._run_loop(interval, previous), name="account-watcher"
        )
        logger.info("Account watcher started (interval %.1fs)", interval)
        return self._task

    def stop(self) -> None:
        """Request the loop to stop at its next suspension point."""
        if self._state is not WatcherState.RUNNING:
            return
        self._state = WatcherState.STOPPING
        self._stop_event.set()
        logger.info("Account watcher stop requested")

    async def join(self) -> None:
        """Wait until the loop task has finished."""
        if self._task is not None:
            await self._task

    async def run(self, interval_seconds: float | None = None) -> None:
        """Run the polling loop in the foreground until stopped.

        Install SIGINT/SIGTERM handlers that request a graceful stop.

        Args:
            interval_seconds: Override for the configured poll interval.

        """
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, self._handle_shutdown)
        loop.add_signal_handler(signal.SIGTERM, self._handle_shutdown)
        try:
            self.start(interval_seconds)
            await self.join()
        finally:
            loop.remove_signal_handler(signal.SIGINT)
            loop.remove_signal_handler(signal.SIGTERM)

    def _handle_shutdown(self) -> None:
        """Request a stop on SIGINT/SIGTERM."""
        logger.info("Shutdown signal received")
        self.stop()

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    async def bootstrap(self) -> None:
        """Seed the snapshot from one pass over every resource.

        Publish nothing. A resource that fails is logged and skipped; the
        steady-state cycles will pick it up.
        """
        async with self._cycle_lock:
            for resource in CYCLE_RESOURCES:
                if self._stop_event.is_set():
                    break
                outcome = await self._load(resource)
                if isinstance(outcome, Exception):
                    logger.warning(
                        "Bootstrap fetch of %s failed", resource, exc_info=outcome
                    )
                    continue
                self._seed(resource, outcome)
            else:
                self._bootstrapped = True

        logger.info(
            "Bootstrapped snapshot: balance=%s orders=%d chats=%d",
            self._snapshot.balance,
            len(self._snapshot.orders),
            len(self._snapshot.chats),
        )

    async def poll_once(self) -> list[WatcherEvent]:
        """Run one steady-state cycle and publish its events.

        Resources are processed in the order balance, orders, chats. With
        ``concurrent_fetch`` the three pages are fetched together, but their
        diffs are still applied one at a time in that order.

        Returns:
            The events published during the cycle, in publication order.

        """
        events: list[WatcherEvent] = []
        async with self._cycle_lock:
            if self._config.concurrent_fetch:
                outcomes = await asyncio.gather(
                    *(self._load(resource) for resource in CYCLE_RESOURCES)
                )
                for resource, outcome in zip(CYCLE_RESOURCES, outcomes, strict=True):
                    events.extend(await self._apply(resource, outcome))
            else:
                for resource in CYCLE_RESOURCES:
                    if self._stop_event.is_set():
                        logger.debug("Stop requested, skipping rest of cycle")
                        break
                    outcome = await self._load(resource)
                    events.extend(await self._apply(resource, outcome))
            self._cycles_completed += 1

        if events:
            logger.info("Cycle %d published %d events", self._cycles_completed, len(events))
        else:
            logger.debug("Cycle %d: no changes", self._cycles_completed)
        return events

    async def _run_loop(self, interval: float, previous: asyncio.Task[None] | None) -> None:
        """Bootstrap once, then cycle and sleep until a stop is requested.

        When ``previous`` is given it is a stopped loop still winding down;
        wait for it before clearing the stop request and polling.
        """
        try:
            if previous is not None:
                await asyncio.wait({previous})
                if self._state is not WatcherState.RUNNING:
                    return
                self._stop_event.clear()
            if not self._bootstrapped:
                await self.bootstrap()
            while not self._stop_event.is_set():
                await self.poll_once()
                if await self._sleep(interval):
                    break
        finally:
            # A loop that was superseded by a restart leaves the state alone
            if self._task is asyncio.current_task():
                self._state = WatcherState.IDLE
            logger.info("Account watcher stopped after %d cycles", self._cycles_completed)

    async def _sleep(self, interval: float) -> bool:
        """Sleep for ``interval`` seconds or until a stop is requested.

        Returns:
            ``True`` if the sleep ended because of a stop request.

        """
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
        except TimeoutError:
            return False
        return True

    async def _load(self, resource: Resource) -> _Outcome:
        """Fetch and extract one resource, returning records or the failure.

        The fetch is bounded by ``fetch_timeout_seconds``.
        """
        try:
            document = await asyncio.wait_for(
                self._source.fetch(resource),
                timeout=self._config.fetch_timeout_seconds,
            )
            records = self._extractor(
                document,
                resource.record_kind,
                base_url=self._config.base_url,
            )
        except Exception as exc:  # noqa: BLE001
            return exc
        if resource is Resource.ORDERS:
            return records[: self._config.max_orders]
        return records

    def _seed(self, resource: Resource, records: list[Any]) -> None:
        if resource is Resource.BALANCE:
            if records:
                self._diff.seed_balance(records[0])
        elif resource is Resource.ORDERS:
            self._diff.seed_orders(records)
        elif resource is Resource.CHATS:
            self._diff.seed_chats(records)

    async def _apply(self, resource: Resource, outcome: _Outcome) -> list[WatcherEvent]:
        """Diff one resource's outcome against the snapshot and publish events."""
        if isinstance(outcome, Exception):
            logger.warning("Polling %s failed", resource, exc_info=outcome)
            events: list[WatcherEvent] = [EngineError(resource=resource, error=outcome)]
        elif resource is Resource.BALANCE:
            events = self._diff.diff_balance(outcome[0]) if outcome else []
        elif resource is Resource.ORDERS:
            if self._config.resolve_buyers:
                outcome = await self._resolve_buyers(outcome)
            events = self._diff.diff_orders(outcome)
        else:
            events = self._diff.diff_chats(outcome)

        for event in events:
            self._publisher.publish(event)
        return events

    async def _resolve_buyers(self, orders: list[Order]) -> list[Order]:
        """Attach full buyer profiles to the orders this cycle will report.

        New orders and orders whose status changed get their buyer's profile
        page fetched. Any other order keeps the buyer already stored for it.
        """

        async def _resolve(order: Order) -> Order:
            previous: Order | None = self._snapshot.get(RecordKind.ORDER, order.id)
            if previous is not None and previous.status == order.status:
                if previous.buyer.id == order.buyer.id:
                    return dataclasses.replace(order, buyer=previous.buyer)
                return order
            if not order.buyer.id:
                return order
            return dataclasses.replace(order, buyer=await self._fetch_profile(order.buyer))

        return list(await asyncio.gather(*(_resolve(order) for order in orders)))

    async def _fetch_profile(self, partial: Profile) -> Profile:
        """Fetch a user's profile page, falling back to ``partial`` on failure."""
        try:
            document = await asyncio.wait_for(
                self._source.fetch(Resource.PROFILE, resource_id=partial.id),
                timeout=self._config.fetch_timeout_seconds,
            )
            records = self._extractor(
                document,
                RecordKind.PROFILE,
                base_url=self._config.base_url,
                source_url=partial.url,
            )
        except Exception:  # noqa: BLE001
            logger.warning("Failed to fetch buyer profile %s", partial.url, exc_info=True)
            return partial
        return records[0] if records else partial
