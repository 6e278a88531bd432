"""Event service - the host-facing entry point of the relay."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
import uuid
from typing import Any, Callable, TypeVar

from .commands import CommandQueue
from .config import Config, PersistenceConfig, RelayConfig
from .debouncer import Debouncer, SleepFn
from .dispatcher import Dispatcher
from .persistence.base import PersistenceGateway
from .persistence.file import JsonFilePersistence
from .persistence.memory import InMemoryPersistence
from .store import AddOutcome, EventStore
from .transport.base import Transport
from .transport.console import ConsoleTransport
from .transport.http import HttpTransport


logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_transport(config: RelayConfig) -> Transport:
    """Create the transport named by the config."""
    if config.transport == "console":
        return ConsoleTransport()
    return HttpTransport(
        url=config.server_url,
        timeout=config.request_timeout,
        headers=dict(config.headers),
    )


def create_persistence(config: PersistenceConfig) -> PersistenceGateway:
    """Create the persistence gateway named by the config."""
    if config.backend == "memory":
        return InMemoryPersistence()
    return JsonFilePersistence(path=config.path)


class EventService:
    """
    Collects analytic events and delivers them in debounced batches.

    The host constructs one instance, starts it on its event loop and
    calls the lifecycle hooks at the matching moments:

        service = EventService(Config.from_yaml("relay.yaml"))
        await service.start()
        service.track_event("levelStart", "level:3")
        ...
        service.on_suspend()     # app backgrounded
        service.on_resume()
        await service.stop()     # saves whatever is still pending

    ``track_event`` and ``force_send`` are safe from any thread; they only
    enqueue commands that the event loop executes in order. The lifecycle
    hooks are synchronous: called off the loop thread they are marshalled
    onto the loop and block until done.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: Transport | None = None,
        persistence: PersistenceGateway | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] | None = None,
        hook_timeout: float = 5.0,
    ):
        self.config = config or Config()
        relay = self.config.relay

        self.transport = transport or create_transport(relay)
        self.persistence = persistence or create_persistence(self.config.persistence)
        self.store = EventStore(self.persistence)
        self.commands = CommandQueue()
        self.dispatcher = Dispatcher(
            self.store,
            self.transport,
            max_retry_attempts=relay.max_retry_attempts,
            retry_delay=relay.retry_delay,
            sleep=sleep,
        )
        self.debouncer = Debouncer(
            relay.cooldown_before_send,
            on_fire=self.dispatcher.start_send_cycle,
            sleep=sleep,
            clock=clock,
        )
        self.dispatcher.attach_debouncer(self.debouncer)

        self._hook_timeout = hook_timeout
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None
        self._process_task: asyncio.Task | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._process_task is not None

    async def start(self) -> None:
        """Bind to the running loop, recover persisted events, start processing."""
        if self._process_task is not None:
            return

        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self.commands.bind(self._loop)

        await self.transport.start()
        self.on_startup()

        self._process_task = self._loop.create_task(self.commands.run())
        logger.info("Event service started")

    async def stop(self) -> None:
        """Persist what is pending and stop processing."""
        if self._process_task is None:
            return

        self.on_shutdown()

        self._process_task.cancel()
        try:
            await self._process_task
        except asyncio.CancelledError:
            pass
        self._process_task = None

        await self.transport.stop()
        self._loop = None
        self._loop_thread = None
        self._started = False
        logger.info(f"Event service stopped. Stats: {self.stats}")

    async def __aenter__(self) -> EventService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def track_event(self, type: str, data: str | None = "") -> bool:
        """
        Queue an event for delivery (non-blocking, any thread).

        Returns False if the event was rejected (empty type).
        """
        if not type:
            logger.warning("Event type cannot be null or empty")
            return False

        self.commands.submit(f"track:{type}", lambda: self._add_event(type, data))
        return True

    def force_send(self) -> None:
        """Queue an immediate send, skipping the cooldown (any thread)."""
        self.commands.submit("send", self.dispatcher.start_send_cycle)

    def save_now(self) -> bool:
        """Persist the current buffer right away."""
        saved = self._serialized(self._drain_and_save)
        if saved:
            logger.info("Events forcibly saved")
        return bool(saved)

    # ------------------------------------------------------------------
    # Host lifecycle hooks
    # ------------------------------------------------------------------

    def on_startup(self) -> int:
        """
        Recover persisted events and bootstrap the session.

        Recovered events go out immediately, without a cooldown.
        Runs once per ``start()``, which calls it; before ``start()`` and on
        repeated calls it does nothing. Returns the number of events
        recovered.
        """
        if self._loop is None:
            logger.info("Service not started, startup recovery deferred to start()")
            return 0
        recovered = self._serialized(self._startup)
        return recovered or 0

    def on_suspend(self) -> bool:
        """App paused/backgrounded: stop timers and in-flight sends, then save."""
        return bool(self._serialized(self._teardown))

    def on_resume(self) -> None:
        """App back in the foreground: schedule delivery of anything pending."""
        self._serialized(self._resume)

    def on_focus_lost(self) -> bool:
        """App lost focus but keeps running: save without interrupting sends."""
        return bool(self._serialized(self._drain_and_save))

    def on_shutdown(self) -> bool:
        """Process is going away: stop timers and in-flight sends, then save."""
        return bool(self._serialized(self._teardown))

    # ------------------------------------------------------------------
    # Loop-side operations
    # ------------------------------------------------------------------

    def _add_event(self, type: str, data: str | None) -> None:
        if self.store.add_event(type, data) is AddOutcome.REJECTED:
            return
        if self._loop is None:
            # Not started: the event waits for on_startup or a save
            return
        if not self.dispatcher.is_active and not self.debouncer.is_armed:
            self.debouncer.arm()

    def _startup(self) -> int:
        if self._started:
            logger.warning("Startup already ran for this session, ignoring")
            return 0
        self._started = True

        recovered = self.store.restore()
        if recovered:
            logger.info(f"Found {recovered} persisted events. Starting send process.")
            self.dispatcher.start_send_cycle()

        for _ in range(self.config.relay.initial_events_count):
            self.track_event("appStart", f"session_id:{uuid.uuid4()}")
        return recovered

    def _teardown(self) -> bool:
        self.commands.drain()
        self.debouncer.cancel()
        self.dispatcher.cancel()
        return self.store.save()

    def _resume(self) -> None:
        if self._loop is None or self.store.is_empty():
            return
        if not self.dispatcher.is_active:
            self.debouncer.arm()

    def _drain_and_save(self) -> bool:
        self.commands.drain()
        return self.store.save()

    def _serialized(self, fn: Callable[[], T]) -> T | None:
        """
        Run ``fn`` on the service's loop and return its result.

        Runs inline when already on the loop thread, or when there is no
        running loop to hand the call to. From another thread it waits at
        most ``hook_timeout`` seconds; on timeout the call is cancelled
        unless the loop already started running it, in which case it still
        completes later.
        """
        loop = self._loop
        if (
            loop is None
            or threading.get_ident() == self._loop_thread
            or loop.is_closed()
            or not loop.is_running()
        ):
            return fn()

        future: concurrent.futures.Future = concurrent.futures.Future()

        def runner() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn())
            except Exception as e:
                future.set_exception(e)

        loop.call_soon_threadsafe(runner)
        try:
            return future.result(timeout=self._hook_timeout)
        except concurrent.futures.TimeoutError:
            if future.cancel():
                logger.error(f"Lifecycle hook timed out after {self._hook_timeout}s, cancelled")
            else:
                logger.error(f"Lifecycle hook timed out after {self._hook_timeout}s, still running on the loop")
            return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_idle(self) -> bool:
        """Nothing queued, no cooldown armed, no send in flight."""
        return (
            self.commands.depth == 0
            and not self.debouncer.is_armed
            and not self.dispatcher.is_active
        )

    async def wait_until_idle(self, timeout: float = 30.0, poll_interval: float = 0.05) -> bool:
        """Wait for the pipeline to settle. Returns False on timeout."""
        deadline = time.monotonic() + timeout
        while not self.is_idle:
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(poll_interval)
        return True

    @property
    def pending_count(self) -> int:
        return len(self.store)

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "store": self.store.stats,
            "dispatcher": self.dispatcher.stats,
            "commands": self.commands.stats,
            "cooldown": self.debouncer.state.value,
        }
