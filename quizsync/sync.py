"""Sync orchestrator: one authoritative catalog from remote, cache and defaults.

All orchestrator state is mutated on a single worker thread (the serial
context). Fetches and cache file access run on a separate I/O worker and post
their completions back to the serial context, so the state machine itself
needs no locking.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from concurrent.futures import Future, InvalidStateError, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Deque, List, Optional

from .config import AppConfig
from .connectivity import ConnectivityMonitor, SocketProbe
from .data.cache import CatalogCache
from .data.defaults import get_default_catalog
from .data.schemas import Catalog, CatalogSource
from .errors import ConfigError, OfflineError, describe_error
from .fetch import CatalogFetcher
from .settings import SourceSettings, validate_url

logger = logging.getLogger(__name__)


class SyncPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PUBLISHED = "published"
    FAILED = "failed"  # transient, always followed by a fallback


@dataclass(frozen=True)
class SyncState:
    """Snapshot of the orchestrator state.

    ``catalog`` and ``source`` carry the latest published catalog through the
    Fetching and Failed phases. ``reason`` is the failure that led to the
    current fallback, if any.
    """
    phase: SyncPhase
    catalog: Catalog = ()
    source: Optional[CatalogSource] = None
    reason: Optional[BaseException] = None


class SyncListener:
    """Receives orchestrator events on the serial context thread."""

    def on_catalog_published(self, catalog: Catalog, source: CatalogSource) -> None:
        pass

    def on_sync_error(self, error: BaseException) -> None:
        pass


@dataclass
class _Attempt:
    number: int
    future: "Future[SyncState]"
    trigger: str


def _chain(src: "Future[SyncState]", dst: "Future[SyncState]") -> None:
    def copy(f: "Future[SyncState]") -> None:
        if dst.done():
            return
        if f.cancelled():
            dst.cancel()
            return
        try:
            if f.exception() is not None:
                dst.set_exception(f.exception())
            else:
                dst.set_result(f.result())
        except InvalidStateError:
            # cancelled by its holder in the meantime
            pass

    src.add_done_callback(copy)


class SyncOrchestrator:
    """Keeps the quiz catalog current.

    Order of preference on every attempt: remote, then cache, then the
    built-in defaults. At most one attempt runs at a time; requests that
    arrive meanwhile are coalesced into the running attempt.
    """

    def __init__(
        self,
        settings: SourceSettings,
        fetcher: Optional[CatalogFetcher] = None,
        cache: Optional[CatalogCache] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        history_size: int = 50,
    ):
        self.settings = settings
        self.fetcher = fetcher or CatalogFetcher()
        self.cache = cache
        self.monitor = monitor

        self._serial = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="quizsync-sync",
            initializer=self._mark_serial_thread,
        )
        self._io = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quizsync-io")
        self._serial_ident: Optional[int] = None

        self._state = SyncState(SyncPhase.IDLE)
        self._history: Deque[SyncState] = deque([self._state], maxlen=history_size)
        self._attempt: Optional[_Attempt] = None
        self._counter = itertools.count(1)
        self._foreground = True
        self._pending_config_sync = False

        self._listeners: List[SyncListener] = []
        self._listeners_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()
        self._started = False
        self._closed = False
        self._unsubscribe_settings: Optional[Callable[[], None]] = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        offline: bool = False,
        with_monitor: bool = True,
    ) -> "SyncOrchestrator":
        """Wire up settings, cache, fetcher and monitor from an AppConfig."""
        settings = SourceSettings(config.storage.settings_path(), config.source.default_url)
        cache = CatalogCache(config.storage.cache_path())
        fetcher = CatalogFetcher(timeout=config.source.request_timeout)

        monitor: Optional[ConnectivityMonitor] = None
        conn = config.connectivity
        if offline:
            monitor = ConnectivityMonitor(probe=lambda: False, interval=conn.poll_interval)
            monitor.record(False)
        elif with_monitor and conn.enabled:
            if conn.probe_host:
                probe: Callable[[], bool] = SocketProbe(
                    conn.probe_host, conn.probe_port or 80, conn.probe_timeout
                )
            else:
                def probe() -> bool:
                    target = SocketProbe.for_url(settings.source_url, conn.probe_timeout)
                    if conn.probe_port:
                        target.port = conn.probe_port
                    return target()
            monitor = ConnectivityMonitor(probe=probe, interval=conn.poll_interval)

        return cls(settings, fetcher=fetcher, cache=cache, monitor=monitor)

    # ------------------------------------------------------------------
    # Consumer surface
    # ------------------------------------------------------------------
    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def history(self) -> List[SyncState]:
        return list(self._history)

    @property
    def current_source(self) -> Optional[CatalogSource]:
        return self._state.source

    def get_current_catalog(self) -> Catalog:
        """Latest published catalog; empty before the first publish."""
        return self._state.catalog

    def add_listener(self, listener: SyncListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SyncListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self) -> "Future[SyncState]":
        """Activate: subscribe to changes, start monitoring, run the startup sync."""
        with self._lifecycle_lock:
            if self._closed:
                raise RuntimeError("SyncOrchestrator is closed")
            if self._started:
                raise RuntimeError("SyncOrchestrator already started")
            self._started = True
        self._unsubscribe_settings = self.settings.subscribe(self._on_settings_changed)
        if self.monitor is not None:
            self.monitor.add_listener(self._on_connectivity_changed)
            self.monitor.start()
        return self._request("startup")

    def request_sync(self) -> "Future[SyncState]":
        """Ask for a sync. Resolves with the Published state the attempt ends in."""
        return self._request("manual")

    def set_foreground(self, foreground: bool) -> None:
        self._post(self._apply_foreground, foreground)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop monitoring and release workers. In-flight results are discarded."""
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
        if self._unsubscribe_settings is not None:
            self._unsubscribe_settings()
            self._unsubscribe_settings = None
        if self.monitor is not None:
            self.monitor.remove_listener(self._on_connectivity_changed)
            self.monitor.stop(timeout)

        abandon = self._serial.submit(self._abandon_attempt)
        self._serial.shutdown(wait=False)
        self._io.shutdown(wait=False)
        if threading.get_ident() != self._serial_ident:
            abandon.result(timeout)
        logger.debug("Sync orchestrator closed")

    def __enter__(self) -> "SyncOrchestrator":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Triggers (any thread)
    # ------------------------------------------------------------------
    def _request(self, trigger: str) -> "Future[SyncState]":
        if self._closed:
            raise RuntimeError("SyncOrchestrator is closed")
        result: "Future[SyncState]" = Future()
        logger.debug("Sync requested (%s)", trigger)
        self._post(self._begin_attempt, result, trigger)
        return result

    def _on_connectivity_changed(self, connected: bool, previous: Optional[bool]) -> None:
        # unknown counts as disconnected here
        if connected and previous is not True:
            logger.info("Network became reachable; requesting sync")
            self._post(self._begin_attempt, Future(), "connectivity")

    def _on_settings_changed(self, url: str) -> None:
        self._post(self._handle_config_change, url)

    def _post(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            self._serial.submit(fn, *args)
        except RuntimeError:
            logger.debug("Dropping %s: orchestrator is shut down", getattr(fn, "__name__", fn))

    # ------------------------------------------------------------------
    # State machine (serial context only)
    # ------------------------------------------------------------------
    def _mark_serial_thread(self) -> None:
        self._serial_ident = threading.get_ident()

    def _apply_foreground(self, foreground: bool) -> None:
        self._foreground = foreground
        if foreground and self._pending_config_sync:
            self._pending_config_sync = False
            self._begin_attempt(Future(), "config")

    def _handle_config_change(self, url: str) -> None:
        if not self._foreground:
            logger.info("Source URL changed to %s while in background; sync deferred", url)
            self._pending_config_sync = True
            return
        logger.info("Source URL changed to %s; requesting sync", url, extra={"url": url})
        self._begin_attempt(Future(), "config")

    def _begin_attempt(self, request: "Future[SyncState]", trigger: str) -> None:
        if self._closed:
            request.cancel()
            return
        if self._attempt is not None:
            logger.info("Sync already in progress; coalescing %s request", trigger)
            _chain(self._attempt.future, request)
            return

        # the attempt future stays internal; requesters hold chained copies
        attempt = _Attempt(next(self._counter), Future(), trigger)
        _chain(attempt.future, request)
        self._attempt = attempt
        self._transition(SyncPhase.FETCHING)

        url = self.settings.source_url
        try:
            validate_url(url)
        except ConfigError as e:
            self._fail(attempt, e, skip_cache=True)
            return

        if self.monitor is not None and self.monitor.is_reachable is False:
            self._fail(attempt, OfflineError(f"Network unreachable; skipped fetch of {url}"))
            return

        logger.debug("Attempt %d (%s) fetching %s", attempt.number, trigger, url)
        self._run_io(attempt, self._on_fetch_done, self.fetcher.fetch_catalog, url)

    def _run_io(
        self,
        attempt: _Attempt,
        then: Callable[[_Attempt, "Future[Any]"], None],
        fn: Callable[..., Any],
        *args: Any,
    ) -> None:
        future = self._io.submit(fn, *args)
        future.add_done_callback(lambda f: self._post(then, attempt, f))

    def _is_stale(self, attempt: _Attempt) -> bool:
        return self._closed or self._attempt is not attempt

    def _on_fetch_done(self, attempt: _Attempt, io_future: "Future[Catalog]") -> None:
        if self._is_stale(attempt):
            logger.debug("Discarding stale fetch result of attempt %d", attempt.number)
            return
        error = io_future.exception()
        if error is not None:
            self._fail(attempt, error, skip_cache=isinstance(error, ConfigError))
            return
        catalog = io_future.result()
        if self.cache is None:
            self._publish(attempt, catalog, CatalogSource.REMOTE)
            return
        self._run_io(attempt, partial(self._on_saved, catalog), self.cache.save, catalog)

    def _on_saved(self, catalog: Catalog, attempt: _Attempt, io_future: "Future[None]") -> None:
        if self._is_stale(attempt):
            return
        error = io_future.exception()
        if error is not None:
            logger.warning("Could not update catalog cache: %s", describe_error(error))
        self._publish(attempt, catalog, CatalogSource.REMOTE)

    def _fail(self, attempt: _Attempt, error: BaseException, skip_cache: bool = False) -> None:
        logger.warning("Sync attempt %d failed: %s", attempt.number, describe_error(error))
        self._transition(SyncPhase.FAILED, reason=error)
        if skip_cache or self.cache is None:
            self._publish_default(attempt, error)
            return
        self._run_io(attempt, partial(self._on_cache_loaded, error), self.cache.load)

    def _on_cache_loaded(
        self,
        error: BaseException,
        attempt: _Attempt,
        io_future: "Future[Optional[Catalog]]",
    ) -> None:
        if self._is_stale(attempt):
            return
        cache_error = io_future.exception()
        if cache_error is not None:
            logger.warning("Catalog cache unavailable: %s", describe_error(cache_error))
            self._publish_default(attempt, error)
            return
        catalog = io_future.result()
        if catalog is None:
            logger.info("No cached catalog; using built-in defaults")
            self._publish_default(attempt, error)
            return
        self._publish(attempt, catalog, CatalogSource.CACHE, reason=error)

    def _publish_default(self, attempt: _Attempt, error: BaseException) -> None:
        self._publish(attempt, get_default_catalog(), CatalogSource.DEFAULT, reason=error)
        self._emit("on_sync_error", error)

    def _publish(
        self,
        attempt: _Attempt,
        catalog: Catalog,
        source: CatalogSource,
        reason: Optional[BaseException] = None,
    ) -> None:
        state = SyncState(SyncPhase.PUBLISHED, catalog=tuple(catalog), source=source, reason=reason)
        self._set_state(state)
        self._attempt = None
        logger.info(
            "Published %d categories from %s", len(state.catalog), source.value,
            extra={"source": source.value},
        )
        self._emit("on_catalog_published", state.catalog, source)
        if not attempt.future.done():
            attempt.future.set_result(state)

    def _transition(self, phase: SyncPhase, reason: Optional[BaseException] = None) -> None:
        current = self._state
        self._set_state(SyncState(phase, catalog=current.catalog, source=current.source, reason=reason))

    def _set_state(self, state: SyncState) -> None:
        self._state = state
        self._history.append(state)
        logger.debug("Sync state -> %s", state.phase.value)

    def _abandon_attempt(self) -> None:
        attempt, self._attempt = self._attempt, None
        if attempt is not None and not attempt.future.done():
            attempt.future.cancel()

    def _emit(self, method: str, *args: Any) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                getattr(listener, method)(*args)
            except Exception:
                logger.exception("Sync listener %r failed in %s", listener, method)
