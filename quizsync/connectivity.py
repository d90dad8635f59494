"""Network reachability tracking on a background thread."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable, List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# (connected, previous) where previous is None before the first observation
ConnectivityListener = Callable[[bool, Optional[bool]], None]
Probe = Callable[[], bool]


class SocketProbe:
    """Reachability check by opening a TCP connection to host:port."""

    def __init__(self, host: str, port: int = 80, timeout: float = 3.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    @classmethod
    def for_url(cls, url: str, timeout: float = 3.0) -> "SocketProbe":
        parsed = urlparse(url)
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return cls(parsed.hostname or "", port, timeout)

    def __call__(self) -> bool:
        if not self.host:
            return False
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError:
            return False

    def __repr__(self) -> str:
        return f"SocketProbe({self.host!r}, {self.port})"


class ConnectivityMonitor:
    """Polls a probe and reports reachability transitions.

    ``is_reachable`` is None until the first observation. Listeners fire on
    every change, including the first observation, from the monitor thread.
    Once ``stop()`` returns no listener is called again.
    """

    def __init__(self, probe: Probe, interval: float = 5.0, name: str = "quizsync-connectivity"):
        self.probe = probe
        self.interval = interval
        self.name = name
        self._state: Optional[bool] = None
        self._listeners: List[ConnectivityListener] = []
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stopped = False

    @property
    def is_reachable(self) -> Optional[bool]:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_listener(self, listener: ConnectivityListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ConnectivityListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self) -> None:
        with self._lock:
            if self._stopped:
                raise RuntimeError("ConnectivityMonitor cannot be restarted after stop()")
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        logger.debug("Connectivity monitor started with %r", self.probe)

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            self._stopped = True
            self._stop_event.set()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug("Connectivity monitor stopped")

    def __enter__(self) -> "ConnectivityMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.observe()
            self._stop_event.wait(self.interval)

    def observe(self) -> Optional[bool]:
        """Run the probe once and record the result."""
        try:
            reachable = bool(self.probe())
        except Exception as e:
            logger.debug("Connectivity probe raised %s; treating as unreachable", e)
            reachable = False
        self.record(reachable)
        return self._state

    def record(self, reachable: bool) -> None:
        """Record an observation, notifying listeners on a transition."""
        with self._lock:
            if self._stopped:
                return
            previous = self._state
            if previous == reachable:
                return
            self._state = reachable
            listeners = list(self._listeners)
            logger.info(
                "Connectivity changed: %s -> %s",
                _label(previous), _label(reachable),
            )
            # Delivered under the lock so stop() cannot interleave with a callback
            for listener in listeners:
                try:
                    listener(reachable, previous)
                except Exception:
                    logger.exception("Connectivity listener %r failed", listener)


def _label(state: Optional[bool]) -> str:
    if state is None:
        return "unknown"
    return "connected" if state else "disconnected"
