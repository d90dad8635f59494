"""Persisted user settings: the remote catalog source URL."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

SOURCE_URL_KEY = "source_url"

SettingsListener = Callable[[str], None]


def validate_url(url: str) -> str:
    """Return ``url`` stripped, or raise ConfigError if it is not http(s)."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Source URL must be an http(s) URL with a host, got {url!r}")
    return candidate


class SourceSettings:
    """The configured catalog source URL, persisted as YAML.

    Unset or blank values resolve to ``default_url``. Subscribers are told the
    new effective URL whenever it changes.
    """

    def __init__(self, path: Optional[Union[str, Path]], default_url: str):
        self.path = Path(path) if path is not None else None
        self.default_url = default_url
        self._lock = threading.RLock()
        self._listeners: List[SettingsListener] = []
        self._values: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _commit(self, values: Dict[str, Any]) -> None:
        """Persist ``values`` and only then make them current."""
        if self.path is not None:
            text = yaml.safe_dump(values, default_flow_style=False)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(text)
        self._values = values

    @property
    def stored_url(self) -> Optional[str]:
        with self._lock:
            value = self._values.get(SOURCE_URL_KEY)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def source_url(self) -> str:
        return self.stored_url or self.default_url

    def set_source_url(self, url: Optional[str]) -> None:
        if url is None or not url.strip():
            self.reset_source_url()
            return
        with self._lock:
            before = self.source_url
            values = dict(self._values)
            values[SOURCE_URL_KEY] = url.strip()
            self._commit(values)
            after = self.source_url
        logger.info("Source URL set to %s", after, extra={"url": after})
        if after != before:
            self._notify(after)

    def reset_source_url(self) -> None:
        with self._lock:
            before = self.source_url
            values = dict(self._values)
            values.pop(SOURCE_URL_KEY, None)
            self._commit(values)
            after = self.source_url
        logger.info("Source URL reset to default %s", after, extra={"url": after})
        if after != before:
            self._notify(after)

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, url: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(url)
            except Exception:
                logger.exception("Settings listener %r failed", listener)
