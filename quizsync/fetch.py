"""Remote catalog fetching over HTTP.

Uses urllib from the standard library so tests can patch
``urllib.request.urlopen`` directly.
"""

from __future__ import annotations

import http.client
import logging
import time
import urllib.error
import urllib.request
from typing import Optional

from . import __version__
from .data.schemas import Catalog
from .data.wire import parse_catalog_bytes
from .errors import ConfigError, NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class CatalogFetcher:
    """Fetches and parses a catalog from a URL.

    Each call issues exactly one GET; concurrent calls are not de-duplicated
    here. The orchestrator guarantees at most one call in flight.
    """

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout
        self.user_agent = user_agent or f"quizsync/{__version__}"

    def fetch_bytes(self, url: str) -> bytes:
        """GET ``url`` and return the raw body.

        Raises:
            NetworkError: on transport failures and non-2xx responses
            ConfigError: if urllib rejects the URL itself
        """
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )
        try:
            if self.timeout is None:
                resp_cm = urllib.request.urlopen(req)  # noqa: S310 (http/https checked by settings)
            else:
                resp_cm = urllib.request.urlopen(req, timeout=self.timeout)  # noqa: S310
            with resp_cm as resp:
                status = getattr(resp, "status", None)
                if isinstance(status, int) and not 200 <= status < 300:
                    raise NetworkError(f"GET {url} returned HTTP {status}", status_code=status)
                chunks = []
                while True:
                    data = resp.read(CHUNK_SIZE)
                    if not data:
                        break
                    chunks.append(data)
        except urllib.error.HTTPError as e:
            raise NetworkError(f"GET {url} returned HTTP {e.code}: {e.reason}", status_code=e.code) from e
        except urllib.error.URLError as e:
            raise NetworkError(f"GET {url} failed: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise ConfigError(f"Invalid source URL {url!r}: {e}") from e
        return b"".join(chunks)

    def fetch_catalog(self, url: str) -> Catalog:
        """Fetch ``url`` and parse the body into a catalog.

        Raises:
            NetworkError, EmptyResponseError, MalformedJSONError, ConfigError
        """
        start = time.monotonic()
        logger.info("Fetching catalog from %s", url, extra={"url": url})
        body = self.fetch_bytes(url)
        catalog = parse_catalog_bytes(body)
        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Fetched %d categories from %s in %.0f ms", len(catalog), url, duration_ms,
            extra={"url": url, "duration_ms": duration_ms},
        )
        return catalog


def fetch_catalog(url: str, timeout: Optional[float] = None) -> Catalog:
    """Convenience wrapper around :class:`CatalogFetcher`."""
    return CatalogFetcher(timeout=timeout).fetch_catalog(url)
