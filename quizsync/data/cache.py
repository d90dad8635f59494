"""File-backed store for the last known good catalog."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import CacheIOError, MalformedJSONError
from ..utils.io import read_json, remove_if_exists, write_json_atomic
from .schemas import Catalog, Category
from .wire import catalog_to_entries, parse_catalog

logger = logging.getLogger(__name__)


class CatalogCache:
    """Persists a catalog as a JSON array of serialized catalog entries.

    A missing file is the normal first-run state and loads as ``None``.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, catalog: Sequence[Category]) -> None:
        """Overwrite the cache file with ``catalog``.

        Raises:
            CacheIOError: if the file cannot be written
        """
        entries = catalog_to_entries(catalog)
        try:
            write_json_atomic(self.path, entries)
        except (OSError, TypeError, ValueError) as e:
            raise CacheIOError(f"Failed to write catalog cache {self.path}: {e}") from e
        logger.debug("Saved %d categories to %s", len(entries), self.path)

    def load(self) -> Optional[Catalog]:
        """Read the cached catalog, or ``None`` if nothing was cached yet.

        Category ids are re-synthesized from position.

        Raises:
            CacheIOError: if the file exists but cannot be read or decoded
        """
        if not self.path.exists():
            return None
        try:
            payload = read_json(self.path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheIOError(f"Failed to read catalog cache {self.path}: {e}") from e
        try:
            catalog = parse_catalog(payload)
        except MalformedJSONError as e:
            raise CacheIOError(f"Catalog cache {self.path} is malformed: {e}") from e
        logger.debug("Loaded %d categories from %s", len(catalog), self.path)
        return catalog

    def clear(self) -> bool:
        """Remove the cache file. Returns True if a file was removed."""
        if not self.path.exists():
            return False
        try:
            remove_if_exists(self.path)
        except OSError as e:
            raise CacheIOError(f"Failed to remove catalog cache {self.path}: {e}") from e
        return True
