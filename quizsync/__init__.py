"""quizsync: quiz catalog synchronization.

Keeps a local, authoritative set of quiz categories current from a remote
JSON source, falling back to a cached copy and then to built-in defaults.
"""

__version__ = "0.1.0"

from .config import AppConfig, default_app_config
from .connectivity import ConnectivityMonitor, SocketProbe
from .data import (
    Answer,
    Catalog,
    CatalogCache,
    CatalogSource,
    Category,
    Question,
    get_default_catalog,
)
from .errors import (
    CacheIOError,
    ConfigError,
    EmptyResponseError,
    FetchError,
    MalformedJSONError,
    NetworkError,
    OfflineError,
    QuizSyncError,
)
from .fetch import CatalogFetcher, fetch_catalog
from .settings import SourceSettings
from .sync import SyncListener, SyncOrchestrator, SyncPhase, SyncState
from .utils import setup_logging

__all__ = [
    "__version__",
    "AppConfig",
    "default_app_config",
    "Answer",
    "Question",
    "Category",
    "Catalog",
    "CatalogSource",
    "CatalogCache",
    "get_default_catalog",
    "CatalogFetcher",
    "fetch_catalog",
    "ConnectivityMonitor",
    "SocketProbe",
    "SourceSettings",
    "SyncOrchestrator",
    "SyncListener",
    "SyncPhase",
    "SyncState",
    "QuizSyncError",
    "FetchError",
    "NetworkError",
    "OfflineError",
    "EmptyResponseError",
    "MalformedJSONError",
    "CacheIOError",
    "ConfigError",
    "setup_logging",
]
