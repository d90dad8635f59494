"""Error taxonomy for quiz catalog synchronization."""

from __future__ import annotations


class QuizSyncError(Exception):
    """Base exception for quizsync."""
    pass


class FetchError(QuizSyncError):
    """Base exception for remote catalog fetch failures."""
    pass


class NetworkError(FetchError):
    """Raised for transport failures and non-success HTTP responses."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OfflineError(NetworkError):
    """Raised when the network is known to be unreachable and no request is made."""
    pass


class EmptyResponseError(FetchError):
    """Raised when the remote source answers with an empty body."""
    pass


class MalformedJSONError(FetchError):
    """Raised when a body is not a JSON array of objects."""
    pass


class CacheIOError(QuizSyncError):
    """Raised when the local cache cannot be read, written or decoded."""
    pass


class ConfigError(QuizSyncError):
    """Raised for an invalid configured source URL."""
    pass


def describe_error(error: BaseException) -> str:
    """Short human readable form used in advisory notices."""
    return f"{type(error).__name__}: {error}"
