"""
Value objects for the domain layer.

Value objects are immutable objects that describe filter input, fetch
outcomes and user-facing notifications. They have no identity of their own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Any


class FetchSubject(str, Enum):
    """What a fetch cycle loads. Each subject has its own token and cache."""

    BOOKS = "books"
    AUTHORS = "authors"


class FetchState(str, Enum):
    """Lifecycle of one subject inside the refresh controller."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """An opaque user-facing message; the presentation layer renders it."""

    level: NotificationLevel
    message: str

    def __post_init__(self) -> None:
        if not self.message or not self.message.strip():
            raise ValueError("Notification message cannot be empty")


@dataclass(frozen=True)
class FilterState:
    """
    Search box and genre dropdown state.

    An empty string means "no restriction" for either field.
    """

    search_term: str = ""
    """Case-insensitive substring matched against title or author"""

    genre_filter: str = ""
    """Case-insensitive exact genre match"""

    def is_empty(self) -> bool:
        """Check if no filters are set."""
        return not self.search_term and not self.genre_filter


VALID_ORIGINS = {"live", "fallback_empty", "fallback_error"}


@dataclass(frozen=True)
class CatalogResponse:
    """
    Result of one fetch cycle with degradation metadata.

    `origin` tells where the records came from:
    - "live": mapped from store rows
    - "fallback_empty": sample data, the store returned no rows
    - "fallback_error": sample data, the store could not be read
    """

    records: Tuple[Any, ...] = field(default_factory=tuple)
    """BookRecord or AuthorRecord instances, in store order"""

    origin: str = "live"

    degradation_reason: Optional[str] = None
    """Human-readable explanation when sample data is shown"""

    latency_ms: Optional[float] = None
    """Fetch cycle execution time in milliseconds"""

    def __post_init__(self) -> None:
        """Validate response constraints."""
        if self.origin not in VALID_ORIGINS:
            raise ValueError(
                f"origin must be one of {sorted(VALID_ORIGINS)}, got '{self.origin}'"
            )

        if self.degraded and self.degradation_reason is None:
            raise ValueError("degradation_reason is required when serving fallback data")

    @property
    def degraded(self) -> bool:
        """True when the records are sample data instead of live rows."""
        return self.origin != "live"

    def is_empty(self) -> bool:
        """
        True when the store had nothing to show.

        A fallback substituted for an empty store counts as empty so the
        refresh controller keeps polling for real rows.
        """
        return not self.records or self.origin == "fallback_empty"
