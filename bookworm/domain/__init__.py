"""
Domain layer - Core catalog logic and entities.

This layer contains the catalog records, the aggregate mapper, the fallback
catalog, the filter engine and the fetch/refresh/review services, and
defines the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import AuthorBookRef, AuthorRecord, BookRecord, ReviewRecord
from .exceptions import ReviewSubmissionError, StoreError
from .value_objects import (
    CatalogResponse,
    FetchState,
    FetchSubject,
    FilterState,
    Notification,
    NotificationLevel,
)

__all__ = [
    # Entities
    "AuthorBookRef",
    "AuthorRecord",
    "BookRecord",
    "ReviewRecord",
    # Value Objects
    "CatalogResponse",
    "FetchState",
    "FetchSubject",
    "FilterState",
    "Notification",
    "NotificationLevel",
    # Exceptions
    "ReviewSubmissionError",
    "StoreError",
]
