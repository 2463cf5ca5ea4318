"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.

Following Hexagonal Architecture principles, services depend only on domain
entities, value objects, and port protocols (never on concrete implementations).
"""

from .catalog_fetch_service import CatalogFetchService
from .refresh_controller import RefreshController
from .review_service import ReviewService

__all__ = [
    "CatalogFetchService",
    "RefreshController",
    "ReviewService",
]
