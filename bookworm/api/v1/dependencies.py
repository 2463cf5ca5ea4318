"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the store, the notification
sink, the fetch service and one refresh controller per subject for use
with FastAPI's Depends() system. The write path gets a fresh ReviewService
per request, bound to the caller's access token.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import logging
import os
from typing import Dict, Optional

import httpx
from fastapi import Header

from bookworm.domain.ports import AuthProvider, CatalogStore
from bookworm.domain.services import CatalogFetchService, RefreshController, ReviewService
from bookworm.domain.value_objects import FetchSubject
from bookworm.infrastructure.auth import AnonymousAuthProvider, SupabaseAuthProvider
from bookworm.infrastructure.notifications import LoggingNotificationSink, RecordingNotificationSink
from bookworm.infrastructure.store import OfflineCatalogStore, PostgrestCatalogStore

logger = logging.getLogger(__name__)

# Configuration from environment
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
STALE_SECONDS = float(os.getenv("CATALOG_STALE_SECONDS", "0"))
RETRY_ATTEMPTS = int(os.getenv("CATALOG_RETRY_ATTEMPTS", "3"))
RETRY_DELAY_SECONDS = float(os.getenv("CATALOG_RETRY_DELAY_SECONDS", "1.0"))
EMPTY_RETRY_SECONDS = float(os.getenv("CATALOG_EMPTY_RETRY_SECONDS", "3.0"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("CATALOG_HTTP_TIMEOUT_SECONDS", "10.0"))

# Module-level singletons (initialized lazily)
_http_client: Optional[httpx.AsyncClient] = None
_catalog_store: Optional[CatalogStore] = None
_notification_sink: Optional[RecordingNotificationSink] = None
_fetch_service: Optional[CatalogFetchService] = None
_controllers: Dict[FetchSubject, RefreshController] = {}


def is_store_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)


def get_http_client() -> httpx.AsyncClient:
    """Provide the shared HTTP client."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
    return _http_client


def get_catalog_store() -> CatalogStore:
    """Provide a singleton instance of the catalog store."""
    global _catalog_store
    if _catalog_store is None:
        if is_store_configured():
            _catalog_store = PostgrestCatalogStore(
                SUPABASE_URL,
                SUPABASE_ANON_KEY,
                client=get_http_client(),
            )
        else:
            logger.warning("SUPABASE_URL/SUPABASE_ANON_KEY not set, serving sample data only")
            _catalog_store = OfflineCatalogStore()
    return _catalog_store


def get_notification_sink() -> RecordingNotificationSink:
    """Provide the notification queue drained by GET /notifications."""
    global _notification_sink
    if _notification_sink is None:
        _notification_sink = RecordingNotificationSink(downstream=LoggingNotificationSink())
    return _notification_sink


def get_fetch_service() -> CatalogFetchService:
    """Provide the fetch service with store and sink wired."""
    global _fetch_service
    if _fetch_service is None:
        _fetch_service = CatalogFetchService(
            store=get_catalog_store(),
            notifier=get_notification_sink(),
        )
    return _fetch_service


def get_controller(subject: FetchSubject) -> RefreshController:
    """Provide the refresh controller of a subject; subjects never share one."""
    controller = _controllers.get(subject)
    if controller is None or controller.is_closed:
        controller = RefreshController.for_subject(
            subject,
            get_fetch_service(),
            get_notification_sink(),
            max_attempts=RETRY_ATTEMPTS,
            retry_delay=RETRY_DELAY_SECONDS,
            empty_retry_delay=EMPTY_RETRY_SECONDS,
            stale_time=STALE_SECONDS,
        )
        _controllers[subject] = controller
    return controller


def get_subject_controller(subject: FetchSubject) -> RefreshController:
    """Controller for a `{subject}` path parameter ("books" or "authors")."""
    return get_controller(subject)


def get_books_controller() -> RefreshController:
    return get_controller(FetchSubject.BOOKS)


def get_authors_controller() -> RefreshController:
    return get_controller(FetchSubject.AUTHORS)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_auth_provider(authorization: Optional[str] = Header(default=None)) -> AuthProvider:
    """Resolve the caller from their bearer token, if any."""
    token = bearer_token(authorization)
    if token is None or not is_store_configured():
        return AnonymousAuthProvider()
    return SupabaseAuthProvider(
        SUPABASE_URL,
        SUPABASE_ANON_KEY,
        token,
        client=get_http_client(),
    )


def get_review_service(authorization: Optional[str] = Header(default=None)) -> ReviewService:
    """Provide a ReviewService acting as the caller."""
    store = get_catalog_store()
    token = bearer_token(authorization)
    if token is not None and isinstance(store, PostgrestCatalogStore):
        store = store.with_access_token(token)

    return ReviewService(
        store=store,
        auth=get_auth_provider(authorization),
        notifier=get_notification_sink(),
    )


async def shutdown_dependencies() -> None:
    """Close controllers (cancelling their timers) and the HTTP client."""
    global _http_client

    for controller in list(_controllers.values()):
        await controller.close()

    if _http_client is not None:
        await _http_client.aclose()

    reset_dependencies()


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject mock dependencies by resetting
    the module state between test cases.
    """
    global _http_client, _catalog_store, _notification_sink, _fetch_service

    _http_client = None
    _catalog_store = None
    _notification_sink = None
    _fetch_service = None
    _controllers.clear()
