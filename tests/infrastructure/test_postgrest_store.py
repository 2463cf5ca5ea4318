"""
Tests for PostgrestCatalogStore adapter.

Uses httpx.MockTransport to test without network calls.
Covers: request shape, Content-Range parsing, error translation.
"""

import asyncio
import json
from typing import Callable, List

import httpx
import pytest

from bookworm.domain.exceptions import StoreError
from bookworm.infrastructure.store import OfflineCatalogStore, PostgrestCatalogStore


BASE_URL = "https://test.supabase.local"


# =============================================================================
# Helper functions
# =============================================================================


class RecordingHandler:
    """Mock transport handler returning one canned response, remembering requests."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self._respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)


def _store(handler, **kwargs) -> PostgrestCatalogStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PostgrestCatalogStore(BASE_URL, "anon-key", client=client, **kwargs)


# =============================================================================
# Tests: probe
# =============================================================================


class TestProbe:

    def test_count_from_content_range(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, headers={"Content-Range": "0-24/25"}))

        count = asyncio.run(_store(handler).probe("book"))

        assert count == 25
        request = handler.requests[0]
        assert request.method == "HEAD"
        assert request.url.path == "/rest/v1/book"
        assert request.url.params["select"] == "*"
        assert request.headers["Prefer"] == "count=exact"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"

    def test_empty_table(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, headers={"Content-Range": "*/0"}))

        assert asyncio.run(_store(handler).probe("author")) == 0

    def test_missing_count_is_an_error(self):
        handler = RecordingHandler(lambda r: httpx.Response(200))

        with pytest.raises(StoreError, match="Missing row count"):
            asyncio.run(_store(handler).probe("book"))

    def test_unknown_count_is_an_error(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, headers={"Content-Range": "0-24/*"}))

        with pytest.raises(StoreError, match="Unknown row count"):
            asyncio.run(_store(handler).probe("book"))


# =============================================================================
# Tests: query
# =============================================================================


class TestQuery:

    def test_select_and_equality_filters(self):
        rows = [{"rating": 4, "comment": "Nice", "user_id": "u1"}]
        handler = RecordingHandler(lambda r: httpx.Response(200, json=rows))

        result = asyncio.run(
            _store(handler).query("books_read", "rating,comment,user_id", filters={"book_isbn": "123"})
        )

        assert result == rows
        params = handler.requests[0].url.params
        assert params["select"] == "rating,comment,user_id"
        assert params["book_isbn"] == "eq.123"

    def test_non_list_body_is_an_error(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, json={"rows": []}))

        with pytest.raises(StoreError, match="Expected a list"):
            asyncio.run(_store(handler).query("book", "isbn"))

    def test_invalid_json_is_an_error(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, content=b"<html>"))

        with pytest.raises(StoreError, match="Invalid JSON"):
            asyncio.run(_store(handler).query("book", "isbn"))

    def test_http_error_carries_status_and_message(self):
        handler = RecordingHandler(
            lambda r: httpx.Response(404, json={"message": 'relation "public.book" does not exist'})
        )

        with pytest.raises(StoreError) as exc_info:
            asyncio.run(_store(handler).query("book", "isbn"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.table == "book"
        assert "does not exist" in str(exc_info.value)

    def test_transport_error_becomes_store_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StoreError, match="request failed") as exc_info:
            asyncio.run(_store(refuse).query("book", "isbn"))

        assert exc_info.value.status_code is None


# =============================================================================
# Tests: writes
# =============================================================================


class TestWrites:

    def test_insert_posts_row(self):
        handler = RecordingHandler(lambda r: httpx.Response(201))

        asyncio.run(_store(handler).insert("book", {"isbn": "1", "name": "Unknown Title"}))

        request = handler.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"isbn": "1", "name": "Unknown Title"}
        assert request.headers["Prefer"] == "return=minimal"

    def test_upsert_merges_on_conflict_target(self):
        handler = RecordingHandler(lambda r: httpx.Response(201))

        asyncio.run(
            _store(handler).upsert(
                "books_read",
                {"book_isbn": "1", "rating": 5, "user_id": "u1"},
                on_conflict="book_isbn,user_id",
            )
        )

        request = handler.requests[0]
        assert request.url.params["on_conflict"] == "book_isbn,user_id"
        assert "merge-duplicates" in request.headers["Prefer"]

    def test_access_token_replaces_api_key_in_authorization(self):
        handler = RecordingHandler(lambda r: httpx.Response(201))
        store = _store(handler).with_access_token("user-jwt")

        asyncio.run(store.upsert("books_read", {"book_isbn": "1", "rating": 5, "user_id": "u1"}))

        request = handler.requests[0]
        assert request.headers["Authorization"] == "Bearer user-jwt"
        assert request.headers["apikey"] == "anon-key"

    def test_rejected_write_raises(self):
        handler = RecordingHandler(lambda r: httpx.Response(403, json={"message": "row-level security"}))

        with pytest.raises(StoreError) as exc_info:
            asyncio.run(_store(handler).insert("book", {"isbn": "1"}))

        assert exc_info.value.status_code == 403


# =============================================================================
# Tests: construction and offline store
# =============================================================================


class TestConstruction:

    @pytest.mark.parametrize("url, key", [("", "k"), ("https://x", ""), ("  ", "k")])
    def test_missing_settings_rejected(self, url, key):
        with pytest.raises(ValueError):
            PostgrestCatalogStore(url, key, client=httpx.AsyncClient())

    def test_offline_store_always_fails(self):
        store = OfflineCatalogStore()

        with pytest.raises(StoreError, match="no catalog store configured"):
            asyncio.run(store.probe("book"))
        with pytest.raises(StoreError):
            asyncio.run(store.upsert("books_read", {}))
