"""
Tests for value objects.
"""

import pytest

from bookworm.domain.entities import BookRecord
from bookworm.domain.value_objects import (
    CatalogResponse,
    FetchSubject,
    FilterState,
    Notification,
    NotificationLevel,
)


class TestCatalogResponse:
    """Tests for CatalogResponse."""

    def test_live_response_is_not_degraded(self):
        response = CatalogResponse(records=(BookRecord(isbn="1", title="A"),))

        assert response.origin == "live"
        assert not response.degraded
        assert not response.is_empty()

    def test_fallback_requires_reason(self):
        with pytest.raises(ValueError, match="degradation_reason"):
            CatalogResponse(records=(), origin="fallback_error")

    def test_unknown_origin_rejected(self):
        with pytest.raises(ValueError, match="origin"):
            CatalogResponse(origin="cache")

    def test_fallback_for_empty_store_counts_as_empty(self):
        response = CatalogResponse(
            records=(BookRecord(isbn="1", title="Sample"),),
            origin="fallback_empty",
            degradation_reason="No books",
        )

        assert response.degraded
        assert response.is_empty()

    def test_fallback_for_error_with_records_is_not_empty(self):
        response = CatalogResponse(
            records=(BookRecord(isbn="1", title="Sample"),),
            origin="fallback_error",
            degradation_reason="Store down",
        )

        assert response.degraded
        assert not response.is_empty()

    def test_no_records_is_empty(self):
        assert CatalogResponse().is_empty()


class TestFilterState:

    def test_default_is_empty(self):
        assert FilterState().is_empty()

    def test_any_field_makes_it_non_empty(self):
        assert not FilterState(search_term="x").is_empty()
        assert not FilterState(genre_filter="Fiction").is_empty()


class TestNotification:

    def test_empty_message_rejected(self):
        with pytest.raises(ValueError):
            Notification(level=NotificationLevel.INFO, message="   ")

    def test_enum_values_are_wire_strings(self):
        assert NotificationLevel.ERROR.value == "error"
        assert FetchSubject("authors") is FetchSubject.AUTHORS
