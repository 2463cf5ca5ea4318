"""
Converters between domain entities/value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from dataclasses import asdict
from typing import Optional, Sequence

from bookworm.domain import entities as domain
from bookworm.domain import value_objects as domain_vo
from bookworm.domain.filters import distinct_genres, filter_books
from bookworm.domain.services import RefreshController
from bookworm.api.v1 import schemas as api


def domain_review_to_api(review: domain.ReviewRecord) -> api.Review:
    return api.Review(
        user_id=review.user_id,
        rating=review.rating,
        comment=review.comment,
        initials=review.initials(),
    )


def domain_author_to_api(author: domain.AuthorRecord) -> api.Author:
    """
    Convert a domain AuthorRecord to an API Author model.

    Args:
        author: Domain AuthorRecord entity

    Returns:
        API Author model
    """
    return api.Author(**asdict(author))


def domain_book_to_api(book: domain.BookRecord) -> api.Book:
    """
    Convert a domain BookRecord to an API Book model.

    Args:
        book: Domain BookRecord entity

    Returns:
        API Book model
    """
    book_dict = asdict(book)
    book_dict["reviews"] = [domain_review_to_api(review) for review in book.reviews]
    return api.Book(**book_dict)


def controller_status_to_api(
    controller: RefreshController,
    response: domain_vo.CatalogResponse,
) -> api.CatalogStatus:
    return api.CatalogStatus(
        origin=response.origin,
        degraded=response.degraded,
        degradation_reason=response.degradation_reason,
        state=controller.state.value,
        refetch_token=controller.refetch_token,
        latency_ms=response.latency_ms,
    )


def domain_books_to_api(
    controller: RefreshController,
    response: domain_vo.CatalogResponse,
    filters: Optional[domain_vo.FilterState] = None,
) -> api.BookListResponse:
    """
    Build the book list response, narrowed by the filter state.

    Genres are taken from the unfiltered records so the dropdown keeps
    every choice while a filter is active.
    """
    records: Sequence[domain.BookRecord] = response.records
    filtered = filter_books(records, filters or domain_vo.FilterState())

    return api.BookListResponse(
        books=[domain_book_to_api(book) for book in filtered],
        genres=distinct_genres(records),
        total=len(records),
        status=controller_status_to_api(controller, response),
    )


def domain_authors_to_api(
    controller: RefreshController,
    response: domain_vo.CatalogResponse,
) -> api.AuthorListResponse:
    return api.AuthorListResponse(
        authors=[domain_author_to_api(author) for author in response.records],
        total=len(response.records),
        status=controller_status_to_api(controller, response),
    )


def domain_notification_to_api(notification: domain_vo.Notification) -> api.Notification:
    return api.Notification(level=notification.level.value, message=notification.message)


def api_filters_to_domain(search: Optional[str], genre: Optional[str]) -> domain_vo.FilterState:
    """
    Convert query parameters to a domain FilterState value object.

    Surrounding whitespace is ignored; missing parameters mean no filter.
    """
    return domain_vo.FilterState(
        search_term=(search or "").strip(),
        genre_filter=(genre or "").strip(),
    )
