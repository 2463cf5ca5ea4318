"""
API endpoints for the book and author catalog.

This module defines the FastAPI routes the browser front end calls. It
handles HTTP concerns and delegates to the refresh controllers (reads) and
the review service (writes).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from bookworm.domain.exceptions import ReviewSubmissionError
from bookworm.domain.services import CatalogFetchService, RefreshController, ReviewService
from bookworm.domain.value_objects import FetchState
from bookworm.infrastructure.notifications import RecordingNotificationSink
from bookworm.api.v1 import schemas as api
from bookworm.api.v1.converters import (
    api_filters_to_domain,
    controller_status_to_api,
    domain_author_to_api,
    domain_authors_to_api,
    domain_book_to_api,
    domain_books_to_api,
    domain_notification_to_api,
    domain_review_to_api,
)
from bookworm.api.v1.dependencies import (
    get_authors_controller,
    get_books_controller,
    get_subject_controller,
    get_fetch_service,
    get_notification_sink,
    get_review_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Books
# =============================================================================


@router.get("/books", response_model=api.BookListResponse)
async def list_books(
    search: str = "",
    genre: str = "",
    controller: RefreshController = Depends(get_books_controller),
) -> api.BookListResponse:
    """
    List books, narrowed by a title/author search and a genre.

    Never fails because of the store: when it is empty or unreachable the
    sample catalog is returned with `status.degraded` set.
    """
    response = await controller.load()
    return domain_books_to_api(controller, response, api_filters_to_domain(search, genre))


@router.post("/books/retry", response_model=api.BookListResponse)
async def retry_books(
    controller: RefreshController = Depends(get_books_controller),
) -> api.BookListResponse:
    """Manual "Retry Connection": bump the refetch token and fetch again."""
    response = await controller.retry()
    return domain_books_to_api(controller, response)


@router.get("/books/{isbn}", response_model=api.Book)
async def get_book(
    isbn: str,
    controller: RefreshController = Depends(get_books_controller),
) -> api.Book:
    """
    Get one book of the current catalog by ISBN.

    Raises:
        404: Book not found
    """
    response = controller.response or await controller.load()
    for book in response.records:
        if book.isbn == isbn:
            return domain_book_to_api(book)

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Book with isbn '{isbn}' not found",
    )


@router.get("/books/{isbn}/reviews", response_model=list[api.Review])
async def list_reviews(
    isbn: str,
    fetch_service: CatalogFetchService = Depends(get_fetch_service),
) -> list[api.Review]:
    """Latest reviews of one book, read straight from the store."""
    reviews = await fetch_service.fetch_reviews(isbn)
    return [domain_review_to_api(review) for review in reviews]


@router.post(
    "/books/{isbn}/reviews",
    response_model=api.Review,
    status_code=status.HTTP_201_CREATED,
)
async def submit_review(
    isbn: str,
    request: api.ReviewRequest,
    service: ReviewService = Depends(get_review_service),
) -> api.Review:
    """
    Submit a star rating with a comment as the signed-in user.

    Raises:
        400: Invalid rating or ISBN
        401: Not signed in
        502: The store rejected the book or review write
    """
    try:
        review = await service.submit_review(
            isbn,
            request.rating,
            request.comment,
            title=request.title,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ReviewSubmissionError as e:
        raise _submission_error_to_http(e)

    return domain_review_to_api(review)


@router.post(
    "/books/{isbn}/rating",
    response_model=api.Review,
    status_code=status.HTTP_201_CREATED,
)
async def submit_rating(
    isbn: str,
    request: api.RatingRequest,
    service: ReviewService = Depends(get_review_service),
) -> api.Review:
    """Submit a star rating only, as the signed-in user."""
    try:
        review = await service.submit_rating(isbn, request.rating, title=request.title)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ReviewSubmissionError as e:
        raise _submission_error_to_http(e)

    return domain_review_to_api(review)


# =============================================================================
# Authors
# =============================================================================


@router.get("/authors", response_model=api.AuthorListResponse)
async def list_authors(
    controller: RefreshController = Depends(get_authors_controller),
) -> api.AuthorListResponse:
    response = await controller.load()
    return domain_authors_to_api(controller, response)


@router.post("/authors/retry", response_model=api.AuthorListResponse)
async def retry_authors(
    controller: RefreshController = Depends(get_authors_controller),
) -> api.AuthorListResponse:
    response = await controller.retry()
    return domain_authors_to_api(controller, response)


@router.get("/authors/{author_id}", response_model=api.Author)
async def get_author(
    author_id: int,
    controller: RefreshController = Depends(get_authors_controller),
) -> api.Author:
    """
    Get one author of the current catalog.

    Raises:
        404: Author not found
    """
    response = controller.response or await controller.load()
    for author in response.records:
        if author.id == author_id:
            return domain_author_to_api(author)

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Author with id '{author_id}' not found",
    )


# =============================================================================
# Refresh signals, notifications, health
# =============================================================================


@router.post("/{subject}/focus", response_model=api.CatalogStatus)
async def view_focused(
    controller: RefreshController = Depends(get_subject_controller),
) -> api.CatalogStatus:
    """The browser view regained focus: force a fresh fetch."""
    response = await controller.on_focus()
    return controller_status_to_api(controller, response)


@router.post("/{subject}/reconnect", response_model=api.CatalogStatus)
async def connection_restored(
    controller: RefreshController = Depends(get_subject_controller),
) -> api.CatalogStatus:
    """The browser is back online: force a fresh fetch."""
    response = await controller.on_reconnect()
    return controller_status_to_api(controller, response)


@router.get("/notifications", response_model=api.NotificationList)
def drain_notifications(
    sink: RecordingNotificationSink = Depends(get_notification_sink),
) -> api.NotificationList:
    """Pending toasts, oldest first. Each notification is returned once."""
    return api.NotificationList(
        notifications=[domain_notification_to_api(n) for n in sink.drain()],
    )


@router.get("/health")
def health_check(
    books: RefreshController = Depends(get_books_controller),
    authors: RefreshController = Depends(get_authors_controller),
) -> dict:
    """
    Report the state of each subject.

    "degraded" when either subject is showing sample data or its last
    cycle failed.
    """
    components = {}
    degraded = False
    for controller in (books, authors):
        response = controller.response
        subject_degraded = controller.state is FetchState.FAILED or (
            response is not None and response.degraded
        )
        degraded = degraded or subject_degraded
        components[controller.subject.value] = {
            "state": controller.state.value,
            "refetch_token": controller.refetch_token,
            "degraded": subject_degraded,
        }

    return {
        "status": "degraded" if degraded else "ok",
        "components": components,
    }


def _submission_error_to_http(error: ReviewSubmissionError) -> HTTPException:
    if error.stage == "auth":
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(error))

    logger.warning(f"Review submission failed at {error.stage}: {error}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
