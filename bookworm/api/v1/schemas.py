"""
Request and response models for the v1 catalog API.
"""

from typing import Literal

from pydantic import BaseModel, Field


class Review(BaseModel):
    """API representation of a ReviewRecord."""

    user_id: str = Field(description="Reviewer id")
    rating: int | None = Field(default=None, description="Star rating 1-5, if given")
    comment: str = Field(description="Review text")
    initials: str = Field(description="Short display key for the reviewer avatar")


class AuthorBookRef(BaseModel):
    isbn: str
    title: str


class Author(BaseModel):
    """API representation of an AuthorRecord."""

    id: int = Field(description="Author id in the store")
    name: str = Field(description="Display name")
    contact_details: str = Field(description="Contact line")
    books: list[AuthorBookRef] = Field(default_factory=list, description="Books by this author")


class Book(BaseModel):
    """
    API representation of a BookRecord.

    Maps from the domain BookRecord entity for API responses.
    """

    isbn: str = Field(description="Unique identifier of the book")
    title: str = Field(description="Book title")
    author_display: str = Field(description="Comma-joined author names")
    genre: str = Field(description="Genre label")
    image_url: str = Field(description="Cover image or placeholder URL")
    summary: str = Field(description="Short description")
    rating_aggregate: float = Field(ge=0.0, le=5.0, description="Mean rating, one decimal")
    author_details: Author | None = Field(default=None, description="First resolved author")
    reviews: list[Review] = Field(default_factory=list, description="Reviews in store order")


class CatalogStatus(BaseModel):
    """Fetch metadata shared by the list responses."""

    origin: Literal["live", "fallback_empty", "fallback_error"] = Field(
        description="Where the records came from"
    )
    degraded: bool = Field(default=False, description="True if sample data is shown")
    degradation_reason: str | None = Field(
        default=None,
        description="Human-readable explanation of why sample data is shown",
    )
    state: Literal["idle", "loading", "succeeded", "failed"] = Field(
        description="Controller state for this subject"
    )
    refetch_token: int = Field(ge=0, description="Current refetch token")
    latency_ms: float | None = Field(default=None, description="Fetch cycle time in ms")


class BookListResponse(BaseModel):
    books: list[Book] = Field(description="Books matching the filters, in store order")
    genres: list[str] = Field(description="Distinct genres of the unfiltered list")
    total: int = Field(ge=0, description="Number of books before filtering")
    status: CatalogStatus


class AuthorListResponse(BaseModel):
    authors: list[Author]
    total: int = Field(ge=0)
    status: CatalogStatus


class ReviewRequest(BaseModel):
    """Request body for POST /books/{isbn}/reviews."""

    rating: int = Field(ge=1, le=5, description="Star rating 1-5")
    comment: str | None = Field(default=None, max_length=2000, description="Optional review text")
    title: str | None = Field(default=None, description="Book title, used if the book row is missing")


class RatingRequest(BaseModel):
    """Request body for POST /books/{isbn}/rating."""

    rating: int = Field(ge=1, le=5, description="Star rating 1-5")
    title: str | None = Field(default=None, description="Book title, used in the confirmation")


class Notification(BaseModel):
    level: Literal["success", "info", "error"]
    message: str


class NotificationList(BaseModel):
    notifications: list[Notification]
