"""
Aggregate mapper: nested store rows -> flat catalog records.

The store returns books joined with their author associations and review
rows, and authors joined with their book associations. The functions here
flatten one such row into a BookRecord or AuthorRecord and compute the
derived fields (aggregate rating, placeholder image, author display name).

Every field has a documented default, so mapping never fails on a
well-typed row. Rows with a missing or non-string key are a contract
violation and must be rejected by the caller before mapping.

Example row (book):

    {
        "isbn": "9780451524935",
        "name": "1984",
        "summary": None,
        "rating": None,
        "genre": "Dystopian",
        "image_url": None,
        "author_book": [{"author_id": 3, "author": {"id": 3, "name": "George Orwell"}}],
        "books_read": [{"rating": 5, "user_id": "u1", "comment": "Chilling."}],
    }
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .entities import (
    AuthorBookRef,
    AuthorRecord,
    BookRecord,
    ReviewRecord,
    DEFAULT_COMMENT,
    DEFAULT_CONTACT_DETAILS,
    DEFAULT_GENRE,
    DEFAULT_SUMMARY,
    MAX_RATING,
    MIN_RATING,
    UNKNOWN_AUTHOR,
    UNKNOWN_ISBN,
    UNKNOWN_TITLE,
)

DEFAULT_RATING = 0.0
"""Aggregate used when a book has neither rated reviews nor a stored rating"""

MIN_STARS = 1
MAX_STARS = 5

PLACEHOLDER_IMAGES = (
    "https://images.unsplash.com/photo-1543002588-bfa74002ed7e",
    "https://images.unsplash.com/photo-1544947950-fa07a98d237f",
    "https://images.unsplash.com/photo-1541963463532-d68292c34b19",
    "https://images.unsplash.com/photo-1546521343-4eb2c01aa44b",
    "https://images.unsplash.com/photo-1512820790803-83ca734da794",
    "https://images.unsplash.com/photo-1495446815901-a7297e633e8d",
    "https://images.unsplash.com/photo-1589829085413-56de8ae18c73",
    "https://images.unsplash.com/photo-1532012197267-da84d127e765",
)


def placeholder_image_for(isbn: str) -> str:
    """
    Pick a stable placeholder cover for an ISBN.

    The index is the sum of the ISBN's character codes modulo the palette
    size, so the same ISBN always maps to the same image.
    """
    index = sum(ord(ch) for ch in isbn) % len(PLACEHOLDER_IMAGES)
    return PLACEHOLDER_IMAGES[index]


def round_rating(value: float) -> float:
    """Round half-up to one decimal place and clamp to the rating range."""
    rounded = math.floor(value * 10 + 0.5) / 10
    return min(MAX_RATING, max(MIN_RATING, rounded))


def aggregate_rating(
    reviews: Iterable[ReviewRecord],
    stored_rating: Optional[float] = None,
) -> float:
    """
    Compute the rating shown for a book.

    The mean of all reviews that carry a rating wins over the book's own
    stored rating; the stored rating wins over DEFAULT_RATING.
    """
    ratings = [review.rating for review in reviews if review.rating is not None]
    if ratings:
        return round_rating(sum(ratings) / len(ratings))

    if stored_rating is not None:
        return round_rating(float(stored_rating))

    return DEFAULT_RATING


def resolve_author_display(associations: Optional[Sequence[Mapping[str, Any]]]) -> str:
    """Join the names of every embedded author, in association order."""
    names = [author["name"] for author in _embedded(associations, "author") if author.get("name")]
    return ", ".join(names) if names else UNKNOWN_AUTHOR


def review_rating(value: Any) -> Optional[int]:
    """
    Normalize a stored review rating to a star count.

    Only whole numbers from 1 to 5 count. Anything else (a 0 written when
    no star was picked, fractions, text) becomes None, so it is left out of
    the aggregate instead of being truncated or skewing the mean.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value != int(value) or not (MIN_STARS <= value <= MAX_STARS):
        return None
    return int(value)


def map_review_row(row: Mapping[str, Any]) -> ReviewRecord:
    """Map one `books_read` row to a ReviewRecord."""
    return ReviewRecord(
        user_id=str(row.get("user_id") or ""),
        rating=review_rating(row.get("rating")),
        comment=row.get("comment") or DEFAULT_COMMENT,
    )


def map_book_row(row: Mapping[str, Any]) -> BookRecord:
    """
    Flatten a book row with its author associations and reviews.

    Args:
        row: Raw row with isbn, name, summary, rating, genre, image_url,
             author_book (associations with an embedded `author` or None)
             and books_read (review rows)

    Returns:
        BookRecord with defaults applied and derived fields computed.
        Nested entries that are not objects are skipped.
    """
    isbn = row["isbn"]
    associations = row.get("author_book") or []
    reviews = tuple(
        map_review_row(review)
        for review in (row.get("books_read") or [])
        if isinstance(review, Mapping)
    )

    authors = _embedded(associations, "author")
    author_details = _author_projection(authors[0]) if authors else None

    return BookRecord(
        isbn=isbn,
        title=row.get("name") or row.get("title") or UNKNOWN_TITLE,
        author_display=resolve_author_display(associations),
        genre=row.get("genre") or DEFAULT_GENRE,
        image_url=row.get("image_url") or placeholder_image_for(isbn),
        summary=row.get("summary") or DEFAULT_SUMMARY,
        rating_aggregate=aggregate_rating(reviews, row.get("rating")),
        author_details=author_details,
        reviews=reviews,
    )


def map_author_row(row: Mapping[str, Any]) -> AuthorRecord:
    """Flatten an author row with its book associations."""
    books = []
    for association in row.get("author_book") or []:
        if not isinstance(association, Mapping):
            continue
        book = association.get("book")
        if not isinstance(book, Mapping):
            book = {}
        books.append(
            AuthorBookRef(
                isbn=book.get("isbn") or UNKNOWN_ISBN,
                title=book.get("name") or UNKNOWN_TITLE,
            )
        )

    return AuthorRecord(
        id=row["id"],
        name=row.get("name") or UNKNOWN_AUTHOR,
        contact_details=row.get("contact_details") or DEFAULT_CONTACT_DETAILS,
        books=tuple(books),
    )


def _embedded(
    associations: Optional[Sequence[Mapping[str, Any]]],
    key: str,
) -> List[Dict[str, Any]]:
    """Collect the embedded sub-records of an association list, skipping nulls and non-objects."""
    found = []
    for association in associations or []:
        if not isinstance(association, Mapping):
            continue
        embedded = association.get(key)
        if isinstance(embedded, Mapping) and embedded:
            found.append(embedded)
    return found


def _author_projection(author: Mapping[str, Any]) -> Optional[AuthorRecord]:
    # The embedded author carries no book list of its own.
    if author.get("id") is None:
        return None
    return AuthorRecord(
        id=author["id"],
        name=author.get("name") or UNKNOWN_AUTHOR,
        contact_details=author.get("contact_details") or DEFAULT_CONTACT_DETAILS,
    )
