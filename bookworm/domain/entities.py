"""
Domain entities for the book catalog.

These are the flat, UI-ready records produced by the aggregate mapper from
nested store rows. A fetch cycle always builds a wholly new set of records,
so every entity is frozen and holds tuples instead of lists.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


UNKNOWN_AUTHOR = "Unknown Author"
DEFAULT_GENRE = "Uncategorized"
DEFAULT_SUMMARY = "No summary available."
DEFAULT_COMMENT = "No comment provided."
DEFAULT_CONTACT_DETAILS = "No contact details"
UNKNOWN_ISBN = "Unknown ISBN"
UNKNOWN_TITLE = "Unknown Title"

MIN_RATING = 0.0
MAX_RATING = 5.0


@dataclass(frozen=True)
class ReviewRecord:
    """A single reader review attached to a book."""

    user_id: str
    """Opaque identifier of the reviewer, only used as a display key"""

    rating: Optional[int] = None
    """Star rating 1-5; None means the review does not count towards the aggregate"""

    comment: str = DEFAULT_COMMENT
    """Free-text comment"""

    def has_rating(self) -> bool:
        """Check if this review contributes to the aggregate rating."""
        return self.rating is not None

    def initials(self) -> str:
        """Two-letter display key derived from the user id."""
        cleaned = "".join(ch for ch in self.user_id if ch.isalnum())
        return cleaned[:2].upper() or "?"


@dataclass(frozen=True)
class AuthorBookRef:
    """Weak reference from an author to one of their books, by ISBN."""

    isbn: str = UNKNOWN_ISBN
    title: str = UNKNOWN_TITLE


@dataclass(frozen=True)
class AuthorRecord:
    """
    An author with the books they are associated with.

    `books` holds references by key, not BookRecord instances.
    """

    id: int
    """Store identifier of the author"""

    name: str
    """Display name"""

    contact_details: str = DEFAULT_CONTACT_DETAILS
    """Contact line shown in the author dialog"""

    books: Tuple[AuthorBookRef, ...] = field(default_factory=tuple)
    """Books by this author, in association order"""

    def book_count(self) -> int:
        return len(self.books)


@dataclass(frozen=True)
class BookRecord:
    """
    Represents a book as shown in the catalog.

    The ISBN is the stable key of a record within one fetch result.
    """

    isbn: str
    """Unique identifier of the book"""

    title: str
    """Book title"""

    author_display: str = UNKNOWN_AUTHOR
    """Comma-joined author names"""

    genre: str = DEFAULT_GENRE
    """Genre label used by the genre filter"""

    image_url: str = ""
    """Cover image URL, or a placeholder derived from the ISBN"""

    summary: str = DEFAULT_SUMMARY
    """Short description of the book"""

    rating_aggregate: float = 0.0
    """Mean review rating in [0, 5]"""

    author_details: Optional[AuthorRecord] = None
    """Read-only projection of the first resolved author"""

    reviews: Tuple[ReviewRecord, ...] = field(default_factory=tuple)
    """Reviews in the order the store returned them"""

    def __post_init__(self) -> None:
        """Validate book data."""
        if not isinstance(self.isbn, str) or not self.isbn.strip():
            raise ValueError("Book isbn cannot be empty")

        if not (MIN_RATING <= self.rating_aggregate <= MAX_RATING):
            raise ValueError(
                f"rating_aggregate must be between {MIN_RATING} and {MAX_RATING}, "
                f"got {self.rating_aggregate}"
            )

    def review_count(self) -> int:
        return len(self.reviews)
