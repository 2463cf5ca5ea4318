"""
Fallback catalog: sample books and authors shown when the store is
unreachable or empty.

The samples are written as raw store rows and run through the aggregate
mapper once, so they get exactly the same defaults and derived fields
(placeholder images included) as live data.
"""

import logging
import random
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from .entities import AuthorRecord, BookRecord, ReviewRecord
from .mapper import map_author_row, map_book_row, round_rating

logger = logging.getLogger(__name__)

SYNTHETIC_MIN_REVIEWS = 1
SYNTHETIC_MAX_REVIEWS = 3
SYNTHETIC_MIN_RATING = 3
SYNTHETIC_MAX_RATING = 5

SYNTHETIC_COMMENTS = (
    "A timeless classic that never fails to charm.",
    "Could not put it down.",
    "Beautifully written and thought-provoking.",
    "A must-read for anyone who loves great stories.",
    "The characters stayed with me long after the last page.",
    "Worth every minute.",
    "I keep coming back to this one.",
)


def _association(author_id: int, name: str, contact: str) -> dict:
    return {
        "author_id": author_id,
        "author": {"id": author_id, "name": name, "contact_details": contact},
    }


_AUSTEN = _association(1, "Jane Austen", "jane.austen@example.com")
_LEE = _association(2, "Harper Lee", "harper.lee@example.com")
_ORWELL = _association(3, "George Orwell", "george.orwell@example.com")
_BROWN = _association(4, "Dan Brown", "dan.brown@example.com")

SAMPLE_BOOK_ROWS = (
    {
        "isbn": "9780141439518",
        "name": "Pride and Prejudice",
        "summary": (
            "Pride and Prejudice follows the turbulent relationship between Elizabeth "
            "Bennet, the daughter of a country gentleman, and Fitzwilliam Darcy, a rich "
            "aristocratic landowner."
        ),
        "rating": 4.7,
        "genre": "Classic",
        "image_url": "https://images.unsplash.com/photo-1544947950-fa07a98d237f?q=80&w=1000",
        "author_book": [_AUSTEN],
        "books_read": [
            {"rating": 5, "user_id": "demo-1", "comment": "A timeless classic that never fails to charm."},
        ],
    },
    {
        "isbn": "9780061120084",
        "name": "To Kill a Mockingbird",
        "summary": (
            "To Kill a Mockingbird is a novel by Harper Lee published in 1960. It was "
            "immediately successful, winning the Pulitzer Prize, and has become a classic "
            "of modern American literature."
        ),
        "rating": 4.8,
        "genre": "Fiction",
        "image_url": "https://images.unsplash.com/photo-1541963463532-d68292c34b19?q=80&w=1000",
        "author_book": [_LEE],
        "books_read": [
            {"rating": 5, "user_id": "demo-2", "comment": "Profound and moving exploration of racial injustice."},
        ],
    },
    {
        "isbn": "9780451524935",
        "name": "1984",
        "summary": (
            "A dystopian novel set in Airstrip One, a province of the superstate Oceania, "
            "where the Party surveils and controls every aspect of life."
        ),
        "rating": 4.7,
        "genre": "Fiction",
        "image_url": None,
        "author_book": [_ORWELL],
        "books_read": [],
    },
    {
        "isbn": "9780452284241",
        "name": "Animal Farm",
        "summary": (
            "A farmyard revolt against the humans goes wrong as the pigs who lead it "
            "become the tyrants they replaced."
        ),
        "rating": 4.5,
        "genre": "Satire",
        "image_url": None,
        "author_book": [_ORWELL],
        "books_read": [],
    },
    {
        "isbn": "9780307474278",
        "name": "The Da Vinci Code",
        "summary": (
            "Symbologist Robert Langdon follows a trail of clues hidden in the works of "
            "Leonardo da Vinci after a murder in the Louvre."
        ),
        "rating": 4.5,
        "genre": "Thriller",
        "image_url": "https://images.unsplash.com/photo-1546521343-4eb2c01aa44b",
        "author_book": [_BROWN],
        "books_read": [],
    },
)

SAMPLE_AUTHOR_ROWS = (
    {
        "id": 1,
        "name": "Jane Austen",
        "contact_details": "jane.austen@example.com",
        "author_book": [
            {"book_isbn": "9780141439518", "book": {"isbn": "9780141439518", "name": "Pride and Prejudice"}},
            {"book_isbn": "9780141439662", "book": {"isbn": "9780141439662", "name": "Emma"}},
        ],
    },
    {
        "id": 2,
        "name": "Harper Lee",
        "contact_details": "harper.lee@example.com",
        "author_book": [
            {"book_isbn": "9780061120084", "book": {"isbn": "9780061120084", "name": "To Kill a Mockingbird"}},
        ],
    },
    {
        "id": 3,
        "name": "George Orwell",
        "contact_details": "george.orwell@example.com",
        "author_book": [
            {"book_isbn": "9780451524935", "book": {"isbn": "9780451524935", "name": "1984"}},
            {"book_isbn": "9780452284241", "book": {"isbn": "9780452284241", "name": "Animal Farm"}},
        ],
    },
    {
        "id": 4,
        "name": "Dan Brown",
        "contact_details": "dan.brown@example.com",
        "author_book": [
            {"book_isbn": "9780307474278", "book": {"isbn": "9780307474278", "name": "The Da Vinci Code"}},
        ],
    },
)


class FallbackCatalog:
    """
    Read-only substitute data set for the catalog views.

    Records are built once per instance and returned as the same tuples on
    every call; they are frozen, so callers cannot alter them.
    """

    def __init__(self) -> None:
        self._books: Tuple[BookRecord, ...] = tuple(map_book_row(row) for row in SAMPLE_BOOK_ROWS)
        self._authors: Tuple[AuthorRecord, ...] = tuple(map_author_row(row) for row in SAMPLE_AUTHOR_ROWS)

    def sample_books(self) -> Tuple[BookRecord, ...]:
        return self._books

    def sample_authors(self) -> Tuple[AuthorRecord, ...]:
        return self._authors

    def sample_books_with_synthetic_reviews(
        self,
        candidate_user_ids: Sequence[str],
        rng: Optional[random.Random] = None,
    ) -> Tuple[BookRecord, ...]:
        """
        Sample books with generated reviews from real user ids.

        Each book gets between 1 and 3 reviews. Every review has a rating
        drawn uniformly from [3, 5], a user id drawn from the pool and a
        comment drawn from SYNTHETIC_COMMENTS; the aggregate rating is
        recomputed from those ratings only.

        Args:
            candidate_user_ids: Pool of user ids to attribute reviews to.
                               An empty pool returns the plain samples.
            rng: Random source; pass a seeded random.Random in tests

        Returns:
            New BookRecord instances; the plain samples are left untouched
        """
        pool = [user_id for user_id in candidate_user_ids if user_id]
        if not pool:
            return self._books

        rng = rng or random.Random()
        enriched = []
        for book in self._books:
            count = rng.randint(SYNTHETIC_MIN_REVIEWS, SYNTHETIC_MAX_REVIEWS)
            reviews = tuple(
                ReviewRecord(
                    user_id=rng.choice(pool),
                    rating=rng.randint(SYNTHETIC_MIN_RATING, SYNTHETIC_MAX_RATING),
                    comment=rng.choice(SYNTHETIC_COMMENTS),
                )
                for _ in range(count)
            )
            mean = sum(review.rating for review in reviews) / len(reviews)
            enriched.append(replace(book, reviews=reviews, rating_aggregate=round_rating(mean)))

        logger.debug(f"Generated synthetic reviews for {len(enriched)} sample books from {len(pool)} users")
        return tuple(enriched)
