"""
Filter engine for the book list view.

Pure, synchronous narrowing of already-mapped records by the search box
and the genre dropdown.
"""

from typing import Iterable, List, Sequence

from .entities import BookRecord
from .value_objects import FilterState


def matches(book: BookRecord, state: FilterState) -> bool:
    """Check a single record against the filter state."""
    if state.search_term:
        term = state.search_term.lower()
        if term not in book.title.lower() and term not in book.author_display.lower():
            return False

    if state.genre_filter:
        if (book.genre or "").lower() != state.genre_filter.lower():
            return False

    return True


def filter_books(records: Sequence[BookRecord], state: FilterState) -> List[BookRecord]:
    """
    Narrow records by search term and genre.

    Order is preserved and the input is not modified. With an empty
    FilterState every record is returned.
    """
    if state.is_empty():
        return list(records)

    return [book for book in records if matches(book, state)]


def distinct_genres(records: Iterable[BookRecord]) -> List[str]:
    """Genres in first-seen order, skipping empty values. Feeds the genre dropdown."""
    seen = set()
    genres = []
    for book in records:
        genre = book.genre
        if not genre or genre in seen:
            continue
        seen.add(genre)
        genres.append(genre)
    return genres
