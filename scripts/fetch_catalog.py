#!/usr/bin/env python3
"""
Catalog fetch script.

Runs one fetch cycle against the hosted store and prints the books (or
authors), narrowed by the same search/genre filter the web view uses.
Sample data is printed, and flagged, when the store is empty or unreachable.

Usage:
    python -m scripts.fetch_catalog --search orwell
    python -m scripts.fetch_catalog --subject authors --url https://xyz.supabase.co --key anon-key
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

from bookworm.domain.filters import distinct_genres, filter_books
from bookworm.domain.services import CatalogFetchService
from bookworm.domain.value_objects import FilterState
from bookworm.infrastructure.notifications import LoggingNotificationSink
from bookworm.infrastructure.store import OfflineCatalogStore, PostgrestCatalogStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run(
    subject: str,
    url: Optional[str],
    key: Optional[str],
    search: str = "",
    genre: str = "",
) -> int:
    """
    Fetch and print one subject.

    Args:
        subject: "books" or "authors"
        url: Store project URL; sample data only if missing
        key: Store API key
        search: Title/author search term (books only)
        genre: Genre filter (books only)

    Returns:
        Number of records printed
    """
    if url and key:
        store = PostgrestCatalogStore(url, key)
    else:
        logger.warning("No store URL/key given, printing sample data")
        store = OfflineCatalogStore()

    service = CatalogFetchService(store=store, notifier=LoggingNotificationSink())
    try:
        if subject == "authors":
            response = await service.fetch_authors_with_status()
            for author in response.records:
                titles = ", ".join(ref.title for ref in author.books) or "-"
                print(
                    f"{author.id:>4}  {author.name}  <{author.contact_details}>  "
                    f"{author.book_count()} book(s): {titles}"
                )
            printed = len(response.records)
        else:
            response = await service.fetch_books_with_status()
            books = filter_books(response.records, FilterState(search, genre))
            for book in books:
                print(
                    f"{book.isbn:<15} {book.rating_aggregate:>3.1f}  {book.title} "
                    f"- {book.author_display} [{book.genre}] ({book.review_count()} reviews)"
                )
            print(f"Genres: {', '.join(distinct_genres(response.records))}")
            printed = len(books)
    finally:
        await store.aclose()

    if response.degraded:
        print(f"(degraded: {response.degradation_reason})", file=sys.stderr)

    logger.info(f"Printed {printed} {subject}")
    return printed


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Print the book catalog from the hosted store")
    parser.add_argument(
        "--subject", "-s",
        choices=["books", "authors"],
        default="books",
        help="What to fetch (default: books)"
    )
    parser.add_argument(
        "--url",
        default=os.getenv("SUPABASE_URL"),
        help="Store project URL (default: $SUPABASE_URL)"
    )
    parser.add_argument(
        "--key",
        default=os.getenv("SUPABASE_ANON_KEY"),
        help="Store API key (default: $SUPABASE_ANON_KEY)"
    )
    parser.add_argument(
        "--search", "-q",
        default="",
        help="Case-insensitive title/author search"
    )
    parser.add_argument(
        "--genre", "-g",
        default="",
        help="Case-insensitive genre filter"
    )

    args = parser.parse_args(argv)
    asyncio.run(run(args.subject, args.url, args.key, args.search, args.genre))
    return 0


if __name__ == "__main__":
    sys.exit(main())
