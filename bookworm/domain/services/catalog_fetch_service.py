"""
Domain service for fetching and mapping the catalog.

One fetch cycle for a subject is:

    probe(table) --> query(table, projection) --> map rows --> CatalogResponse

The read path is fail-open: a store error or an empty table never reaches
the caller as an exception. It is turned into sample data from the
FallbackCatalog, flagged as degraded, plus a notification. This policy is
only for read-only catalog display; the write path lives in ReviewService
and always propagates its errors.
"""

import logging
import random
import time
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from ..entities import AuthorRecord, BookRecord, ReviewRecord
from ..exceptions import StoreError
from ..fallback_catalog import FallbackCatalog
from ..mapper import map_author_row, map_book_row, map_review_row
from ..ports import CatalogStore, NotificationSink
from ..value_objects import CatalogResponse, Notification, NotificationLevel

logger = logging.getLogger(__name__)

BOOK_TABLE = "book"
AUTHOR_TABLE = "author"
REVIEW_TABLE = "books_read"
CUSTOMER_TABLE = "customer"

BOOK_PROJECTION = (
    "isbn,name,summary,rating,genre,image_url,"
    "author_book(author_id,author(id,name,contact_details)),"
    "books_read(rating,comment,user_id)"
)
AUTHOR_PROJECTION = (
    "id,name,contact_details,"
    "author_book(book_isbn,book(isbn,name,summary,genre))"
)
REVIEW_PROJECTION = "rating,comment,user_id"
CUSTOMER_PROJECTION = "id"


class CatalogFetchService:
    """
    Coordinates one fetch-and-map cycle for books or for authors.

    The service depends only on the CatalogStore and NotificationSink ports.
    Usage:
        service = CatalogFetchService(store=postgrest_store, notifier=sink)
        books = await service.fetch_books()
    """

    def __init__(
        self,
        store: CatalogStore,
        notifier: NotificationSink,
        fallback: Optional[FallbackCatalog] = None,
        *,
        enrich_fallback_reviews: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize the fetch service.

        Args:
            store: Hosted store adapter
            notifier: Sink for success/error messages
            fallback: Sample data used on empty or failed reads
            enrich_fallback_reviews: On a failed book read, try to attach
                                     synthetic reviews from real user ids
            rng: Random source for synthetic reviews (seed it in tests)
        """
        self._store = store
        self._notifier = notifier
        self._fallback = fallback or FallbackCatalog()
        self._enrich_fallback_reviews = enrich_fallback_reviews
        self._rng = rng

    async def fetch_books(self) -> Tuple[BookRecord, ...]:
        """Fetch books; sample books on empty or failed reads."""
        response = await self.fetch_books_with_status()
        return response.records

    async def fetch_authors(self) -> Tuple[AuthorRecord, ...]:
        """Fetch authors; sample authors on empty or failed reads."""
        response = await self.fetch_authors_with_status()
        return response.records

    async def fetch_books_with_status(self) -> CatalogResponse:
        """
        Fetch books and report whether sample data was served.

        Returns:
            CatalogResponse whose origin is "live", "fallback_empty" or
            "fallback_error"
        """
        return await self._fetch_cycle(
            table=BOOK_TABLE,
            projection=BOOK_PROJECTION,
            label="books",
            map_row=map_book_row,
            is_well_formed=_is_book_row,
            fallback_records=self._fallback.sample_books,
            error_fallback_records=self._book_error_fallback,
        )

    async def fetch_authors_with_status(self) -> CatalogResponse:
        """Fetch authors and report whether sample data was served."""
        return await self._fetch_cycle(
            table=AUTHOR_TABLE,
            projection=AUTHOR_PROJECTION,
            label="authors",
            map_row=map_author_row,
            is_well_formed=_is_author_row,
            fallback_records=self._fallback.sample_authors,
            error_fallback_records=None,
        )

    async def fetch_reviews(self, isbn: str) -> List[ReviewRecord]:
        """
        Read the latest reviews of one book, e.g. right after a submission.

        Returns an empty list if the reviews cannot be read.
        """
        try:
            rows = await self._store.query(
                REVIEW_TABLE,
                REVIEW_PROJECTION,
                filters={"book_isbn": isbn},
            )
        except StoreError as e:
            logger.error(f"Error fetching reviews for {isbn}: {e}")
            return []

        return [map_review_row(row) for row in rows if isinstance(row, Mapping)]

    # =========================================================================
    # Private helper methods
    # =========================================================================

    async def _fetch_cycle(
        self,
        *,
        table: str,
        projection: str,
        label: str,
        map_row: Callable[[Mapping[str, Any]], Any],
        is_well_formed: Callable[[Mapping[str, Any]], bool],
        fallback_records: Callable[[], Sequence[Any]],
        error_fallback_records: Optional[Callable[[], Any]],
    ) -> CatalogResponse:
        start_time = time.time()
        logger.info(f"Fetching {label} from the store...")

        try:
            count = await self._store.probe(table)
            logger.info(f"{table} table check: found {count} records")

            rows = await self._store.query(table, projection)
        except Exception as e:
            # Fail-open: any store failure ends in sample data.
            logger.error(f"Failed to fetch {label}: {e}")
            self._notify(NotificationLevel.ERROR, f"Failed to fetch {label}")

            if error_fallback_records is not None:
                records = await error_fallback_records()
            else:
                records = fallback_records()

            return CatalogResponse(
                records=tuple(records),
                origin="fallback_error",
                degradation_reason=f"Store unavailable ({e}) - showing sample {label}",
                latency_ms=_elapsed_ms(start_time),
            )

        if not rows:
            logger.warning(f"No {label} found in the store, showing sample data")
            return CatalogResponse(
                records=tuple(fallback_records()),
                origin="fallback_empty",
                degradation_reason=f"No {label} in the store - showing sample {label}",
                latency_ms=_elapsed_ms(start_time),
            )

        records = []
        for row in rows:
            if not is_well_formed(row):
                logger.warning(f"Skipping malformed {table} row: {row!r}")
                continue
            try:
                records.append(map_row(row))
            except Exception as e:
                logger.warning(f"Skipping unmappable {table} row: {e!r}")

        logger.info(f"Mapped {len(records)} of {len(rows)} {table} rows")
        self._notify(NotificationLevel.SUCCESS, f"Loaded {len(records)} {label}")

        return CatalogResponse(
            records=tuple(records),
            origin="live",
            latency_ms=_elapsed_ms(start_time),
        )

    async def _book_error_fallback(self) -> Tuple[BookRecord, ...]:
        """
        Sample books for a failed read, with synthetic reviews when possible.

        The customer lookup is best-effort; its failure only means the plain
        samples are returned.
        """
        if not self._enrich_fallback_reviews:
            return self._fallback.sample_books()

        try:
            rows = await self._store.query(CUSTOMER_TABLE, CUSTOMER_PROJECTION)
            user_ids = [
                str(row["id"]) for row in rows
                if isinstance(row, Mapping) and row.get("id")
            ]
        except Exception as e:
            logger.warning(f"Customer lookup for sample reviews failed: {e!r}")
            return self._fallback.sample_books()

        return self._fallback.sample_books_with_synthetic_reviews(user_ids, rng=self._rng)

    def _notify(self, level: NotificationLevel, message: str) -> None:
        try:
            self._notifier.notify(Notification(level=level, message=message))
        except Exception as e:
            logger.warning(f"Notification sink failed: {e}")


def _is_book_row(row: Mapping[str, Any]) -> bool:
    isbn = row.get("isbn") if isinstance(row, Mapping) else None
    return isinstance(isbn, str) and bool(isbn.strip())


def _is_author_row(row: Mapping[str, Any]) -> bool:
    author_id = row.get("id") if isinstance(row, Mapping) else None
    return isinstance(author_id, int) and not isinstance(author_id, bool)


def _elapsed_ms(start_time: float) -> float:
    return (time.time() - start_time) * 1000
