"""
Domain service for the review/rating write path.

Submitting a review is three ordered store calls:

    (a) look the book up by isbn
    (b) insert a minimal placeholder book row if it is missing, so the
        review's foreign key is satisfiable
    (c) upsert the review keyed by (book_isbn, user_id)

Unlike the read path, nothing here falls back to sample data. Every failure
is raised as a ReviewSubmissionError with a message the user can act on,
and nothing is retried automatically.
"""

import logging
from typing import Any, Dict, Optional

from ..entities import ReviewRecord, DEFAULT_COMMENT, UNKNOWN_TITLE
from ..exceptions import ReviewSubmissionError
from ..ports import AuthProvider, CatalogStore, NotificationSink
from ..value_objects import Notification, NotificationLevel
from .catalog_fetch_service import BOOK_TABLE, REVIEW_TABLE

logger = logging.getLogger(__name__)

REVIEW_CONFLICT_TARGET = "book_isbn,user_id"


class ReviewService:
    """Submits star ratings and comments on behalf of the signed-in user."""

    def __init__(
        self,
        store: CatalogStore,
        auth: AuthProvider,
        notifier: NotificationSink,
    ) -> None:
        self._store = store
        self._auth = auth
        self._notifier = notifier

    async def submit_review(
        self,
        isbn: str,
        rating: int,
        comment: Optional[str] = None,
        *,
        title: Optional[str] = None,
    ) -> ReviewRecord:
        """
        Save a rating with an optional comment.

        Args:
            isbn: Book being reviewed
            rating: Star rating, 1-5
            comment: Optional free text
            title: Title used if a placeholder book row has to be created

        Returns:
            The ReviewRecord as it was written

        Raises:
            ValueError: If isbn or rating is invalid
            ReviewSubmissionError: If the user is not signed in or a store
                                   call fails; `stage` tells which one
        """
        user_id = await self._require_user("Please sign in to leave a review")
        row = self._review_row(isbn, rating, user_id)
        if comment is not None and comment.strip():
            row["comment"] = comment.strip()

        await self._write(row, title)
        self._notify(NotificationLevel.SUCCESS, "Review submitted successfully!")

        return ReviewRecord(
            user_id=user_id,
            rating=rating,
            comment=row.get("comment", DEFAULT_COMMENT),
        )

    async def submit_rating(
        self,
        isbn: str,
        rating: int,
        *,
        title: Optional[str] = None,
    ) -> ReviewRecord:
        """
        Save a star rating without touching the stored comment.

        Raises:
            ValueError: If isbn or rating is invalid
            ReviewSubmissionError: As for submit_review
        """
        user_id = await self._require_user("Please sign in to rate books")
        row = self._review_row(isbn, rating, user_id)

        await self._write(row, title)
        self._notify(
            NotificationLevel.SUCCESS,
            f"You rated {title or isbn} {rating} stars.",
        )

        return ReviewRecord(user_id=user_id, rating=rating)

    # =========================================================================
    # Private helper methods
    # =========================================================================

    async def _require_user(self, message: str) -> str:
        try:
            user_id = await self._auth.get_current_user()
        except Exception as e:
            logger.warning(f"Could not resolve the current user: {e}")
            user_id = None

        if not user_id:
            raise ReviewSubmissionError(message, stage="auth")
        return user_id

    @staticmethod
    def _review_row(isbn: str, rating: int, user_id: str) -> Dict[str, Any]:
        if not isbn or not isbn.strip():
            raise ValueError("isbn cannot be empty")

        if isinstance(rating, bool) or not isinstance(rating, int) or not (1 <= rating <= 5):
            raise ValueError(f"rating must be an integer between 1 and 5, got {rating!r}")

        return {"book_isbn": isbn.strip(), "rating": rating, "user_id": user_id}

    async def _write(self, row: Dict[str, Any], title: Optional[str]) -> None:
        isbn = row["book_isbn"]

        # (a) Does the book exist?
        try:
            existing = await self._store.query(BOOK_TABLE, "isbn", filters={"isbn": isbn})
        except Exception as e:
            logger.error(f"Error checking book {isbn}: {e}")
            raise ReviewSubmissionError("Unable to verify book record", stage="lookup") from e

        # (b) Placeholder row so the review's foreign key holds.
        if not existing:
            logger.info(f"Book {isbn} not in the store, creating a placeholder row")
            try:
                await self._store.insert(BOOK_TABLE, {"isbn": isbn, "name": title or UNKNOWN_TITLE})
            except Exception as e:
                logger.error(f"Error creating book {isbn}: {e}")
                raise ReviewSubmissionError("Unable to create book record", stage="create_book") from e

        # (c) One review per (book, user).
        try:
            await self._store.upsert(REVIEW_TABLE, row, on_conflict=REVIEW_CONFLICT_TARGET)
        except Exception as e:
            logger.error(f"Error saving review for {isbn}: {e}")
            raise ReviewSubmissionError("Unable to save your review", stage="save_review") from e

        logger.info(f"Saved rating {row['rating']} for {isbn} by {row['user_id']}")

    def _notify(self, level: NotificationLevel, message: str) -> None:
        try:
            self._notifier.notify(Notification(level=level, message=message))
        except Exception as e:
            logger.warning(f"Notification sink failed: {e}")
