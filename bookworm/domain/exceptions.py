"""
Domain exceptions.

Invalid input is reported with the built-in ValueError. Failures that come
from infrastructure (the hosted store, the auth service) are RuntimeError
subclasses so callers can tell the two apart.
"""


class StoreError(RuntimeError):
    """Raised by CatalogStore adapters when a probe, query or write fails."""

    def __init__(self, message: str, *, table: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.status_code = status_code


class ReviewSubmissionError(RuntimeError):
    """
    Raised by the write path with a user-facing message.

    `stage` names the step that failed: "auth", "lookup", "create_book"
    or "save_review".
    """

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage
