"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
The hosted store, the auth service and the toast/notification surface are
all injected through these protocols, so the fetch and write paths can be
tested with fakes and no process-wide client exists.
"""

from typing import Protocol, List, Optional, Dict, Any, Mapping

from .value_objects import Notification


class CatalogStore(Protocol):
    """
    Port for the hosted relational store.

    All calls are asynchronous. Implementations translate their transport
    failures (network, permission, malformed query) into StoreError.
    """

    async def probe(self, table: str) -> int:
        """
        Cheap existence/count check against a table.

        Args:
            table: Table name (e.g., 'book', 'author')

        Returns:
            Number of rows in the table

        Raises:
            StoreError: If the table cannot be read
        """
        ...

    async def query(
        self,
        table: str,
        select: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a projection query, possibly with embedded joins.

        Args:
            table: Root table of the query
            select: Projection in PostgREST select syntax, e.g.
                    "isbn,name,author_book(author(id,name))"
            filters: Optional equality filters, column -> value

        Returns:
            Raw rows in store order. Embedded joins appear as nested
            lists/dicts keyed by the joined table name.

        Raises:
            StoreError: If the query fails
        """
        ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> None:
        """
        Insert a single row.

        Raises:
            StoreError: If the insert fails (constraint violation, permissions)
        """
        ...

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        on_conflict: Optional[str] = None,
    ) -> None:
        """
        Insert a row or merge it into the existing row with the same key.

        Args:
            table: Target table
            row: Column values
            on_conflict: Comma-separated conflict target columns

        Raises:
            StoreError: If the upsert fails
        """
        ...


class AuthProvider(Protocol):
    """Port for the hosted authentication service."""

    async def get_current_user(self) -> Optional[str]:
        """
        Resolve the signed-in user.

        Returns:
            The user id, or None when nobody is signed in
        """
        ...


class NotificationSink(Protocol):
    """Port for user-facing success/info/error messages."""

    def notify(self, notification: Notification) -> None:
        """Deliver one notification. Must not raise."""
        ...
