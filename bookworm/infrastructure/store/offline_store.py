"""
CatalogStore used when no hosted store is configured.

Every call fails with StoreError, so read paths serve the fallback catalog
(flagged as degraded) and write paths report a clear error.
"""

from typing import Any, Dict, List, Mapping, Optional

from bookworm.domain.exceptions import StoreError
from bookworm.domain.ports import CatalogStore


class OfflineCatalogStore(CatalogStore):

    def __init__(self, reason: str = "no catalog store configured") -> None:
        self._reason = reason

    async def probe(self, table: str) -> int:
        raise StoreError(self._reason, table=table)

    async def query(
        self,
        table: str,
        select: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        raise StoreError(self._reason, table=table)

    async def insert(self, table: str, row: Mapping[str, Any]) -> None:
        raise StoreError(self._reason, table=table)

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        on_conflict: Optional[str] = None,
    ) -> None:
        raise StoreError(self._reason, table=table)

    async def aclose(self) -> None:
        return None
