"""
PostgREST implementation of the CatalogStore port.

=============================================================================
Infrastructure Adapter
=============================================================================

The hosted store (Supabase) exposes every table over a REST interface
(PostgREST). This adapter:
1. Implements the domain PORT (CatalogStore)
2. Handles HTTP concerns: headers, query strings, Content-Range parsing
3. Translates every transport or HTTP failure into StoreError

The domain calls `probe`, `query`, `insert` and `upsert` without knowing
that a probe is a HEAD request with `Prefer: count=exact`, or that
embedded joins are expressed in the `select` parameter.

The constructor accepts an optional `client` so tests can pass an
httpx.AsyncClient built on httpx.MockTransport instead of the network.

=============================================================================
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from bookworm.domain.exceptions import StoreError
from bookworm.domain.ports import CatalogStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


class PostgrestCatalogStore(CatalogStore):
    """
    Catalog store backed by the hosted store's REST endpoint.

    Usage:
        # Production
        store = PostgrestCatalogStore("https://xyz.supabase.co", api_key="anon-key")
        rows = await store.query("book", "isbn,name")
        await store.aclose()

        # Testing
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = PostgrestCatalogStore("https://test.local", api_key="k", client=client)
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """
        Initialize the store adapter.

        Args:
            base_url: Project URL, e.g. "https://xyz.supabase.co"
            api_key: Public (anon) API key sent with every request
            access_token: Signed-in user's token; row-level security then
                          applies as that user. Defaults to the API key.
            client: Optional shared httpx.AsyncClient. If None, a client is
                    created and owned (closed by aclose()).
            timeout: Request timeout in seconds for an owned client
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")

        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def with_access_token(self, access_token: Optional[str]) -> "PostgrestCatalogStore":
        """A store acting as the given user, sharing this store's HTTP client."""
        return PostgrestCatalogStore(
            self._base_url,
            self._api_key,
            access_token=access_token,
            client=self._client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def probe(self, table: str) -> int:
        response = await self._request(
            "HEAD",
            table,
            params={"select": "*"},
            headers={"Prefer": "count=exact"},
        )
        return self._parse_count(response.headers.get("content-range"), table)

    async def query(
        self,
        table: str,
        select: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": select}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"

        response = await self._request("GET", table, params=params)

        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from {table} query: {e}", table=table) from e

        if not isinstance(data, list):
            raise StoreError(f"Expected a list of rows from {table}, got {type(data).__name__}", table=table)

        return data

    async def insert(self, table: str, row: Mapping[str, Any]) -> None:
        await self._request(
            "POST",
            table,
            json=dict(row),
            headers={"Prefer": "return=minimal"},
        )

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        on_conflict: Optional[str] = None,
    ) -> None:
        params = {"on_conflict": on_conflict} if on_conflict else None
        await self._request(
            "POST",
            table,
            params=params,
            json=dict(row),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    # =========================================================================
    # Private helper methods
    # =========================================================================

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{self.REST_PATH}/{table}"
        logger.debug(f"{method} {url} params={params}")

        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(headers),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise StoreError(
                f"{method} {table} failed with HTTP {status_code}: {self._error_message(e.response)}",
                table=table,
                status_code=status_code,
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table} request failed: {e}", table=table) from e

        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or str(body)
        return str(body)

    @staticmethod
    def _parse_count(content_range: Optional[str], table: str) -> int:
        """
        Parse the total from a Content-Range header.

        PostgREST answers "0-24/25" for a non-empty table and "*/0" for an
        empty one.
        """
        if not content_range or "/" not in content_range:
            raise StoreError(f"Missing row count for {table}", table=table)

        total = content_range.rsplit("/", 1)[1].strip()
        if not total.isdigit():
            raise StoreError(f"Unknown row count for {table}: {content_range!r}", table=table)
        return int(total)
