"""
AuthProvider adapters.

SupabaseAuthProvider resolves the signed-in user from the access token the
browser sends; AnonymousAuthProvider is used when no token is present.
"""

import logging
from typing import Optional

import httpx

from bookworm.domain.ports import AuthProvider

logger = logging.getLogger(__name__)


class AnonymousAuthProvider(AuthProvider):
    """Nobody is signed in."""

    async def get_current_user(self) -> Optional[str]:
        return None


class SupabaseAuthProvider(AuthProvider):
    """
    Looks the user up with `GET /auth/v1/user`.

    A rejected token (401/403) means "not signed in"; any other failure is
    raised as RuntimeError so it is not mistaken for a signed-out user.
    """

    USER_PATH = "/auth/v1/user"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._client = client if client is not None else httpx.AsyncClient(timeout=10.0)
        self._user_id: Optional[str] = None

    async def get_current_user(self) -> Optional[str]:
        if self._user_id is not None:
            return self._user_id

        try:
            response = await self._client.get(
                f"{self._base_url}{self.USER_PATH}",
                headers={
                    "apikey": self._api_key,
                    "Authorization": f"Bearer {self._access_token}",
                },
            )
        except httpx.HTTPError as e:
            raise RuntimeError(f"Auth service request failed: {e}") from e

        if response.status_code in (401, 403):
            logger.info("Access token rejected by the auth service")
            return None

        try:
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise RuntimeError(f"Auth service returned an invalid response: {e}") from e

        if isinstance(body, dict) and body.get("id"):
            self._user_id = str(body["id"])
        return self._user_id
