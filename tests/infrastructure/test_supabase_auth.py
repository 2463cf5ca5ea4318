"""
Tests for the AuthProvider adapters.
"""

import asyncio

import httpx
import pytest

from bookworm.infrastructure.auth import AnonymousAuthProvider, SupabaseAuthProvider


def _provider(handler) -> SupabaseAuthProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseAuthProvider("https://test.supabase.local/", "anon-key", "user-jwt", client=client)


class TestSupabaseAuthProvider:

    def test_resolves_user_id_and_caches_it(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "8d0f-user", "email": "reader@example.com"})

        provider = _provider(handler)

        async def scenario():
            return await provider.get_current_user(), await provider.get_current_user()

        assert asyncio.run(scenario()) == ("8d0f-user", "8d0f-user")
        assert len(seen) == 1
        assert seen[0].url.path == "/auth/v1/user"
        assert seen[0].headers["Authorization"] == "Bearer user-jwt"
        assert seen[0].headers["apikey"] == "anon-key"

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_token_means_signed_out(self, status_code):
        provider = _provider(lambda r: httpx.Response(status_code, json={"msg": "invalid JWT"}))

        assert asyncio.run(provider.get_current_user()) is None

    def test_server_error_is_raised(self):
        provider = _provider(lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(RuntimeError, match="invalid response"):
            asyncio.run(provider.get_current_user())

    def test_transport_error_is_raised(self):
        def refuse(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(RuntimeError, match="request failed"):
            asyncio.run(_provider(refuse).get_current_user())

    def test_body_without_id_means_signed_out(self):
        provider = _provider(lambda r: httpx.Response(200, json=["unexpected"]))

        assert asyncio.run(provider.get_current_user()) is None


class TestAnonymousAuthProvider:

    def test_nobody_is_signed_in(self):
        assert asyncio.run(AnonymousAuthProvider().get_current_user()) is None
