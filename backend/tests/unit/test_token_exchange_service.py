"""Tests for TokenExchangeService."""

import httpx
import pytest

from graph_connector.core.exceptions import AuthExchangeError
from graph_connector.services.token_exchange_service import (
    JWT_BEARER_GRANT,
    TokenExchangeService,
)


@pytest.fixture
def service(settings, token_endpoint):
    return TokenExchangeService(settings, transport=token_endpoint.transport())


class TestExchange:
    """Test the on-behalf-of exchange."""

    @pytest.mark.asyncio
    async def test_exchange_success(self, service, token_endpoint):
        token = await service.exchange("user-token")

        assert token == "graph-token"
        request = token_endpoint.requests[-1]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://login.microsoftonline.com/tenant-123/oauth2/v2.0/token"
        )
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert token_endpoint.last_form() == {
            "client_id": "client-123",
            "client_secret": "secret-123",
            "grant_type": JWT_BEARER_GRANT,
            "assertion": "user-token",
            "requested_token_use": "on_behalf_of",
            "scope": "https://graph.microsoft.com/.default",
        }

    @pytest.mark.asyncio
    async def test_exchange_returns_token_verbatim(self, service, token_endpoint):
        token_endpoint.payload = {"access_token": "not.a.jwt at all"}
        assert await service.exchange("user-token") == "not.a.jwt at all"

    @pytest.mark.asyncio
    async def test_exchange_rejected(self, service, token_endpoint):
        token_endpoint.status_code = 400
        token_endpoint.payload = {
            "error": "invalid_grant",
            "error_description": "AADSTS50013: Assertion failed signature validation.",
        }

        with pytest.raises(AuthExchangeError) as exc_info:
            await service.exchange("expired-token")

        assert exc_info.value.message == (
            "Request failed with status code 400 (invalid_grant)"
        )
        assert exc_info.value.status_code == 500
        assert exc_info.value.details["error"] == "invalid_grant"

    @pytest.mark.asyncio
    async def test_exchange_missing_access_token(self, service, token_endpoint):
        token_endpoint.payload = {"token_type": "Bearer"}

        with pytest.raises(AuthExchangeError, match="no access token"):
            await service.exchange("user-token")

    @pytest.mark.asyncio
    async def test_exchange_unreachable(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = TokenExchangeService(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(AuthExchangeError, match="Token endpoint unreachable"):
            await service.exchange("user-token")

    @pytest.mark.asyncio
    async def test_exchange_timeout(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        service = TokenExchangeService(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(AuthExchangeError, match="timed out"):
            await service.exchange("user-token")

    @pytest.mark.asyncio
    async def test_exchange_requires_token(self, service, token_endpoint):
        with pytest.raises(AuthExchangeError, match="User access token is required"):
            await service.exchange("")
        assert token_endpoint.requests == []

    @pytest.mark.asyncio
    async def test_exchange_does_not_retry(self, service, token_endpoint):
        token_endpoint.status_code = 503
        token_endpoint.payload = {}

        with pytest.raises(AuthExchangeError):
            await service.exchange("user-token")
        assert len(token_endpoint.requests) == 1
