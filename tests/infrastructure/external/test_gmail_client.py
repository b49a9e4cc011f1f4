"""GmailClient against a mocked Google API"""
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import gmail_message
from core.config import get_settings
from core.exceptions import (
    UpstreamExchangeFailedError,
    UpstreamFailureError,
    UpstreamListFailedError,
    UpstreamProfileFailedError,
)
from integrations.email.providers.gmail_provider import GmailClient


def _client(handler) -> GmailClient:
    return GmailClient(transport=httpx.MockTransport(handler))


class TestTokenExchange:
    @pytest.mark.asyncio
    async def test_exchange_code(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(
                200,
                json={
                    "access_token": "ya29.access",
                    "refresh_token": "1//refresh",
                    "expires_in": 3599,
                    "token_type": "Bearer",
                },
            )

        tokens = await _client(handler).exchange_code("auth-code")

        settings = get_settings()
        assert seen["url"] == settings.google_token_url
        assert seen["form"]["code"] == ["auth-code"]
        assert seen["form"]["grant_type"] == ["authorization_code"]
        assert seen["form"]["client_id"] == [settings.gmail_client_id]
        assert seen["form"]["client_secret"] == [settings.gmail_client_secret]
        assert seen["form"]["redirect_uri"] == [settings.gmail_redirect_uri]
        assert tokens.access_token == "ya29.access"
        assert tokens.refresh_token == "1//refresh"
        assert tokens.expires_in == 3599

    @pytest.mark.asyncio
    async def test_refresh_without_new_refresh_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            form = parse_qs(request.content.decode())
            assert form["grant_type"] == ["refresh_token"]
            assert form["refresh_token"] == ["1//refresh"]
            return httpx.Response(200, json={"access_token": "ya29.new", "expires_in": 3599})

        tokens = await _client(handler).refresh_access_token("1//refresh")

        assert tokens.access_token == "ya29.new"
        assert tokens.refresh_token is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(400, json={"error": "invalid_grant"}),
            httpx.Response(200, json={"refresh_token": "only"}),
            httpx.Response(200, json={"access_token": "", "expires_in": 3599}),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_exchange_failures(self, response: httpx.Response):
        client = _client(lambda request: response)

        with pytest.raises(UpstreamExchangeFailedError) as exc_info:
            await client.exchange_code("auth-code")

        assert exc_info.value.message == "Failed to retrieve token from Google"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamExchangeFailedError):
            await _client(handler).exchange_code("auth-code")


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer ya29.access"
            return httpx.Response(200, json={"email": "person@gmail.com", "id": "123"})

        assert await _client(handler).get_profile("ya29.access") == "person@gmail.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [httpx.Response(401, json={"error": "unauthorized"}), httpx.Response(200, json={"id": "123"})],
    )
    async def test_profile_failures(self, response: httpx.Response):
        with pytest.raises(UpstreamProfileFailedError):
            await _client(lambda request: response).get_profile("ya29.access")


class TestMessages:
    @pytest.mark.asyncio
    async def test_list_messages(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/gmail/v1/users/me/messages"
            assert request.url.params["maxResults"] == "10"
            return httpx.Response(
                200,
                json={"messages": [{"id": "m1", "threadId": "t1"}, {"id": "m2", "threadId": "t2"}]},
            )

        assert await _client(handler).list_messages("ya29.access", 10) == ["m1", "m2"]

    @pytest.mark.asyncio
    async def test_empty_mailbox(self):
        client = _client(lambda request: httpx.Response(200, json={"resultSizeEstimate": 0}))

        assert await client.list_messages("ya29.access", 10) == []

    @pytest.mark.asyncio
    async def test_list_failure(self):
        client = _client(lambda request: httpx.Response(500, text="backend error"))

        with pytest.raises(UpstreamListFailedError):
            await client.list_messages("ya29.access", 10)

    @pytest.mark.asyncio
    async def test_get_message_full_format(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/gmail/v1/users/me/messages/m1"
            assert request.url.params["format"] == "full"
            return httpx.Response(200, json=gmail_message("m1"))

        message = await _client(handler).get_message("ya29.access", "m1")

        assert message["id"] == "m1"
        assert message["payload"]["mimeType"] == "multipart/alternative"

    @pytest.mark.asyncio
    async def test_get_message_failure(self):
        client = _client(lambda request: httpx.Response(404, json={"error": "not found"}))

        with pytest.raises(UpstreamFailureError):
            await client.get_message("ya29.access", "gone")
