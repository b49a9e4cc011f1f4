"""Gmail provider implementation using the Gmail REST API over httpx"""
from typing import Any, Optional
from urllib.parse import quote

import httpx

from core.config import Settings, get_settings
from core.exceptions import (
    UpstreamExchangeFailedError,
    UpstreamFailureError,
    UpstreamListFailedError,
    UpstreamProfileFailedError,
)
from core.logging import get_logger
from integrations.email.protocols import ProviderTokens

logger = get_logger(__name__)


class GmailClient:
    """
    Google OAuth token endpoint, userinfo endpoint and Gmail message API.

    Implements: IMailProvider

    Every call is a single request with no retries. Each failure is raised
    as the UpstreamFailureError subclass for the step that failed.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.provider_timeout_seconds,
            transport=self._transport,
        )

    async def _token_request(self, data: dict[str, str]) -> ProviderTokens:
        form = {
            "client_id": self._settings.gmail_client_id or "",
            "client_secret": self._settings.gmail_client_secret or "",
            **data,
        }
        try:
            async with self._client() as client:
                response = await client.post(self._settings.google_token_url, data=form)
        except httpx.HTTPError as e:
            logger.error(f"Token request to Google failed: {e}")
            raise UpstreamExchangeFailedError() from e

        if not response.is_success:
            logger.error(
                f"Token exchange failed: {response.status_code} {response.text}"
            )
            raise UpstreamExchangeFailedError()

        try:
            tokens = response.json()
            access_token = tokens["access_token"]
            expires_in = int(tokens["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed token response from Google: {e}")
            raise UpstreamExchangeFailedError() from e

        if not access_token:
            raise UpstreamExchangeFailedError()

        return ProviderTokens(
            access_token=access_token,
            refresh_token=tokens.get("refresh_token"),
            expires_in=expires_in,
        )

    async def exchange_code(self, code: str) -> ProviderTokens:
        """Exchange an authorization code for access and refresh tokens"""
        return await self._token_request(
            {
                "code": code,
                "redirect_uri": self._settings.gmail_redirect_uri,
                "grant_type": "authorization_code",
            }
        )

    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        """Mint a new access token; Google usually omits refresh_token here"""
        return await self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"}
        )

    async def get_profile(self, access_token: str) -> str:
        """Email address of the account that granted access_token"""
        try:
            async with self._client() as client:
                response = await client.get(
                    self._settings.google_userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Userinfo request failed: {e}")
            raise UpstreamProfileFailedError() from e

        if not response.is_success:
            logger.error(f"Userinfo request failed: {response.status_code}")
            raise UpstreamProfileFailedError()

        try:
            email_address = response.json().get("email")
        except (ValueError, AttributeError) as e:
            raise UpstreamProfileFailedError() from e

        if not email_address or not isinstance(email_address, str):
            raise UpstreamProfileFailedError(
                "Could not retrieve email address from Google"
            )
        return email_address

    async def _api_get(
        self, access_token: str, path: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        url = f"{self._settings.gmail_api_base_url}{path}"
        async with self._client() as client:
            response = await client.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
                params=params,
            )
        if response.status_code >= 400:
            logger.error(f"Gmail API error {response.status_code}: {response.text}")
        response.raise_for_status()
        data = response.json() if response.content else {}
        if not isinstance(data, dict):
            raise ValueError("Gmail API returned a non-object body")
        return data

    async def list_messages(self, access_token: str, max_results: int) -> list[str]:
        """Ids of the most recent messages in the mailbox"""
        try:
            data = await self._api_get(
                access_token, "/messages", {"maxResults": max_results}
            )
            return [m["id"] for m in data.get("messages") or []]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Listing Gmail messages failed: {e}")
            raise UpstreamListFailedError() from e

    async def get_message(self, access_token: str, message_id: str) -> dict[str, Any]:
        """Full message resource including the MIME payload"""
        try:
            return await self._api_get(
                access_token,
                f"/messages/{quote(message_id, safe='')}",
                {"format": "full"},
            )
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailureError(
                f"Failed to fetch Gmail message {message_id}"
            ) from e
