"""Mail provider protocol and data structures"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol


@dataclass
class ProviderTokens:
    """Result of an authorization-code or refresh-token exchange"""
    access_token: str
    refresh_token: Optional[str]
    expires_in: int


@dataclass
class MimePart:
    """One node of a message's MIME tree; leaves carry base64url data"""
    mime_type: str
    data: Optional[str] = None
    parts: list["MimePart"] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MimePart":
        """Build the tree from a Gmail API `payload` object"""
        body = payload.get("body") or {}
        return cls(
            mime_type=(payload.get("mimeType") or "").lower(),
            data=body.get("data"),
            parts=[cls.from_payload(p) for p in payload.get("parts") or []],
        )


@dataclass
class ParsedMessage:
    """Provider message normalized for storage"""
    provider_message_id: str
    sender: str
    subject: str
    received_at: datetime
    plain_text_body: str
    html_body: Optional[str]


@dataclass
class IngestionResult:
    """Outcome of one ingestion cycle"""
    messages: list[Any] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    def stats(self) -> dict[str, int]:
        return {
            "created": len(self.messages),
            "failed": len(self.failed),
            "duplicates": len(self.duplicates),
        }


class IMailProvider(Protocol):
    """Remote mail-provider API consumed by linking and ingestion"""

    async def exchange_code(self, code: str) -> ProviderTokens:
        """Trade an OAuth authorization code for tokens"""
        ...

    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        """Mint a new provider access token"""
        ...

    async def get_profile(self, access_token: str) -> str:
        """Canonical address of the authorized mailbox"""
        ...

    async def list_messages(self, access_token: str, max_results: int) -> list[str]:
        """Most recent message ids"""
        ...

    async def get_message(self, access_token: str, message_id: str) -> dict[str, Any]:
        """Full message resource (headers and MIME payload)"""
        ...
