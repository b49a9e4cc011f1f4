"""Stateless session tokens: issue, validate, rotate"""
from datetime import UTC, datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from core.auth import TokenCodec, get_token_codec
from core.config import Settings, get_settings
from core.enums import ErrorKind, TokenType
from core.exceptions import TokenError, UnauthenticatedError
from core.logging import get_logger
from schemas.token import Identity, TokenPayload
from utils.generators import generate_token_id

logger = get_logger(__name__)


class SessionManager:
    """
    Issues and validates access/refresh token pairs.

    Nothing is stored server-side. A rotated refresh token is not revoked:
    it keeps verifying until its own exp. Access and refresh tokens carry a
    `type` claim and are not interchangeable.
    """

    def __init__(
        self,
        codec: Optional[TokenCodec] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.codec = codec or get_token_codec(self.settings)

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.settings.refresh_token_expire_days)

    def issue_access_token(
        self, username: str, role: str, now: Optional[datetime] = None
    ) -> str:
        return self.codec.issue(
            {"username": username, "role": role, "type": TokenType.ACCESS.value},
            self.access_token_ttl,
            now=now,
        )

    def issue_refresh_token(self, username: str, now: Optional[datetime] = None) -> str:
        return self.codec.issue(
            {
                "username": username,
                "type": TokenType.REFRESH.value,
                "jti": generate_token_id(),
            },
            self.refresh_token_ttl,
            now=now,
        )

    def validate(
        self, token: str, token_type: TokenType = TokenType.ACCESS
    ) -> TokenPayload:
        """
        Decode a token of the expected type.

        Raises:
            UnauthenticatedError: for every failure; `kind` is for logging only
        """
        try:
            claims = self.codec.decode(token)
        except TokenError as e:
            raise UnauthenticatedError(kind=e.kind) from e

        try:
            payload = TokenPayload(**claims)
        except ValidationError as e:
            raise UnauthenticatedError(kind=ErrorKind.MALFORMED_TOKEN) from e

        if payload.type != token_type:
            raise UnauthenticatedError(kind=ErrorKind.MALFORMED_TOKEN)
        if token_type == TokenType.ACCESS and not payload.role:
            raise UnauthenticatedError(kind=ErrorKind.MALFORMED_TOKEN)
        return payload

    def rotate_refresh(self, old_token: str) -> str:
        """
        Validate a refresh token and issue a fresh one for the same user.

        exp has whole-second precision, so a rotation within the second the
        old token was issued moves iat forward until the new exp is later.
        """
        payload = self.validate(old_token, TokenType.REFRESH)
        logger.debug(f"Rotating refresh token for {payload.username}")
        earliest = datetime.fromtimestamp(payload.exp + 1, UTC) - self.refresh_token_ttl
        issued_at = max(datetime.now(UTC), earliest)
        return self.issue_refresh_token(payload.username, now=issued_at)

    @staticmethod
    def authorities_for(role: str) -> frozenset[str]:
        return frozenset({f"ROLE_{role.upper()}"})

    def identity_for(self, payload: TokenPayload) -> Identity:
        role = payload.role or ""
        return Identity(
            username=payload.username,
            role=role,
            authorities=self.authorities_for(role),
        )


_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Process-wide SessionManager (token handling is stateless)"""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
