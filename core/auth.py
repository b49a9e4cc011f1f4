from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import Settings, get_settings
from core.enums import ErrorKind
from core.exceptions import TokenError


class TokenCodec:
    """
    Signs and verifies time-bounded claims as HS256 JWTs.

    decode() rejects expired tokens itself, so callers never see a payload
    whose exp has passed. A token stays valid through the second named by
    its exp claim.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(
        self,
        claims: dict[str, Any],
        ttl: timedelta,
        now: datetime | None = None,
    ) -> str:
        """Sign claims with iat=now and exp=now + ttl"""
        issued_at = now or datetime.now(UTC)
        to_encode = claims.copy()
        to_encode.update(
            {
                "iat": int(issued_at.timestamp()),
                "exp": int((issued_at + ttl).timestamp()),
            }
        )
        encoded_jwt = jwt.encode(
            to_encode, self._secret_key, algorithm=self._algorithm
        )
        assert isinstance(encoded_jwt, str)
        return encoded_jwt

    def decode(self, token: str) -> dict[str, Any]:
        """Verify signature, structure and expiry; returns the claims"""
        if not token:
            raise TokenError(ErrorKind.MALFORMED_TOKEN, "empty token")
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError as e:
            raise TokenError(ErrorKind.EXPIRED, str(e)) from e
        except JWTError as e:
            raise TokenError(ErrorKind.MALFORMED_TOKEN, str(e)) from e

        if not isinstance(payload, dict):
            raise TokenError(ErrorKind.MALFORMED_TOKEN, "payload is not an object")
        if not isinstance(payload.get("username"), str) or not payload["username"]:
            raise TokenError(ErrorKind.MALFORMED_TOKEN, "missing username claim")
        return payload


def get_token_codec(settings: Settings | None = None) -> TokenCodec:
    settings = settings or get_settings()
    return TokenCodec(settings.secret_key, settings.algorithm)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        result = bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
        assert isinstance(result, bool)
        return result
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    result = hashed.decode("utf-8")
    assert isinstance(result, str)
    return result
