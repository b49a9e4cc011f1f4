from pydantic import BaseModel, ConfigDict, Field

from core.enums import TokenType


class TokenPayload(BaseModel):
    """Decoded session token claims"""
    username: str = Field(..., description="Principal username")
    role: str | None = Field(None, description="Role, present on access tokens")
    type: TokenType = Field(..., description="access or refresh")
    iat: int = Field(..., description="Issued-at timestamp")
    exp: int = Field(..., description="Token expiration timestamp")
    jti: str | None = Field(None, description="Refresh token id")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "alice",
                "role": "USER",
                "type": "access",
                "iat": 1234567000,
                "exp": 1234567900,
            }
        }
    )


class Identity(BaseModel):
    """Caller identity bound to a request by the authentication middleware"""
    username: str
    role: str
    authorities: frozenset[str]

    model_config = ConfigDict(frozen=True)


class TokenRefreshRequest(BaseModel):
    """Refresh request; the refresh_token cookie is used when omitted"""
    refresh_token: str | None = Field(None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)
