from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from api.deps import get_auth_service, get_optional_identity
from core.config import get_settings
from core.exceptions import UnauthenticatedError
from core.rate_limit import limiter
from schemas.token import Identity, TokenRefreshRequest
from schemas.user import LoginRequest, MessageResponse, SignupRequest
from services.auth_service import AuthService, SessionTokens

router = APIRouter()
settings = get_settings()


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
    )


def set_access_cookie(response: Response, token: str) -> None:
    _set_cookie(
        response,
        settings.access_token_cookie_name,
        token,
        settings.access_token_expire_minutes * 60,
    )


def set_refresh_cookie(response: Response, token: str) -> None:
    _set_cookie(
        response,
        settings.refresh_token_cookie_name,
        token,
        settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def set_session_cookies(response: Response, tokens: SessionTokens) -> None:
    set_access_cookie(response, tokens.access_token)
    set_refresh_cookie(response, tokens.refresh_token)


@router.post(
    "/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def signup(
    signup_request: SignupRequest,
    response: Response,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Register a user and start a session.

    Sets access_token (15 minutes) and refresh_token (7 days) cookies.
    Returns 400 when the username or email is taken.
    """
    tokens = await auth_service.signup(signup_request)
    set_session_cookies(response, tokens)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=MessageResponse)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    login_request: LoginRequest,
    response: Response,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Authenticate with username and password.

    Rate limited per client IP. Returns 401 on bad credentials.
    """
    tokens = await auth_service.login(login_request.username, login_request.password)
    set_session_cookies(response, tokens)
    return MessageResponse(message="Login successful")


@router.post("/refresh", response_model=MessageResponse)
async def refresh(
    request: Request,
    response: Response,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    refresh_request: TokenRefreshRequest | None = None,
):
    """
    Mint a new access token from a refresh token.

    The token comes from the body ({"refreshToken": ...}) or the
    refresh_token cookie. The refresh token is rotated as well; the old one
    is not revoked server-side.
    """
    refresh_token = (
        refresh_request.refresh_token if refresh_request else None
    ) or request.cookies.get(settings.refresh_token_cookie_name)

    tokens = await auth_service.refresh(refresh_token)
    set_access_cookie(response, tokens.access_token)
    set_refresh_cookie(response, tokens.refresh_token)
    return MessageResponse(message="Token refreshed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear both session cookies"""
    _set_cookie(response, settings.access_token_cookie_name, "", 0)
    _set_cookie(response, settings.refresh_token_cookie_name, "", 0)
    return MessageResponse(message="Logged out successfully")


@router.get("/check")
async def check(identity: Annotated[Identity | None, Depends(get_optional_identity)]):
    """200 when the request carries a valid access token, else 401"""
    if identity is None:
        raise UnauthenticatedError()
    return Response(status_code=status.HTTP_200_OK)
