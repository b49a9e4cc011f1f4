"""Per-request session authentication"""
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from core.config import get_settings
from core.exceptions import UnauthenticatedError
from core.logging import get_logger
from schemas.token import Identity
from services.session_service import SessionManager, get_session_manager

logger = get_logger(__name__)


def extract_bearer_token(request: Request, cookie_name: str) -> Optional[str]:
    """access_token cookie first, then an Authorization: Bearer header"""
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Bind the caller's identity to request.state.identity.

    Runs once per request before any handler. It never rejects a request:
    a missing or invalid token both leave identity as None and route
    dependencies decide whether anonymous access is allowed.
    """

    def __init__(
        self,
        app: ASGIApp,
        session_manager_factory: Callable[[], SessionManager] = get_session_manager,
    ):
        super().__init__(app)
        self._session_manager_factory = session_manager_factory
        self._cookie_name = get_settings().access_token_cookie_name

    def authenticate(self, request: Request) -> Optional[Identity]:
        token = extract_bearer_token(request, self._cookie_name)
        if token is None:
            logger.debug(f"No access token on request to {request.url.path}")
            return None

        sessions = self._session_manager_factory()
        try:
            payload = sessions.validate(token)
        except UnauthenticatedError as e:
            kind = e.kind.value if e.kind else "unknown"
            logger.warning(f"Rejected access token ({kind}) for {request.url.path}")
            return None

        identity = sessions.identity_for(payload)
        logger.debug(f"Authenticated user '{identity.username}' for {request.url.path}")
        return identity

    async def dispatch(self, request: Request, call_next):
        request.state.identity = self.authenticate(request)
        return await call_next(request)
