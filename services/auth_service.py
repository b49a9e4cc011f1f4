"""Signup, login and token refresh"""
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.enums import TokenType
from core.exceptions import ConflictError, UnauthenticatedError
from core.logging import get_logger
from models.user import User
from repositories.user_repo import UserRepository
from schemas.user import SignupRequest
from services.session_service import SessionManager

logger = get_logger(__name__)

USERNAME_TAKEN = "Username is already taken"
EMAIL_TAKEN = "Email is already in use"


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str


class AuthService:
    """Credential checks on top of UserRepository and SessionManager"""

    def __init__(self, db: AsyncSession, session_manager: SessionManager):
        self.db = db
        self.user_repo = UserRepository(db)
        self.sessions = session_manager

    def _issue_pair(self, user: User) -> SessionTokens:
        return SessionTokens(
            access_token=self.sessions.issue_access_token(user.username, user.role),
            refresh_token=self.sessions.issue_refresh_token(user.username),
        )

    async def signup(self, request: SignupRequest) -> SessionTokens:
        """
        Register a user and open a session.

        The exists checks give friendly messages; the unique constraints on
        username and email decide when two signups race.
        """
        if await self.user_repo.exists_by_username(request.username):
            raise ConflictError(USERNAME_TAKEN)
        if await self.user_repo.exists_by_email(request.email):
            raise ConflictError(EMAIL_TAKEN)

        try:
            user = await self.user_repo.create_user(
                username=request.username,
                email=request.email,
                password=request.password,
                name=request.name,
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Signup for {request.username} lost a uniqueness race")
            if await self.user_repo.exists_by_username(request.username):
                raise ConflictError(USERNAME_TAKEN) from e
            raise ConflictError(EMAIL_TAKEN) from e

        logger.info(f"Registered user {user.username}")
        return self._issue_pair(user)

    async def login(self, username: str, password: str) -> SessionTokens:
        user = await self.user_repo.authenticate(username, password)
        if not user:
            logger.info(f"Failed login for {username}")
            raise UnauthenticatedError("Invalid credentials")
        logger.info(f"User {user.username} logged in")
        return self._issue_pair(user)

    async def refresh(self, refresh_token: str | None) -> SessionTokens:
        """New access token plus a rotated refresh token"""
        if not refresh_token:
            raise UnauthenticatedError("Invalid refresh token")
        try:
            payload = self.sessions.validate(refresh_token, TokenType.REFRESH)
        except UnauthenticatedError as e:
            logger.info(f"Refresh rejected: {e.kind.value if e.kind else 'unknown'}")
            raise UnauthenticatedError("Invalid refresh token") from e

        user = await self.user_repo.get_by_username(payload.username)
        if not user:
            raise UnauthenticatedError("Invalid refresh token")

        return SessionTokens(
            access_token=self.sessions.issue_access_token(user.username, user.role),
            refresh_token=self.sessions.rotate_refresh(refresh_token),
        )
