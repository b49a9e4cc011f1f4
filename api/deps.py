from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from integrations.email.protocols import IMailProvider
from integrations.email.providers.gmail_provider import GmailClient
from models.user import User
from repositories.user_repo import UserRepository
from schemas.token import Identity
from services.auth_service import AuthService
from services.gmail_link_service import GmailLinkFlow
from services.mail_sync_service import MailSyncService
from services.session_service import SessionManager, get_session_manager

# Global provider client (stateless, opens one httpx client per call)
_mail_provider: IMailProvider | None = None


def get_mail_provider() -> IMailProvider:
    """Gmail API client dependency (singleton)"""
    global _mail_provider
    if _mail_provider is None:
        _mail_provider = GmailClient()
    return _mail_provider


def get_optional_identity(request: Request) -> Identity | None:
    """Identity bound by AuthenticationMiddleware, None for anonymous callers"""
    return getattr(request.state, "identity", None)


def get_current_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    """Require an authenticated caller"""
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Principal record of the authenticated caller"""
    user = await UserRepository(db).get_by_username(identity.username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> AuthService:
    """Auth service dependency"""
    return AuthService(db, sessions)


async def get_gmail_link_flow(
    db: AsyncSession = Depends(get_db),
    provider: IMailProvider = Depends(get_mail_provider),
) -> GmailLinkFlow:
    """Gmail linking flow dependency"""
    return GmailLinkFlow(db, provider)


async def get_mail_sync_service(
    db: AsyncSession = Depends(get_db),
    provider: IMailProvider = Depends(get_mail_provider),
) -> MailSyncService:
    """Manual sync service dependency"""
    return MailSyncService(db, provider)
