"""Manual re-sync of a linked mailbox"""
from datetime import UTC, datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.exceptions import ForbiddenError, NotFoundError, UpstreamExchangeFailedError
from core.logging import get_logger
from integrations.email.encryption import CredentialEncryptor
from integrations.email.protocols import IMailProvider, IngestionResult
from integrations.email.sync import MailIngestionPipeline
from models.email_account import EmailAccount
from models.user import User
from repositories.email_account_repo import EmailAccountRepository

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class MailSyncService:
    """Refreshes provider credentials when needed, then ingests"""

    def __init__(
        self,
        db: AsyncSession,
        provider: IMailProvider,
        settings: Optional[Settings] = None,
        encryptor: Optional[CredentialEncryptor] = None,
    ):
        self.db = db
        self.provider = provider
        self.settings = settings or get_settings()
        self.encryptor = encryptor or CredentialEncryptor(self.settings)
        self.account_repo = EmailAccountRepository(db)

    async def get_owned_account(self, account_id: str, user: User) -> EmailAccount:
        """
        Raises:
            NotFoundError: unknown account id
            ForbiddenError: account belongs to another user
        """
        account = await self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFoundError("Email account not found")
        if account.user_id != user.id:
            raise ForbiddenError("You are not authorized to access this email account")
        return account

    def _needs_refresh(self, account: EmailAccount) -> bool:
        if account.token_expiry is None:
            return True
        margin = timedelta(seconds=self.settings.provider_token_refresh_margin_seconds)
        return _as_utc(account.token_expiry) - margin <= datetime.now(UTC)

    async def ensure_access_token(self, account: EmailAccount) -> str:
        """Current provider access token, refreshed and persisted if expiring"""
        credentials = self.encryptor.decrypt(account.credentials_encrypted)

        if not self._needs_refresh(account):
            return credentials["access_token"]

        refresh_token = credentials.get("refresh_token")
        if not refresh_token:
            raise UpstreamExchangeFailedError(
                "No refresh token available. Re-authorize the account."
            )

        tokens = await self.provider.refresh_access_token(refresh_token)
        credentials["access_token"] = tokens.access_token
        if tokens.refresh_token:
            credentials["refresh_token"] = tokens.refresh_token

        account.credentials_encrypted = self.encryptor.encrypt(credentials)
        account.token_expiry = datetime.now(UTC) + timedelta(seconds=tokens.expires_in)
        await self.db.commit()

        logger.info(f"Refreshed provider tokens for {account.email_address}")
        return tokens.access_token

    async def sync_account(self, account: EmailAccount) -> IngestionResult:
        access_token = await self.ensure_access_token(account)
        pipeline = MailIngestionPipeline(self.db, self.provider, self.settings)
        return await pipeline.ingest(access_token, account)
