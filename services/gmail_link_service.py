"""Gmail OAuth 2.0 linking flow"""
from datetime import UTC, datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.enums import EmailProvider
from core.exceptions import (
    DuplicateLinkedAccountError,
    IngestionFailedError,
    ProviderNotConfiguredError,
    UnauthenticatedError,
)
from core.logging import get_logger
from integrations.email.encryption import CredentialEncryptor
from integrations.email.protocols import IMailProvider
from integrations.email.sync import MailIngestionPipeline
from models.email_account import EmailAccount
from repositories.email_account_repo import EmailAccountRepository
from repositories.user_repo import UserRepository
from schemas.token import Identity

logger = get_logger(__name__)


class GmailLinkFlow:
    """
    Links a Gmail mailbox to the calling user.

    The new account is committed before its first ingestion runs, so an
    ingestion failure leaves the link in place and raises
    IngestionFailedError carrying the account id.
    """

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
        self.user_repo = UserRepository(db)
        self.account_repo = EmailAccountRepository(db)

    def start_authorization(self) -> str:
        """Google consent URL; always asks for offline access and consent"""
        if not self.settings.gmail_configured:
            raise ProviderNotConfiguredError()

        params = {
            "client_id": self.settings.gmail_client_id,
            "redirect_uri": self.settings.gmail_redirect_uri,
            "response_type": "code",
            "scope": self.settings.gmail_scopes,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.settings.google_auth_url}?{urlencode(params)}"

    async def complete_authorization(
        self, code: str, identity: Optional[Identity]
    ) -> EmailAccount:
        """
        Exchange the code, resolve the mailbox address, save the account and
        run the first ingestion.
        """
        if identity is None:
            raise UnauthenticatedError("Missing authentication token")

        user = await self.user_repo.get_by_username(identity.username)
        if not user:
            raise UnauthenticatedError("User not found or not authenticated")

        logger.info(f"Received Gmail OAuth callback for {user.username}")

        tokens = await self.provider.exchange_code(code)
        email_address = await self.provider.get_profile(tokens.access_token)

        if await self.account_repo.exists_by_email_address(email_address):
            raise DuplicateLinkedAccountError()

        now = datetime.now(UTC)
        has_accounts = bool(await self.account_repo.get_all_by_owner(user.id))
        account = EmailAccount(
            user_id=user.id,
            email_address=email_address,
            display_name=email_address,
            provider=EmailProvider.GMAIL.value,
            credentials_encrypted=self.encryptor.encrypt(
                {
                    "access_token": tokens.access_token,
                    "refresh_token": tokens.refresh_token,
                }
            ),
            token_expiry=now + timedelta(seconds=tokens.expires_in),
            is_primary=not has_accounts,
            notes=f"Linked via OAuth on {now.isoformat()}",
        )

        try:
            account = await self.account_repo.create(account)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateLinkedAccountError() from e

        account_id = account.id
        logger.info(f"Saved Gmail account {email_address} for user {user.username}")

        pipeline = MailIngestionPipeline(self.db, self.provider, self.settings)
        try:
            await pipeline.ingest(tokens.access_token, account)
        except Exception as e:
            logger.error(
                f"Initial sync failed for {email_address}: {e}", exc_info=True
            )
            await self.db.rollback()
            raise IngestionFailedError(account_id) from e

        return account
