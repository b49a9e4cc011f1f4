"""Gmail message ingestion pipeline"""
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.logging import get_logger
from integrations.email.mime import parse_message
from integrations.email.protocols import IMailProvider, IngestionResult
from models.email import Email
from models.email_account import EmailAccount
from repositories.email_repo import EmailRepository

logger = get_logger(__name__)


class MailIngestionPipeline:
    """
    Pulls the most recent messages of a linked mailbox into the email table.

    Only the list call can abort a cycle (UpstreamListFailedError). A message
    that fails to fetch, parse or store is logged, recorded in result.failed and
    skipped. Provider ids already stored for the account are recorded in
    result.duplicates and never inserted twice.
    """

    def __init__(
        self,
        db: AsyncSession,
        provider: IMailProvider,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.provider = provider
        self.settings = settings or get_settings()
        self.email_repo = EmailRepository(db)

    async def ingest(
        self, provider_access_token: str, email_account: EmailAccount
    ) -> IngestionResult:
        """
        Run one ingestion cycle for email_account.

        Returns:
            IngestionResult with created Email rows, failed ids and duplicate ids
        """
        logger.info(f"Starting ingestion for {email_account.email_address}")

        message_ids = await self.provider.list_messages(
            provider_access_token, self.settings.ingestion_page_size
        )
        logger.info(
            f"Listed {len(message_ids)} messages for {email_account.email_address}"
        )

        result = IngestionResult()
        known = await self.email_repo.get_existing_message_ids(
            email_account.id, message_ids
        )

        for message_id in message_ids:
            if message_id in known:
                result.duplicates.append(message_id)
                continue

            try:
                raw = await self.provider.get_message(provider_access_token, message_id)
                parsed = parse_message(raw, fallback_id=message_id)
            except Exception as e:
                logger.exception(f"Error fetching Gmail message {message_id}: {e}")
                result.failed.append(message_id)
                continue

            if parsed.provider_message_id in known:
                result.duplicates.append(parsed.provider_message_id)
                continue

            email = Email(
                email_account_id=email_account.id,
                provider_message_id=parsed.provider_message_id,
                sender=parsed.sender,
                subject=parsed.subject,
                plain_text_body=parsed.plain_text_body,
                html_body=parsed.html_body,
                received_at=parsed.received_at,
                is_spam=False,
                trust_score=self.settings.default_trust_score,
            )
            try:
                saved = await self.email_repo.create_if_absent(email)
            except SQLAlchemyError as e:
                logger.error(
                    f"Error storing Gmail message {parsed.provider_message_id}: {e}"
                )
                result.failed.append(parsed.provider_message_id)
                continue
            known.add(parsed.provider_message_id)
            if saved is None:
                logger.info(
                    f"Message {parsed.provider_message_id} already stored, skipping"
                )
                result.duplicates.append(parsed.provider_message_id)
                continue
            result.messages.append(saved)

        email_account.last_synced_at = datetime.now(UTC)
        await self.db.commit()

        logger.info(
            f"Ingestion completed for {email_account.email_address}: {result.stats()}"
        )
        return result
