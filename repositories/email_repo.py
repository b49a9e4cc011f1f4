from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.email import Email
from repositories.base import BaseRepository


class EmailRepository(BaseRepository[Email]):
    """Repository for ingested messages"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Email)

    async def get_existing_message_ids(
        self, email_account_id: str, provider_message_ids: list[str]
    ) -> set[str]:
        """Batch lookup of provider ids already stored for an account"""
        if not provider_message_ids:
            return set()
        result = await self.db.execute(
            select(Email.provider_message_id).where(
                Email.email_account_id == email_account_id,
                Email.provider_message_id.in_(provider_message_ids),
            )
        )
        return set(result.scalars().all())

    async def create_if_absent(self, email: Email) -> Email | None:
        """
        Insert inside a SAVEPOINT.

        Returns None when the (provider_message_id, email_account_id) unique
        constraint rejects the row; the outer transaction stays usable.
        """
        try:
            async with self.db.begin_nested():
                self.db.add(email)
                await self.db.flush()
        except IntegrityError:
            return None
        await self.db.refresh(email)
        return email

    async def list_by_account(
        self, email_account_id: str, skip: int = 0, limit: int = 100
    ) -> list[Email]:
        """Messages for an account, newest first"""
        result = await self.db.execute(
            select(Email)
            .where(Email.email_account_id == email_account_id)
            .order_by(desc(Email.received_at))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
