from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.email_account import EmailAccount
from repositories.base import BaseRepository


class EmailAccountRepository(BaseRepository[EmailAccount]):
    """Repository for linked mailboxes"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, EmailAccount)

    async def exists_by_email_address(self, email_address: str) -> bool:
        """True when any user has already linked this address"""
        result = await self.db.execute(
            select(exists().where(EmailAccount.email_address == email_address))
        )
        return bool(result.scalar())

    async def get_all_by_owner(self, user_id: str) -> list[EmailAccount]:
        result = await self.db.execute(
            select(EmailAccount)
            .where(EmailAccount.user_id == user_id)
            .order_by(EmailAccount.created_at)
        )
        return list(result.scalars().all())
