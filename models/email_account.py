"""Linked mailbox model"""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.enums import EmailProvider
from models.mixins import StandardModel


class EmailAccount(StandardModel, Base):
    """
    A provider mailbox a user has authorized us to read.

    Inherits from StandardModel:
        - id: CUID primary key
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    Provider access and refresh tokens live in credentials_encrypted
    (Fernet, see integrations.email.encryption). email_address is unique
    across all users, not just per owner.
    """

    __tablename__ = "email_account"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )

    email_address: Mapped[str] = mapped_column(String, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    provider: Mapped[str] = mapped_column(
        String, nullable=False, default=EmailProvider.GMAIL.value
    )

    # Encrypted credentials (Fernet)
    credentials_encrypted: Mapped[str] = mapped_column(String, nullable=False)
    token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Sync metadata
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        UniqueConstraint("email_address", name="uq_email_account_address"),
    )

    def __repr__(self) -> str:
        return f"<EmailAccount(id={self.id}, email={self.email_address}, provider={self.provider})>"
