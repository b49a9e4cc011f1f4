"""Ingested message model"""
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from models.mixins import StandardModel


class Email(StandardModel, Base):
    """
    A message pulled from a linked mailbox. Written once by ingestion.

    (provider_message_id, email_account_id) is unique so re-ingesting the
    same provider message never creates a second row.
    """

    __tablename__ = "email"

    email_account_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("email_account.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider_message_id: Mapped[str] = mapped_column(String, nullable=False)

    sender: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    plain_text_body: Mapped[str] = mapped_column(Text, nullable=False)
    html_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    is_spam: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    trust_score: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "provider_message_id",
            "email_account_id",
            name="uq_email_provider_message_account",
        ),
    )

    def __repr__(self) -> str:
        return f"<Email(id={self.id}, provider_message_id={self.provider_message_id})>"
