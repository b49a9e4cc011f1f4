"""Column sets shared by every table"""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from utils.generators import generate_cuid


class CuidMixin:
    """String primary key filled in Python with a CUID"""

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    """created_at / updated_at maintained by the database clock"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class StandardModel(CuidMixin, TimestampMixin):
    """
    Base columns for User, EmailAccount and Email.

    Usage:
        class Email(StandardModel, Base):
            __tablename__ = "email"
    """

    __abstract__ = True
