from models.email import Email
from models.email_account import EmailAccount

# Mixins for model composition
from models.mixins import CuidMixin, StandardModel, TimestampMixin
from models.user import User

__all__ = [
    # Models
    "User",
    "EmailAccount",
    "Email",
    # Mixins
    "CuidMixin",
    "TimestampMixin",
    "StandardModel",
]
