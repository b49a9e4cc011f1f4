from enum import Enum


class ErrorKind(str, Enum):
    """Why a bearer token was rejected (diagnostics only)"""
    MALFORMED_TOKEN = "malformed_token"
    EXPIRED = "expired"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [kind.value for kind in cls]


class TokenType(str, Enum):
    """Session token flavours"""
    ACCESS = "access"
    REFRESH = "refresh"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [token_type.value for token_type in cls]


class UserRole(str, Enum):
    """Principal roles"""
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [role.value for role in cls]


class EmailProvider(str, Enum):
    """Mail providers an account can be linked through"""
    GMAIL = "GMAIL"
