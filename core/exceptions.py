from core.enums import ErrorKind


class SentinelException(Exception):
    """Base exception"""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class TokenError(Exception):
    """Bearer token could not be decoded"""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class UnauthenticatedError(SentinelException):
    """No, invalid or expired credentials"""

    status_code = 401
    default_message = "Authentication required"

    def __init__(self, message: str | None = None, kind: ErrorKind | None = None):
        super().__init__(message)
        self.kind = kind


class ForbiddenError(SentinelException):
    """Authenticated but not the owner of the resource"""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(SentinelException):
    """Resource id unknown"""

    status_code = 404
    default_message = "Not found"


class ConflictError(SentinelException):
    """Unique value already taken"""

    status_code = 400
    default_message = "Already exists"


class DuplicateLinkedAccountError(ConflictError):
    """Mailbox already linked to some principal"""

    status_code = 409
    default_message = "This Gmail account is already linked."


class UpstreamFailureError(SentinelException):
    """Mail provider network or response error"""

    status_code = 502
    default_message = "Mail provider request failed"


class UpstreamExchangeFailedError(UpstreamFailureError):
    """Authorization code or refresh token exchange failed"""

    default_message = "Failed to retrieve token from Google"


class UpstreamProfileFailedError(UpstreamFailureError):
    """Provider account address could not be resolved"""

    default_message = "Failed to retrieve user info from Google"


class UpstreamListFailedError(UpstreamFailureError):
    """Message listing failed, ingestion aborted"""

    default_message = "Failed to list messages from Google"


class InternalFailureError(SentinelException):
    """Unexpected persistence or parsing failure"""

    status_code = 500


class IngestionFailedError(InternalFailureError):
    """Account was linked but its first ingestion failed"""

    default_message = "Account linked but initial email sync failed"

    def __init__(self, email_account_id: str, message: str | None = None):
        super().__init__(message)
        self.email_account_id = email_account_id


class ProviderNotConfiguredError(SentinelException):
    """OAuth client credentials missing"""

    status_code = 500
    default_message = (
        "Gmail OAuth not configured. Set GMAIL_CLIENT_ID and GMAIL_CLIENT_SECRET in .env"
    )
