"""Shared test fixtures for pytest"""
import base64
import os
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

# Settings are read once at import time, so the environment comes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("ENCRYPTION_SALT", "test-encryption-salt")
os.environ.setdefault("GMAIL_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("GMAIL_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from api.deps import get_mail_provider  # noqa: E402
from core.auth import get_password_hash  # noqa: E402
from core.database import Base, get_db  # noqa: E402
from core.exceptions import UpstreamFailureError, UpstreamListFailedError  # noqa: E402
from integrations.email.encryption import CredentialEncryptor  # noqa: E402
from integrations.email.protocols import ProviderTokens  # noqa: E402
from main import app  # noqa: E402
from models.email_account import EmailAccount  # noqa: E402
from models.user import User  # noqa: E402
from schemas.token import Identity  # noqa: E402
from services.session_service import get_session_manager  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def encode_body(text: str) -> str:
    """Gmail-style base64url with padding stripped"""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def gmail_message(
    message_id: str,
    subject: str | None = "Test Email",
    sender: str | None = "sender@example.com",
    plain: str | None = "Hello",
    html: str | None = "<p>Hello</p>",
    date: str | None = "Wed, 01 Jan 2025 10:00:00 +0000",
) -> dict[str, Any]:
    """Build a Gmail `format=full` message resource"""
    headers = []
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    if date is not None:
        headers.append({"name": "Date", "value": date})

    parts = []
    if plain is not None:
        parts.append({"mimeType": "text/plain", "body": {"data": encode_body(plain)}})
    if html is not None:
        parts.append({"mimeType": "text/html", "body": {"data": encode_body(html)}})

    return {
        "id": message_id,
        "threadId": f"thread-{message_id}",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "body": {"size": 0},
            "parts": parts,
        },
    }


class FakeMailProvider:
    """In-memory IMailProvider for service and API tests"""

    def __init__(self):
        self.tokens = ProviderTokens(
            access_token="provider-access-token",
            refresh_token="provider-refresh-token",
            expires_in=3600,
        )
        self.refreshed_tokens = ProviderTokens(
            access_token="provider-access-token-2",
            refresh_token=None,
            expires_in=3600,
        )
        self.profile_email = "linked@gmail.com"
        self.messages: dict[str, dict[str, Any]] = {}
        self.failing_ids: set[str] = set()
        self.list_error: Exception | None = None
        self.exchanged_codes: list[str] = []
        self.refresh_calls: list[str] = []
        self.list_calls: list[tuple[str, int]] = []

    def add_message(self, message: dict[str, Any]) -> None:
        self.messages[message["id"]] = message

    async def exchange_code(self, code: str) -> ProviderTokens:
        self.exchanged_codes.append(code)
        return self.tokens

    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        self.refresh_calls.append(refresh_token)
        return self.refreshed_tokens

    async def get_profile(self, access_token: str) -> str:
        return self.profile_email

    async def list_messages(self, access_token: str, max_results: int) -> list[str]:
        self.list_calls.append((access_token, max_results))
        if self.list_error is not None:
            raise self.list_error
        return list(self.messages)[:max_results]

    async def get_message(self, access_token: str, message_id: str) -> dict[str, Any]:
        if message_id in self.failing_ids:
            raise UpstreamFailureError(f"Failed to fetch Gmail message {message_id}")
        return self.messages[message_id]

    def fail_listing(self) -> None:
        self.list_error = UpstreamListFailedError()


@pytest.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly on SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    """Create test database session"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def fake_provider():
    return FakeMailProvider()


@pytest.fixture
async def client(test_db, fake_provider):
    """HTTP client for API testing"""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_provider] = lambda: fake_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(test_db, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash("testpass123"),
        name=username.title(),
        role="USER",
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest.fixture
async def test_user(test_db):
    """Create test user"""
    return await _create_user(test_db, "testuser", "test@example.com")


@pytest.fixture
async def other_user(test_db):
    """A second principal for ownership checks"""
    return await _create_user(test_db, "otheruser", "other@example.com")


@pytest.fixture
def test_identity(test_user):
    return Identity(
        username=test_user.username,
        role=test_user.role,
        authorities=frozenset({"ROLE_USER"}),
    )


@pytest.fixture
def access_token(test_user):
    return get_session_manager().issue_access_token(test_user.username, test_user.role)


@pytest.fixture
def auth_headers(access_token):
    """Bearer header carrying a valid access token"""
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def encryptor():
    return CredentialEncryptor()


@pytest.fixture
async def test_email_account(test_db, test_user, encryptor):
    """Linked Gmail account owned by test_user with unexpired credentials"""
    account = EmailAccount(
        user_id=test_user.id,
        email_address="testuser@gmail.com",
        display_name="testuser@gmail.com",
        provider="GMAIL",
        credentials_encrypted=encryptor.encrypt(
            {
                "access_token": "stored-access-token",
                "refresh_token": "stored-refresh-token",
            }
        ),
        token_expiry=datetime.now(UTC) + timedelta(hours=1),
        is_primary=True,
    )
    test_db.add(account)
    await test_db.commit()
    await test_db.refresh(account)
    return account
