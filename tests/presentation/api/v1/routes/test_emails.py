"""Test dashboard mailbox endpoints"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from conftest import gmail_message
from models.email import Email
from services.session_service import get_session_manager


async def _add_emails(test_db, account, count: int) -> None:
    base = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    for i in range(count):
        test_db.add(
            Email(
                email_account_id=account.id,
                provider_message_id=f"m{i}",
                sender="sender@example.com",
                subject=f"Subject {i}",
                plain_text_body=f"Body {i}",
                html_body=f"<p>Body {i}</p>",
                received_at=base + timedelta(hours=i),
                is_spam=False,
                trust_score=100,
            )
        )
    await test_db.commit()


@pytest.mark.asyncio
async def test_me_lists_inboxes(client, test_user, test_email_account, auth_headers):
    response = await client.get("/api/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["username"] == test_user.username
    assert data["name"] == test_user.name
    assert len(data["inboxes"]) == 1
    inbox = data["inboxes"][0]
    assert inbox["id"] == test_email_account.id
    assert inbox["emailAddress"] == "testuser@gmail.com"
    assert inbox["isPrimary"] is True


@pytest.mark.asyncio
async def test_me_requires_authentication(client):
    response = await client.get("/api/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"message": "Authentication required"}


@pytest.mark.asyncio
async def test_list_emails_newest_first(client, test_db, test_email_account, auth_headers):
    await _add_emails(test_db, test_email_account, 3)

    response = await client.get(
        f"/api/emailAccounts/{test_email_account.id}/emails", headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert [email["subject"] for email in data] == ["Subject 2", "Subject 1", "Subject 0"]
    first = data[0]
    assert first["body"] == "Body 2"
    assert first["htmlBody"] == "<p>Body 2</p>"
    assert first["isSpam"] is False
    assert first["trustScore"] == 100
    assert "receivedAt" in first


@pytest.mark.asyncio
async def test_list_emails_unknown_account(client, test_user, auth_headers):
    response = await client.get("/api/emailAccounts/missing/emails", headers=auth_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_list_emails_of_another_user(client, other_user, test_email_account):
    token = get_session_manager().issue_access_token(other_user.username, other_user.role)

    response = await client.get(
        f"/api/emailAccounts/{test_email_account.id}/emails",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_list_emails_requires_authentication(client, test_email_account):
    response = await client.get(f"/api/emailAccounts/{test_email_account.id}/emails")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_fetch_syncs_new_messages(
    client, fake_provider, test_email_account, auth_headers
):
    fake_provider.add_message(gmail_message("m1"))
    fake_provider.add_message(gmail_message("m2"))
    fake_provider.failing_ids.add("m2")

    response = await client.post(
        f"/api/gmail/{test_email_account.id}/fetch", headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json() == {
        "message": "Emails synced",
        "created": 1,
        "failed": 1,
        "duplicates": 0,
    }


@pytest.mark.asyncio
async def test_fetch_reports_list_failure(
    client, fake_provider, test_email_account, auth_headers
):
    fake_provider.fail_listing()

    response = await client.post(
        f"/api/gmail/{test_email_account.id}/fetch", headers=auth_headers
    )

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"message": "Failed to list messages from Google"}
