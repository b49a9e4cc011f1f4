from fastapi import APIRouter, Depends, Query

from api.deps import get_current_user, get_mail_sync_service
from models.user import User
from repositories.email_repo import EmailRepository
from schemas.email import EmailResponse, SyncResponse
from services.mail_sync_service import MailSyncService

router = APIRouter()


@router.get("/emailAccounts/{account_id}/emails", response_model=list[EmailResponse])
async def list_emails(
    account_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    sync_service: MailSyncService = Depends(get_mail_sync_service),
):
    """Messages of an owned account, newest first"""
    account = await sync_service.get_owned_account(account_id, current_user)
    emails = await EmailRepository(sync_service.db).list_by_account(
        account.id, skip=skip, limit=limit
    )
    return [EmailResponse.model_validate(email) for email in emails]


@router.post("/gmail/{account_id}/fetch", response_model=SyncResponse)
async def fetch_emails(
    account_id: str,
    current_user: User = Depends(get_current_user),
    sync_service: MailSyncService = Depends(get_mail_sync_service),
):
    """Pull the latest messages for an owned account"""
    account = await sync_service.get_owned_account(account_id, current_user)
    result = await sync_service.sync_account(account)
    return SyncResponse(message="Emails synced", **result.stats())
