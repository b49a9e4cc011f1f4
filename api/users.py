from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user
from core.database import get_db
from models.user import User
from repositories.email_account_repo import EmailAccountRepository
from schemas.user import InboxSummary, UserProfileResponse

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's profile and linked inboxes"""
    accounts = await EmailAccountRepository(db).get_all_by_owner(current_user.id)
    return UserProfileResponse(
        username=current_user.username,
        name=current_user.name,
        inboxes=[InboxSummary.model_validate(account) for account in accounts],
    )
