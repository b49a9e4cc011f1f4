"""Gmail OAuth 2.0 flow endpoints"""
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse

from api.deps import get_gmail_link_flow, get_optional_identity
from core.config import get_settings
from core.exceptions import UnauthenticatedError
from schemas.token import Identity
from services.gmail_link_service import GmailLinkFlow

router = APIRouter(prefix="/auth/gmail", tags=["Gmail OAuth"])
settings = get_settings()


@router.get("/link")
async def gmail_link(flow: GmailLinkFlow = Depends(get_gmail_link_flow)):
    """
    Initiate Gmail OAuth flow.

    Redirects the browser to Google's consent screen with offline access,
    so Google always issues a refresh token.
    """
    return RedirectResponse(flow.start_authorization())


@router.get("/callback")
async def gmail_callback(
    code: str | None = Query(None, description="Authorization code from Google"),
    error: str | None = Query(None, description="Error from Google"),
    identity: Identity | None = Depends(get_optional_identity),
    flow: GmailLinkFlow = Depends(get_gmail_link_flow),
):
    """
    Handle Gmail OAuth callback.

    Requires the access_token cookie. Exchanges the code, links the mailbox,
    runs the first sync and redirects to the dashboard with the new account id.
    """
    if identity is None:
        raise UnauthenticatedError("Missing authentication token")
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"OAuth authorization failed: {error}",
        )
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No authorization code received",
        )

    account = await flow.complete_authorization(code, identity)

    query = urlencode({"refresh": "true", "accountId": account.id})
    return RedirectResponse(
        f"{settings.frontend_dashboard_url}?{query}",
        status_code=status.HTTP_302_FOUND,
    )
