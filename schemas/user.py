from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignupRequest(BaseModel):
    """Schema for user registration"""
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="User email address (unique)")
    password: str = Field(..., min_length=8, max_length=72, description="User password (min 8 characters)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")


class LoginRequest(BaseModel):
    """Login credentials"""
    username: str
    password: str


class MessageResponse(BaseModel):
    """Short status message"""
    message: str


class InboxSummary(BaseModel):
    """Linked mailbox as shown on the dashboard"""
    id: str
    display_name: str = Field(..., alias="displayName")
    email_address: str = Field(..., alias="emailAddress")
    provider: str
    is_primary: bool = Field(..., alias="isPrimary")
    last_synced_at: datetime | None = Field(None, alias="lastSyncedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserProfileResponse(BaseModel):
    """Current user with their linked inboxes"""
    username: str
    name: str
    inboxes: list[InboxSummary]
