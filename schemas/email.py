from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class EmailResponse(BaseModel):
    """Stored message as returned to the dashboard"""
    id: str
    subject: str
    sender: str
    body: str = Field(..., validation_alias=AliasChoices("body", "plain_text_body"))
    html_body: str | None = Field(None, alias="htmlBody")
    received_at: datetime = Field(..., alias="receivedAt")
    is_spam: bool = Field(..., alias="isSpam")
    trust_score: int = Field(..., alias="trustScore")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class SyncResponse(BaseModel):
    """Manual sync outcome"""
    message: str
    created: int
    failed: int
    duplicates: int
