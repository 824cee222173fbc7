from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from loandesk.schemas.loan import NormalizedEmail


class CheckoutSessionRequest(BaseModel):
    loan_id: str = Field(min_length=1)
    email: NormalizedEmail
    loan_title: str | None = Field(default=None, max_length=255)


class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: str


class CheckoutSession(BaseModel):
    """Provider-issued session, trimmed to what the backend keeps."""

    id: str
    url: str
    loan_id: UUID
    email: str
    amount: int
    currency: str
    created_at: datetime


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str
