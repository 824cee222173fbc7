from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator


class LoanApplicationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class FeeStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


def normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]


def _strip_or_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class LoanApplicationCreate(BaseModel):
    email: NormalizedEmail
    title: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    borrower_name: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("borrower_name", "category", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return _strip_or_none(value)


class LoanStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: LoanApplicationStatus


class PaymentRecordDTO(BaseModel):
    session_id: str
    transaction_id: str | None = None
    email: str | None = None
    amount: int | None = None
    currency: str | None = None
    loan_title: str | None = None
    paid_at: datetime | None = None


class LoanApplicationDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    borrower_name: str | None = None
    title: str
    amount: Decimal
    category: str | None = None
    status: LoanApplicationStatus
    fee_status: FeeStatus
    application_date: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    cancelled_at: datetime | None = None
    payment: PaymentRecordDTO | None = None
    updated_at: datetime | None = None


class LoanApplicationListResponse(BaseModel):
    items: list[LoanApplicationDTO]
    total: int
    limit: int
    offset: int
