import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from loandesk.db.base import Base


class LoanApplication(Base):
    __tablename__ = "loan_applications"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_loan_app_amount_positive"),
        CheckConstraint(
            "status IN ('Pending', 'Approved', 'Rejected', 'Cancelled')",
            name="ck_loan_app_status",
        ),
        CheckConstraint("fee_status IN ('unpaid', 'paid')", name="ck_loan_app_fee_status"),
        CheckConstraint(
            "(payment_session_id IS NULL) = (payment IS NULL)",
            name="ck_loan_app_payment_pair",
        ),
        UniqueConstraint("payment_session_id", name="uq_loan_app_payment_session_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, index=True)
    borrower_name = Column(String(255), nullable=True)
    title = Column(String(255), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    category = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="Pending", index=True)
    fee_status = Column(String(10), nullable=False, default="unpaid")
    application_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    payment_session_id = Column(String(255), nullable=True)
    payment = Column(JSONB, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
