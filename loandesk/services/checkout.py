from __future__ import annotations

import logging

from loandesk.core.errors import BusinessRuleViolation
from loandesk.schemas.loan import FeeStatus, LoanApplicationStatus
from loandesk.schemas.payments import CheckoutSession, CheckoutSessionRequest
from loandesk.services.audit import record_audit_event
from loandesk.services.loan_applications import get_application, parse_loan_id
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway

logger = logging.getLogger(__name__)


async def start_checkout(
    store: LoanRecordStore,
    gateway: StripeGateway,
    request: CheckoutSessionRequest,
) -> CheckoutSession:
    loan_id = parse_loan_id(request.loan_id)
    application = await get_application(store, loan_id)
    if application.fee_status == FeeStatus.PAID.value:
        raise BusinessRuleViolation(
            "Application fee is already paid",
            code="fee_already_paid",
            details={"id": str(loan_id)},
        )
    if application.status != LoanApplicationStatus.PENDING.value:
        raise BusinessRuleViolation(
            "Only Pending applications can be paid for",
            code="not_pending",
            details={"id": str(loan_id), "current_status": application.status},
        )

    title = request.loan_title or application.title
    session = await gateway.create_checkout_session(
        loan_id=loan_id,
        loan_title=title,
        email=request.email,
    )
    logger.info(
        "Checkout session created",
        extra={"loan_id": str(loan_id), "session_id": session.id},
    )
    await record_audit_event(
        store,
        action="checkout_session.created",
        resource_type="checkout_session",
        resource_id=session.id,
        new_value=session.model_dump(),
    )
    return session
