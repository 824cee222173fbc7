from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from loandesk.core.errors import BusinessRuleViolation, InvalidIdentifier, NotFound
from loandesk.models.loan_application import LoanApplication
from loandesk.schemas.loan import FeeStatus, LoanApplicationCreate, LoanApplicationStatus
from loandesk.services.audit import application_snapshot, record_audit_event
from loandesk.services.loan_store import LoanRecordStore

logger = logging.getLogger(__name__)

_TRANSITION_TIMESTAMPS = {
    LoanApplicationStatus.APPROVED.value: "approved_at",
    LoanApplicationStatus.REJECTED.value: "rejected_at",
    LoanApplicationStatus.CANCELLED.value: "cancelled_at",
}


def parse_loan_id(value: str | UUID | None) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidIdentifier("Invalid loan application id", details={"id": value}) from exc


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


async def get_application(store: LoanRecordStore, loan_id: UUID) -> LoanApplication:
    application = await store.find_by_id(loan_id)
    if application is None:
        raise NotFound("Loan application not found", details={"id": str(loan_id)})
    return application


async def create_application(store: LoanRecordStore, payload: LoanApplicationCreate) -> LoanApplication:
    fields = payload.model_dump()
    fields.update(
        status=LoanApplicationStatus.PENDING.value,
        fee_status=FeeStatus.UNPAID.value,
    )
    application = await store.insert(fields)
    logger.info("Loan application created", extra={"loan_id": str(application.id)})
    return application


async def list_applications(
    store: LoanRecordStore,
    *,
    email: str | None = None,
    status: LoanApplicationStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[LoanApplication], int]:
    status_value = _status_value(status) if status is not None else None
    items = await store.find(email=email, status=status_value, limit=limit, offset=offset)
    total = await store.count(email=email, status=status_value)
    return items, total


async def transition_status(
    store: LoanRecordStore,
    loan_id: UUID,
    new_status: LoanApplicationStatus | str,
) -> LoanApplication:
    """Move a Pending application to Approved, Rejected or Cancelled."""
    target = _status_value(new_status)
    timestamp_field = _TRANSITION_TIMESTAMPS.get(target)
    if timestamp_field is None:
        raise BusinessRuleViolation(
            f"Cannot transition an application to {target}",
            code="invalid_status",
            details={"status": target},
        )

    fields = {"status": target, timestamp_field: datetime.now(timezone.utc)}
    matched = await store.update_fields(
        loan_id,
        fields,
        expected_status=LoanApplicationStatus.PENDING.value,
    )
    application = await get_application(store, loan_id)
    if not matched:
        raise BusinessRuleViolation(
            "Only Pending applications can change status",
            code="invalid_status_transition",
            details={"current_status": application.status, "requested_status": target},
        )

    logger.info("Loan application moved to %s", target, extra={"loan_id": str(loan_id)})
    await record_audit_event(
        store,
        action="loan_application.status_changed",
        resource_type="loan_application",
        resource_id=str(loan_id),
        new_value=application_snapshot(application),
    )
    return application


async def delete_pending_application(store: LoanRecordStore, loan_id: UUID) -> None:
    deleted = await store.delete(loan_id, expected_status=LoanApplicationStatus.PENDING.value)
    if not deleted:
        application = await get_application(store, loan_id)
        raise BusinessRuleViolation(
            "Only Pending applications can be deleted",
            code="not_pending",
            details={"current_status": application.status},
        )
    await record_audit_event(
        store,
        action="loan_application.deleted",
        resource_type="loan_application",
        resource_id=str(loan_id),
    )


async def delete_application(store: LoanRecordStore, loan_id: UUID) -> None:
    """Administrative delete, regardless of status."""
    deleted = await store.delete(loan_id)
    if not deleted:
        raise NotFound("Loan application not found", details={"id": str(loan_id)})
    await record_audit_event(
        store,
        action="loan_application.deleted",
        resource_type="loan_application",
        resource_id=str(loan_id),
        new_value={"administrative": True},
    )
