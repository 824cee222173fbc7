from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, TypeVar

from loandesk.core.errors import InvalidIdentifier, StoreUnavailable
from loandesk.services.audit import record_audit_event
from loandesk.services.loan_applications import parse_loan_id
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

T = TypeVar("T")


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    INVALID_METADATA = "invalid_metadata"
    LOAN_NOT_FOUND = "loan_not_found"
    ALREADY_PAID = "already_paid"
    SESSION_CONFLICT = "session_conflict"


async def _bounded(call: Awaitable[T], timeout: float) -> T:
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise StoreUnavailable(
            "Loan record store timed out",
            details={"timeout_seconds": timeout},
        ) from exc


def _paid_at(event_created: Any) -> str:
    if isinstance(event_created, (int, float)):
        return datetime.fromtimestamp(event_created, tz=timezone.utc).isoformat()
    return datetime.now(timezone.utc).isoformat()


def build_payment_record(session: dict[str, Any], *, event_created: Any = None) -> dict[str, Any]:
    """Payment details as reported by the provider; the charged amount is never recomputed locally."""
    metadata = session.get("metadata") or {}
    customer_details = session.get("customer_details") or {}
    if not isinstance(customer_details, dict):
        customer_details = {}
    payment_intent = session.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")
    return {
        "session_id": session.get("id"),
        "transaction_id": payment_intent,
        "email": session.get("customer_email") or customer_details.get("email"),
        "amount": session.get("amount_total"),
        "currency": session.get("currency"),
        "loan_title": metadata.get("loan_title") or metadata.get("loanTitle"),
        "paid_at": _paid_at(event_created),
    }


async def apply_checkout_completed(
    store: LoanRecordStore,
    session: dict[str, Any],
    *,
    event_created: Any = None,
    approve: bool = False,
    store_timeout: float = 5.0,
) -> WebhookOutcome:
    session_id = session.get("id")
    metadata = session.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    raw_loan_id = metadata.get("loan_id") or metadata.get("loanId")
    if not session_id or not raw_loan_id:
        logger.warning(
            "Completed checkout session without loan metadata",
            extra={"session_id": session_id, "outcome": WebhookOutcome.INVALID_METADATA.value},
        )
        return WebhookOutcome.INVALID_METADATA
    try:
        loan_id = parse_loan_id(raw_loan_id)
    except InvalidIdentifier:
        logger.warning(
            "Completed checkout session carries a malformed loan id %r",
            raw_loan_id,
            extra={"session_id": session_id, "outcome": WebhookOutcome.INVALID_METADATA.value},
        )
        return WebhookOutcome.INVALID_METADATA

    payment = build_payment_record(session, event_created=event_created)
    matched = await _bounded(
        store.set_payment_if_absent(loan_id, session_id, payment, approve=approve),
        store_timeout,
    )
    log_extra = {"loan_id": str(loan_id), "session_id": session_id}
    if matched:
        logger.info("Application fee recorded as paid", extra={**log_extra, "outcome": "applied"})
        try:
            await _bounded(
                record_audit_event(
                    store,
                    action="loan_application.fee_paid",
                    resource_type="loan_application",
                    resource_id=str(loan_id),
                    new_value=payment,
                ),
                store_timeout,
            )
        except StoreUnavailable:
            # The payment is committed; the audit row is best-effort.
            logger.warning("Audit entry for the paid fee timed out", extra=log_extra)
        return WebhookOutcome.APPLIED

    application = await _bounded(store.find_by_id(loan_id), store_timeout)
    if application is None:
        logger.warning("Payment received for unknown loan application", extra=log_extra)
        return WebhookOutcome.LOAN_NOT_FOUND
    if application.payment_session_id == session_id:
        logger.info("Duplicate delivery for an applied payment", extra=log_extra)
        return WebhookOutcome.DUPLICATE
    if application.payment_session_id is None:
        logger.warning(
            "Checkout session is already attached to another loan application",
            extra={**log_extra, "outcome": WebhookOutcome.SESSION_CONFLICT.value},
        )
        return WebhookOutcome.SESSION_CONFLICT
    logger.warning(
        "Loan application fee was already paid by session %s",
        application.payment_session_id,
        extra=log_extra,
    )
    return WebhookOutcome.ALREADY_PAID


async def handle_webhook(
    store: LoanRecordStore,
    gateway: StripeGateway,
    payload: bytes,
    signature: str | None,
    *,
    approve_on_payment: bool = False,
    store_timeout: float = 5.0,
) -> WebhookOutcome:
    event = gateway.verify_webhook(payload, signature)
    event_type = event.get("type")
    event_id = event.get("id")
    if event_type != CHECKOUT_SESSION_COMPLETED:
        logger.info(
            "Ignoring webhook event",
            extra={"event_type": event_type, "event_id": event_id, "outcome": "ignored"},
        )
        return WebhookOutcome.IGNORED

    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    if not isinstance(session, dict):
        logger.warning(
            "Completed checkout event without a session object",
            extra={"event_type": event_type, "event_id": event_id, "outcome": WebhookOutcome.IGNORED.value},
        )
        return WebhookOutcome.IGNORED
    logger.info(
        "Processing webhook event",
        extra={"event_type": event_type, "event_id": event_id, "session_id": session.get("id")},
    )
    return await apply_checkout_completed(
        store,
        session,
        event_created=event.get("created"),
        approve=approve_on_payment,
        store_timeout=store_timeout,
    )
