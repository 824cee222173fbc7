from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder

from loandesk.core.errors import StoreUnavailable
from loandesk.core.logging import get_audit_logger
from loandesk.models.loan_application import LoanApplication
from loandesk.services.loan_store import LoanRecordStore

logger = logging.getLogger(__name__)


def serialize_for_audit(value: Any) -> Any:
    return jsonable_encoder(
        value,
        custom_encoder={
            Decimal: lambda v: str(v),
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
            UUID: lambda v: str(v),
        },
    )


def application_snapshot(application: LoanApplication) -> dict[str, Any]:
    data = {column.name: getattr(application, column.name) for column in application.__table__.columns}
    return serialize_for_audit(data)


async def record_audit_event(
    store: LoanRecordStore,
    *,
    action: str,
    resource_type: str,
    resource_id: str,
    new_value: Any | None = None,
) -> None:
    """Emit an audit line and persist it; persistence failures are logged, not raised."""
    serialized = serialize_for_audit(new_value) if new_value is not None else None
    get_audit_logger().info(
        "%s %s=%s",
        action,
        resource_type,
        resource_id,
    )
    try:
        await store.record_audit(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            new_value=serialized,
        )
    except StoreUnavailable:
        logger.warning("Audit entry %s for %s was not persisted", action, resource_id, exc_info=True)
