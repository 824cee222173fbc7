from fastapi import APIRouter, Depends

from loandesk.api import deps
from loandesk.core.health import live_payload, ready_payload, status_summary_payload
from loandesk.core.limiter import limiter
from loandesk.services.loan_store import LoanRecordStore

router = APIRouter(tags=["health"])


@router.get("/health/live", summary="Service liveness check")
@limiter.exempt
async def health_live() -> dict:
    return await live_payload()


@router.get("/health/ready", summary="Service readiness check")
@limiter.exempt
async def health_ready(store: LoanRecordStore = Depends(deps.get_loan_store)) -> dict:
    return await ready_payload(store)


@router.get("/health", summary="Readiness check alias")
@limiter.exempt
async def read_health(store: LoanRecordStore = Depends(deps.get_loan_store)) -> dict:
    return await ready_payload(store)


@router.get("/status/summary", tags=["status"], summary="Service status summary")
@limiter.exempt
async def status_summary(store: LoanRecordStore = Depends(deps.get_loan_store)) -> dict:
    return await status_summary_payload(store)
