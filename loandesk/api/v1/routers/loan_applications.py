from fastapi import APIRouter, Depends, Query, status

from loandesk.api import deps
from loandesk.schemas.loan import (
    LoanApplicationCreate,
    LoanApplicationDTO,
    LoanApplicationListResponse,
    LoanApplicationStatus,
    LoanStatusUpdate,
    normalize_email,
)
from loandesk.services import loan_applications
from loandesk.services.loan_store import LoanRecordStore

router = APIRouter(prefix="/loan-applications", tags=["loan-applications"])


@router.post(
    "",
    response_model=LoanApplicationDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a loan application",
)
async def create_loan_application(
    payload: LoanApplicationCreate,
    store: LoanRecordStore = Depends(deps.get_loan_store),
) -> LoanApplicationDTO:
    application = await loan_applications.create_application(store, payload)
    return LoanApplicationDTO.model_validate(application)


@router.get(
    "",
    response_model=LoanApplicationListResponse,
    summary="List loan applications, optionally filtered by applicant email and status",
)
async def list_loan_applications(
    store: LoanRecordStore = Depends(deps.get_loan_store),
    email: str | None = Query(default=None),
    status_filter: LoanApplicationStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> LoanApplicationListResponse:
    items, total = await loan_applications.list_applications(
        store,
        email=normalize_email(email) or None,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return LoanApplicationListResponse(
        items=[LoanApplicationDTO.model_validate(item) for item in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{application_id}",
    response_model=LoanApplicationDTO,
    summary="Fetch one loan application",
)
async def get_loan_application(
    application_id: str,
    store: LoanRecordStore = Depends(deps.get_loan_store),
) -> LoanApplicationDTO:
    loan_id = loan_applications.parse_loan_id(application_id)
    application = await loan_applications.get_application(store, loan_id)
    return LoanApplicationDTO.model_validate(application)


@router.patch(
    "/{application_id}",
    response_model=LoanApplicationDTO,
    summary="Approve, reject or cancel a pending loan application",
)
async def update_loan_application_status(
    application_id: str,
    payload: LoanStatusUpdate,
    store: LoanRecordStore = Depends(deps.get_loan_store),
) -> LoanApplicationDTO:
    loan_id = loan_applications.parse_loan_id(application_id)
    application = await loan_applications.transition_status(store, loan_id, payload.status)
    return LoanApplicationDTO.model_validate(application)


@router.delete(
    "/{application_id}",
    summary="Withdraw a pending loan application",
)
async def delete_loan_application(
    application_id: str,
    store: LoanRecordStore = Depends(deps.get_loan_store),
) -> dict:
    loan_id = loan_applications.parse_loan_id(application_id)
    await loan_applications.delete_pending_application(store, loan_id)
    return {"id": str(loan_id), "deleted": True}
