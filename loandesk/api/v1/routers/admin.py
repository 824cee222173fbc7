from fastapi import APIRouter, Depends

from loandesk.api import deps
from loandesk.services import loan_applications
from loandesk.services.loan_store import LoanRecordStore

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(deps.require_admin_token)],
)


@router.delete(
    "/loan-applications/{application_id}",
    summary="Delete a loan application in any status",
)
async def admin_delete_loan_application(
    application_id: str,
    store: LoanRecordStore = Depends(deps.get_loan_store),
) -> dict:
    loan_id = loan_applications.parse_loan_id(application_id)
    await loan_applications.delete_application(store, loan_id)
    return {"id": str(loan_id), "deleted": True}
