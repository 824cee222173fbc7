from fastapi import APIRouter, Depends

from loandesk.api import deps
from loandesk.schemas.payments import CheckoutSessionRequest, CheckoutSessionResponse
from loandesk.services import checkout
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway

router = APIRouter(tags=["payments"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Start a hosted checkout for the application fee",
)
async def create_checkout_session(
    payload: CheckoutSessionRequest,
    store: LoanRecordStore = Depends(deps.get_loan_store),
    gateway: StripeGateway = Depends(deps.get_payment_gateway),
) -> CheckoutSessionResponse:
    session = await checkout.start_checkout(store, gateway, payload)
    return CheckoutSessionResponse(url=session.url, session_id=session.id)
