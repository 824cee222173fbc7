from fastapi import APIRouter, Depends, Header, Request

from loandesk.api import deps
from loandesk.core.limiter import limiter
from loandesk.core.settings import settings
from loandesk.schemas.payments import WebhookAck
from loandesk.services import webhooks
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway

router = APIRouter(tags=["payments"])


@router.post(
    "/webhook",
    response_model=WebhookAck,
    summary="Payment provider event callback",
)
@limiter.exempt
async def receive_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    store: LoanRecordStore = Depends(deps.get_loan_store),
    gateway: StripeGateway = Depends(deps.get_payment_gateway),
) -> WebhookAck:
    # Signature checks run over the exact bytes received, so the body is never parsed first.
    payload = await request.body()
    outcome = await webhooks.handle_webhook(
        store,
        gateway,
        payload,
        stripe_signature,
        approve_on_payment=settings.approve_on_payment,
        store_timeout=settings.store_timeout_seconds,
    )
    return WebhookAck(outcome=outcome.value)
