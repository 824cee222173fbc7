import secrets

from fastapi import Header, Request

from loandesk.core.errors import Unauthorized
from loandesk.core.settings import settings
from loandesk.services.loan_store import LoanRecordStore
from loandesk.services.payments import StripeGateway


async def get_loan_store(request: Request) -> LoanRecordStore:
    return request.app.state.loan_store


async def get_payment_gateway(request: Request) -> StripeGateway:
    return request.app.state.payment_gateway


async def require_admin_token(
    admin_token: str | None = Header(default=None, alias="X-Admin-Token"),
) -> None:
    expected = settings.admin_api_token
    if not expected or not admin_token or not secrets.compare_digest(admin_token, expected):
        raise Unauthorized("Administrative token required")
