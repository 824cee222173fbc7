from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import stripe

from loandesk.core.errors import InvalidRequest, InvalidSignature, PaymentProviderError
from loandesk.core.settings import Settings
from loandesk.schemas.payments import CheckoutSession

logger = logging.getLogger(__name__)


class StripeGateway:
    """Hosted checkout creation and webhook verification against Stripe."""

    def __init__(
        self,
        *,
        api_key: str,
        webhook_secret: str,
        client_url: str,
        fee_amount: int,
        currency: str,
        timeout_seconds: float,
        tolerance_seconds: int,
    ) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._client_url = client_url.rstrip("/")
        self.fee_amount = fee_amount
        self.currency = currency.lower()
        self._timeout = timeout_seconds
        self._tolerance = tolerance_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeGateway":
        return cls(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            client_url=settings.client_url,
            fee_amount=settings.checkout_fee_amount,
            currency=settings.checkout_currency,
            timeout_seconds=settings.provider_timeout_seconds,
            tolerance_seconds=settings.webhook_tolerance_seconds,
        )

    def _idempotency_key(self, loan_id: UUID, loan_title: str, email: str) -> str:
        day = datetime.now(timezone.utc).strftime("%Y%m%d")
        material = f"{loan_id}:{email}:{loan_title}:{self.fee_amount}:{self.currency}:{day}"
        return f"checkout-{hashlib.sha256(material.encode('utf-8')).hexdigest()[:32]}"

    def checkout_params(self, *, loan_id: UUID, loan_title: str, email: str) -> dict[str, Any]:
        return {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "unit_amount": self.fee_amount,
                        "product_data": {"name": f"Loan Fee - {loan_title}"},
                    },
                    "quantity": 1,
                }
            ],
            "customer_email": email,
            "metadata": {"loan_id": str(loan_id), "loan_title": loan_title},
            "success_url": (
                f"{self._client_url}/payment-success?loanId={loan_id}"
                "&session_id={CHECKOUT_SESSION_ID}"
            ),
            "cancel_url": f"{self._client_url}/myloans",
        }

    async def create_checkout_session(
        self,
        *,
        loan_id: UUID,
        loan_title: str,
        email: str,
    ) -> CheckoutSession:
        if not self._api_key:
            raise PaymentProviderError("Payment provider is not configured")
        params = self.checkout_params(loan_id=loan_id, loan_title=loan_title, email=email)
        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(
                    stripe.checkout.Session.create,
                    api_key=self._api_key,
                    idempotency_key=self._idempotency_key(loan_id, loan_title, email),
                    **params,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise PaymentProviderError(
                "Payment provider timed out",
                details={"timeout_seconds": self._timeout},
            ) from exc
        except stripe.StripeError as exc:
            logger.warning(
                "Checkout session creation failed: %s",
                type(exc).__name__,
                extra={"loan_id": str(loan_id)},
            )
            raise PaymentProviderError(
                "Payment provider rejected the checkout request",
                details={"provider_error": type(exc).__name__},
            ) from exc

        return CheckoutSession(
            id=session.id,
            url=session.url,
            loan_id=loan_id,
            email=email,
            amount=self.fee_amount,
            currency=self.currency,
            created_at=datetime.now(timezone.utc),
        )

    def verify_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Check the Stripe-Signature header against the exact request bytes, then decode."""
        if not self._webhook_secret:
            raise PaymentProviderError("Webhook signing secret is not configured")
        if not signature:
            raise InvalidSignature("Missing Stripe-Signature header")
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidRequest("Webhook payload is not valid UTF-8", code="invalid_payload") from exc
        try:
            stripe.WebhookSignature.verify_header(body, signature, self._webhook_secret, self._tolerance)
        except stripe.SignatureVerificationError as exc:
            raise InvalidSignature("Webhook signature verification failed") from exc

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise InvalidRequest("Webhook payload is not valid JSON", code="invalid_payload") from exc
        if not isinstance(event, dict):
            raise InvalidRequest("Webhook payload is not an event object", code="invalid_payload")
        return event
