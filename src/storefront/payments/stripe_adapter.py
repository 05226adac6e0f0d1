"""Stripe payment gateway adapter.

Uses the stripe-python SDK to:
- Create hosted Checkout Sessions carrying the order reference in metadata
- Verify webhook signatures with the endpoint's signing secret
- Extract ``checkout.session.completed`` events
"""

import os

import stripe

from storefront.errors import PaymentGatewayError
from storefront.payments.port import (
    CheckoutSession,
    LineItem,
    PaymentGateway,
    PaymentNotification,
    decode_event,
    notification_from_event,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SUCCESS_URL = "http://localhost:3000/checkout/success?session_id={CHECKOUT_SESSION_ID}"
DEFAULT_CANCEL_URL = "http://localhost:3000/checkout/cancel"


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        success_url: str = DEFAULT_SUCCESS_URL,
        cancel_url: str = DEFAULT_CANCEL_URL,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.success_url = success_url
        self.cancel_url = cancel_url

    @classmethod
    def from_env(cls) -> "StripeGateway":
        api_key = os.environ.get("STRIPE_SECRET_KEY")
        webhook_secret = os.environ.get("STRIPE_WEBHOOK_SECRET")
        if not api_key or not webhook_secret:
            raise ValueError("STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET must be set to use Stripe")
        return cls(
            api_key=api_key,
            webhook_secret=webhook_secret,
            success_url=os.environ.get("STRIPE_SUCCESS_URL", DEFAULT_SUCCESS_URL),
            cancel_url=os.environ.get("STRIPE_CANCEL_URL", DEFAULT_CANCEL_URL),
        )

    def create_checkout_session(
        self,
        order_id: str,
        owner_id: str,
        line_items: list[LineItem],
        currency: str = "USD",
    ) -> CheckoutSession:
        stripe_items = [
            {
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": item.name},
                    "unit_amount": int(round(item.unit_amount * 100)),
                },
                "quantity": item.quantity,
            }
            for item in line_items
        ]

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=stripe_items,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                client_reference_id=order_id,
                metadata={"order_id": order_id, "user_id": owner_id},
            )
        except stripe.StripeError as exc:
            logger.error(
                "Stripe checkout session creation failed",
                order_id=order_id,
                error=str(exc),
                response=getattr(exc, "json_body", None),
            )
            raise PaymentGatewayError(
                f"Stripe rejected the checkout session: {exc.user_message or exc}",
                response=getattr(exc, "json_body", None),
            ) from exc

        return CheckoutSession(session_id=session.id, url=session.url)

    def verify_webhook_signature(self, payload: str | bytes, signature: str) -> bool:
        if not signature:
            return False
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            stripe.WebhookSignature.verify_header(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError:
            logger.warning("Stripe webhook signature rejected")
            return False
        return True

    def parse_notification(self, payload: str | bytes) -> PaymentNotification | None:
        return notification_from_event(decode_event(payload))
