"""Configurable fake payment gateway for development and testing.

Hands out deterministic-looking checkout sessions without any external call
and accepts webhooks signed with the literal signature ``test-signature``.
Webhook payloads use the same event envelope as the production gateway.
"""

from uuid import uuid4

from storefront.errors import PaymentGatewayError
from storefront.payments.port import (
    CheckoutSession,
    LineItem,
    PaymentGateway,
    PaymentNotification,
    decode_event,
    notification_from_event,
)

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(
        self,
        order_id: str,
        owner_id: str,
        line_items: list[LineItem],
        currency: str = "USD",
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "order_id": order_id,
                "owner_id": owner_id,
                "line_items": list(line_items),
                "currency": currency,
            }
        )

        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason, response={"error": {"message": self.failure_reason}})

        session_id = f"cs_fake_{uuid4().hex[:16]}"
        return CheckoutSession(session_id=session_id, url=f"https://checkout.fake.example.com/pay/{session_id}")

    def verify_webhook_signature(self, payload: str | bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def parse_notification(self, payload: str | bytes) -> PaymentNotification | None:
        return notification_from_event(decode_event(payload))
