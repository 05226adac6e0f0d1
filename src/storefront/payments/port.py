"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

from storefront.errors import InvalidWebhookError

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class LineItem:
    """A single charge line shown on the hosted payment page."""

    name: str
    unit_amount: float
    quantity: int = 1


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


@dataclass(frozen=True)
class PaymentNotification:
    """A verified, parsed payment event relevant to an order."""

    external_session_id: str
    order_id: str
    payment_outcome: str
    owner_id: str | None = None
    event_id: str | None = None


def notification_from_event(event: dict) -> PaymentNotification | None:
    """Map a checkout event envelope onto a PaymentNotification.

    Returns None for event types the storefront does not act on.
    """
    if event.get("type") != CHECKOUT_COMPLETED:
        return None

    session = (event.get("data") or {}).get("object") or {}
    metadata = session.get("metadata") or {}
    order_id = metadata.get("order_id") or session.get("client_reference_id")
    if not session.get("id") or not order_id:
        raise InvalidWebhookError("Checkout event carries no session id or order reference", event_id=event.get("id"))

    return PaymentNotification(
        external_session_id=session["id"],
        order_id=str(order_id),
        payment_outcome=session.get("payment_status", "unpaid"),
        owner_id=metadata.get("user_id"),
        event_id=event.get("id"),
    )


def decode_event(payload: str | bytes) -> dict:
    try:
        event = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise InvalidWebhookError("Webhook payload is not valid JSON") from exc
    if not isinstance(event, dict):
        raise InvalidWebhookError("Webhook payload is not an event object")
    return event


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_checkout_session(
        self,
        order_id: str,
        owner_id: str,
        line_items: list[LineItem],
        currency: str = "USD",
    ) -> CheckoutSession:
        """Create a hosted payment session for an order."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str | bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_notification(self, payload: str | bytes) -> PaymentNotification | None:
        """Parse a verified webhook payload into a payment notification."""
        ...
