"""Order aggregate (CQRS): the record reconciled across storefront, payment and provider.

An order carries two independent status axes:

Payment (closed set, PaymentStatus):
    pending → paid                     (exactly once)
    paid → failed_confirmation         (provider refused to confirm after payment)

Fulfillment (open set, FulfillmentStatus plus provider passthrough):
    draft_created → submitted_to_provider → processing → pickup → transit → completed
                                                        ↘ cancelled / failed

Fulfillment status after submission is driven by the provider: the raw
provider status is mapped through STATUS_MAP and unknown values are stored
unchanged. The aggregate is not event sourced so the payment transition can
be guarded by a conditional update in OrderRepository.claim_payment().
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.order.events import (
    FulfillmentConfirmationFailed,
    FulfillmentStatusChanged,
    OrderPlaced,
    OrderSubmittedToProvider,
    PaymentRecorded,
    PaymentSessionStarted,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED_CONFIRMATION = "failed_confirmation"


class FulfillmentStatus(Enum):
    DRAFT_CREATED = "draft_created"
    SUBMITTED_TO_PROVIDER = "submitted_to_provider"
    PROCESSING = "processing"
    PICKUP = "pickup"
    TRANSIT = "transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    DRAFT_FAILED = "draft_failed"


# Provider order status → local fulfillment status
STATUS_MAP = {
    "draft": FulfillmentStatus.DRAFT_CREATED.value,
    "pending": FulfillmentStatus.PROCESSING.value,
    "inprocess": FulfillmentStatus.PICKUP.value,
    "fulfilled": FulfillmentStatus.TRANSIT.value,
    "shipped": FulfillmentStatus.COMPLETED.value,
    "cancelled": FulfillmentStatus.CANCELLED.value,
    "failed": FulfillmentStatus.FAILED.value,
}


def map_provider_status(provider_status: str) -> str:
    """Translate a provider status; values missing from STATUS_MAP pass through."""
    return STATUS_MAP.get(provider_status, provider_status)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingDetails:
    """Recipient snapshot sent to the provider at checkout.

    Copied onto the order, so later profile changes never alter where a
    placed order ships.
    """

    name = String(required=True, max_length=255)
    address1 = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    zip = String(required=True, max_length=20)
    country_code = String(required=True, max_length=2)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "address1": self.address1,
            "city": self.city,
            "zip": self.zip,
            "country_code": self.country_code,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """Purchase-time snapshot of a cart line. Never modified after placement."""

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    provider_variant_id = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    retail_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> float:
        return round(self.retail_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    owner_id = Identifier(required=True)
    provider_order_id = String(max_length=64)
    payment_session_id = String(max_length=255)
    items = HasMany(OrderItem)
    shipping_details = ValueObject(ShippingDetails)
    shipping_method = String(max_length=50)
    total_price = Float(min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = Text(default=FulfillmentStatus.DRAFT_CREATED.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    provider_status = Text()
    costs = Text()  # JSON: raw provider cost breakdown
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    submitted_at = DateTime()
    status_synced_at = DateTime()

    @invariant.post
    def provider_reference_required_unless_draft_failed(self):
        if not self.provider_order_id and self.status != FulfillmentStatus.DRAFT_FAILED.value:
            raise ValidationError(
                {"provider_order_id": ["An order without a provider reference must be marked draft_failed"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        owner_id,
        shipping_details,
        shipping_method,
        provider_order_id,
        total_price,
        items_data,
        costs=None,
        currency="USD",
        provider_status="draft",
    ):
        """Record an order for a provider draft that was just created.

        Args:
            owner_id: The user who checked out.
            shipping_details: Dict with name, address1, city, zip, country_code.
            shipping_method: Provider shipping method code (e.g. STANDARD).
            provider_order_id: The provider's id for the draft order.
            total_price: The provider's quoted total; authoritative.
            items_data: List of dicts with product_id, variant_id,
                        provider_variant_id, name, quantity, retail_price.
        """
        now = datetime.now(UTC)
        order = cls(
            owner_id=owner_id,
            provider_order_id=str(provider_order_id),
            shipping_details=ShippingDetails(**shipping_details),
            shipping_method=shipping_method,
            total_price=total_price,
            currency=currency or "USD",
            status=FulfillmentStatus.DRAFT_CREATED.value,
            payment_status=PaymentStatus.PENDING.value,
            provider_status=provider_status,
            costs=json.dumps(costs or {}),
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    variant_id=item["variant_id"],
                    provider_variant_id=str(item["provider_variant_id"]),
                    name=item["name"],
                    quantity=item["quantity"],
                    retail_price=item["retail_price"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=str(owner_id),
                provider_order_id=order.provider_order_id,
                total_price=order.total_price,
                currency=order.currency,
                item_count=len(items_data),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def items_subtotal(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    @property
    def cost_breakdown(self) -> dict:
        return json.loads(self.costs) if self.costs else {}

    @property
    def is_payment_pending(self) -> bool:
        return self.payment_status == PaymentStatus.PENDING.value

    # -------------------------------------------------------------------
    # Payment axis
    # -------------------------------------------------------------------
    def start_payment_session(self, payment_session_id):
        if not self.is_payment_pending:
            raise ValidationError({"payment_status": ["A payment session can only be started for an unpaid order"]})

        self.payment_session_id = payment_session_id
        self.updated_at = datetime.now(UTC)
        self.raise_(PaymentSessionStarted(order_id=str(self.id), payment_session_id=payment_session_id))

    def record_payment(self, paid_at=None):
        """Mark the order paid.

        Callers must have won OrderRepository.claim_payment() first; this
        method mirrors the committed transition onto the aggregate.
        """
        if not self.is_payment_pending:
            raise ValidationError({"payment_status": [f"Payment already recorded as {self.payment_status}"]})

        paid_at = paid_at or datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.paid_at = paid_at
        self.updated_at = paid_at

        self.raise_(
            PaymentRecorded(
                order_id=str(self.id),
                provider_order_id=self.provider_order_id,
                payment_session_id=self.payment_session_id,
                paid_at=paid_at,
            )
        )

    def record_confirmation_failure(self, reason):
        """Flag a paid order whose provider draft could not be confirmed."""
        if self.payment_status != PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Only paid orders can fail provider confirmation"]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED_CONFIRMATION.value
        self.updated_at = now

        self.raise_(
            FulfillmentConfirmationFailed(
                order_id=str(self.id),
                provider_order_id=self.provider_order_id,
                reason=(reason or "Unknown provider failure")[:1000],
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment axis
    # -------------------------------------------------------------------
    def record_submission(self, provider_status=None):
        """The provider accepted the paid draft for production."""
        if self.payment_status != PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Only paid orders can be submitted to the provider"]})

        now = datetime.now(UTC)
        self.status = FulfillmentStatus.SUBMITTED_TO_PROVIDER.value
        self.provider_status = provider_status or self.provider_status
        self.submitted_at = now
        self.updated_at = now

        self.raise_(
            OrderSubmittedToProvider(
                order_id=str(self.id),
                provider_order_id=self.provider_order_id,
                provider_status=provider_status,
                submitted_at=now,
            )
        )

    def apply_provider_status(self, provider_status) -> bool:
        """Map and store the provider's status. Returns False when nothing changed."""
        new_status = map_provider_status(provider_status)
        if new_status == self.status:
            return False

        now = datetime.now(UTC)
        previous_status = self.status
        self.status = new_status
        self.provider_status = provider_status
        self.status_synced_at = now
        self.updated_at = now

        self.raise_(
            FulfillmentStatusChanged(
                order_id=str(self.id),
                provider_order_id=self.provider_order_id,
                previous_status=previous_status,
                new_status=new_status,
                provider_status=provider_status,
                synced_at=now,
            )
        )
        return True
