"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A provider draft was created and the local order recorded as payment-pending."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    provider_order_id = String(required=True)
    total_price = Float(required=True)
    currency = String(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentSessionStarted:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_session_id = String(required=True)


@storefront.event(part_of="Order")
class PaymentRecorded:
    """Payment was captured. Recorded exactly once per order."""

    __version__ = 1

    order_id = Identifier(required=True)
    provider_order_id = String()
    payment_session_id = String()
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderSubmittedToProvider:
    __version__ = 1

    order_id = Identifier(required=True)
    provider_order_id = String(required=True)
    provider_status = Text()
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Order")
class FulfillmentConfirmationFailed:
    """The order was paid but the provider refused to confirm the draft.

    The order needs manual reconciliation: money was taken, nothing ships.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    provider_order_id = String(required=True)
    reason = String(required=True, max_length=1000)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class FulfillmentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    provider_order_id = String(required=True)
    previous_status = Text(required=True)
    new_status = Text(required=True)
    provider_status = Text(required=True)
    synced_at = DateTime(required=True)
