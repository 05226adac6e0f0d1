"""Order reconciliation: coordinates the storefront, the payment processor and the provider.

Three systems of record take part in an order's life and each can fail on its
own. The functions here order the steps so that every failure leaves a state
that is explicit and recoverable:

    checkout               provider draft first, then the local order
                           (a failed draft leaves no local order)
    confirm_payment        commit ``paid`` (conditional update), then confirm
                           the provider draft; a refused confirmation is
                           recorded as ``failed_confirmation``, never rolled back
    sync_fulfillment_status  pull the provider status and store the mapped value

Provider and processor calls are always made between units of work, never
inside one: each local state change is its own command.
"""

import json

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import CatalogVariant
from storefront.errors import (
    AlreadyProcessedError,
    EmptyCheckoutError,
    FulfillmentConfirmationError,
    FulfillmentDraftError,
    FulfillmentGatewayError,
    MissingFulfillmentReferenceError,
    OrderNotFoundError,
)
from storefront.fulfillment import get_provider
from storefront.fulfillment.port import OrderLine, Recipient, ShippingRate
from storefront.order.order import Order, PaymentStatus
from storefront.order.payment import (
    AttachPaymentSession,
    MarkOrderPaid,
    RecordConfirmationFailure,
    RecordFulfillmentConfirmed,
)
from storefront.order.placement import PlaceOrder
from storefront.order.status_sync import RecordFulfillmentStatus
from storefront.payments import get_gateway
from storefront.payments.port import CheckoutSession, LineItem, PaymentNotification
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

SHIPPING_AND_TAXES = "Shipping & taxes"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def get_order(order_id, owner_id=None) -> Order:
    """Load an order, hiding orders that belong to someone else."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFoundError(f"Order {order_id} not found", order_id=str(order_id)) from exc

    if owner_id is not None and str(order.owner_id) != str(owner_id):
        raise OrderNotFoundError(f"Order {order_id} not found", order_id=str(order_id))
    return order


def _resolve_cart(owner_id) -> tuple[list[OrderLine], list[dict]]:
    """Turn the owner's cart into provider lines plus order item snapshots.

    Lines whose variant is gone from the mirror, withdrawn, or lacks a
    provider id are dropped with a warning.
    """
    cart = current_domain.repository_for(Cart).for_owner(owner_id)
    if cart.is_empty:
        raise EmptyCheckoutError("Cart is empty", owner_id=str(owner_id))

    variant_repo = current_domain.repository_for(CatalogVariant)
    provider_lines = []
    snapshots = []
    for line in cart.lines:
        try:
            variant = variant_repo.get(line.variant_id)
        except ObjectNotFoundError:
            variant = None

        if variant is None or not variant.external_id or not variant.is_available:
            logger.warning(
                "Dropping cart line without a usable provider variant",
                owner_id=str(owner_id),
                line_id=str(line.id),
                variant_id=str(line.variant_id),
            )
            continue

        provider_lines.append(
            OrderLine(
                sync_variant_id=variant.external_id,
                quantity=line.quantity,
                catalog_variant_id=variant.catalog_variant_id,
            )
        )
        snapshots.append(
            {
                "product_id": str(variant.product_id),
                "variant_id": str(variant.id),
                "provider_variant_id": variant.external_id,
                "name": variant.name,
                "quantity": line.quantity,
                "retail_price": variant.retail_price,
            }
        )

    if not provider_lines:
        raise EmptyCheckoutError("No valid items in cart", owner_id=str(owner_id))
    return provider_lines, snapshots


def _recipient(owner_name: str, address: dict) -> Recipient:
    return Recipient(
        name=owner_name,
        address1=address["address1"],
        city=address["city"],
        zip=address["zip"],
        country_code=address["country_code"],
    )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
def checkout(owner_id, owner_name: str, address: dict, shipping_method: str) -> Order:
    """Create the provider draft for the owner's cart and record the order.

    Raises EmptyCheckoutError when nothing in the cart can be ordered and
    FulfillmentDraftError when the provider does not produce a usable draft.
    In both cases no local order exists and the cart is untouched.
    """
    provider_lines, snapshots = _resolve_cart(owner_id)
    recipient = _recipient(owner_name, address)

    try:
        draft = get_provider().create_draft_order(recipient, provider_lines, shipping_method)
    except FulfillmentGatewayError as exc:
        logger.error(
            "Provider draft order failed",
            owner_id=str(owner_id),
            error=exc.message,
            response=exc.response,
        )
        raise FulfillmentDraftError(f"Could not create provider order: {exc.message}", response=exc.response) from exc

    if not draft.provider_order_id or draft.total is None:
        logger.error("Provider draft order is incomplete", owner_id=str(owner_id), draft=repr(draft))
        raise FulfillmentDraftError("Provider returned a draft without an order id or total", response=repr(draft))

    order_id = current_domain.process(
        PlaceOrder(
            owner_id=owner_id,
            provider_order_id=draft.provider_order_id,
            provider_status=draft.status,
            total_price=draft.total,
            currency=draft.costs.get("currency", "USD"),
            costs=json.dumps(draft.costs),
            shipping_details=json.dumps(recipient.to_payload()),
            shipping_method=shipping_method,
            items=json.dumps(snapshots),
        ),
        asynchronous=False,
    )

    logger.info(
        "Order placed from provider draft",
        order_id=order_id,
        owner_id=str(owner_id),
        provider_order_id=draft.provider_order_id,
        total_price=draft.total,
    )
    return get_order(order_id)


def quote_shipping(owner_id, owner_name: str, address: dict) -> list[ShippingRate]:
    """Ask the provider for shipping options for the owner's current cart."""
    provider_lines, _ = _resolve_cart(owner_id)
    return get_provider().get_shipping_rates(_recipient(owner_name, address), provider_lines)


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
def start_payment_session(order_id, owner_id) -> CheckoutSession:
    """Open a hosted payment session that charges exactly the order's total."""
    order = get_order(order_id, owner_id=owner_id)
    if not order.is_payment_pending:
        raise AlreadyProcessedError(f"Order {order.id} was already processed", order_id=str(order.id))

    line_items = [
        LineItem(name=item.name, unit_amount=item.retail_price, quantity=item.quantity) for item in order.items
    ]
    remainder = round(order.total_price - order.items_subtotal, 2)
    if remainder > 0:
        line_items.append(LineItem(name=SHIPPING_AND_TAXES, unit_amount=remainder))
    elif remainder < 0:
        # Provider total below the items subtotal; charge the total as one line
        line_items = [LineItem(name=f"Order {order.id}", unit_amount=order.total_price)]

    session = get_gateway().create_checkout_session(
        order_id=str(order.id),
        owner_id=str(owner_id),
        line_items=line_items,
        currency=order.currency,
    )
    current_domain.process(
        AttachPaymentSession(order_id=str(order.id), payment_session_id=session.session_id),
        asynchronous=False,
    )

    logger.info("Payment session started", order_id=str(order.id), payment_session_id=session.session_id)
    return session


def confirm_payment(order_id, owner_id=None) -> Order:
    """Record payment for an order and submit its draft to the provider.

    Raises:
        OrderNotFoundError: unknown order (or not owned by ``owner_id``).
        AlreadyProcessedError: payment was already recorded; no provider call.
        MissingFulfillmentReferenceError: paid, but there is no draft to confirm.
        FulfillmentConfirmationError: paid, but the provider refused to
            confirm; the order is left as ``failed_confirmation``.
    """
    order = get_order(order_id, owner_id=owner_id)

    provider_order_id = current_domain.process(MarkOrderPaid(order_id=str(order.id)), asynchronous=False)
    logger.info("Payment recorded", order_id=str(order.id), provider_order_id=provider_order_id)

    if not provider_order_id:
        logger.error("Paid order has no provider order to confirm", order_id=str(order.id))
        raise MissingFulfillmentReferenceError(
            f"Order {order.id} has no provider order id",
            order_id=str(order.id),
        )

    try:
        confirmed = get_provider().confirm_order(provider_order_id)
    except FulfillmentGatewayError as exc:
        logger.error(
            "Provider confirmation failed for paid order",
            order_id=str(order.id),
            provider_order_id=provider_order_id,
            error=exc.message,
            response=exc.response,
        )
        current_domain.process(
            RecordConfirmationFailure(order_id=str(order.id), reason=exc.message[:1000]),
            asynchronous=False,
        )
        raise FulfillmentConfirmationError(
            f"Payment recorded but the provider did not confirm order {provider_order_id}: {exc.message}",
            response=exc.response,
            order_id=str(order.id),
        ) from exc

    current_domain.process(
        RecordFulfillmentConfirmed(order_id=str(order.id), provider_status=confirmed.status),
        asynchronous=False,
    )
    logger.info(
        "Order submitted to provider",
        order_id=str(order.id),
        provider_order_id=provider_order_id,
        provider_status=confirmed.status,
    )
    return get_order(order.id)


def handle_payment_notification(notification: PaymentNotification) -> dict:
    """Apply a verified payment notification to its order.

    Only ``paid`` outcomes trigger confirmation. Duplicate deliveries and
    provider confirmation failures are reported in the result rather than
    raised, so the processor does not keep redelivering the event.
    """
    log = logger.bind(
        order_id=notification.order_id,
        payment_session_id=notification.external_session_id,
        event_id=notification.event_id,
    )

    if notification.payment_outcome != "paid":
        log.info("Ignoring unpaid checkout notification", payment_outcome=notification.payment_outcome)
        return {"status": "ignored", "order_id": notification.order_id}

    try:
        order = get_order(notification.order_id)
    except OrderNotFoundError:
        log.error("Payment notification references an unknown order")
        return {"status": "ignored", "order_id": notification.order_id}

    if order.payment_session_id and order.payment_session_id != notification.external_session_id:
        log.warning("Payment notification session differs from the order's session", expected=order.payment_session_id)

    try:
        order = confirm_payment(order.id)
    except AlreadyProcessedError:
        log.info("Duplicate payment notification")
        return {"status": "already_processed", "order_id": str(order.id)}
    except FulfillmentConfirmationError:
        return {"status": PaymentStatus.FAILED_CONFIRMATION.value, "order_id": str(order.id)}
    except MissingFulfillmentReferenceError:
        return {"status": "missing_reference", "order_id": str(order.id)}

    return {"status": "processed", "order_id": str(order.id), "order_status": order.status}


# ---------------------------------------------------------------------------
# Fulfillment status
# ---------------------------------------------------------------------------
def sync_fulfillment_status(order_id) -> Order:
    """Refresh an order's fulfillment status from the provider."""
    order = get_order(order_id)
    if not order.provider_order_id:
        raise MissingFulfillmentReferenceError(
            f"Order {order.id} has no provider order id",
            order_id=str(order.id),
        )

    try:
        provider_status = get_provider().get_order_status(order.provider_order_id)
    except FulfillmentGatewayError as exc:
        logger.error(
            "Provider status lookup failed",
            order_id=str(order.id),
            provider_order_id=order.provider_order_id,
            error=exc.message,
            response=exc.response,
        )
        raise

    changed = current_domain.process(
        RecordFulfillmentStatus(order_id=str(order.id), provider_status=provider_status.status),
        asynchronous=False,
    )

    logger.info(
        "Fulfillment status synced",
        order_id=str(order.id),
        provider_order_id=order.provider_order_id,
        provider_status=provider_status.status,
        changed=changed,
    )
    return get_order(order.id) if changed else order
