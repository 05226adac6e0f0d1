"""Application tests for pulling fulfillment status from the provider."""

import pytest
from protean import current_domain
from storefront.cart.items import AddToCart
from storefront.checkout.reconciliation import checkout, confirm_payment, sync_fulfillment_status
from storefront.errors import FulfillmentGatewayError, MissingFulfillmentReferenceError
from storefront.order.order import FulfillmentStatus, Order, PaymentStatus

ADDRESS = {"address1": "1 Harbor Way", "city": "Portland", "zip": "97201", "country_code": "US"}


def _submitted_order(mirror):
    current_domain.process(
        AddToCart(owner_id="user-001", variant_id=str(mirror["4002"].id), quantity=1),
        asynchronous=False,
    )
    order = checkout("user-001", "Ada Lovelace", ADDRESS, "STANDARD")
    return confirm_payment(order.id)


class TestStatusSync:
    def test_mapped_status_is_stored(self, mirror, provider):
        order = _submitted_order(mirror)
        provider.set_status(order.provider_order_id, "inprocess")

        synced = sync_fulfillment_status(order.id)

        assert synced.status == FulfillmentStatus.PICKUP.value
        assert synced.provider_status == "inprocess"
        assert synced.status_synced_at is not None

    def test_unknown_provider_status_is_stored_verbatim(self, mirror, provider):
        order = _submitted_order(mirror)
        provider.set_status(order.provider_order_id, "onhold")

        assert sync_fulfillment_status(order.id).status == "onhold"

    def test_long_unknown_provider_status_passes_through(self, mirror, provider):
        order = _submitted_order(mirror)
        raw_status = "awaiting_manual_review_by_print_partner_due_to_artwork_resolution"
        provider.set_status(order.provider_order_id, raw_status)

        synced = sync_fulfillment_status(order.id)

        assert synced.status == raw_status
        assert synced.provider_status == raw_status

    def test_repeated_sync_is_a_no_op(self, mirror, provider):
        order = _submitted_order(mirror)
        provider.set_status(order.provider_order_id, "shipped")
        first = sync_fulfillment_status(order.id)

        second = sync_fulfillment_status(order.id)

        assert second.status == FulfillmentStatus.COMPLETED.value
        assert second.status_synced_at == first.status_synced_at
        assert current_domain.repository_for(Order).get(order.id).updated_at == first.updated_at

    def test_payment_status_is_untouched(self, mirror, provider):
        order = _submitted_order(mirror)
        provider.set_status(order.provider_order_id, "cancelled")

        synced = sync_fulfillment_status(order.id)

        assert synced.status == FulfillmentStatus.CANCELLED.value
        assert synced.payment_status == PaymentStatus.PAID.value


class TestStatusSyncFailures:
    def test_provider_failure_propagates(self, mirror, provider):
        order = _submitted_order(mirror)
        provider.configure(should_succeed=False, fail_on={"get_order_status"})

        with pytest.raises(FulfillmentGatewayError):
            sync_fulfillment_status(order.id)

        assert current_domain.repository_for(Order).get(order.id).status == FulfillmentStatus.SUBMITTED_TO_PROVIDER.value

    def test_order_without_provider_reference(self, provider):
        order = Order(owner_id="user-001", status=FulfillmentStatus.DRAFT_FAILED.value)
        current_domain.repository_for(Order).add(order)

        with pytest.raises(MissingFulfillmentReferenceError):
            sync_fulfillment_status(order.id)
        assert provider.calls_to("get_order_status") == []

    def test_provider_failure_is_logged_with_the_order(self, mirror, provider, caplog):
        order = _submitted_order(mirror)
        provider.configure(should_succeed=False, failure_reason="Store is offline", fail_on={"get_order_status"})

        with pytest.raises(FulfillmentGatewayError):
            sync_fulfillment_status(order.id)

        assert "Provider status lookup failed" in caplog.text
        assert str(order.id) in caplog.text
        assert "Store is offline" in caplog.text
