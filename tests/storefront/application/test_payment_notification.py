"""Application tests for applying verified payment notifications."""

from protean import current_domain
from storefront.cart.items import AddToCart
from storefront.checkout.reconciliation import checkout, handle_payment_notification, start_payment_session
from storefront.order.order import FulfillmentStatus, Order, PaymentStatus
from storefront.payments.port import PaymentNotification

ADDRESS = {"address1": "1 Harbor Way", "city": "Portland", "zip": "97201", "country_code": "US"}


def _order_with_session(mirror):
    current_domain.process(
        AddToCart(owner_id="user-001", variant_id=str(mirror["5001"].id), quantity=1),
        asynchronous=False,
    )
    order = checkout("user-001", "Ada Lovelace", ADDRESS, "STANDARD")
    session = start_payment_session(order.id, "user-001")
    return order, session


def _notification(order_id, session_id="cs_fake_1", outcome="paid"):
    return PaymentNotification(
        external_session_id=session_id,
        order_id=str(order_id),
        payment_outcome=outcome,
        owner_id="user-001",
        event_id="evt_1",
    )


class TestPaidNotification:
    def test_order_is_confirmed(self, mirror):
        order, session = _order_with_session(mirror)
        result = handle_payment_notification(_notification(order.id, session.session_id))

        assert result == {
            "status": "processed",
            "order_id": str(order.id),
            "order_status": FulfillmentStatus.SUBMITTED_TO_PROVIDER.value,
        }

    def test_duplicate_delivery(self, mirror, provider):
        order, session = _order_with_session(mirror)
        handle_payment_notification(_notification(order.id, session.session_id))
        result = handle_payment_notification(_notification(order.id, session.session_id))

        assert result["status"] == "already_processed"
        assert len(provider.calls_to("confirm_order")) == 1

    def test_session_mismatch_is_still_processed(self, mirror):
        order, _ = _order_with_session(mirror)
        result = handle_payment_notification(_notification(order.id, "cs_other"))
        assert result["status"] == "processed"

    def test_provider_refusal_is_reported(self, mirror, provider):
        order, session = _order_with_session(mirror)
        provider.configure(should_succeed=False, fail_on={"confirm_order"})

        result = handle_payment_notification(_notification(order.id, session.session_id))

        assert result["status"] == PaymentStatus.FAILED_CONFIRMATION.value
        refreshed = current_domain.repository_for(Order).get(order.id)
        assert refreshed.payment_status == PaymentStatus.FAILED_CONFIRMATION.value


class TestIgnoredNotification:
    def test_unpaid_outcome(self, mirror, provider):
        order, session = _order_with_session(mirror)
        result = handle_payment_notification(_notification(order.id, session.session_id, outcome="unpaid"))

        assert result["status"] == "ignored"
        assert current_domain.repository_for(Order).get(order.id).payment_status == PaymentStatus.PENDING.value
        assert provider.calls_to("confirm_order") == []

    def test_unknown_order(self):
        result = handle_payment_notification(_notification("missing-order"))
        assert result == {"status": "ignored", "order_id": "missing-order"}
