"""Integration tests for the hosted payment session and webhook endpoints."""

import json

from protean.utils.globals import current_domain
from storefront.order.order import Order
from storefront.payments.fake_adapter import TEST_SIGNATURE

CHECKOUT_BODY = {"address1": "1 Harbor Way", "city": "Portland", "zip": "97201", "country_code": "US"}


def _order_id(client, headers):
    return client.post("/checkout", json=CHECKOUT_BODY, headers=headers).json()["order_id"]


def _completed_event(order_id, session_id="cs_fake_1", payment_status="paid"):
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "client_reference_id": order_id,
                "payment_status": payment_status,
                "metadata": {"order_id": order_id, "user_id": "user-001"},
            }
        },
    }


def _deliver(client, event, signature=TEST_SIGNATURE):
    return client.post(
        "/stripe/webhook",
        content=json.dumps(event),
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


class TestPaymentSessionEndpoint:
    def test_create_session(self, client, stocked_cart, auth_headers, gateway):
        order_id = _order_id(client, auth_headers)

        response = client.post("/stripe/checkout", json={"order_id": order_id}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"].startswith("cs_fake_")
        assert data["url"].endswith(data["session_id"])
        assert current_domain.repository_for(Order).get(order_id).payment_session_id == data["session_id"]

    def test_paid_order_is_rejected(self, client, stocked_cart, auth_headers):
        order_id = _order_id(client, auth_headers)
        client.post("/confirm-payment", json={"order_id": order_id}, headers=auth_headers)

        response = client.post("/stripe/checkout", json={"order_id": order_id}, headers=auth_headers)

        assert response.status_code == 400

    def test_gateway_failure(self, client, stocked_cart, auth_headers, gateway):
        order_id = _order_id(client, auth_headers)
        gateway.configure(should_succeed=False, failure_reason="Processor offline")

        response = client.post("/stripe/checkout", json={"order_id": order_id}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "PaymentGatewayError"


class TestWebhookEndpoint:
    def test_paid_checkout_confirms_the_order(self, client, stocked_cart, auth_headers, provider):
        order_id = _order_id(client, auth_headers)

        response = _deliver(client, _completed_event(order_id))

        assert response.status_code == 200
        assert response.json() == {
            "status": "processed",
            "order_id": order_id,
            "order_status": "submitted_to_provider",
        }
        assert len(provider.calls_to("confirm_order")) == 1

    def test_duplicate_delivery(self, client, stocked_cart, auth_headers, provider):
        order_id = _order_id(client, auth_headers)
        _deliver(client, _completed_event(order_id))

        response = _deliver(client, _completed_event(order_id))

        assert response.status_code == 200
        assert response.json()["status"] == "already_processed"
        assert len(provider.calls_to("confirm_order")) == 1

    def test_invalid_signature(self, client, stocked_cart, auth_headers, provider):
        order_id = _order_id(client, auth_headers)

        response = _deliver(client, _completed_event(order_id), signature="forged")

        assert response.status_code == 400
        assert current_domain.repository_for(Order).get(order_id).payment_status == "pending"

    def test_missing_signature(self, client):
        response = client.post("/stripe/webhook", content=json.dumps({"type": "ping"}))
        assert response.status_code == 400

    def test_unrelated_event_is_ignored(self, client):
        response = _deliver(client, {"id": "evt_2", "type": "payment_intent.created", "data": {"object": {}}})
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"

    def test_unpaid_checkout_is_ignored(self, client, stocked_cart, auth_headers):
        order_id = _order_id(client, auth_headers)

        response = _deliver(client, _completed_event(order_id, payment_status="unpaid"))

        assert response.json()["status"] == "ignored"
        assert current_domain.repository_for(Order).get(order_id).payment_status == "pending"

    def test_provider_refusal_is_acknowledged(self, client, stocked_cart, auth_headers, provider):
        order_id = _order_id(client, auth_headers)
        provider.configure(should_succeed=False, fail_on={"confirm_order"})

        response = _deliver(client, _completed_event(order_id))

        assert response.status_code == 200
        assert response.json()["status"] == "failed_confirmation"

    def test_malformed_payload(self, client):
        response = client.post(
            "/stripe/webhook",
            content=b"not json",
            headers={"Stripe-Signature": TEST_SIGNATURE},
        )
        assert response.status_code == 400

    def test_event_without_order_reference(self, client):
        event = {"id": "evt_3", "type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}}
        response = _deliver(client, event)
        assert response.status_code == 400
