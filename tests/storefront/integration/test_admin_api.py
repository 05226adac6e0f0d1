"""Integration tests for the administrator order endpoints."""

CHECKOUT_BODY = {"address1": "1 Harbor Way", "city": "Portland", "zip": "97201", "country_code": "US"}


def _submitted_order(client, headers):
    order_id = client.post("/checkout", json=CHECKOUT_BODY, headers=headers).json()["order_id"]
    return client.post("/confirm-payment", json={"order_id": order_id}, headers=headers).json()["order"]


class TestAdminOrders:
    def test_list_all_orders(self, client, stocked_cart, auth_headers, admin_headers):
        order = _submitted_order(client, auth_headers)

        response = client.get("/admin/orders", headers=admin_headers)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["orders"]] == [order["id"]]

    def test_filter_by_status(self, client, stocked_cart, auth_headers, admin_headers):
        _submitted_order(client, auth_headers)

        submitted = client.get("/admin/orders", params={"status": "submitted_to_provider"}, headers=admin_headers)
        drafts = client.get("/admin/orders", params={"status": "draft_created"}, headers=admin_headers)

        assert len(submitted.json()["orders"]) == 1
        assert drafts.json()["orders"] == []

    def test_get_any_order(self, client, stocked_cart, auth_headers, admin_headers):
        order = _submitted_order(client, auth_headers)

        response = client.get(f"/admin/orders/{order['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["order"]["owner_id"] == "user-001"

    def test_unknown_order(self, client, admin_headers):
        assert client.get("/admin/orders/missing", headers=admin_headers).status_code == 404

    def test_customers_are_forbidden(self, client, auth_headers):
        assert client.get("/admin/orders", headers=auth_headers).status_code == 403


class TestAdminStatusSync:
    def test_status_is_pulled_from_provider(self, client, stocked_cart, auth_headers, admin_headers, provider):
        order = _submitted_order(client, auth_headers)
        provider.set_status(order["provider_order_id"], "fulfilled")

        response = client.get(f"/admin/orders/{order['id']}/status", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "transit"
        assert data["provider_status"] == "fulfilled"
        assert data["payment_status"] == "paid"
        assert data["status_synced_at"] is not None

    def test_provider_failure(self, client, stocked_cart, auth_headers, admin_headers, provider):
        order = _submitted_order(client, auth_headers)
        provider.configure(should_succeed=False, fail_on={"get_order_status"})

        response = client.get(f"/admin/orders/{order['id']}/status", headers=admin_headers)

        assert response.status_code == 500
