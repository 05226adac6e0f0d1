import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.api import admin_router, cart_router, checkout_router, product_router, stripe_router
from storefront.api.errors import register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(checkout_router)
    app.include_router(cart_router)
    app.include_router(product_router)
    app.include_router(stripe_router)
    app.include_router(admin_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def stocked_cart(client, mirror, auth_headers):
    """Two tees and one poster in user-001's cart."""
    client.post("/cart", json={"variant_id": str(mirror["4001"].id), "quantity": 2}, headers=auth_headers)
    client.post("/cart", json={"variant_id": str(mirror["5001"].id)}, headers=auth_headers)
    return mirror
