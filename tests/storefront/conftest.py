import os
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from storefront.fulfillment import reset_provider, set_provider
from storefront.fulfillment.fake_adapter import FakeProvider
from storefront.fulfillment.port import ProviderProduct, ProviderVariant
from storefront.payments import reset_gateway, set_gateway
from storefront.payments.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Gateways
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def provider():
    """A fresh in-memory fulfillment provider for every test."""
    fake = FakeProvider()
    set_provider(fake)
    yield fake
    reset_provider()


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
UPSTREAM_PRODUCTS = [
    ProviderProduct(
        external_id="301",
        name="Mountain Sunrise Tee",
        thumbnail_url="https://files.example.com/tee.png",
        variants=(
            ProviderVariant(
                external_id="4001",
                name="Mountain Sunrise Tee / M",
                retail_price=25.0,
                catalog_variant_id="4012",
                size="M",
                color="Black",
            ),
            ProviderVariant(
                external_id="4002",
                name="Mountain Sunrise Tee / L",
                retail_price=27.5,
                catalog_variant_id="4013",
                size="L",
                color="Black",
            ),
        ),
    ),
    ProviderProduct(
        external_id="302",
        name="Harbor Lights Poster",
        thumbnail_url="https://files.example.com/poster.png",
        variants=(
            ProviderVariant(
                external_id="5001",
                name="Harbor Lights Poster / 18x24",
                retail_price=18.0,
                catalog_variant_id="1349",
                size="18x24",
            ),
        ),
    ),
]


@pytest.fixture()
def mirror(provider):
    """Stock the provider with two products and sync them into the local mirror.

    Returns the mirrored variants keyed by provider (external) id.
    """
    from protean import current_domain
    from storefront.catalogue.product import CatalogVariant
    from storefront.catalogue.sync import sync_catalogue

    provider.stock(UPSTREAM_PRODUCTS)
    sync_catalogue()
    provider.calls.clear()

    repo = current_domain.repository_for(CatalogVariant)
    return {variant.external_id: variant for variant in repo.list_all()}


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def _make_token(user_id="user-001", name="Ada Lovelace", role="customer", expires_in=timedelta(hours=1)):
    claims = {"sub": user_id, "name": name, "role": role, "exp": datetime.now(UTC) + expires_in}
    return jwt.encode(claims, os.environ["AUTH_TOKEN_SECRET"], algorithm="HS256")


@pytest.fixture()
def make_token():
    return _make_token


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {_make_token()}"}


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {_make_token(user_id='admin-001', name='Admin', role='admin')}"}
