"""Shared BDD fixtures and Given steps for order reconciliation."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers
from storefront.cart.items import AddToCart
from storefront.checkout.reconciliation import checkout, confirm_payment

ADDRESS = {
    "address1": "19749 Dearborn St",
    "city": "Chatsworth",
    "zip": "91311",
    "country_code": "US",
}


@pytest.fixture()
def ctx():
    """Mutable scenario state shared between steps."""
    return {"order": None, "error": None, "confirmations": []}


@given("the catalogue is mirrored from the provider")
def _(mirror):
    return mirror


@given(
    parsers.cfparse(
        'the cart of "{owner_id}" holds {first:d} of variant "{first_variant}" '
        'and {second:d} of variant "{second_variant}"'
    )
)
def _(mirror, owner_id, first, first_variant, second, second_variant):
    for external_id, quantity in ((first_variant, first), (second_variant, second)):
        current_domain.process(
            AddToCart(owner_id=owner_id, variant_id=str(mirror[external_id].id), quantity=quantity),
            asynchronous=False,
        )


@given(parsers.cfparse('"{owner_id}" has checked out with "{method}" shipping'))
def _(ctx, owner_id, method):
    ctx["order"] = checkout(owner_id, "Ada Lovelace", ADDRESS, method)


@given("the payment for the order has been confirmed")
def _(ctx):
    ctx["order"] = confirm_payment(ctx["order"].id)


@given(parsers.cfparse('the provider rejects every request with "{reason}"'))
def _(provider, reason):
    provider.configure(should_succeed=False, failure_reason=reason)


@given(parsers.cfparse('the provider refuses to confirm orders with "{reason}"'))
def _(provider, reason):
    provider.configure(should_succeed=False, failure_reason=reason, fail_on={"confirm_order"})
