"""BDD tests for order reconciliation across storefront, payment and provider."""

from protean.utils.globals import current_domain
from pytest_bdd import parsers, scenarios, then, when
from storefront.cart.cart import Cart
from storefront.checkout.reconciliation import checkout, confirm_payment, sync_fulfillment_status
from storefront.errors import StorefrontError
from storefront.order.order import Order

ADDRESS = {"address1": "19749 Dearborn St", "city": "Chatsworth", "zip": "91311", "country_code": "US"}

scenarios("features/order_reconciliation.feature")


def _reload(ctx):
    return current_domain.repository_for(Order).get(ctx["order"].id)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{owner_id}" checks out with "{method}" shipping'))
def _(ctx, owner_id, method):
    ctx["order"] = checkout(owner_id, "Ada Lovelace", ADDRESS, method)


@when(parsers.cfparse('"{owner_id}" tries to check out with "{method}" shipping'))
def _(ctx, owner_id, method):
    try:
        checkout(owner_id, "Ada Lovelace", ADDRESS, method)
    except StorefrontError as exc:
        ctx["error"] = exc


@when("the payment for the order is confirmed")
@when("the payment for the order is confirmed again")
def _(ctx):
    try:
        confirm_payment(ctx["order"].id)
    except StorefrontError as exc:
        ctx["confirmations"].append(exc)
    else:
        ctx["confirmations"].append(None)


@when(parsers.cfparse('the provider reports the order as "{provider_status}"'))
def _(ctx, provider, provider_status):
    provider.set_status(ctx["order"].provider_order_id, provider_status)


@when("the fulfillment status is synced")
def _(ctx):
    ctx["order"] = sync_fulfillment_status(ctx["order"].id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is the provider quote of {total:f}"))
def _(ctx, total):
    assert _reload(ctx).total_price == total


@then(parsers.cfparse('the order payment status is "{status}"'))
def _(ctx, status):
    assert _reload(ctx).payment_status == status


@then(parsers.cfparse('the order fulfillment status is "{status}"'))
def _(ctx, status):
    assert _reload(ctx).status == status


@then(parsers.cfparse('the cart of "{owner_id}" is empty'))
def _(owner_id):
    assert current_domain.repository_for(Cart).for_owner(owner_id).is_empty


@then(parsers.cfparse('the cart of "{owner_id}" still holds {count:d} lines'))
def _(owner_id, count):
    assert len(current_domain.repository_for(Cart).for_owner(owner_id).lines) == count


@then(parsers.cfparse('checkout fails with "{error}"'))
def _(ctx, error):
    assert type(ctx["error"]).__name__ == error


@then(parsers.cfparse('"{owner_id}" has no orders'))
def _(owner_id):
    assert current_domain.repository_for(Order).find_by_owner(owner_id) == []


@then(parsers.cfparse('the second confirmation fails with "{error}"'))
def _(ctx, error):
    first, second = ctx["confirmations"]
    assert first is None
    assert type(second).__name__ == error


@then(parsers.cfparse('the confirmation fails with "{error}"'))
def _(ctx, error):
    assert type(ctx["confirmations"][-1]).__name__ == error


@then(parsers.cfparse("the provider was asked to confirm the draft {count:d} time"))
def _(provider, count):
    assert len(provider.calls_to("confirm_order")) == count


@then("the order keeps its payment time")
def _(ctx):
    assert _reload(ctx).paid_at is not None
