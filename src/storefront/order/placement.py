"""Order placement: command and handler.

Persists the local order for a provider draft and clears the owner's cart in
the same unit of work: if the order insert fails, the cart is left intact.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    owner_id = Identifier(required=True)
    provider_order_id = String(required=True, max_length=64)
    provider_status = Text()
    total_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    costs = Text()  # JSON: provider cost breakdown
    shipping_details = Text(required=True)  # JSON: recipient dict
    shipping_method = String(required=True, max_length=50)
    items = Text(required=True)  # JSON: list of item snapshots


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_details = (
            json.loads(command.shipping_details)
            if isinstance(command.shipping_details, str)
            else command.shipping_details
        )

        order = Order.place(
            owner_id=command.owner_id,
            shipping_details=shipping_details,
            shipping_method=command.shipping_method,
            provider_order_id=command.provider_order_id,
            provider_status=command.provider_status or "draft",
            total_price=command.total_price,
            currency=command.currency,
            costs=json.loads(command.costs) if command.costs else {},
            items_data=items_data,
        )
        current_domain.repository_for(Order).add(order)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_owner(command.owner_id)
        if not cart.is_empty:
            cart.clear()
            cart_repo.add(cart)

        return str(order.id)
