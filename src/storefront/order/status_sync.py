"""Fulfillment status sync: command and handler.

Stores the provider's latest status after mapping it through STATUS_MAP.
An unchanged status is a no-op: nothing is written and no event is raised.
"""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RecordFulfillmentStatus:
    order_id = Identifier(required=True)
    provider_status = Text(required=True)


@storefront.command_handler(part_of=Order)
class FulfillmentStatusHandler:
    @handle(RecordFulfillmentStatus)
    def record_fulfillment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.apply_provider_status(command.provider_status):
            repo.add(order)
            return True
        return False
