"""Order payment: commands and handler.

Each command is its own unit of work so that the ``paid`` mark is committed
before the fulfillment provider is asked to confirm the draft, and the
outcome of that call is recorded separately.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import AlreadyProcessedError
from storefront.order.order import Order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class AttachPaymentSession:
    order_id = Identifier(required=True)
    payment_session_id = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class RecordFulfillmentConfirmed:
    order_id = Identifier(required=True)
    provider_status = Text()


@storefront.command(part_of="Order")
class RecordConfirmationFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=1000)


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(AttachPaymentSession)
    def attach_payment_session(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_payment_session(command.payment_session_id)
        repo.add(order)

    @handle(MarkOrderPaid)
    def mark_order_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        paid_at = datetime.now(UTC)
        if not repo.claim_payment(order.id, paid_at=paid_at):
            logger.warning(
                "Payment already processed",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            raise AlreadyProcessedError(
                f"Order {order.id} was already processed",
                order_id=str(order.id),
            )

        order.record_payment(paid_at=paid_at)
        repo.add(order)
        return order.provider_order_id

    @handle(RecordFulfillmentConfirmed)
    def record_fulfillment_confirmed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_submission(provider_status=command.provider_status)
        repo.add(order)

    @handle(RecordConfirmationFailure)
    def record_confirmation_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_confirmation_failure(reason=command.reason)
        repo.add(order)
