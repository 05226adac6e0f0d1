"""Repository for the Order aggregate."""

from datetime import UTC, datetime

from protean.utils.query import Q

from storefront.domain import storefront
from storefront.order.order import Order, PaymentStatus

_MAX_ROWS = 1000


@storefront.repository(part_of=Order)
class OrderRepository:
    def claim_payment(self, order_id, paid_at=None) -> bool:
        """Atomically move an order from ``pending`` to ``paid``.

        Issues a single conditional update (``WHERE payment_status='pending'``).
        Returns True for the one caller whose update matched a row; every
        concurrent or repeated caller gets False.
        """
        paid_at = paid_at or datetime.now(UTC)
        matched = self._dao._update_all(
            Q(id=str(order_id), payment_status=PaymentStatus.PENDING.value),
            payment_status=PaymentStatus.PAID.value,
            paid_at=paid_at,
            updated_at=paid_at,
        )
        return matched == 1

    def find_by_owner(self, owner_id) -> list[Order]:
        return self._dao.query.filter(owner_id=str(owner_id)).order_by("-created_at").limit(_MAX_ROWS).all().items

    def list_recent(self, limit: int = 100, status: str | None = None) -> list[Order]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return query.order_by("-created_at").limit(limit).all().items
