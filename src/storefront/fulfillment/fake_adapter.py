"""Configurable fake fulfillment provider for development and testing.

Simulates the provider's draft/confirm/status workflow in memory. It can be
told to fail every call or only specific operations, which lets tests drive
the divergent states (draft created but confirmation refused, and so on).
"""

from uuid import uuid4

from storefront.errors import FulfillmentGatewayError
from storefront.fulfillment.port import (
    ConfirmedOrder,
    DraftOrder,
    FulfillmentProvider,
    OrderLine,
    ProviderOrderStatus,
    ProviderProduct,
    Recipient,
    ShippingRate,
)


class FakeProvider(FulfillmentProvider):
    """In-memory fulfillment provider."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Provider unavailable"
        self.fail_on: set[str] | None = None
        self.shipping_cost: float = 4.99
        self.draft_total: float | None = None
        self.products: list[ProviderProduct] = []
        self.orders: dict[str, str] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Provider unavailable",
        fail_on: set[str] | None = None,
    ) -> None:
        """Configure provider behavior at runtime.

        ``fail_on`` restricts failures to the named operations
        (e.g. ``{"confirm_order"}``); when omitted every call fails.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_on = set(fail_on) if fail_on else None

    def stock(self, products: list[ProviderProduct]) -> None:
        """Replace the upstream catalogue returned by list_catalogue()."""
        self.products = list(products)

    def set_status(self, provider_order_id: str, status: str) -> None:
        """Move an upstream order to a new provider status."""
        self.orders[provider_order_id] = status

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def _check(self, method: str) -> None:
        if self.should_succeed:
            return
        if self.fail_on is None or method in self.fail_on:
            raise FulfillmentGatewayError(
                self.failure_reason,
                response={"code": 500, "error": {"message": self.failure_reason}},
            )

    def _price_of(self, sync_variant_id: str) -> float:
        for product in self.products:
            for variant in product.variants:
                if variant.external_id == str(sync_variant_id):
                    return variant.retail_price
        return 0.0

    def create_draft_order(self, recipient: Recipient, items: list[OrderLine], shipping: str) -> DraftOrder:
        self.calls.append(
            {
                "method": "create_draft_order",
                "recipient": recipient.to_payload(),
                "items": [{"sync_variant_id": i.sync_variant_id, "quantity": i.quantity} for i in items],
                "shipping": shipping,
            }
        )
        self._check("create_draft_order")

        subtotal = round(sum(self._price_of(i.sync_variant_id) * i.quantity for i in items), 2)
        total = self.draft_total if self.draft_total is not None else round(subtotal + self.shipping_cost, 2)
        provider_order_id = f"pf_{uuid4().hex[:10]}"
        self.orders[provider_order_id] = "draft"

        return DraftOrder(
            provider_order_id=provider_order_id,
            status="draft",
            total=total,
            costs={
                "currency": "USD",
                "subtotal": subtotal,
                "shipping": self.shipping_cost,
                "total": total,
            },
        )

    def confirm_order(self, provider_order_id: str) -> ConfirmedOrder:
        self.calls.append({"method": "confirm_order", "provider_order_id": provider_order_id})
        self._check("confirm_order")

        if provider_order_id not in self.orders:
            raise FulfillmentGatewayError(
                f"Order {provider_order_id} not found",
                response={"code": 404, "error": {"message": "Not found"}},
            )
        self.orders[provider_order_id] = "pending"
        return ConfirmedOrder(provider_order_id=provider_order_id, status="pending")

    def get_order_status(self, provider_order_id: str) -> ProviderOrderStatus:
        self.calls.append({"method": "get_order_status", "provider_order_id": provider_order_id})
        self._check("get_order_status")

        if provider_order_id not in self.orders:
            raise FulfillmentGatewayError(
                f"Order {provider_order_id} not found",
                response={"code": 404, "error": {"message": "Not found"}},
            )
        return ProviderOrderStatus(provider_order_id=provider_order_id, status=self.orders[provider_order_id])

    def get_shipping_rates(self, recipient: Recipient, items: list[OrderLine]) -> list[ShippingRate]:
        self.calls.append(
            {
                "method": "get_shipping_rates",
                "recipient": recipient.to_payload(),
                "items": [{"sync_variant_id": i.sync_variant_id, "quantity": i.quantity} for i in items],
            }
        )
        self._check("get_shipping_rates")

        return [
            ShippingRate(
                rate_id="STANDARD",
                name="Flat Rate (3-4 business days after fulfillment)",
                rate=self.shipping_cost,
                currency="USD",
                min_delivery_days=3,
                max_delivery_days=4,
            ),
            ShippingRate(
                rate_id="EXPRESS",
                name="Express (1-2 business days after fulfillment)",
                rate=round(self.shipping_cost * 3, 2),
                currency="USD",
                min_delivery_days=1,
                max_delivery_days=2,
            ),
        ]

    def list_catalogue(self) -> list[ProviderProduct]:
        self.calls.append({"method": "list_catalogue"})
        self._check("list_catalogue")
        return list(self.products)
