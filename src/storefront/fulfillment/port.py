"""Fulfillment provider port (abstract interface).

Defines the contract that every print-on-demand provider adapter implements.
The reconciliation code programs against the port; adapters are swapped via
configuration (FakeProvider for dev/test, PrintfulProvider in production).

Adapters raise FulfillmentGatewayError for transport failures, timeouts,
error responses, and payloads missing an expected field. Money-relevant and
identity fields (order id, total) are never defaulted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Recipient:
    """Shipping recipient sent to the provider."""

    name: str
    address1: str
    city: str
    zip: str
    country_code: str

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "address1": self.address1,
            "city": self.city,
            "zip": self.zip,
            "country_code": self.country_code,
        }


@dataclass(frozen=True)
class OrderLine:
    """A provider-side line: the provider's sync variant and a quantity."""

    sync_variant_id: str
    quantity: int
    catalog_variant_id: str | None = None


@dataclass(frozen=True)
class DraftOrder:
    """Result of a successful draft order creation."""

    provider_order_id: str
    status: str
    total: float
    costs: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ConfirmedOrder:
    provider_order_id: str
    status: str


@dataclass(frozen=True)
class ProviderOrderStatus:
    provider_order_id: str
    status: str


@dataclass(frozen=True)
class ShippingRate:
    rate_id: str
    name: str
    rate: float
    currency: str
    min_delivery_days: int | None = None
    max_delivery_days: int | None = None


@dataclass(frozen=True)
class ProviderVariant:
    external_id: str
    name: str
    retail_price: float
    currency: str = "USD"
    catalog_variant_id: str | None = None
    size: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class ProviderProduct:
    external_id: str
    name: str
    thumbnail_url: str | None = None
    variants: tuple[ProviderVariant, ...] = ()


class FulfillmentProvider(ABC):
    """Abstract fulfillment provider interface."""

    @abstractmethod
    def create_draft_order(self, recipient: Recipient, items: list[OrderLine], shipping: str) -> DraftOrder:
        """Create an unconfirmed (draft) order with the provider."""
        ...

    @abstractmethod
    def confirm_order(self, provider_order_id: str) -> ConfirmedOrder:
        """Confirm a draft order for production and shipping."""
        ...

    @abstractmethod
    def get_order_status(self, provider_order_id: str) -> ProviderOrderStatus:
        """Fetch the provider's current status for an order."""
        ...

    @abstractmethod
    def get_shipping_rates(self, recipient: Recipient, items: list[OrderLine]) -> list[ShippingRate]:
        """Quote shipping options for the given recipient and items."""
        ...

    @abstractmethod
    def list_catalogue(self) -> list[ProviderProduct]:
        """Return every store product together with its variants."""
        ...
