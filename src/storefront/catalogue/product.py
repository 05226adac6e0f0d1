"""Catalogue mirror: local read replica of the provider's store products.

Products and variants are separate aggregates so that carts and orders can
reference a variant directly. Both are upserted by the provider's external
id, never by the local id, and are never deleted: products or variants that
disappear upstream are only marked unavailable.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Identifier, String

from storefront.catalogue.events import (
    ProductMirrored,
    ProductWithdrawn,
    VariantRepriced,
    VariantWithdrawn,
)
from storefront.domain import storefront

# Upper bound for "all rows" queries over the mirror tables
_MAX_ROWS = 10_000


class Availability(Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@storefront.aggregate
class CatalogProduct:
    external_id = String(required=True, max_length=64, unique=True)
    name = String(required=True, max_length=255)
    thumbnail_url = String(max_length=1024)
    availability = String(choices=Availability, default=Availability.AVAILABLE.value)
    synced_at = DateTime()

    @property
    def is_available(self) -> bool:
        return self.availability == Availability.AVAILABLE.value

    @classmethod
    def mirror(cls, external_id, name, thumbnail_url=None, synced_at=None):
        """Create the local copy of a provider product."""
        synced_at = synced_at or datetime.now(UTC)
        product = cls(
            external_id=str(external_id),
            name=name,
            thumbnail_url=thumbnail_url,
            availability=Availability.AVAILABLE.value,
            synced_at=synced_at,
        )
        product.raise_(
            ProductMirrored(
                product_id=str(product.id),
                external_id=product.external_id,
                name=product.name,
                synced_at=synced_at,
            )
        )
        return product

    def refresh(self, name, thumbnail_url=None, synced_at=None):
        """Overwrite mirrored attributes with the provider's current values."""
        self.synced_at = synced_at or datetime.now(UTC)
        self.name = name
        self.thumbnail_url = thumbnail_url
        self.availability = Availability.AVAILABLE.value

        self.raise_(
            ProductMirrored(
                product_id=str(self.id),
                external_id=self.external_id,
                name=self.name,
                synced_at=self.synced_at,
            )
        )

    def withdraw(self, withdrawn_at=None):
        """Mark the product unavailable after it vanished upstream."""
        if not self.is_available:
            return

        withdrawn_at = withdrawn_at or datetime.now(UTC)
        self.availability = Availability.UNAVAILABLE.value
        self.synced_at = withdrawn_at

        self.raise_(
            ProductWithdrawn(
                product_id=str(self.id),
                external_id=self.external_id,
                withdrawn_at=withdrawn_at,
            )
        )


@storefront.aggregate
class CatalogVariant:
    product_id = Identifier(required=True)
    external_id = String(required=True, max_length=64, unique=True)
    catalog_variant_id = String(max_length=64)  # provider's base catalog variant, used for rate quotes
    name = String(required=True, max_length=255)
    retail_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    size = String(max_length=50)
    color = String(max_length=100)
    is_available = Boolean(default=True)
    synced_at = DateTime()

    @classmethod
    def mirror(cls, product_id, external_id, name, retail_price, currency="USD", synced_at=None, **attributes):
        return cls(
            product_id=product_id,
            external_id=str(external_id),
            name=name,
            retail_price=retail_price,
            currency=currency or "USD",
            catalog_variant_id=attributes.get("catalog_variant_id"),
            size=attributes.get("size"),
            color=attributes.get("color"),
            is_available=True,
            synced_at=synced_at or datetime.now(UTC),
        )

    def refresh(self, product_id, name, retail_price, currency="USD", synced_at=None, **attributes):
        previous_price = self.retail_price

        self.product_id = product_id
        self.name = name
        self.retail_price = retail_price
        self.currency = currency or "USD"
        self.catalog_variant_id = attributes.get("catalog_variant_id")
        self.size = attributes.get("size")
        self.color = attributes.get("color")
        self.is_available = True
        self.synced_at = synced_at or datetime.now(UTC)

        if previous_price != retail_price:
            self.raise_(
                VariantRepriced(
                    variant_id=str(self.id),
                    external_id=self.external_id,
                    previous_price=previous_price,
                    new_price=retail_price,
                    currency=self.currency,
                )
            )

    def withdraw(self, withdrawn_at=None):
        if not self.is_available:
            return

        withdrawn_at = withdrawn_at or datetime.now(UTC)
        self.is_available = False
        self.synced_at = withdrawn_at

        self.raise_(
            VariantWithdrawn(
                variant_id=str(self.id),
                external_id=self.external_id,
                withdrawn_at=withdrawn_at,
            )
        )


@storefront.repository(part_of=CatalogProduct)
class CatalogProductRepository:
    def find_by_external_id(self, external_id) -> CatalogProduct | None:
        products = self._dao.query.filter(external_id=str(external_id)).all().items
        return products[0] if products else None

    def list_all(self) -> list[CatalogProduct]:
        return self._dao.query.order_by("name").limit(_MAX_ROWS).all().items

    def list_available(self) -> list[CatalogProduct]:
        return (
            self._dao.query.filter(availability=Availability.AVAILABLE.value)
            .order_by("name")
            .limit(_MAX_ROWS)
            .all()
            .items
        )


@storefront.repository(part_of=CatalogVariant)
class CatalogVariantRepository:
    def find_by_external_id(self, external_id) -> CatalogVariant | None:
        variants = self._dao.query.filter(external_id=str(external_id)).all().items
        return variants[0] if variants else None

    def find_by_product(self, product_id) -> list[CatalogVariant]:
        return self._dao.query.filter(product_id=str(product_id)).order_by("name").limit(_MAX_ROWS).all().items

    def list_all(self) -> list[CatalogVariant]:
        return self._dao.query.limit(_MAX_ROWS).all().items
