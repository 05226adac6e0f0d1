"""Domain events for the catalogue mirror."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="CatalogProduct")
class ProductMirrored:
    """A provider product was inserted into, or refreshed in, the local mirror."""

    __version__ = 1

    product_id: Identifier(required=True)
    external_id: String(required=True)
    name: String(required=True)
    synced_at: DateTime(required=True)


@storefront.event(part_of="CatalogProduct")
class ProductWithdrawn:
    """A mirrored product no longer exists upstream."""

    __version__ = 1

    product_id: Identifier(required=True)
    external_id: String(required=True)
    withdrawn_at: DateTime(required=True)


@storefront.event(part_of="CatalogVariant")
class VariantRepriced:
    """The provider changed the retail price of a mirrored variant."""

    __version__ = 1

    variant_id: Identifier(required=True)
    external_id: String(required=True)
    previous_price: Float(required=True)
    new_price: Float(required=True)
    currency: String(required=True)


@storefront.event(part_of="CatalogVariant")
class VariantWithdrawn:
    __version__ = 1

    variant_id: Identifier(required=True)
    external_id: String(required=True)
    withdrawn_at: DateTime(required=True)
