"""Catalogue mirror refresh: commands, handler and the sync entry point.

``sync_catalogue()`` pulls every store product from the fulfillment provider
and feeds one MirrorProduct command per product, followed by a single
WithdrawMissingProducts command for products that no longer exist upstream.
The provider call happens before any unit of work is opened.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import CatalogProduct, CatalogVariant
from storefront.domain import storefront
from storefront.fulfillment import get_provider
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="CatalogProduct")
class MirrorProduct:
    external_id = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    thumbnail_url = String(max_length=1024)
    variants = Text(required=True)  # JSON: list of variant dicts
    synced_at = DateTime(required=True)


@storefront.command(part_of="CatalogProduct")
class WithdrawMissingProducts:
    upstream_ids = Text(required=True)  # JSON: external ids still present upstream
    synced_at = DateTime(required=True)


@storefront.command_handler(part_of=CatalogProduct)
class CatalogueSyncHandler:
    @handle(MirrorProduct)
    def mirror_product(self, command):
        product_repo = current_domain.repository_for(CatalogProduct)
        variant_repo = current_domain.repository_for(CatalogVariant)

        product = product_repo.find_by_external_id(command.external_id)
        if product is None:
            product = CatalogProduct.mirror(
                external_id=command.external_id,
                name=command.name,
                thumbnail_url=command.thumbnail_url,
                synced_at=command.synced_at,
            )
        else:
            product.refresh(
                name=command.name,
                thumbnail_url=command.thumbnail_url,
                synced_at=command.synced_at,
            )
        product_repo.add(product)

        variants_data = json.loads(command.variants) if isinstance(command.variants, str) else command.variants
        seen = set()
        for data in variants_data:
            external_id = str(data["external_id"])
            seen.add(external_id)
            attributes = {
                "catalog_variant_id": data.get("catalog_variant_id"),
                "size": data.get("size"),
                "color": data.get("color"),
            }

            variant = variant_repo.find_by_external_id(external_id)
            if variant is None:
                variant = CatalogVariant.mirror(
                    product_id=str(product.id),
                    external_id=external_id,
                    name=data["name"],
                    retail_price=data["retail_price"],
                    currency=data.get("currency"),
                    synced_at=command.synced_at,
                    **attributes,
                )
            else:
                variant.refresh(
                    product_id=str(product.id),
                    name=data["name"],
                    retail_price=data["retail_price"],
                    currency=data.get("currency"),
                    synced_at=command.synced_at,
                    **attributes,
                )
            variant_repo.add(variant)

        for variant in variant_repo.find_by_product(product.id):
            if variant.external_id not in seen and variant.is_available:
                variant.withdraw(command.synced_at)
                variant_repo.add(variant)

        return str(product.id)

    @handle(WithdrawMissingProducts)
    def withdraw_missing(self, command):
        product_repo = current_domain.repository_for(CatalogProduct)
        variant_repo = current_domain.repository_for(CatalogVariant)
        upstream = set(json.loads(command.upstream_ids))

        withdrawn = 0
        for product in product_repo.list_all():
            if product.external_id in upstream or not product.is_available:
                continue
            product.withdraw(command.synced_at)
            product_repo.add(product)
            for variant in variant_repo.find_by_product(product.id):
                if variant.is_available:
                    variant.withdraw(command.synced_at)
                    variant_repo.add(variant)
            withdrawn += 1

        return withdrawn


def sync_catalogue() -> dict:
    """Refresh the local mirror from the provider.

    Returns a summary with the number of products synced and withdrawn.
    Provider failures propagate as FulfillmentGatewayError and leave the
    mirror untouched.
    """
    products = get_provider().list_catalogue()
    synced_at = datetime.now(UTC)

    for product in products:
        current_domain.process(
            MirrorProduct(
                external_id=product.external_id,
                name=product.name,
                thumbnail_url=product.thumbnail_url,
                variants=json.dumps(
                    [
                        {
                            "external_id": variant.external_id,
                            "name": variant.name,
                            "retail_price": variant.retail_price,
                            "currency": variant.currency,
                            "catalog_variant_id": variant.catalog_variant_id,
                            "size": variant.size,
                            "color": variant.color,
                        }
                        for variant in product.variants
                    ]
                ),
                synced_at=synced_at,
            ),
            asynchronous=False,
        )

    withdrawn = current_domain.process(
        WithdrawMissingProducts(
            upstream_ids=json.dumps([product.external_id for product in products]),
            synced_at=synced_at,
        ),
        asynchronous=False,
    )

    logger.info("Catalogue mirror synced", products=len(products), withdrawn=withdrawn)
    return {"synced": len(products), "withdrawn": withdrawn}
