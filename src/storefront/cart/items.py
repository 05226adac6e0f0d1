"""Cart line management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import CatalogVariant
from storefront.domain import storefront
from storefront.errors import VariantNotFoundError


@storefront.command(part_of="Cart")
class AddToCart:
    owner_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)


def _available_variant(variant_id) -> CatalogVariant:
    try:
        variant = current_domain.repository_for(CatalogVariant).get(variant_id)
    except ObjectNotFoundError:
        variant = None

    if variant is None or not variant.is_available:
        raise VariantNotFoundError(f"Variant {variant_id} is not available", variant_id=str(variant_id))
    return variant


@storefront.command_handler(part_of=Cart)
class ManageCartLinesHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        variant = _available_variant(command.variant_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        line_id = cart.add_line(
            product_id=variant.product_id,
            variant_id=variant.id,
            quantity=command.quantity,
        )
        repo.add(cart)
        return line_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        cart.update_line_quantity(line_id=command.line_id, quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        cart.remove_line(line_id=command.line_id)
        repo.add(cart)
