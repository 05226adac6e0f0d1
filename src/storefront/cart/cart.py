"""Cart aggregate: one mutable cart per user.

The cart's identity is the owner's user id. Lines are unique per variant:
adding a variant that is already in the cart increases the line's quantity.
A successful checkout clears the cart by removing its lines outright.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, HasMany, Identifier, Integer

from storefront.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from storefront.domain import storefront
from storefront.errors import CartLineNotFoundError


@storefront.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open_for(cls, owner_id):
        now = datetime.now(UTC)
        return cls(id=str(owner_id), created_at=now, updated_at=now)

    @property
    def owner_id(self) -> str:
        return str(self.id)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def _line(self, line_id):
        line = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if line is None:
            raise CartLineNotFoundError(f"Cart line {line_id} not found", line_id=str(line_id))
        return line

    def add_line(self, product_id, variant_id, quantity):
        """Add a variant to the cart (or increase quantity if already present)."""
        now = datetime.now(UTC)
        existing = next((line for line in self.lines if str(line.variant_id) == str(variant_id)), None)

        if existing:
            existing.quantity += quantity
            line_id = str(existing.id)
        else:
            line = CartLine(product_id=product_id, variant_id=variant_id, quantity=quantity, added_at=now)
            self.add_lines(line)
            line_id = str(line.id)

        self.updated_at = now
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                line_id=line_id,
                product_id=str(product_id),
                variant_id=str(variant_id),
                quantity=quantity,
            )
        )
        return line_id

    def update_line_quantity(self, line_id, quantity):
        line = self._line(line_id)
        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineQuantityChanged(
                cart_id=str(self.id),
                line_id=str(line_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_line(self, line_id):
        line = self._line(line_id)
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartLineRemoved(cart_id=str(self.id), line_id=str(line_id)))

    def clear(self):
        """Remove every line from the cart."""
        lines = list(self.lines)
        if not lines:
            return

        for line in lines:
            self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), lines_removed=len(lines)))


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_owner(self, owner_id) -> Cart:
        """Return the owner's cart, opening an empty one if none was stored yet."""
        try:
            return self.get(str(owner_id))
        except ObjectNotFoundError:
            return Cart.open_for(owner_id)
