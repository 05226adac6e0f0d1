"""Tests for the Cart aggregate."""

import pytest
from storefront.cart.cart import Cart
from storefront.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from storefront.errors import CartLineNotFoundError


def _make_cart():
    return Cart.open_for("user-001")


class TestCartIdentity:
    def test_cart_id_is_the_owner_id(self):
        cart = _make_cart()
        assert str(cart.id) == "user-001"
        assert cart.owner_id == "user-001"

    def test_new_cart_is_empty(self):
        assert _make_cart().is_empty


class TestAddLine:
    def test_add_line(self):
        cart = _make_cart()
        line_id = cart.add_line("prod-001", "var-001", 2)
        assert len(cart.lines) == 1
        assert str(cart.lines[0].id) == line_id
        assert cart.lines[0].quantity == 2

    def test_adding_same_variant_increments_quantity(self):
        cart = _make_cart()
        first = cart.add_line("prod-001", "var-001", 2)
        second = cart.add_line("prod-001", "var-001", 3)
        assert first == second
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 5

    def test_different_variants_get_separate_lines(self):
        cart = _make_cart()
        cart.add_line("prod-001", "var-001", 1)
        cart.add_line("prod-001", "var-002", 1)
        assert len(cart.lines) == 2

    def test_add_line_raises_event(self):
        cart = _make_cart()
        cart.add_line("prod-001", "var-001", 1)
        events = [e for e in cart._events if isinstance(e, CartLineAdded)]
        assert len(events) == 1
        assert events[0].variant_id == "var-001"


class TestChangeLines:
    def test_update_quantity(self):
        cart = _make_cart()
        line_id = cart.add_line("prod-001", "var-001", 1)
        cart.update_line_quantity(line_id, 4)
        assert cart.lines[0].quantity == 4
        events = [e for e in cart._events if isinstance(e, CartLineQuantityChanged)]
        assert events[0].previous_quantity == 1
        assert events[0].new_quantity == 4

    def test_update_unknown_line(self):
        cart = _make_cart()
        with pytest.raises(CartLineNotFoundError):
            cart.update_line_quantity("missing", 2)

    def test_remove_line(self):
        cart = _make_cart()
        line_id = cart.add_line("prod-001", "var-001", 1)
        cart.remove_line(line_id)
        assert cart.is_empty
        assert any(isinstance(e, CartLineRemoved) for e in cart._events)

    def test_remove_unknown_line(self):
        cart = _make_cart()
        with pytest.raises(CartLineNotFoundError):
            cart.remove_line("missing")


class TestClearCart:
    def test_clear_removes_every_line(self):
        cart = _make_cart()
        cart.add_line("prod-001", "var-001", 1)
        cart.add_line("prod-002", "var-002", 3)
        cart._events.clear()

        cart.clear()

        assert cart.is_empty
        events = [e for e in cart._events if isinstance(e, CartCleared)]
        assert events[0].lines_removed == 2

    def test_clearing_an_empty_cart_raises_nothing(self):
        cart = _make_cart()
        cart.clear()
        assert cart._events == []
