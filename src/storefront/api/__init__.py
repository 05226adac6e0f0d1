"""Storefront API package."""

from storefront.api.routes import admin_router, cart_router, checkout_router, product_router, stripe_router

__all__ = ["checkout_router", "cart_router", "product_router", "stripe_router", "admin_router"]
