"""Fulfillment provider factory.

Provides get_provider() / set_provider() to swap implementations:
- FakeProvider for development and testing
- PrintfulProvider for production

The default adapter is chosen by the FULFILLMENT_PROVIDER environment
variable ("fake" or "printful").
"""

import os

from storefront.fulfillment.port import FulfillmentProvider

_current_provider: FulfillmentProvider | None = None


def get_provider() -> FulfillmentProvider:
    """Return the configured fulfillment provider (singleton)."""
    global _current_provider
    if _current_provider is None:
        adapter = os.environ.get("FULFILLMENT_PROVIDER", "fake")
        if adapter == "fake":
            from storefront.fulfillment.fake_adapter import FakeProvider

            _current_provider = FakeProvider()
        elif adapter == "printful":
            from storefront.fulfillment.printful_adapter import PrintfulProvider

            _current_provider = PrintfulProvider.from_env()
        else:
            raise ValueError(f"Unknown fulfillment provider: {adapter}")
    return _current_provider


def set_provider(provider: FulfillmentProvider) -> None:
    """Override the active fulfillment provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_provider() -> None:
    """Reset the provider singleton."""
    global _current_provider
    _current_provider = None
