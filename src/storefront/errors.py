"""Storefront exception taxonomy.

Every error carries the HTTP status the API surfaces it with. Gateway errors
also keep the raw upstream response so failures can be reconciled by hand.
"""

from typing import Any


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message, **self.context}


# ---------------------------------------------------------------------------
# State conflicts (4xx, never retried automatically)
# ---------------------------------------------------------------------------
class EmptyCheckoutError(StorefrontError):
    """The cart has no lines that can be sent to the fulfillment provider."""

    status_code = 400


class AlreadyProcessedError(StorefrontError):
    """Payment for the order was already recorded; a retry is unnecessary."""

    status_code = 400


class MissingFulfillmentReferenceError(StorefrontError):
    """The order carries no provider order id to act on."""

    status_code = 400


class InvalidWebhookError(StorefrontError):
    """A payment notification failed signature verification or could not be parsed."""

    status_code = 400


class OrderNotFoundError(StorefrontError):
    status_code = 404


class CartLineNotFoundError(StorefrontError):
    status_code = 404


class VariantNotFoundError(StorefrontError):
    status_code = 404


# ---------------------------------------------------------------------------
# Upstream gateway failures (5xx, logged with the raw response)
# ---------------------------------------------------------------------------
class GatewayError(StorefrontError):
    status_code = 500

    def __init__(self, message: str, response: Any = None, **context: Any) -> None:
        super().__init__(message, **context)
        self.response = response


class FulfillmentGatewayError(GatewayError):
    """The fulfillment provider was unreachable, timed out, or returned an unusable payload."""


class FulfillmentDraftError(FulfillmentGatewayError):
    """The provider did not create a draft order."""


class FulfillmentConfirmationError(FulfillmentGatewayError):
    """The provider refused or failed to confirm a paid draft order."""


class PaymentGatewayError(GatewayError):
    """The payment processor was unreachable or rejected the request."""
