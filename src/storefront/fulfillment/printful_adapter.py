"""Printful fulfillment adapter.

Talks to the Printful REST API over httpx with a bearer token and a bounded
timeout. No call is retried: a timeout, transport failure, non-2xx response,
or a payload missing a field the storefront depends on is raised as
FulfillmentGatewayError carrying the raw response body.
"""

import os
from typing import Any

import httpx

from storefront.errors import FulfillmentGatewayError
from storefront.fulfillment.port import (
    ConfirmedOrder,
    DraftOrder,
    FulfillmentProvider,
    OrderLine,
    ProviderOrderStatus,
    ProviderProduct,
    ProviderVariant,
    Recipient,
    ShippingRate,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.printful.com"
DEFAULT_TIMEOUT = 10.0
PAGE_SIZE = 100


def _require(payload: Any, *path: str) -> Any:
    """Walk ``path`` through nested dicts, failing loudly on a missing key."""
    value = payload
    for key in path:
        if not isinstance(value, dict) or value.get(key) is None:
            raise FulfillmentGatewayError(
                f"Provider response is missing '{'.'.join(path)}'",
                response=payload,
            )
        value = value[key]
    return value


def _money(payload: Any, *path: str) -> float:
    raw = _require(payload, *path)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise FulfillmentGatewayError(
            f"Provider returned a non-numeric '{'.'.join(path)}': {raw!r}",
            response=payload,
        ) from exc


class PrintfulProvider(FulfillmentProvider):
    """Production adapter for the Printful API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        store_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_key}"}
        if store_id:
            headers["X-PF-Store-Id"] = store_id

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "PrintfulProvider":
        api_key = os.environ.get("PRINTFUL_API_KEY")
        if not api_key:
            raise ValueError("PRINTFUL_API_KEY must be set to use the Printful provider")
        return cls(
            api_key=api_key,
            base_url=os.environ.get("PRINTFUL_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.environ.get("PRINTFUL_TIMEOUT", DEFAULT_TIMEOUT)),
            store_id=os.environ.get("PRINTFUL_STORE_ID"),
        )

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Send a request and return the decoded JSON envelope."""
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error("Printful request timed out", method=method, path=path, timeout=self.timeout)
            raise FulfillmentGatewayError(f"Printful timed out on {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.error("Printful request failed", method=method, path=path, error=str(exc))
            raise FulfillmentGatewayError(f"Printful request failed on {method} {path}: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.is_error:
            logger.error(
                "Printful returned an error response",
                method=method,
                path=path,
                status_code=response.status_code,
                response=body,
            )
            error = body.get("error") if isinstance(body, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise FulfillmentGatewayError(
                message or f"Printful returned HTTP {response.status_code} on {method} {path}",
                response=body,
                status=response.status_code,
            )

        logger.debug("Printful response received", method=method, path=path, status_code=response.status_code)
        return body

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_draft_order(self, recipient: Recipient, items: list[OrderLine], shipping: str) -> DraftOrder:
        payload = {
            "recipient": recipient.to_payload(),
            "items": [{"sync_variant_id": line.sync_variant_id, "quantity": line.quantity} for line in items],
            "shipping": shipping,
        }
        body = self._request("POST", "/orders", json=payload)

        result = _require(body, "result")
        return DraftOrder(
            provider_order_id=str(_require(result, "id")),
            status=result.get("status", "draft"),
            total=_money(result, "costs", "total"),
            costs=result["costs"],
        )

    def confirm_order(self, provider_order_id: str) -> ConfirmedOrder:
        body = self._request("POST", f"/orders/{provider_order_id}/confirm")

        result = _require(body, "result")
        return ConfirmedOrder(
            provider_order_id=str(_require(result, "id")),
            status=_require(result, "status"),
        )

    def get_order_status(self, provider_order_id: str) -> ProviderOrderStatus:
        body = self._request("GET", f"/orders/{provider_order_id}")

        result = _require(body, "result")
        return ProviderOrderStatus(
            provider_order_id=str(result.get("id", provider_order_id)),
            status=_require(result, "status"),
        )

    # -------------------------------------------------------------------
    # Shipping
    # -------------------------------------------------------------------
    def get_shipping_rates(self, recipient: Recipient, items: list[OrderLine]) -> list[ShippingRate]:
        payload = {
            "recipient": {
                "address1": recipient.address1,
                "city": recipient.city,
                "zip": recipient.zip,
                "country_code": recipient.country_code,
            },
            "items": [
                {"variant_id": line.catalog_variant_id or line.sync_variant_id, "quantity": line.quantity}
                for line in items
            ],
        }
        body = self._request("POST", "/shipping/rates", json=payload)

        rates = []
        for rate in _require(body, "result"):
            rates.append(
                ShippingRate(
                    rate_id=str(_require(rate, "id")),
                    name=rate.get("name", ""),
                    rate=_money(rate, "rate"),
                    currency=rate.get("currency", "USD"),
                    min_delivery_days=rate.get("minDeliveryDays"),
                    max_delivery_days=rate.get("maxDeliveryDays"),
                )
            )
        return rates

    # -------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------
    def _list_product_ids(self) -> list[str]:
        ids: list[str] = []
        offset = 0
        while True:
            body = self._request("GET", "/store/products", params={"offset": offset, "limit": PAGE_SIZE})
            page = _require(body, "result")
            ids.extend(str(_require(product, "id")) for product in page)

            total = body.get("paging", {}).get("total", len(ids))
            offset += len(page)
            if not page or offset >= total:
                return ids

    def list_catalogue(self) -> list[ProviderProduct]:
        products = []
        for product_id in self._list_product_ids():
            body = self._request("GET", f"/store/products/{product_id}")
            result = _require(body, "result")
            sync_product = _require(result, "sync_product")

            variants = tuple(
                ProviderVariant(
                    external_id=str(_require(variant, "id")),
                    name=variant.get("name", ""),
                    retail_price=_money(variant, "retail_price"),
                    currency=variant.get("currency", "USD"),
                    catalog_variant_id=str(variant["variant_id"]) if variant.get("variant_id") else None,
                    size=variant.get("size"),
                    color=variant.get("color"),
                )
                for variant in result.get("sync_variants", [])
            )
            products.append(
                ProviderProduct(
                    external_id=str(_require(sync_product, "id")),
                    name=sync_product.get("name", ""),
                    thumbnail_url=sync_product.get("thumbnail_url"),
                    variants=variants,
                )
            )

        logger.info("Fetched Printful store catalogue", products=len(products))
        return products
