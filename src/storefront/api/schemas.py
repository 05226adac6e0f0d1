"""Pydantic request/response schemas for the storefront API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# --- Shared ---


class AddressFields(BaseModel):
    address1: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    zip: str = Field(..., min_length=1, max_length=20)
    country_code: str = Field(..., min_length=2, max_length=2)


class StatusResponse(BaseModel):
    status: str


# --- Checkout & payment ---


class CheckoutRequest(AddressFields):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "address1": "19749 Dearborn St",
                    "city": "Chatsworth",
                    "zip": "91311",
                    "country_code": "US",
                    "shipping_method": "STANDARD",
                }
            ]
        }
    }

    shipping_method: str = Field("STANDARD", min_length=1, max_length=50)


class CheckoutResponse(BaseModel):
    order_id: str
    printful_order_id: str
    total_price: float
    costs: dict


class ConfirmPaymentRequest(BaseModel):
    order_id: str = Field(..., min_length=1)


class PaymentSessionRequest(BaseModel):
    order_id: str = Field(..., min_length=1)


class PaymentSessionResponse(BaseModel):
    session_id: str
    url: str


class WebhookResponse(BaseModel):
    status: str
    order_id: str | None = None
    order_status: str | None = None


# --- Orders ---


class ShippingDetailsResponse(BaseModel):
    name: str
    address1: str
    city: str
    zip: str
    country_code: str


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str
    provider_variant_id: str
    name: str
    quantity: int
    retail_price: float


class OrderResponse(BaseModel):
    id: str
    owner_id: str
    provider_order_id: str | None = None
    payment_session_id: str | None = None
    status: str
    payment_status: str
    provider_status: str | None = None
    total_price: float
    currency: str
    shipping_method: str | None = None
    shipping_details: ShippingDetailsResponse | None = None
    costs: dict = {}
    items: list[OrderItemResponse] = []
    created_at: datetime | None = None
    paid_at: datetime | None = None
    submitted_at: datetime | None = None
    status_synced_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> OrderResponse:
        return cls(
            id=str(order.id),
            owner_id=str(order.owner_id),
            provider_order_id=order.provider_order_id,
            payment_session_id=order.payment_session_id,
            status=order.status,
            payment_status=order.payment_status,
            provider_status=order.provider_status,
            total_price=order.total_price,
            currency=order.currency,
            shipping_method=order.shipping_method,
            shipping_details=(
                ShippingDetailsResponse(**order.shipping_details.to_dict()) if order.shipping_details else None
            ),
            costs=order.cost_breakdown,
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id),
                    provider_variant_id=item.provider_variant_id,
                    name=item.name,
                    quantity=item.quantity,
                    retail_price=item.retail_price,
                )
                for item in order.items
            ],
            created_at=order.created_at,
            paid_at=order.paid_at,
            submitted_at=order.submitted_at,
            status_synced_at=order.status_synced_at,
        )


class OrderEnvelope(BaseModel):
    order: OrderResponse


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class FulfillmentStatusResponse(BaseModel):
    order_id: str
    status: str
    provider_status: str | None = None
    payment_status: str
    status_synced_at: datetime | None = None


# --- Shipping ---


class ShippingOptionResponse(BaseModel):
    id: str
    name: str
    rate: float
    currency: str
    min_delivery_days: int | None = None
    max_delivery_days: int | None = None


class ShippingOptionsResponse(BaseModel):
    options: list[ShippingOptionResponse]


# --- Cart ---


class AddToCartRequest(BaseModel):
    variant_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class UpdateCartLineRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class CartLineResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str
    name: str | None = None
    retail_price: float | None = None
    quantity: int
    line_total: float | None = None


class CartResponse(BaseModel):
    owner_id: str
    lines: list[CartLineResponse]
    subtotal: float


class CartLineIdResponse(BaseModel):
    line_id: str


# --- Catalogue ---


class VariantResponse(BaseModel):
    id: str
    external_id: str
    name: str
    retail_price: float
    currency: str
    size: str | None = None
    color: str | None = None
    is_available: bool


class ProductResponse(BaseModel):
    id: str
    external_id: str
    name: str
    thumbnail_url: str | None = None
    availability: str
    synced_at: datetime | None = None
    variants: list[VariantResponse] = []


class ProductListResponse(BaseModel):
    products: list[ProductResponse]


class CatalogueSyncResponse(BaseModel):
    synced: int
    withdrawn: int
