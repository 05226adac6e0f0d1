"""FastAPI routes for the storefront: checkout, orders, cart, catalogue, payments and admin."""

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.api.auth import CurrentUser, get_current_user, require_admin
from storefront.api.schemas import (
    AddToCartRequest,
    AddressFields,
    CartLineIdResponse,
    CartLineResponse,
    CartResponse,
    CatalogueSyncResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfirmPaymentRequest,
    FulfillmentStatusResponse,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    PaymentSessionRequest,
    PaymentSessionResponse,
    ProductListResponse,
    ProductResponse,
    ShippingOptionResponse,
    ShippingOptionsResponse,
    StatusResponse,
    UpdateCartLineRequest,
    VariantResponse,
    WebhookResponse,
)
from storefront.cart.cart import Cart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from storefront.catalogue.product import CatalogProduct, CatalogVariant
from storefront.catalogue.sync import sync_catalogue
from storefront.checkout import reconciliation
from storefront.errors import InvalidWebhookError
from storefront.order.order import Order
from storefront.payments import get_gateway

# ---------------------------------------------------------------------------
# Checkout & Orders Router
# ---------------------------------------------------------------------------
# Routes that call the provider or the payment processor are plain `def` so
# FastAPI runs them in its threadpool instead of on the event loop.
checkout_router = APIRouter(tags=["checkout"])


@checkout_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
def checkout(body: CheckoutRequest, user: CurrentUser = Depends(get_current_user)) -> CheckoutResponse:
    """Turn the caller's cart into a provider draft order awaiting payment."""
    order = reconciliation.checkout(
        owner_id=user.id,
        owner_name=user.name,
        address=body.model_dump(exclude={"shipping_method"}),
        shipping_method=body.shipping_method,
    )
    return CheckoutResponse(
        order_id=str(order.id),
        printful_order_id=order.provider_order_id,
        total_price=order.total_price,
        costs=order.cost_breakdown,
    )


@checkout_router.post("/confirm-payment", response_model=OrderEnvelope)
def confirm_payment(body: ConfirmPaymentRequest, user: CurrentUser = Depends(get_current_user)) -> OrderEnvelope:
    """Record payment for one of the caller's orders and submit it for fulfillment."""
    order = reconciliation.confirm_payment(body.order_id, owner_id=user.id)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@checkout_router.get("/orders", response_model=OrderListResponse)
async def list_orders(user: CurrentUser = Depends(get_current_user)) -> OrderListResponse:
    orders = current_domain.repository_for(Order).find_by_owner(user.id)
    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in orders])


@checkout_router.get("/orders/{order_id}", response_model=OrderEnvelope)
async def get_order(order_id: str, user: CurrentUser = Depends(get_current_user)) -> OrderEnvelope:
    order = reconciliation.get_order(order_id, owner_id=user.id)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@checkout_router.get("/shipping-options", response_model=ShippingOptionsResponse)
def shipping_options(
    address: AddressFields = Depends(),
    user: CurrentUser = Depends(get_current_user),
) -> ShippingOptionsResponse:
    """Quote shipping for the caller's cart to the given address."""
    rates = reconciliation.quote_shipping(owner_id=user.id, owner_name=user.name, address=address.model_dump())
    return ShippingOptionsResponse(
        options=[
            ShippingOptionResponse(
                id=rate.rate_id,
                name=rate.name,
                rate=rate.rate,
                currency=rate.currency,
                min_delivery_days=rate.min_delivery_days,
                max_delivery_days=rate.max_delivery_days,
            )
            for rate in rates
        ]
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


def _cart_response(cart: Cart) -> CartResponse:
    variant_repo = current_domain.repository_for(CatalogVariant)
    lines = []
    for line in cart.lines:
        try:
            variant = variant_repo.get(line.variant_id)
        except ObjectNotFoundError:
            variant = None

        lines.append(
            CartLineResponse(
                id=str(line.id),
                product_id=str(line.product_id),
                variant_id=str(line.variant_id),
                name=variant.name if variant else None,
                retail_price=variant.retail_price if variant else None,
                quantity=line.quantity,
                line_total=round(variant.retail_price * line.quantity, 2) if variant else None,
            )
        )
    return CartResponse(
        owner_id=cart.owner_id,
        lines=lines,
        subtotal=round(sum(line.line_total or 0.0 for line in lines), 2),
    )


@cart_router.get("", response_model=CartResponse)
async def get_cart(user: CurrentUser = Depends(get_current_user)) -> CartResponse:
    cart = current_domain.repository_for(Cart).for_owner(user.id)
    return _cart_response(cart)


@cart_router.post("", status_code=201, response_model=CartLineIdResponse)
async def add_to_cart(body: AddToCartRequest, user: CurrentUser = Depends(get_current_user)) -> CartLineIdResponse:
    command = AddToCart(owner_id=user.id, variant_id=body.variant_id, quantity=body.quantity)
    line_id = current_domain.process(command, asynchronous=False)
    return CartLineIdResponse(line_id=line_id)


@cart_router.put("/{line_id}", response_model=StatusResponse)
async def update_cart_line(
    line_id: str,
    body: UpdateCartLineRequest,
    user: CurrentUser = Depends(get_current_user),
) -> StatusResponse:
    command = UpdateCartQuantity(owner_id=user.id, line_id=line_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@cart_router.delete("/{line_id}", response_model=StatusResponse)
async def remove_cart_line(line_id: str, user: CurrentUser = Depends(get_current_user)) -> StatusResponse:
    command = RemoveFromCart(owner_id=user.id, line_id=line_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


def _product_response(product: CatalogProduct) -> ProductResponse:
    variants = current_domain.repository_for(CatalogVariant).find_by_product(product.id)
    return ProductResponse(
        id=str(product.id),
        external_id=product.external_id,
        name=product.name,
        thumbnail_url=product.thumbnail_url,
        availability=product.availability,
        synced_at=product.synced_at,
        variants=[
            VariantResponse(
                id=str(variant.id),
                external_id=variant.external_id,
                name=variant.name,
                retail_price=variant.retail_price,
                currency=variant.currency,
                size=variant.size,
                color=variant.color,
                is_available=variant.is_available,
            )
            for variant in variants
        ],
    )


@product_router.get("", response_model=ProductListResponse)
async def list_products(user: CurrentUser = Depends(get_current_user)) -> ProductListResponse:  # noqa: ARG001
    products = current_domain.repository_for(CatalogProduct).list_available()
    return ProductListResponse(products=[_product_response(product) for product in products])


@product_router.post("/sync", response_model=CatalogueSyncResponse)
def sync_products(admin: CurrentUser = Depends(require_admin)) -> CatalogueSyncResponse:  # noqa: ARG001
    """Refresh the local catalogue mirror from the fulfillment provider."""
    summary = sync_catalogue()
    return CatalogueSyncResponse(**summary)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, user: CurrentUser = Depends(get_current_user)) -> ProductResponse:  # noqa: ARG001
    try:
        product = current_domain.repository_for(CatalogProduct).get(product_id)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found") from exc
    return _product_response(product)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
stripe_router = APIRouter(prefix="/stripe", tags=["payments"])


@stripe_router.post("/checkout", response_model=PaymentSessionResponse)
def create_payment_session(
    body: PaymentSessionRequest,
    user: CurrentUser = Depends(get_current_user),
) -> PaymentSessionResponse:
    """Open a hosted payment page for one of the caller's unpaid orders."""
    session = reconciliation.start_payment_session(body.order_id, owner_id=user.id)
    return PaymentSessionResponse(session_id=session.session_id, url=session.url)


@stripe_router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(request: Request, stripe_signature: str = Header(default="")) -> WebhookResponse:
    """Process a payment processor webhook. Authenticated by signature, not by user token."""
    payload = await request.body()

    gateway = get_gateway()
    if not gateway.verify_webhook_signature(payload, stripe_signature):
        raise InvalidWebhookError("Invalid webhook signature")

    notification = gateway.parse_notification(payload)
    if notification is None:
        return WebhookResponse(status="ignored")

    result = await run_in_threadpool(reconciliation.handle_payment_notification, notification)
    return WebhookResponse(**result)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/orders", response_model=OrderListResponse)
async def admin_list_orders(status: str | None = None, limit: int = 100) -> OrderListResponse:
    orders = current_domain.repository_for(Order).list_recent(limit=limit, status=status)
    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in orders])


@admin_router.get("/orders/{order_id}", response_model=OrderEnvelope)
async def admin_get_order(order_id: str) -> OrderEnvelope:
    order = reconciliation.get_order(order_id)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@admin_router.get("/orders/{order_id}/status", response_model=FulfillmentStatusResponse)
def admin_sync_order_status(order_id: str) -> FulfillmentStatusResponse:
    """Pull the provider's current status for an order and store the mapped value."""
    order = reconciliation.sync_fulfillment_status(order_id)
    return FulfillmentStatusResponse(
        order_id=str(order.id),
        status=order.status,
        provider_status=order.provider_status,
        payment_status=order.payment_status,
        status_synced_at=order.status_synced_at,
    )
