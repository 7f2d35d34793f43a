#wholesale_cart/api/routers/carts.py
from typing import List

import requests
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from wholesale_cart.domain.errors import UnknownChannel, ValidationRejected
from wholesale_cart.domain.lines import Channel
from wholesale_cart.domain.schemas import (
    CartOut,
    CombinedCartOut,
    ItemIn,
    ListStatusOut,
    NoticeOut,
    QuantityIn,
    RejectionOut,
    Role,
    SessionContext,
    SizeRunIn,
)
from wholesale_cart.services.cart_registry import CartRegistry, CompanyCarts
from wholesale_cart.services.cart_service import CartService
from wholesale_cart.services.line_factory import LineNotBuildable, build_line, build_size_run
from wholesale_cart.services.product_client import ProductClient
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/carts", tags=["carts"])


def get_registry(request: Request) -> CartRegistry:
    return request.app.state.registry


def get_product_client() -> ProductClient:
    return ProductClient()


def get_session(
    x_company_id: str = Header(...),
    x_role: Role = Header(Role.RETAILER),
) -> SessionContext:
    return SessionContext(company_id=x_company_id, role=x_role)


def get_carts(
    session: SessionContext = Depends(get_session),
    registry: CartRegistry = Depends(get_registry),
) -> CompanyCarts:
    return registry.for_company(session.company_id)


def get_cart(channel: str, carts: CompanyCarts) -> CartService:
    try:
        return carts.combined.cart(channel)
    except UnknownChannel as e:
        raise HTTPException(status_code=404, detail=str(e))


def rejected(e: ValidationRejected) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=RejectionOut(reason=e.reason.value, detail=e.message).model_dump(),
    )


def fetch_product(client: ProductClient, product_id: str):
    try:
        return client.fetch_product(product_id)
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 404:
            raise HTTPException(status_code=404, detail="Product not found")
        raise HTTPException(status_code=502, detail="Catalog service error")
    except requests.RequestException:
        raise HTTPException(status_code=502, detail="Catalog service unavailable")


# =====================================================
# CROSS-CHANNEL
# =====================================================
@router.get("/combined", response_model=CombinedCartOut)
def get_combined(carts: CompanyCarts = Depends(get_carts)):
    return carts.combined.summary()


@router.get("/notices", response_model=List[NoticeOut])
def drain_notices(carts: CompanyCarts = Depends(get_carts)):
    return carts.notifier.drain()


# =====================================================
# CHANNEL EXTRAS
# =====================================================
@router.post("/prebook/size-runs", response_model=CartOut)
def add_size_run(
    payload: SizeRunIn,
    carts: CompanyCarts = Depends(get_carts),
    client: ProductClient = Depends(get_product_client),
):
    product = fetch_product(client, payload.product_id)
    try:
        lines = build_size_run(product, payload.quantities, payload.tier)
        carts.prebook.add_size_run(lines)
    except ValidationRejected as e:
        raise rejected(e)
    except LineNotBuildable as e:
        raise HTTPException(status_code=404, detail=str(e))
    return carts.prebook.snapshot()


@router.get("/closeout/lists/{list_id}", response_model=ListStatusOut)
def get_list_status(list_id: str, carts: CompanyCarts = Depends(get_carts)):
    closeout = carts.closeout
    return {
        "list_id": list_id,
        "state": closeout.get_list_state(list_id).value,
        "minutes_remaining": closeout.get_time_remaining(list_id),
        "expired": closeout.is_expired(list_id),
    }


# =====================================================
# PER CHANNEL
# =====================================================
@router.get("/{channel}", response_model=CartOut)
def read_cart(channel: str, carts: CompanyCarts = Depends(get_carts)):
    return get_cart(channel, carts).snapshot()


@router.post("/{channel}/items", response_model=CartOut)
def add_item(
    channel: str,
    payload: ItemIn,
    session: SessionContext = Depends(get_session),
    carts: CompanyCarts = Depends(get_carts),
    client: ProductClient = Depends(get_product_client),
):
    cart = get_cart(channel, carts)
    product = fetch_product(client, payload.product_id)

    logger.info(
        f"{session.role.value} adds {payload.product_id}/{payload.variant_id} "
        f"x{payload.quantity} to {channel} cart of company {session.company_id}"
    )
    try:
        line = build_line(Channel(channel), product, payload.variant_id, payload.quantity, payload.tier)
        cart.add_to_cart(line)
    except ValidationRejected as e:
        raise rejected(e)
    except LineNotBuildable as e:
        raise HTTPException(status_code=404, detail=str(e))
    return cart.snapshot()


@router.patch("/{channel}/items/{product_id}/{variant_id}", response_model=CartOut)
def update_item(
    channel: str,
    product_id: str,
    variant_id: str,
    payload: QuantityIn,
    carts: CompanyCarts = Depends(get_carts),
):
    cart = get_cart(channel, carts)
    if cart.find_line(product_id, variant_id) is None:
        raise HTTPException(status_code=404, detail="Line not in cart")

    try:
        cart.update_quantity(product_id, variant_id, payload.quantity)
    except ValidationRejected as e:
        raise rejected(e)
    return cart.snapshot()


@router.delete("/{channel}/items/{product_id}/{variant_id}", response_model=CartOut)
def remove_item(
    channel: str,
    product_id: str,
    variant_id: str,
    carts: CompanyCarts = Depends(get_carts),
):
    cart = get_cart(channel, carts)
    if not cart.remove_from_cart(product_id, variant_id):
        raise HTTPException(status_code=404, detail="Line not in cart")
    return cart.snapshot()


@router.delete("/{channel}", response_model=CartOut)
def clear_cart(channel: str, carts: CompanyCarts = Depends(get_carts)):
    cart = get_cart(channel, carts)
    cart.clear_cart()
    return cart.snapshot()
