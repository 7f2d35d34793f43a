# wholesale_cart/domain/schemas.py
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from wholesale_cart.domain.lines import (
    AtOnceMetadata,
    Channel,
    CloseoutMetadata,
    DeliveryWindow,
    PrebookMetadata,
)


# =====================================================
# CATALOG (inbound)
# =====================================================
class ProductVariant(BaseModel):
    id: str
    color: str | None = None
    size: str | None = None
    sku: str | None = None
    inventory: int = 0


class TierPrice(BaseModel):
    price: Decimal = Field(..., ge=0)
    min_quantity: int = 1


class PrebookOffer(PrebookMetadata):
    season: str
    delivery_window: DeliveryWindow | None = None


class CloseoutOffer(CloseoutMetadata):
    list_id: str
    expires_at: AwareDatetime
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)


class OrderTypeMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    at_once: AtOnceMetadata | None = Field(None, alias="at-once")
    prebook: PrebookOffer | None = None
    closeout: CloseoutOffer | None = None


class ProductRecord(BaseModel):
    """Product + pricing record as served by the catalog service."""

    id: str
    sku: str | None = None
    name: str | None = None
    msrp: Decimal | None = None
    order_types: List[Channel] = Field(default_factory=list)
    order_type_metadata: OrderTypeMetadata = Field(default_factory=OrderTypeMetadata)
    variants: List[ProductVariant] = Field(default_factory=list)
    pricing: Dict[str, TierPrice] = Field(default_factory=dict)

    def variant(self, variant_id: str) -> ProductVariant | None:
        return next((v for v in self.variants if v.id == variant_id), None)


# =====================================================
# SESSION
# =====================================================
class Role(str, Enum):
    RETAILER = "retailer"
    SALES_REP = "sales-rep"
    ADMIN = "admin"


class SessionContext(BaseModel):
    company_id: str = Field(..., min_length=1)
    role: Role = Role.RETAILER


# =====================================================
# API
# =====================================================
class ItemIn(BaseModel):
    """Schema for adding a product variant to a cart."""

    product_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., description="Units to add (validated by the cart)")
    tier: str = Field("wholesale", description="Pricing tier used for the price snapshot")


class QuantityIn(BaseModel):
    """Zero or negative removes the line."""

    quantity: int


class SizeRunIn(BaseModel):
    """One quantity per variant of a prebook product, added atomically."""

    product_id: str = Field(..., min_length=1)
    quantities: Dict[str, int] = Field(..., min_length=1)
    tier: str = "wholesale"


class RejectionOut(BaseModel):
    reason: str
    detail: str


class CartOut(BaseModel):
    channel: Channel
    items: List[dict]
    total: Decimal
    item_count: int
    deposit_amount: Decimal | None = None
    cancellation_deadline: datetime | None = None
    modification_deadline: datetime | None = None
    savings_total: Decimal | None = None
    estimated_ship_date: date | None = None


class ListStatusOut(BaseModel):
    list_id: str
    state: str
    minutes_remaining: int
    expired: bool


class CombinedCartOut(BaseModel):
    total: Decimal
    item_count: int
    channels: Dict[str, dict]


class NoticeOut(BaseModel):
    channel: Channel
    level: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
