# wholesale_cart/domain/lines.py
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from wholesale_cart.utils.settings import DEFAULT_DEPOSIT_PERCENT

CENTS = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class Channel(str, Enum):
    AT_ONCE = "at-once"
    PREBOOK = "prebook"
    CLOSEOUT = "closeout"


# =====================================================
# CHANNEL METADATA
# =====================================================
class AtOnceMetadata(BaseModel):
    """Point-in-time stock info for immediate-ship items."""

    ship_within: int = Field(5, ge=0, description="Business days until shipment")
    ats_inventory: int = Field(0, ge=0, description="Available-to-ship quantity")
    backorder_available: bool = False
    stock_location: List[str] = Field(default_factory=list)


class DeliveryWindow(BaseModel):
    start: date
    end: date


class PrebookMetadata(BaseModel):
    """Season rules carried by every prebook line."""

    collection: str | None = None
    deposit_percent: Decimal = Field(Decimal(DEFAULT_DEPOSIT_PERCENT), ge=0, le=100)
    cancellation_deadline: AwareDatetime | None = None
    modification_deadline: AwareDatetime | None = None
    minimum_units: int | None = Field(None, ge=0)
    requires_full_size_run: bool = False
    required_sizes: List[str] = Field(default_factory=list)


class CloseoutMetadata(BaseModel):
    """Limits of one clearance allocation."""

    available_quantity: int | None = Field(None, ge=0)
    maximum_per_customer: int | None = Field(None, ge=0)
    minimum_order_quantity: int | None = Field(None, ge=0)
    final_sale: bool = False


# =====================================================
# LINE ITEMS
# =====================================================
class CartLineItem(BaseModel):
    """
    One (product, variant) entry in a cart.
    Lines are immutable; every change produces a new line via model_copy.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)
    quantity: int
    unit_price: Decimal = Field(..., ge=0)
    sku: str | None = None
    color: str | None = None
    size: str | None = None
    order_types: List[Channel] = Field(default_factory=list)
    added_at: AwareDatetime | None = None

    @property
    def key(self) -> tuple:
        return (self.product_id, self.variant_id)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def matches(self, product_id: str, variant_id: str) -> bool:
        return self.product_id == product_id and self.variant_id == variant_id


class AtOnceLineItem(CartLineItem):
    metadata: AtOnceMetadata | None = None


class PrebookLineItem(CartLineItem):
    season: str = Field(..., min_length=1)
    delivery_window: DeliveryWindow | None = None
    metadata: PrebookMetadata = Field(default_factory=PrebookMetadata)

    @property
    def deposit(self) -> Decimal:
        return self.line_total * self.metadata.deposit_percent / 100


class CloseoutLineItem(CartLineItem):
    list_id: str = Field(..., min_length=1)
    expires_at: AwareDatetime
    original_price: Decimal = Field(..., ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    metadata: CloseoutMetadata = Field(default_factory=CloseoutMetadata)

    @property
    def key(self) -> tuple:
        return (self.product_id, self.variant_id, self.list_id)

    @property
    def savings(self) -> Decimal:
        return (self.original_price - self.unit_price) * self.quantity

    def is_expired_at(self, now: datetime) -> bool:
        return now >= self.expires_at
