# wholesale_cart/services/line_factory.py
from typing import Dict, List

from wholesale_cart.domain.errors import RejectionReason, ValidationRejected
from wholesale_cart.domain.lines import (
    AtOnceLineItem,
    CartLineItem,
    Channel,
    CloseoutLineItem,
    CloseoutMetadata,
    PrebookLineItem,
    PrebookMetadata,
    to_cents,
)
from wholesale_cart.domain.schemas import ProductRecord


class LineNotBuildable(LookupError):
    pass


def build_line(
    channel: Channel,
    product: ProductRecord,
    variant_id: str,
    quantity: int,
    tier: str,
) -> CartLineItem:
    """
    Turn a catalog record into a cart line for one channel.
    Prices and channel metadata are snapshotted here and never re-derived.
    """
    variant = product.variant(variant_id)
    if variant is None:
        raise LineNotBuildable(f"Variant {variant_id} not found for product {product.id}")

    pricing = product.pricing.get(tier)
    if pricing is None:
        raise LineNotBuildable(f"No {tier} pricing for product {product.id}")

    common = dict(
        product_id=product.id,
        variant_id=variant.id,
        quantity=quantity,
        unit_price=pricing.price,
        sku=variant.sku or product.sku,
        color=variant.color,
        size=variant.size,
        order_types=list(product.order_types),
    )
    metadata = product.order_type_metadata

    if channel == Channel.AT_ONCE:
        return AtOnceLineItem(**common, metadata=metadata.at_once)

    if channel == Channel.PREBOOK:
        offer = metadata.prebook
        if offer is None:
            raise ValidationRejected(
                RejectionReason.NOT_ELIGIBLE,
                f"Product {product.id} is not available for prebook ordering",
            )
        rules = PrebookMetadata(**offer.model_dump(include=set(PrebookMetadata.model_fields)))
        if rules.requires_full_size_run and not rules.required_sizes:
            #every size the product comes in
            sizes = list(dict.fromkeys(v.size for v in product.variants if v.size))
            rules = rules.model_copy(update={"required_sizes": sizes})
        return PrebookLineItem(
            **common,
            season=offer.season,
            delivery_window=offer.delivery_window,
            metadata=rules,
        )

    if channel == Channel.CLOSEOUT:
        offer = metadata.closeout
        if offer is None:
            raise ValidationRejected(
                RejectionReason.NOT_ELIGIBLE,
                f"Product {product.id} is not available as a closeout",
            )
        discounted = to_cents(pricing.price * (100 - offer.discount_percent) / 100)
        common["unit_price"] = discounted
        return CloseoutLineItem(
            **common,
            list_id=offer.list_id,
            expires_at=offer.expires_at,
            original_price=pricing.price,
            discount_percent=offer.discount_percent,
            metadata=CloseoutMetadata(**offer.model_dump(include=set(CloseoutMetadata.model_fields))),
        )

    raise ValueError(f"Unknown cart channel: {channel}")


def build_size_run(
    product: ProductRecord,
    quantities: Dict[str, int],
    tier: str,
) -> List[PrebookLineItem]:
    return [
        build_line(Channel.PREBOOK, product, variant_id, quantity, tier)
        for variant_id, quantity in quantities.items()
    ]
