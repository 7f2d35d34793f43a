# wholesale_cart/services/combined_cart.py
from decimal import Decimal
from typing import Any, Dict

from wholesale_cart.domain.errors import UnknownChannel
from wholesale_cart.domain.lines import Channel
from wholesale_cart.services.at_once_cart import AtOnceCart
from wholesale_cart.services.cart_service import CartService
from wholesale_cart.services.closeout_cart import CloseoutCart
from wholesale_cart.services.prebook_cart import PrebookCart


class CombinedCart:
    """
    Read-only view over the three channel carts.
    Owns no state, every read goes back to the channels.
    """

    def __init__(self, at_once: AtOnceCart, prebook: PrebookCart, closeout: CloseoutCart):
        self.at_once = at_once
        self.prebook = prebook
        self.closeout = closeout

    @property
    def carts(self) -> Dict[Channel, CartService]:
        return {
            Channel.AT_ONCE: self.at_once,
            Channel.PREBOOK: self.prebook,
            Channel.CLOSEOUT: self.closeout,
        }

    def cart(self, channel: Channel | str) -> CartService:
        try:
            return self.carts[Channel(channel)]
        except ValueError:
            raise UnknownChannel(f"Unknown cart channel: {channel}") from None

    def get_cart_total(self) -> Decimal:
        return sum((c.get_cart_total() for c in self.carts.values()), Decimal("0.00"))

    def get_item_count(self) -> int:
        return sum(c.get_item_count() for c in self.carts.values())

    def summary(self) -> Dict[str, Any]:
        channels = {
            channel.value: {
                "total": cart.get_cart_total(),
                "item_count": cart.get_item_count(),
            }
            for channel, cart in self.carts.items()
        }
        return {
            "total": sum((c["total"] for c in channels.values()), Decimal("0.00")),
            "item_count": sum(c["item_count"] for c in channels.values()),
            "channels": channels,
        }
