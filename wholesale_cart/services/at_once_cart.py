# wholesale_cart/services/at_once_cart.py
from datetime import date, timedelta

from wholesale_cart.domain.lines import AtOnceLineItem
from wholesale_cart.repos.cart_repo import CartRepo
from wholesale_cart.services.cart_service import CartService
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.policies import AtOncePolicy
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.settings import ESTIMATED_SHIP_BUSINESS_DAYS


class AtOnceCart(CartService):
    """Immediate-ship stock orders. Only quantity positivity is enforced."""

    line_type = AtOnceLineItem

    def __init__(
        self,
        repo: CartRepo,
        notifier: NotificationService | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(repo, AtOncePolicy(), notifier=notifier, clock=clock)

    def get_estimated_ship_date(self, today: date | None = None) -> date:
        """Today plus the configured number of business days, weekends skipped."""
        ship_date = today or self.clock().date()
        added = 0
        while added < ESTIMATED_SHIP_BUSINESS_DAYS:
            ship_date += timedelta(days=1)
            if ship_date.weekday() < 5:
                added += 1
        return ship_date

    def snapshot(self):
        data = super().snapshot()
        data["estimated_ship_date"] = self.get_estimated_ship_date()
        return data

    def _added_message(self, lines):
        metadata = lines[0].metadata
        days = metadata.ship_within if metadata else ESTIMATED_SHIP_BUSINESS_DAYS
        return f"Added to cart - Ships within {days} business days"
