# wholesale_cart/services/prebook_cart.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Sequence

from wholesale_cart.domain.lines import PrebookLineItem, to_cents
from wholesale_cart.repos.cart_repo import CartRepo
from wholesale_cart.services.cart_service import CartService
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.policies import PrebookPolicy
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


class PrebookCart(CartService):
    """
    Seasonal pre-orders.

    Deposits are computed per line from that line's deposit percent.
    Cancellation and modification deadlines are only reported; edits after
    a deadline are still accepted.
    """

    line_type = PrebookLineItem

    def __init__(
        self,
        repo: CartRepo,
        notifier: NotificationService | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(repo, PrebookPolicy(), notifier=notifier, clock=clock)

    # =====================================================
    # QUERY
    # =====================================================
    def get_deposit_amount(self) -> Decimal:
        return to_cents(sum((i.deposit for i in self.items), Decimal("0")))

    def get_cancellation_deadline(self, season: str | None = None) -> datetime | None:
        return self._nearest(
            i.metadata.cancellation_deadline for i in self._season_lines(season)
        )

    def get_modification_deadline(self, season: str | None = None) -> datetime | None:
        return self._nearest(
            i.metadata.modification_deadline for i in self._season_lines(season)
        )

    def get_season_groups(self) -> Dict[str, List[PrebookLineItem]]:
        groups: Dict[str, List[PrebookLineItem]] = {}
        for item in self.items:
            groups.setdefault(item.season, []).append(item)
        return groups

    def snapshot(self):
        with self._lock:
            data = super().snapshot()
            data["deposit_amount"] = self.get_deposit_amount()
            data["cancellation_deadline"] = self.get_cancellation_deadline()
            data["modification_deadline"] = self.get_modification_deadline()
        return data

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_size_run(self, items: Sequence[PrebookLineItem]) -> List[PrebookLineItem]:
        """Add one line per size of a product in a single all-or-nothing step."""
        if not items:
            return []
        return self._add_lines(list(items))

    def clear_season(self, season: str) -> int:
        with self._lock:
            current = self._current_lines()
            remaining = [i for i in current if i.season != season]
            removed = len(current) - len(remaining)
            if removed:
                self._commit(remaining)

        logger.info(f"Cleared {removed} {season} lines from prebook cart")
        self._notify("success", f"Cleared all {season} items")
        return removed

    # =====================================================
    # INTERNALS
    # =====================================================
    def _season_lines(self, season: str | None) -> List[PrebookLineItem]:
        return [i for i in self.items if season is None or i.season == season]

    @staticmethod
    def _nearest(deadlines) -> datetime | None:
        present = [d for d in deadlines if d is not None]
        return min(present) if present else None

    def _added_message(self, lines):
        line = lines[0]
        if line.delivery_window:
            window = line.delivery_window
            return (
                f"Added to prebook cart for {line.season} "
                f"(Delivery: {window.start.isoformat()} - {window.end.isoformat()})"
            )
        return f"Added to prebook cart for {line.season}"
