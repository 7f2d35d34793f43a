# wholesale_cart/services/closeout_cart.py
import math
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import List, Tuple

from wholesale_cart.domain.lines import CloseoutLineItem, to_cents
from wholesale_cart.repos.cart_repo import CartRepo
from wholesale_cart.services.cart_service import CartService
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.policies import CloseoutPolicy
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.settings import EXPIRING_SOON_MINUTES
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)

EVICTION_NOTICE = "Some closeout items have expired and were removed from your cart"


class ListState(str, Enum):
    ACTIVE = "active"
    EXPIRING = "expiring"  # advisory only
    EXPIRED = "expired"


class CloseoutCart(CartService):
    """
    Clearance lines with a hard expiry per list.

    Every read sweeps expired lines first, so totals, counts and savings
    never include dead inventory. The same sweep runs on rehydration and
    from CloseoutExpiryTask.
    """

    line_type = CloseoutLineItem

    def __init__(
        self,
        repo: CartRepo,
        notifier: NotificationService | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(repo, CloseoutPolicy(), notifier=notifier, clock=clock)
        #lines that expired while the cart was not loaded
        self.sweep_expired(level="warning")

    # =====================================================
    # QUERY
    # =====================================================
    def get_savings_total(self) -> Decimal:
        return to_cents(sum((i.savings for i in self.items), Decimal("0")))

    def get_list_ids(self) -> List[str]:
        return list(dict.fromkeys(i.list_id for i in self.items))

    def is_expired(self, list_id: str) -> bool:
        """True once the list is past its expiry, or when the cart holds no line of it."""
        return self._list_line(list_id) is None

    def get_time_remaining(self, list_id: str) -> int:
        """Whole minutes until the list expires, 0 when expired or absent."""
        line = self._list_line(list_id)
        if line is None:
            return 0
        seconds = (line.expires_at - self.clock()).total_seconds()
        return max(0, math.floor(seconds / 60))

    def get_list_state(self, list_id: str) -> ListState:
        line = self._list_line(list_id)
        if line is None:
            return ListState.EXPIRED
        if line.expires_at - self.clock() < timedelta(minutes=EXPIRING_SOON_MINUTES):
            return ListState.EXPIRING
        return ListState.ACTIVE

    def snapshot(self):
        with self._lock:
            data = super().snapshot()
            data["savings_total"] = self.get_savings_total()
        return data

    # =====================================================
    # COMMANDS
    # =====================================================
    def sweep_expired(self, level: str = "error") -> List[CloseoutLineItem]:
        """Evict every expired line; one notice at `level` per non-empty batch."""
        with self._lock:
            now = self.clock()
            expired = [i for i in self._lines if i.is_expired_at(now)]
            if not expired:
                return []
            self._commit([i for i in self._lines if not i.is_expired_at(now)])

        logger.warning(
            f"Evicted {len(expired)} expired closeout lines from {self.repo.key}: "
            f"{sorted({i.list_id for i in expired})}"
        )
        self._notify(level, EVICTION_NOTICE)
        return expired

    # =====================================================
    # INTERNALS
    # =====================================================
    def _current_lines(self) -> Tuple[CloseoutLineItem, ...]:
        self.sweep_expired()
        return self._lines

    def _list_line(self, list_id: str) -> CloseoutLineItem | None:
        lines = [i for i in self.items if i.list_id == list_id]
        if not lines:
            return None
        return min(lines, key=lambda i: i.expires_at)

    def _added_message(self, lines):
        line = lines[0]
        minutes = self.get_time_remaining(line.list_id)
        return (
            f"Added to closeout cart - {line.discount_percent}% OFF! "
            f"(Expires in {minutes // 60}h {minutes % 60}m)"
        )
