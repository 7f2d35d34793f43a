# wholesale_cart/services/cart_service.py
import threading
from decimal import Decimal
from typing import Any, Dict, List, Sequence, Tuple, Type

from wholesale_cart.domain.errors import RejectionReason, ValidationRejected
from wholesale_cart.domain.lines import CartLineItem, Channel, to_cents
from wholesale_cart.repos.cart_repo import CartRepo
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.policies import ChannelPolicy
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Generic single-channel cart.
    commands (add, update, remove, clear) build a new line tuple, persist it
    and only then swap it in; queries fold over the current lines.
    """

    line_type: Type[CartLineItem] = CartLineItem

    def __init__(
        self,
        repo: CartRepo,
        policy: ChannelPolicy,
        notifier: NotificationService | None = None,
        clock: Clock = utcnow,
    ):
        self.repo = repo
        self.policy = policy
        self.notifier = notifier
        self.clock = clock
        self._lock = threading.RLock()
        self._lines: Tuple[CartLineItem, ...] = tuple(repo.load())

    @property
    def channel(self) -> Channel:
        return self.policy.channel

    # =====================================================
    # QUERY
    # =====================================================
    @property
    def items(self) -> List[CartLineItem]:
        with self._lock:
            return list(self._current_lines())

    def find_line(self, product_id: str, variant_id: str) -> CartLineItem | None:
        return next((i for i in self.items if i.matches(product_id, variant_id)), None)

    def get_cart_total(self) -> Decimal:
        return to_cents(sum((i.line_total for i in self.items), Decimal("0")))

    def get_item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            items = self.items
            return {
                "channel": self.channel,
                "items": [i.model_dump(mode="json") for i in items],
                "total": to_cents(sum((i.line_total for i in items), Decimal("0"))),
                "item_count": sum(i.quantity for i in items),
            }

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_to_cart(self, item: CartLineItem) -> CartLineItem:
        """Add a line, or sum quantities into the existing line with the same key."""
        return self._add_lines([item])[0]

    def update_quantity(self, product_id: str, variant_id: str, quantity: int) -> CartLineItem | None:
        #0 or less is removal
        if quantity <= 0:
            self.remove_from_cart(product_id, variant_id)
            return None

        with self._lock:
            current = self._current_lines()
            targets = [i for i in current if i.matches(product_id, variant_id)]
            if not targets:
                logger.info(f"Line {product_id}/{variant_id} not in {self.channel.value} cart")
                return None

            now = self.clock()
            for line in targets:
                self.policy.validate_update(line, quantity, now)

            updated = [
                i.model_copy(update={"quantity": quantity}) if i.matches(product_id, variant_id) else i
                for i in current
            ]
            self._commit(updated)

        logger.info(
            f"Quantity of {product_id}/{variant_id} in {self.channel.value} cart set to {quantity}"
        )
        return next(i for i in updated if i.matches(product_id, variant_id))

    def remove_from_cart(self, product_id: str, variant_id: str) -> bool:
        with self._lock:
            current = self._current_lines()
            remaining = [i for i in current if not i.matches(product_id, variant_id)]
            if len(remaining) == len(current):
                return False
            self._commit(remaining)

        logger.info(f"Removed {product_id}/{variant_id} from {self.channel.value} cart")
        self._notify("success", "Removed from cart")
        return True

    def clear_cart(self) -> None:
        with self._lock:
            self.repo.clear()
            self._lines = ()

        logger.info(f"{self.channel.value} cart cleared")
        self._notify("success", "Cart cleared")

    # =====================================================
    # INTERNALS
    # =====================================================
    def _current_lines(self) -> Tuple[CartLineItem, ...]:
        return self._lines

    def _commit(self, lines: Sequence[CartLineItem]) -> None:
        #persist first, a failed write leaves the in-memory state untouched
        new_lines = tuple(lines)
        self.repo.save(new_lines)
        self._lines = new_lines

    def _add_lines(self, incoming: Sequence[CartLineItem]) -> List[CartLineItem]:
        for item in incoming:
            if not isinstance(item, self.line_type):
                raise TypeError(
                    f"{self.channel.value} cart expects {self.line_type.__name__}, "
                    f"got {type(item).__name__}"
                )
            if item.quantity < 1:
                raise ValidationRejected(
                    RejectionReason.INVALID_QUANTITY,
                    "Quantity must be greater than 0",
                )

        with self._lock:
            current = self._current_lines()
            now = self.clock()
            self.policy.validate_add(incoming, current, now)

            lines = list(current)
            index = {line.key: pos for pos, line in enumerate(lines)}
            touched = []

            for item in incoming:
                pos = index.get(item.key)
                if pos is not None:
                    existing = lines[pos]
                    logger.info(
                        f"{item.key} already in {self.channel.value} cart, increasing quantity "
                        f"from {existing.quantity} to {existing.quantity + item.quantity}"
                    )
                    #price snapshot of the existing line is kept
                    lines[pos] = existing.model_copy(
                        update={"quantity": existing.quantity + item.quantity}
                    )
                else:
                    logger.info(f"Adding {item.key} to {self.channel.value} cart")
                    if item.added_at is None:
                        item = item.model_copy(update={"added_at": now})
                    index[item.key] = len(lines)
                    lines.append(item)
                touched.append(index[item.key])

            self._commit(lines)
            result = [lines[pos] for pos in touched]

        self._notify("success", self._added_message(result))
        for warning in self.policy.warnings(incoming):
            self._notify("warning", warning)
        return result

    def _added_message(self, lines: Sequence[CartLineItem]) -> str:
        return "Added to cart"

    def _notify(self, level: str, message: str) -> None:
        if self.notifier is not None:
            self.notifier.notify(self.channel, level, message)
