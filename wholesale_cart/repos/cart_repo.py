# wholesale_cart/repos/cart_repo.py
from typing import List, Sequence, Type

from pydantic import TypeAdapter, ValidationError

from wholesale_cart.data.store import KeyValueStore
from wholesale_cart.domain.lines import CartLineItem, Channel
from wholesale_cart.utils.settings import CART_KEY_PREFIX
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


def cart_key(channel: Channel, company_id: str | None = None) -> str:
    if company_id:
        return f"{CART_KEY_PREFIX}:{company_id}:{channel.value}"
    return f"{CART_KEY_PREFIX}:{channel.value}"


class CorruptSnapshot(ValueError):
    pass


class CartRepo:
    """
    One serialized array of lines per channel key.
    A snapshot that cannot be read back is discarded, never raised.
    """

    def __init__(self, store: KeyValueStore, key: str, line_type: Type[CartLineItem]):
        self.store = store
        self.key = key
        self._adapter = TypeAdapter(List[line_type])

    def load(self) -> List[CartLineItem]:
        raw = self.store.get(self.key)
        if raw is None:
            return []

        try:
            lines = self.decode(raw)
        except (ValidationError, CorruptSnapshot) as e:
            logger.warning(f"Discarding corrupted cart snapshot {self.key}: {e}")
            self.store.delete(self.key)
            return []

        logger.info(f"Loaded {len(lines)} lines from {self.key}")
        return lines

    def decode(self, raw: str) -> List[CartLineItem]:
        lines = self._adapter.validate_json(raw)
        self._check_invariants(lines)
        return lines

    def save(self, lines: Sequence[CartLineItem]) -> None:
        self.store.set(self.key, self._encode(lines))

    def replace_if_unchanged(self, before: str, lines: Sequence[CartLineItem]) -> bool:
        return self.store.compare_and_set(self.key, before, self._encode(lines))

    def clear(self) -> None:
        self.store.delete(self.key)

    def _encode(self, lines: Sequence[CartLineItem]) -> str:
        return self._adapter.dump_json(list(lines)).decode("utf-8")

    @staticmethod
    def _check_invariants(lines: Sequence[CartLineItem]) -> None:
        seen = set()
        for line in lines:
            if line.quantity < 1:
                raise CorruptSnapshot(f"non-positive quantity for {line.key}")
            if line.key in seen:
                raise CorruptSnapshot(f"duplicate line {line.key}")
            seen.add(line.key)
