# wholesale_cart/services/cart_registry.py
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import List

from wholesale_cart.data.store import KeyValueStore
from wholesale_cart.domain.lines import Channel
from wholesale_cart.repos.cart_repo import CartRepo, cart_key
from wholesale_cart.services.at_once_cart import AtOnceCart
from wholesale_cart.services.closeout_cart import CloseoutCart
from wholesale_cart.services.combined_cart import CombinedCart
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.prebook_cart import PrebookCart
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.settings import MAX_CACHED_COMPANIES
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CompanyCarts:
    company_id: str
    combined: CombinedCart
    notifier: NotificationService

    @property
    def at_once(self) -> AtOnceCart:
        return self.combined.at_once

    @property
    def prebook(self) -> PrebookCart:
        return self.combined.prebook

    @property
    def closeout(self) -> CloseoutCart:
        return self.combined.closeout


class CartRegistry:
    """
    Lazily rehydrates and caches the three carts of each company.
    Only the most recently used companies stay cached; every mutation is
    already persisted, so an evicted company is rehydrated on its next request.
    Pending notices of an evicted company are dropped.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = utcnow,
        max_companies: int = MAX_CACHED_COMPANIES,
    ):
        self.store = store
        self.clock = clock
        self.max_companies = max_companies
        self._companies: "OrderedDict[str, CompanyCarts]" = OrderedDict()
        self._lock = threading.Lock()

    def for_company(self, company_id: str) -> CompanyCarts:
        with self._lock:
            carts = self._companies.get(company_id)
            if carts is None:
                carts = self._build(company_id)
                self._companies[company_id] = carts
                while len(self._companies) > self.max_companies:
                    evicted, _ = self._companies.popitem(last=False)
                    logger.info(f"Dropped cached carts of company {evicted}")
            else:
                self._companies.move_to_end(company_id)
            return carts

    def cached_companies(self) -> List[str]:
        with self._lock:
            return list(self._companies)

    def closeout_carts(self) -> List[CloseoutCart]:
        with self._lock:
            return [c.closeout for c in self._companies.values()]

    def _build(self, company_id: str) -> CompanyCarts:
        logger.info(f"Rehydrating carts for company {company_id}")
        notifier = NotificationService(clock=self.clock)

        def repo(channel: Channel, line_type):
            return CartRepo(self.store, cart_key(channel, company_id), line_type)

        combined = CombinedCart(
            at_once=AtOnceCart(
                repo(Channel.AT_ONCE, AtOnceCart.line_type), notifier=notifier, clock=self.clock
            ),
            prebook=PrebookCart(
                repo(Channel.PREBOOK, PrebookCart.line_type), notifier=notifier, clock=self.clock
            ),
            closeout=CloseoutCart(
                repo(Channel.CLOSEOUT, CloseoutCart.line_type), notifier=notifier, clock=self.clock
            ),
        )
        return CompanyCarts(company_id=company_id, combined=combined, notifier=notifier)
