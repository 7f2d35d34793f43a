"""Tests for the per-company cart cache."""

from factories import at_once_line
from wholesale_cart.data.store import InMemoryStore
from wholesale_cart.services.cart_registry import CartRegistry


class TestCartRegistry:
    def test_same_company_gets_same_carts(self, clock):
        registry = CartRegistry(InMemoryStore(), clock=clock)

        assert registry.for_company("acme") is registry.for_company("acme")
        assert registry.for_company("acme") is not registry.for_company("globex")

    def test_cache_keeps_most_recently_used_companies(self, clock):
        registry = CartRegistry(InMemoryStore(), clock=clock, max_companies=2)

        registry.for_company("acme")
        registry.for_company("globex")
        registry.for_company("acme")
        registry.for_company("initech")

        assert registry.cached_companies() == ["acme", "initech"]
        assert len(registry.closeout_carts()) == 2

    def test_evicted_company_is_rehydrated_from_store(self, clock):
        registry = CartRegistry(InMemoryStore(), clock=clock, max_companies=1)
        first = registry.for_company("acme")
        first.at_once.add_to_cart(at_once_line(quantity=4))

        registry.for_company("globex")
        again = registry.for_company("acme")

        assert again is not first
        assert again.at_once.get_item_count() == 4
