"""Tests for snapshot persistence and the key-value stores."""

import json
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from factories import at_once_line, closeout_line, make_repo
from wholesale_cart.data.database import Base, make_engine
from wholesale_cart.data.store import InMemoryStore, SqlStore, build_store
from wholesale_cart.domain.lines import AtOnceLineItem, Channel, CloseoutLineItem
from wholesale_cart.repos.cart_repo import CartRepo, cart_key
from wholesale_cart.services.at_once_cart import AtOnceCart


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'carts.db'}")
    Base.metadata.create_all(bind=engine)
    return SqlStore(sessionmaker(bind=engine, expire_on_commit=False))


class TestKeys:
    def test_default_keys(self):
        assert cart_key(Channel.AT_ONCE) == "cart:at-once"
        assert cart_key(Channel.PREBOOK) == "cart:prebook"
        assert cart_key(Channel.CLOSEOUT) == "cart:closeout"

    def test_company_namespace(self):
        assert cart_key(Channel.CLOSEOUT, "acme") == "cart:acme:closeout"


class TestSnapshots:
    def test_round_trip_keeps_absolute_expiry(self, store, clock):
        repo = make_repo(store, Channel.CLOSEOUT, CloseoutLineItem)
        expires = clock.now + timedelta(hours=3)

        repo.save([closeout_line(expires)])

        raw = json.loads(store.get("cart:closeout"))
        assert CloseoutLineItem.model_validate(raw[0]).expires_at == expires
        assert repo.load()[0].expires_at == expires

    def test_missing_key_loads_empty(self, store):
        assert make_repo(store, Channel.AT_ONCE, AtOnceLineItem).load() == []

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            '{"product_id": "A"}',
            '[{"product_id": "A"}]',
            '[{"product_id": "A", "variant_id": "A-M", "quantity": 0, "unit_price": "1.00"}]',
            '[{"product_id": "A", "variant_id": "A-M", "quantity": 1, "unit_price": "1.00"},'
            ' {"product_id": "A", "variant_id": "A-M", "quantity": 2, "unit_price": "1.00"}]',
        ],
    )
    def test_corrupted_snapshot_is_discarded(self, store, clock, raw):
        store.set("cart:at-once", raw)

        cart = AtOnceCart(make_repo(store, Channel.AT_ONCE, AtOnceLineItem), clock=clock)

        assert cart.items == []
        assert store.get("cart:at-once") is None

        cart.add_to_cart(at_once_line())
        assert cart.get_item_count() == 2

    def test_channels_do_not_share_keys(self, store, clock):
        at_once = make_repo(store, Channel.AT_ONCE, AtOnceLineItem)
        closeout = make_repo(store, Channel.CLOSEOUT, CloseoutLineItem)

        at_once.save([at_once_line()])
        closeout.save([closeout_line(clock.now + timedelta(hours=1))])
        at_once.clear()

        assert store.get("cart:at-once") is None
        assert len(closeout.load()) == 1


class TestStores:
    def test_in_memory_prefix_keys(self):
        store = InMemoryStore()
        store.set("cart:a:closeout", "[]")
        store.set("cart:b:closeout", "[]")
        store.set("other", "x")

        assert store.keys("cart:") == ["cart:a:closeout", "cart:b:closeout"]

    def test_sql_store_crud(self, sql_store):
        assert sql_store.get("cart:at-once") is None

        sql_store.set("cart:at-once", "[]")
        sql_store.set("cart:at-once", '["x"]')
        sql_store.set("cart_x", "[]")

        assert sql_store.get("cart:at-once") == '["x"]'
        assert sql_store.keys("cart:") == ["cart:at-once"]

        sql_store.delete("cart:at-once")
        sql_store.delete("cart:at-once")
        assert sql_store.get("cart:at-once") is None

    @pytest.mark.parametrize("kind", ["memory", "sql"])
    def test_compare_and_set(self, kind, sql_store):
        store = sql_store if kind == "sql" else InMemoryStore()
        store.set("cart:closeout", "v1")

        assert store.compare_and_set("cart:closeout", "v1", "v2") is True
        assert store.compare_and_set("cart:closeout", "v1", "v3") is False
        assert store.compare_and_set("cart:missing", "v1", "v3") is False

        assert store.get("cart:closeout") == "v2"
        assert store.get("cart:missing") is None

    def test_cart_survives_on_sql_store(self, sql_store, clock):
        repo = CartRepo(sql_store, cart_key(Channel.AT_ONCE, "acme"), AtOnceLineItem)
        AtOnceCart(repo, clock=clock).add_to_cart(at_once_line(quantity=4))

        reloaded = AtOnceCart(CartRepo(sql_store, cart_key(Channel.AT_ONCE, "acme"), AtOnceLineItem))
        assert reloaded.get_item_count() == 4

    def test_build_store(self):
        assert isinstance(build_store("memory"), InMemoryStore)
        with pytest.raises(ValueError):
            build_store("floppy")
