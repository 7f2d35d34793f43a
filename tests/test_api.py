"""HTTP tests for the cart routes."""

from datetime import datetime, timezone

import pytest
import requests
from fastapi import HTTPException
from fastapi.testclient import TestClient

from factories import FakeClock
from wholesale_cart.api.routers.carts import get_product_client
from wholesale_cart.catalog_service.main import get_product
from wholesale_cart.data.store import InMemoryStore
from wholesale_cart.domain.schemas import ProductRecord
from wholesale_cart.main import create_app
from wholesale_cart.services.cart_registry import CartRegistry

HEADERS = {"X-Company-Id": "acme", "X-Role": "retailer"}


class FakeCatalog:
    """Serves the dev mock catalog in-process."""

    def fetch_product(self, product_id: str) -> ProductRecord:
        try:
            return ProductRecord.model_validate(get_product(product_id))
        except HTTPException:
            response = requests.Response()
            response.status_code = 404
            raise requests.HTTPError(response=response)


class DownCatalog:
    def fetch_product(self, product_id: str):
        raise requests.ConnectionError("catalog down")


@pytest.fixture
def api_clock():
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def registry(api_clock):
    return CartRegistry(InMemoryStore(), clock=api_clock)


@pytest.fixture
def app(registry):
    app = create_app(registry=registry)
    app.dependency_overrides[get_product_client] = FakeCatalog
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def add(client, channel, product_id, variant_id, quantity, headers=HEADERS):
    return client.post(
        f"/carts/{channel}/items",
        json={"product_id": product_id, "variant_id": variant_id, "quantity": quantity},
        headers=headers,
    )


class TestAtOnceRoutes:
    def test_add_merge_remove(self, client):
        resp = add(client, "at-once", "tee-01", "tee-01-blk-M", 2)
        assert resp.status_code == 200
        assert resp.json()["total"] == "20.00"
        assert resp.json()["item_count"] == 2

        resp = add(client, "at-once", "tee-01", "tee-01-blk-M", 3)
        assert resp.json()["total"] == "50.00"
        assert len(resp.json()["items"]) == 1

        resp = client.delete("/carts/at-once/items/tee-01/tee-01-blk-M", headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json()["total"] == "0.00"
        assert resp.json()["item_count"] == 0

    def test_update_and_clear(self, client):
        add(client, "at-once", "tee-01", "tee-01-blk-S", 2)

        resp = client.patch(
            "/carts/at-once/items/tee-01/tee-01-blk-S", json={"quantity": 4}, headers=HEADERS
        )
        assert resp.json()["item_count"] == 4

        resp = client.patch(
            "/carts/at-once/items/tee-01/tee-01-blk-S", json={"quantity": 0}, headers=HEADERS
        )
        assert resp.json()["items"] == []

        add(client, "at-once", "tee-01", "tee-01-blk-S", 2)
        resp = client.delete("/carts/at-once", headers=HEADERS)
        assert resp.json()["item_count"] == 0

    def test_missing_line(self, client):
        resp = client.patch("/carts/at-once/items/tee-01/nope", json={"quantity": 2}, headers=HEADERS)
        assert resp.status_code == 404

        resp = client.delete("/carts/at-once/items/tee-01/nope", headers=HEADERS)
        assert resp.status_code == 404

    def test_zero_quantity_is_rejected(self, client):
        resp = add(client, "at-once", "tee-01", "tee-01-blk-M", 0)

        assert resp.status_code == 422
        assert resp.json()["detail"]["reason"] == "invalid_quantity"

    def test_companies_are_isolated(self, client):
        add(client, "at-once", "tee-01", "tee-01-blk-M", 2)

        resp = client.get("/carts/at-once", headers={"X-Company-Id": "globex"})
        assert resp.json()["item_count"] == 0


class TestPrebookRoutes:
    def test_single_size_needs_full_run(self, client):
        resp = add(client, "prebook", "parka-fa", "parka-fa-nvy-M", 6)

        assert resp.status_code == 422
        assert resp.json()["detail"]["reason"] == "incomplete_size_run"

    def test_size_run_and_deposit(self, client):
        resp = client.post(
            "/carts/prebook/size-runs",
            json={
                "product_id": "parka-fa",
                "quantities": {"parka-fa-nvy-S": 6, "parka-fa-nvy-M": 6, "parka-fa-nvy-L": 6},
            },
            headers=HEADERS,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["item_count"] == 18
        assert body["total"] == "2160.00"
        assert body["deposit_amount"] == "648.00"
        assert body["cancellation_deadline"].startswith("2026-05-01")

    def test_product_without_prebook_offer(self, client):
        resp = add(client, "prebook", "tee-01", "tee-01-blk-M", 6)

        assert resp.status_code == 422
        assert resp.json()["detail"]["reason"] == "not_eligible"


class TestCloseoutRoutes:
    def test_minimum_savings_and_final_sale(self, client):
        resp = add(client, "closeout", "cap-99", "cap-99-red-OS", 2)
        assert resp.status_code == 422
        assert resp.json()["detail"]["reason"] == "below_minimum"

        resp = add(client, "closeout", "cap-99", "cap-99-red-OS", 6)
        assert resp.status_code == 200
        assert resp.json()["total"] == "45.00"
        assert resp.json()["savings_total"] == "30.00"

        notices = client.get("/carts/notices", headers=HEADERS).json()
        assert [n["level"] for n in notices] == ["success", "warning"]
        assert notices[1]["message"] == "Final Sale - No returns or exchanges"
        assert client.get("/carts/notices", headers=HEADERS).json() == []

    def test_customer_max(self, client):
        add(client, "closeout", "cap-99", "cap-99-red-OS", 20)

        resp = add(client, "closeout", "cap-99", "cap-99-red-OS", 6)
        assert resp.json()["detail"]["reason"] == "exceeds_customer_max"

    def test_list_status_and_expiry(self, client, api_clock):
        add(client, "closeout", "cap-99", "cap-99-red-OS", 6)

        status = client.get("/carts/closeout/lists/summer-clearance", headers=HEADERS).json()
        assert status["state"] == "active"
        assert status["expired"] is False
        assert status["minutes_remaining"] > 300

        api_clock.advance(hours=7)

        status = client.get("/carts/closeout/lists/summer-clearance", headers=HEADERS).json()
        assert status == {
            "list_id": "summer-clearance",
            "state": "expired",
            "minutes_remaining": 0,
            "expired": True,
        }
        assert client.get("/carts/closeout", headers=HEADERS).json()["item_count"] == 0


class TestCombinedAndErrors:
    def test_combined(self, client):
        add(client, "at-once", "tee-01", "tee-01-blk-M", 2)
        add(client, "closeout", "cap-99", "cap-99-red-OS", 6)

        body = client.get("/carts/combined", headers=HEADERS).json()

        assert body["total"] == "65.00"
        assert body["item_count"] == 8
        assert body["channels"]["prebook"]["item_count"] == 0

    def test_unknown_channel(self, client):
        assert client.get("/carts/layaway", headers=HEADERS).status_code == 404
        assert add(client, "layaway", "tee-01", "tee-01-blk-M", 1).status_code == 404

    def test_company_header_is_required(self, client):
        assert client.get("/carts/at-once").status_code == 422

    def test_unknown_product_and_variant(self, client):
        assert add(client, "at-once", "ghost", "ghost-M", 1).status_code == 404
        assert add(client, "at-once", "tee-01", "tee-01-blk-XXL", 1).status_code == 404

    def test_catalog_down(self, app, client):
        app.dependency_overrides[get_product_client] = DownCatalog

        assert add(client, "at-once", "tee-01", "tee-01-blk-M", 1).status_code == 502

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "expiry_sweep": False}

    def test_lifespan_runs_expiry_sweep(self, app):
        with TestClient(app) as client:
            assert client.get("/health").json()["expiry_sweep"] is True
        assert app.state.expiry_task.running is False
