# wholesale_cart/catalog_service/main.py
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


def _variants(prefix: str, color: str, sizes):
    return [
        {"id": f"{prefix}-{size}", "color": color, "size": size, "sku": f"{prefix}-{size}", "inventory": 48}
        for size in sizes
    ]


PRODUCTS = {
    "tee-01": {
        "id": "tee-01",
        "sku": "TEE-01",
        "name": "Heavyweight Tee",
        "msrp": "32.00",
        "order_types": ["at-once"],
        "order_type_metadata": {
            "at-once": {"ship_within": 3, "ats_inventory": 240, "stock_location": ["DAL"]},
        },
        "variants": _variants("tee-01-blk", "Black", ["S", "M", "L"]),
        "pricing": {"wholesale": {"price": "10.00", "min_quantity": 1}},
    },
    "parka-fa": {
        "id": "parka-fa",
        "sku": "PARKA-FA",
        "name": "Alpine Parka",
        "msrp": "280.00",
        "order_types": ["prebook"],
        "order_type_metadata": {
            "prebook": {
                "season": "Fall 2026",
                "collection": "Core",
                "delivery_window": {"start": "2026-08-01", "end": "2026-08-31"},
                "deposit_percent": "30",
                "cancellation_deadline": "2026-05-01T00:00:00Z",
                "modification_deadline": "2026-04-15T00:00:00Z",
                "minimum_units": 6,
                "requires_full_size_run": True,
            },
        },
        "variants": _variants("parka-fa-nvy", "Navy", ["S", "M", "L"]),
        "pricing": {"wholesale": {"price": "120.00", "min_quantity": 6}},
    },
    "cap-99": {
        "id": "cap-99",
        "sku": "CAP-99",
        "name": "Trucker Cap",
        "msrp": "28.00",
        "order_types": ["at-once", "closeout"],
        "order_type_metadata": {
            "closeout": {
                "list_id": "summer-clearance",
                "discount_percent": "40",
                "available_quantity": 50,
                "maximum_per_customer": 24,
                "minimum_order_quantity": 6,
                "final_sale": True,
            },
        },
        "variants": _variants("cap-99-red", "Red", ["OS"]),
        "pricing": {"wholesale": {"price": "12.50", "min_quantity": 1}},
    },
}


@app.get("/products/{product_id}")
def get_product(product_id: str):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    closeout = product["order_type_metadata"].get("closeout")
    if closeout is not None:
        #clearance lists run for six hours from "now" in the mock
        expires_at = datetime.now(timezone.utc) + timedelta(hours=6)
        closeout = {**closeout, "expires_at": expires_at.isoformat()}
        product = {**product, "order_type_metadata": {**product["order_type_metadata"], "closeout": closeout}}
    return product
