from __future__ import annotations

import json

from app.localstore.json_store import LocalFallbackStore
from scripts.seed_local_products import load_products, seed


def test_seed_merges_and_normalizes(tmp_path):
    src = tmp_path / "products.json"
    src.write_text(json.dumps({"products": [
        {"id": "local-1", "title": "Banarasi",
         "product_variants": [{"color_name": "Red", "stock_quantity": -3}]},
        {"title": "no id"},
    ]}))
    data_dir = tmp_path / "data"
    LocalFallbackStore(data_dir).write_products([{"id": "local-0"}, {"id": "local-1", "title": "old"}])

    total = seed(load_products(str(src)), str(data_dir))

    products = LocalFallbackStore(data_dir).read_products()
    assert total == 2
    assert [p["id"] for p in products] == ["local-1", "local-0"]
    assert products[0]["title"] == "Banarasi"
    assert products[0]["product_variants"][0] == {
        "color_name": "Red", "stock_quantity": 0, "product_id": "local-1",
    }
