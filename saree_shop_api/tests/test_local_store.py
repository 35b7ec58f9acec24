from __future__ import annotations

import asyncio
import json
import threading

import pytest

from app.errors import NotFoundError, StorageError
from app.localstore.json_store import LocalFallbackStore


def test_first_access_creates_empty_documents(tmp_path):
    store = LocalFallbackStore(tmp_path / "nested" / "data")

    assert store.read_orders() == []
    assert store.read_products() == []
    assert json.loads((store.dir / "orders.local.json").read_text()) == {"orders": []}
    assert json.loads((store.dir / "products.local.json").read_text()) == {"products": []}


def test_write_replaces_whole_document(local_store):
    local_store.write_orders([{"id": "a"}, {"id": "b"}])
    local_store.write_orders([{"id": "c"}])

    doc = json.loads((local_store.dir / "orders.local.json").read_text())
    assert doc == {"orders": [{"id": "c"}]}


def test_corrupt_file_raises_storage_error(local_store):
    local_store.dir.mkdir(parents=True)
    (local_store.dir / "orders.local.json").write_text("{not json")

    with pytest.raises(StorageError):
        local_store.read_orders()


def test_missing_list_field_reads_as_empty(local_store):
    local_store.dir.mkdir(parents=True)
    (local_store.dir / "products.local.json").write_text('{"something": 1}')

    assert local_store.read_products() == []


def test_concurrent_prepends_are_not_lost(local_store):
    async def place_many():
        await asyncio.gather(*(local_store.prepend_order({"id": f"o{i}"}) for i in range(20)))

    asyncio.run(place_many())

    assert sorted(o["id"] for o in local_store.read_orders()) == sorted(f"o{i}" for i in range(20))


def test_deduct_only_touches_known_products(local_store):
    local_store.write_products([
        {"id": "local-1", "product_variants": [{"color_name": "Blue", "stock_quantity": 4}]},
        {"id": "local-2", "product_variants": []},
    ])
    items = [
        {"product_id": "local-1", "color_name": "Pink", "quantity": 1},
        {"product_id": "local-2", "color_name": None, "quantity": 1},
        {"product_id": "remote-9", "color_name": None, "quantity": 1},
    ]

    touched = asyncio.run(local_store.deduct_product_stock(items))

    assert touched == 1
    assert local_store.read_products()[0]["product_variants"][0]["stock_quantity"] == 3


def test_update_order_status(local_store):
    local_store.write_orders([{"id": "local-order-1", "status": "Pending"}])

    updated = asyncio.run(local_store.update_order_status("local-order-1", "Shipped"))

    assert updated["status"] == "Shipped"
    assert local_store.read_orders()[0]["status"] == "Shipped"
    with pytest.raises(NotFoundError):
        asyncio.run(local_store.update_order_status("local-order-2", "Shipped"))


def test_file_io_runs_off_the_event_loop_thread(local_store, monkeypatch):
    seen = []
    real_read = local_store.read_orders

    def recording_read():
        seen.append(threading.get_ident())
        return real_read()

    monkeypatch.setattr(local_store, "read_orders", recording_read)

    async def run():
        await local_store.prepend_order({"id": "local-order-1"})
        await local_store.snapshot_orders()
        return threading.get_ident()

    loop_thread = asyncio.run(run())

    assert len(seen) == 2
    assert loop_thread not in seen
