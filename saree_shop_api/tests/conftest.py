"""Shared fixtures: an in-memory remote store and a tmp_path local store, injected via Depends overrides."""
from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from app.errors import NotFoundError, RemoteStoreError
from app.localstore.json_store import LocalFallbackStore


# ---------- Fake remote order store ----------

class FakeRemoteStore:
    """Same contract as RemoteOrderStore, backed by dicts. Flip the fail_* flags to simulate outages."""

    def __init__(self):
        self.orders: List[Dict[str, Any]] = []
        self.items: List[Dict[str, Any]] = []
        self.stock: Dict[str, int] = {}
        self.fail_create = False
        self.fail_list = False
        self.fail_deduct_for: set[str] = set()
        self.create_calls = 0
        self.deduct_calls: List[Tuple[str, int, Optional[str]]] = []
        self._ids = itertools.count(1)

    @property
    def configured(self) -> bool:
        return True

    async def create_order(self, header, items):
        self.create_calls += 1
        if self.fail_create:
            raise RemoteStoreError("connection refused")
        order = {
            "id": str(next(self._ids)),
            **header,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.orders.insert(0, order)
        rows = [{**it, "order_id": order["id"]} for it in items]
        self.items.extend(rows)
        return {**order, "items": rows}

    async def deduct_stock(self, product_id, quantity, color_name=None) -> Optional[Tuple[int, int]]:
        self.deduct_calls.append((product_id, quantity, color_name))
        if product_id in self.fail_deduct_for:
            raise RemoteStoreError("statement timeout")
        if product_id not in self.stock:
            return None
        previous = self.stock[product_id]
        self.stock[product_id] = max(0, previous - quantity)
        return previous, self.stock[product_id]

    async def list_orders(self):
        if self.fail_list:
            raise RemoteStoreError("connection refused")
        return [
            {**o, "items": [it for it in self.items if it["order_id"] == o["id"]]}
            for o in self.orders
        ]

    async def update_status(self, order_id, status):
        for o in self.orders:
            if o["id"] == str(order_id):
                o["status"] = status
                return dict(o)
        raise NotFoundError("Order ID not Found")

    async def close(self):
        pass


# ---------- Fixtures ----------

@pytest.fixture()
def remote_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def local_store(tmp_path) -> LocalFallbackStore:
    return LocalFallbackStore(tmp_path / "data")


@pytest.fixture()
def order_payload() -> Dict[str, Any]:
    return {
        "customer_details": {"name": "A", "email": "a@x.com", "phone": "123"},
        "shipping_address": "12 Temple Road, Chennai",
        "items": [
            {"product_id": "p1", "name": "Saree", "color": "Red", "quantity": 2, "price": 500},
        ],
        "total_amount": 1000,
    }


@pytest.fixture()
def client(remote_store, local_store):
    """FastAPI TestClient (sync) wired to the fake stores."""
    from fastapi.testclient import TestClient
    from app.deps import get_local_store, get_remote_store
    from app.main import app

    app.dependency_overrides[get_remote_store] = lambda: remote_store
    app.dependency_overrides[get_local_store] = lambda: local_store
    yield TestClient(app)
    app.dependency_overrides.clear()
