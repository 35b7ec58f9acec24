# app/localstore/json_store.py
from __future__ import annotations
from typing import Any, Dict, List, Optional
from pathlib import Path
import asyncio
import json
import os

from ..errors import NotFoundError, StorageError
from ..logger import get_logger

log = get_logger(__name__)

ORDERS_FILE = "orders.local.json"
PRODUCTS_FILE = "products.local.json"


class LocalFallbackStore:
    """
    JSON-file store used when the primary database is unreachable.
    Files (inside data_dir):
      - orders.local.json   {"orders": [...]}    newest first
      - products.local.json {"products": [...]}

    Every write replaces the whole file. Read-modify-write sequences must hold
    `self.lock`; the helpers below do so themselves.
    """
    def __init__(self, data_dir: str | Path):
        self.dir = Path(data_dir)
        self.lock = asyncio.Lock()

    # ---------- persistence ----------
    def _path(self, fname: str) -> Path:
        return self.dir / fname

    def _ensure(self, fname: str, key: str) -> Path:
        path = self._path(fname)
        if not path.exists():
            self.dir.mkdir(parents=True, exist_ok=True)
            self._dump(path, {key: []})
        return path

    def _dump(self, path: Path, doc: Dict[str, Any]) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    def _read(self, fname: str, key: str) -> List[Dict[str, Any]]:
        try:
            path = self._ensure(fname, key)
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, ValueError) as e:
            log.error("local store read failed (%s): %s", fname, e)
            raise StorageError(f"local store unreadable: {fname}") from e
        rows = doc.get(key) if isinstance(doc, dict) else None
        return rows if isinstance(rows, list) else []

    def _write(self, fname: str, key: str, rows: List[Dict[str, Any]]) -> None:
        try:
            self.dir.mkdir(parents=True, exist_ok=True)
            self._dump(self._path(fname), {key: list(rows)})
        except (OSError, TypeError, ValueError) as e:
            log.error("local store write failed (%s): %s", fname, e)
            raise StorageError(f"local store not writable: {fname}") from e

    def read_orders(self) -> List[Dict[str, Any]]:
        return self._read(ORDERS_FILE, "orders")

    def write_orders(self, orders: List[Dict[str, Any]]) -> None:
        self._write(ORDERS_FILE, "orders", orders)

    def read_products(self) -> List[Dict[str, Any]]:
        return self._read(PRODUCTS_FILE, "products")

    def write_products(self, products: List[Dict[str, Any]]) -> None:
        self._write(PRODUCTS_FILE, "products", products)

    # ---------- serialized helpers ----------
    # file I/O runs in a worker thread; the lock keeps read-modify-write sequences whole
    async def snapshot_orders(self) -> List[Dict[str, Any]]:
        async with self.lock:
            return await asyncio.to_thread(self.read_orders)

    async def prepend_order(self, order: Dict[str, Any]) -> None:
        async with self.lock:
            await asyncio.to_thread(self._prepend_order, order)

    async def deduct_product_stock(self, items: List[Dict[str, Any]]) -> int:
        """
        Best-effort stock deduction against the local catalog.

        Only products present in products.local.json are touched. The variant
        whose color_name matches the item's colour is preferred, otherwise the
        first variant. Returns the number of items deducted.
        """
        async with self.lock:
            return await asyncio.to_thread(self._deduct_product_stock, items)

    async def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        async with self.lock:
            order = await asyncio.to_thread(self._set_order_status, order_id, status)
        if order is None:
            raise NotFoundError("Order ID not Found")
        return order

    def _prepend_order(self, order: Dict[str, Any]) -> None:
        orders = self.read_orders()
        orders.insert(0, order)
        self.write_orders(orders)

    def _deduct_product_stock(self, items: List[Dict[str, Any]]) -> int:
        products = self.read_products()
        by_id = {str(p.get("id")): p for p in products}
        touched = 0
        for it in items:
            product = by_id.get(str(it.get("product_id")))
            if product is None:
                continue
            variant = _pick_variant(product, it.get("color_name"))
            if variant is None:
                continue
            try:
                previous = int(variant.get("stock_quantity") or 0)
            except (TypeError, ValueError):
                previous = 0
            variant["stock_quantity"] = max(0, previous - int(it["quantity"]))
            touched += 1
            log.info(
                "local stock %s: %d -> %d",
                it.get("product_id"), previous, variant["stock_quantity"],
            )
        if touched:
            self.write_products(products)
        return touched

    def _set_order_status(self, order_id: str, status: str) -> Optional[Dict[str, Any]]:
        orders = self.read_orders()
        for order in orders:
            if str(order.get("id")) == str(order_id):
                order["status"] = status
                self.write_orders(orders)
                return order
        return None


def _pick_variant(product: Dict[str, Any], color: Optional[str]) -> Optional[Dict[str, Any]]:
    variants = product.get("product_variants")
    if not isinstance(variants, list) or not variants:
        return None
    if color:
        for v in variants:
            if str(v.get("color_name", "")).lower() == str(color).lower():
                return v
    return variants[0]
