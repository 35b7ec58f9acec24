"""Postgres backed order store: orders, order_items and product_variants."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import asyncpg

from . import PoolHolder
from ..errors import NotFoundError, RemoteStoreError
from ..logger import get_logger

log = get_logger(__name__)

_REMOTE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)

_ORDER_COLUMNS = """
    id::text AS id, customer_name, customer_email, customer_phone,
    shipping_address, total_amount, status, payment_status, payment_method,
    created_at
"""


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _money(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def _row_to_dict(row) -> Dict[str, Any]:
    return {k: _plain(v) for k, v in dict(row).items()}


class RemoteOrderStore:
    """
    Thin asyncpg wrapper around the primary order tables.

    Every database failure surfaces as RemoteStoreError so callers can decide
    whether to fall back; NotFoundError is raised for missing orders.
    """

    def __init__(self, pool: PoolHolder):
        self._pool = pool

    @property
    def configured(self) -> bool:
        return self._pool.configured

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        pool = await self._pool.get_pool()
        try:
            async with pool.acquire() as conn:
                yield conn
        except _REMOTE_ERRORS as e:
            raise RemoteStoreError(f"{type(e).__name__}: {e}") from e

    async def create_order(
        self, header: Dict[str, Any], items: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Insert the order header and all of its items in one transaction.

        Returns the inserted order row (with its store-generated id and
        created_at) and the items as written.
        """
        async with self._connection() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO orders (customer_name, customer_email, customer_phone,
                                        shipping_address, total_amount, status,
                                        payment_status, payment_method)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {_ORDER_COLUMNS}, id AS pk
                    """,
                    header.get("customer_name"),
                    header.get("customer_email"),
                    header["customer_phone"],
                    header.get("shipping_address"),
                    _money(header.get("total_amount")),
                    header["status"],
                    header["payment_status"],
                    header["payment_method"],
                )
                order = _row_to_dict(row)
                pk = order.pop("pk", order["id"])
                log.info("order header inserted id=%s", order["id"])

                rows = [
                    (
                        pk,
                        it["product_id"],
                        it.get("product_name"),
                        it.get("color_name"),
                        it["quantity"],
                        _money(it.get("price_at_purchase")),
                    )
                    for it in items
                ]
                await conn.executemany(
                    """
                    INSERT INTO order_items (order_id, product_id, product_name,
                                             color_name, quantity, price_at_purchase)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    """,
                    rows,
                )
                log.info("order %s: %d item(s) inserted", order["id"], len(rows))

        order["items"] = [{**it, "order_id": order["id"]} for it in items]
        return order

    async def deduct_stock(
        self, product_id: str, quantity: int, color_name: Optional[str] = None,
    ) -> Optional[Tuple[int, int]]:
        """
        Lower a product variant's stock by `quantity`, never below zero.

        The variant whose color_name matches (case-insensitive) is preferred,
        otherwise the product's first variant by id, same as the local store.
        Returns (previous, new) or None when the product has no variant row.
        The read and write run in one short transaction with the row locked.
        """
        async with self._connection() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """
                    SELECT id, stock_quantity FROM product_variants
                    WHERE product_id::text = $1
                    ORDER BY (lower(color_name) = lower($2::text)) DESC NULLS LAST, id
                    LIMIT 1
                    FOR UPDATE
                    """,
                    str(product_id),
                    color_name,
                )
                if row is None:
                    return None
                previous = int(row["stock_quantity"] or 0)
                new = max(0, previous - int(quantity))
                await conn.execute(
                    "UPDATE product_variants SET stock_quantity = $2 WHERE id = $1",
                    row["id"],
                    new,
                )
        return previous, new

    async def list_orders(self) -> List[Dict[str, Any]]:
        """All orders, newest first, each with its nested items."""
        async with self._connection() as conn:
            orders = await conn.fetch(
                f"SELECT {_ORDER_COLUMNS} FROM orders ORDER BY created_at DESC"
            )
            ids = [r["id"] for r in orders]
            items = await conn.fetch(
                """
                SELECT order_id::text AS order_id, product_id::text AS product_id,
                       product_name, color_name, quantity, price_at_purchase
                FROM order_items
                WHERE order_id::text = ANY($1::text[])
                """,
                ids,
            ) if ids else []

        by_order: Dict[str, List[Dict[str, Any]]] = {}
        for it in items:
            by_order.setdefault(it["order_id"], []).append(_row_to_dict(it))

        out = []
        for r in orders:
            order = _row_to_dict(r)
            order["items"] = by_order.get(order["id"], [])
            out.append(order)
        return out

    async def update_status(self, order_id: str, status: str) -> Dict[str, Any]:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE orders SET status = $2
                WHERE id::text = $1
                RETURNING {_ORDER_COLUMNS}
                """,
                str(order_id),
                status,
            )
        if row is None:
            raise NotFoundError("Order ID not Found")
        return _row_to_dict(row)

    async def close(self) -> None:
        await self._pool.close()
