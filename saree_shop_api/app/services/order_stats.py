from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple

from ..db.order_store import RemoteOrderStore
from ..errors import RemoteStoreError, StorageError
from ..localstore.json_store import LocalFallbackStore
from ..logger import get_logger

log = get_logger(__name__)

REMOTE_UNAVAILABLE = "Order database unavailable, showing locally stored orders only"
LOCAL_UNAVAILABLE = "Local order store unreadable, showing database orders only"


def _normalize(order: Dict[str, Any]) -> Dict[str, Any]:
    """Give every order nested `items` and a `customer_details` object."""
    details = order.get("customer_details") or {}
    out = dict(order)
    out["customer_details"] = {
        "name": details.get("name", order.get("customer_name")),
        "email": details.get("email", order.get("customer_email")),
        "phone": details.get("phone", order.get("customer_phone")),
    }
    out["items"] = list(order.get("items") or [])
    return out


def _amount(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


async def _gather(
    remote: RemoteOrderStore, local: LocalFallbackStore,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    warnings: List[str] = []
    try:
        local_orders = await local.snapshot_orders()
    except StorageError as e:
        log.error("listing: local store failed: %s", e)
        local_orders = []
        warnings.append(LOCAL_UNAVAILABLE)

    try:
        remote_orders = await remote.list_orders()
    except RemoteStoreError as e:
        log.warning("listing: remote store failed: %s", e)
        remote_orders = []
        warnings.append(REMOTE_UNAVAILABLE)

    # local (fallback) orders are listed ahead of remote ones
    merged = [_normalize(o) for o in local_orders + remote_orders]
    return merged, ("; ".join(warnings) or None)


async def list_orders(
    remote: RemoteOrderStore, local: LocalFallbackStore,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Admin listing: local orders first, then remote. Never raises."""
    return await _gather(remote, local)


def fold_stats(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    stats = {
        "total_orders": len(orders),
        "total_revenue": 0.0,
        "pending_orders": 0,
        "shipping_orders": 0,
        "completed_orders": 0,
    }
    for o in orders:
        stats["total_revenue"] += _amount(o.get("total_amount"))
        if o.get("status") == "Pending" or o.get("payment_status") == "Pending":
            stats["pending_orders"] += 1
        if o.get("status") in ("Shipping", "Shipped"):
            stats["shipping_orders"] += 1
        if o.get("payment_status") == "Delivered":
            stats["completed_orders"] += 1
    stats["total_revenue"] = round(stats["total_revenue"], 2)
    return stats


async def compute_stats(
    remote: RemoteOrderStore, local: LocalFallbackStore,
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Dashboard counters over the same merged list `list_orders` returns.

    When the remote store is down the counters cover the local orders only
    (with a warning) rather than being zeroed, so total_orders always equals
    the listing count.
    """
    orders, warning = await _gather(remote, local)
    return fold_stats(orders), warning
