from __future__ import annotations

import json
import re
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..db.order_store import RemoteOrderStore
from ..errors import LocalOnlyProduct, RemoteStoreError, StorageError, ValidationError
from ..localstore.json_store import LocalFallbackStore
from ..logger import get_logger
from ..schemas.orders import PlaceOrderIn
from ..settings import Settings, settings
from .payments import create_payment_session

log = get_logger(__name__)

LOCAL_ORDER_PREFIX = "local-order-"
_BASE36 = string.ascii_lowercase + string.digits


def _now():
    return datetime.now(timezone.utc)


def _local_order_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{LOCAL_ORDER_PREFIX}{int(time.time() * 1000)}-{suffix}"


def order_number_for(order_id: Any) -> str:
    """Human-facing order code: ORD- plus the last 8 alphanumerics of the id."""
    tail = re.sub(r"[^0-9A-Za-z]", "", str(order_id))[-8:]
    return f"ORD-{tail.upper().rjust(8, '0')}"


def _item_rows(body: PlaceOrderIn) -> List[Dict[str, Any]]:
    return [
        {
            "product_id": it.product_id,
            "product_name": it.name,
            "color_name": it.color,
            "quantity": it.quantity,
            "price_at_purchase": it.price,
        }
        for it in body.items
    ]


def _resolve_total(client_total: float | None, items: List[Dict[str, Any]], cfg: Settings) -> float:
    computed = round(sum(float(it["price_at_purchase"] or 0) * it["quantity"] for it in items), 2)
    if client_total is None:
        return computed
    if abs(float(client_total) - computed) > 0.005:
        log.warning("client total %.2f differs from item total %.2f", client_total, computed)
        if cfg.enforce_server_total:
            return computed
    return float(client_total)


def _validate(body: PlaceOrderIn) -> str:
    phone = ((body.customer_details and body.customer_details.phone) or "").strip()
    if not phone:
        raise ValidationError("phone missing")
    if not body.items:
        raise ValidationError("empty order")
    return phone


async def _deduct_remote_stock(remote: RemoteOrderStore, order_id: str, items: List[Dict[str, Any]]) -> None:
    for it in items:
        try:
            result = await remote.deduct_stock(it["product_id"], it["quantity"], it["color_name"])
        except RemoteStoreError as e:
            log.error("order %s: stock deduction failed for %s: %s", order_id, it["product_id"], e)
            continue
        if result is None:
            log.warning("order %s: no variant for product %s, stock untouched", order_id, it["product_id"])
            continue
        log.info("order %s: stock %s %d -> %d", order_id, it["product_id"], *result)


async def _place_locally(
    local: LocalFallbackStore, header: Dict[str, Any], items: List[Dict[str, Any]],
) -> Dict[str, Any]:
    order_id = _local_order_id()
    order = {
        "id": order_id,
        "orderNumber": order_number_for(order_id),
        **header,
        "customer_details": {
            "name": header["customer_name"],
            "email": header["customer_email"],
            "phone": header["customer_phone"],
        },
        "created_at": _now().isoformat(),
        "items": [{**it, "order_id": order_id} for it in items],
    }
    await local.prepend_order(order)
    log.info("order %s saved to local store", order_id)

    try:
        touched = await local.deduct_product_stock(items)
        log.info("order %s: local stock deducted for %d item(s)", order_id, touched)
    except StorageError as e:
        log.error("order %s: local stock deduction failed: %s", order_id, e)
    return order


async def place_order(
    body: PlaceOrderIn,
    remote: RemoteOrderStore,
    local: LocalFallbackStore,
    cfg: Settings = settings,
) -> Dict[str, Any]:
    """
    Accept an order: write it to the remote store (header + items, then
    per-item stock deduction), or to the local store when the remote store
    fails or the order names local-only products.

    The order ends up in exactly one store. Only a local store failure
    escapes as an error (StorageError).
    """
    phone = _validate(body)
    customer = body.customer_details
    items = _item_rows(body)
    total = _resolve_total(body.total_amount, items, cfg)

    address = body.shipping_address
    header = {
        "customer_name": customer.name,
        "customer_email": customer.email,
        "customer_phone": phone,
        "shipping_address": address,
        "total_amount": total,
        "status": "Pending",
        "payment_status": "Pending",
        "payment_method": "COD",
    }
    log.info("placing order for phone=%s with %d item(s), total=%.2f", phone, len(items), total)

    storage = "remote"
    try:
        local_only = [it["product_id"] for it in items
                      if it["product_id"].startswith(cfg.local_product_prefix)]
        if local_only:
            raise LocalOnlyProduct(local_only)
        remote_header = dict(header)
        if isinstance(address, dict):
            remote_header["shipping_address"] = json.dumps(address, ensure_ascii=False)
        order = await remote.create_order(remote_header, items)
    except LocalOnlyProduct as e:
        log.info("%s; using local store", e)
        order = await _place_locally(local, header, items)
        storage = "local"
    except RemoteStoreError as e:
        log.warning("remote order insert failed (%s); falling back to local store", e)
        order = await _place_locally(local, header, items)
        storage = "local"
    else:
        log.info("order %s saved to remote store", order["id"])
        await _deduct_remote_stock(remote, order["id"], items)

    order_id = str(order["id"])
    out = {
        "success": True,
        "orderId": order_id,
        "order_id": order_id,
        "orderNumber": order_number_for(order_id),
        "total": total,
        "paymentSession": create_payment_session(order_id, total, cfg.payment_session_ttl_minutes),
        "storage": storage,
    }
    if storage == "local":
        out["warning"] = "Order database unavailable, order saved locally"
    return out


async def update_order_status(
    order_id: str,
    status: str | None,
    remote: RemoteOrderStore,
    local: LocalFallbackStore,
) -> Dict[str, Any]:
    """Set an order's workflow status in whichever store holds it."""
    status = (status or "").strip()
    if not status:
        raise ValidationError("status is required")

    if str(order_id).startswith(LOCAL_ORDER_PREFIX):
        order = await local.update_order_status(order_id, status)
    else:
        order = await remote.update_status(order_id, status)
    log.info("order %s status -> %s", order_id, status)
    return order
