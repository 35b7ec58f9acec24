from __future__ import annotations
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..db.order_store import RemoteOrderStore
from ..deps import get_local_store, get_remote_store
from ..localstore.json_store import LocalFallbackStore
from ..schemas.orders import OrderStatsOut, PlaceOrderIn, PlacedOrderOut, StatusUpdateIn
from ..services.order_stats import compute_stats, list_orders
from ..services.orders import place_order, update_order_status


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=201, response_model=PlacedOrderOut)
@router.post("/", status_code=201, response_model=PlacedOrderOut, include_in_schema=False)
async def place_order_endpoint(
    body: PlaceOrderIn,
    remote: RemoteOrderStore = Depends(get_remote_store),
    local: LocalFallbackStore = Depends(get_local_store),
):
    result = await place_order(body, remote, local)
    out = PlacedOrderOut(**result).model_dump(exclude_none=True)
    # lets clients notice degraded mode without parsing the id
    return JSONResponse(status_code=201, content=out,
                        headers={"X-Order-Storage": result["storage"]})


@router.get("/admin")
async def list_orders_endpoint(
    remote: RemoteOrderStore = Depends(get_remote_store),
    local: LocalFallbackStore = Depends(get_local_store),
):
    """
    Every order for the admin UI, local fallback orders first.
    Degrades to whatever store is readable, with a `warning`.
    """
    orders, warning = await list_orders(remote, local)
    out = {"success": True, "count": len(orders), "data": orders}
    if warning:
        out["warning"] = warning
    return out


@router.get("/stats")
async def order_stats_endpoint(
    remote: RemoteOrderStore = Depends(get_remote_store),
    local: LocalFallbackStore = Depends(get_local_store),
):
    stats, warning = await compute_stats(remote, local)
    stats = OrderStatsOut(**stats).model_dump()
    # `stats` duplicates `data` for older dashboard builds
    out = {"success": True, "data": stats, "stats": stats}
    if warning:
        out["warning"] = warning
    return out


@router.put("/{order_id}/status")
async def update_status_endpoint(
    order_id: str,
    body: StatusUpdateIn,
    remote: RemoteOrderStore = Depends(get_remote_store),
    local: LocalFallbackStore = Depends(get_local_store),
):
    order = await update_order_status(order_id, body.status, remote, local)
    return {"success": True, "message": "Order status updated", "data": order}
