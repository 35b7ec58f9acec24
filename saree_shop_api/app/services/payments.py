from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

PAYMENT_METHODS = ["cod", "upi"]


def create_payment_session(order_id: str, total: float, ttl_minutes: int = 15) -> Dict[str, Any]:
    """
    Placeholder payment envelope returned with every placed order.

    No gateway is called; orders are cash-on-delivery until one is integrated.
    """
    expires = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)
    return {
        "paymentId": f"pay_{uuid.uuid4().hex[:16]}",
        "sessionId": f"sess_{uuid.uuid4().hex[:24]}",
        "orderId": order_id,
        "amount": total,
        "expiresAt": expires.isoformat(),
        "methods": list(PAYMENT_METHODS),
    }
