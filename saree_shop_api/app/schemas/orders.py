from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class CustomerDetailsIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class OrderItemIn(BaseModel):
    product_id: str
    name: Optional[str] = None
    color: Optional[str] = None
    quantity: int = Field(..., gt=0)
    price: float = Field(0.0, ge=0, allow_inf_nan=False)

    model_config = ConfigDict(coerce_numbers_to_str=True)


class PlaceOrderIn(BaseModel):
    # keys match the storefront's checkout payload exactly
    customer_details: Optional[CustomerDetailsIn] = None
    shipping_address: Optional[Union[str, Dict[str, Any]]] = None
    items: List[OrderItemIn] = Field(default_factory=list)
    total_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class StatusUpdateIn(BaseModel):
    status: Optional[str] = None


class PaymentSessionOut(BaseModel):
    paymentId: str
    sessionId: str
    orderId: str
    amount: float
    expiresAt: str
    methods: List[str]


class PlacedOrderOut(BaseModel):
    success: bool = True
    orderId: str
    order_id: str
    orderNumber: str
    total: float
    paymentSession: PaymentSessionOut
    storage: str
    warning: Optional[str] = None


class OrderStatsOut(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    pending_orders: int = 0
    shipping_orders: int = 0
    completed_orders: int = 0
