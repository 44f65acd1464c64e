"""Order-taking schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from restopos.models.cart import OrderType, PaymentMode
from restopos.models.order import OrderStatus
from restopos.schemas.cart import CartLineIn, CartLineResponse, CustomerIn, PaymentSplitIn
from restopos.schemas.common import CamelModel


class OrderSave(CamelModel):
    """Running-order payload from the till. With ``finalize`` the order is billed at once."""

    order_id: Optional[int] = None
    order_number: Optional[str] = None
    temp_order_id: Optional[str] = None
    order_type: str = "dine-in"
    table_number: Optional[str] = None
    steward_id: Optional[int] = None
    steward_name: Optional[str] = None
    customer: Optional[CustomerIn] = None
    items: List[CartLineIn] = Field(default=[], validation_alias=AliasChoices("items", "cart", "lines"))
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    service_charge: Decimal = Decimal("0")
    notes: Optional[str] = None
    is_offline: bool = False
    finalize: bool = False
    payment_mode: Optional[str] = None
    split: PaymentSplitIn = Field(
        default_factory=PaymentSplitIn,
        validation_alias=AliasChoices("split", "payment"),
    )


class GenerateBill(CamelModel):
    order_id: int
    payment_mode: Optional[str] = None
    split: PaymentSplitIn = Field(
        default_factory=PaymentSplitIn,
        validation_alias=AliasChoices("split", "payment"),
    )


class CancelOrder(CamelModel):
    reason: Optional[str] = None


class SyncOrders(CamelModel):
    orders: List[OrderSave] = []


class OrderResponse(CamelModel):
    id: int
    order_number: str
    temp_order_id: Optional[str] = None
    status: OrderStatus
    order_type: OrderType
    table_number: Optional[str] = None
    steward_id: Optional[int] = None
    steward_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    subtotal: float
    tax: float
    discount: float
    service_charge: float
    grand_total: float
    payment_mode: Optional[PaymentMode] = None
    paid_cash: float
    paid_card: float
    paid_upi: float
    total_paid: float
    return_amount: float
    due_amount: float
    is_offline: bool
    synced: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    lines: List[CartLineResponse] = []
