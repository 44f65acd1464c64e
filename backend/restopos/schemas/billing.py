"""Billing schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from restopos.models.billing import BillStatus
from restopos.models.cart import OrderType, PaymentMode
from restopos.schemas.cart import CartLineIn, CartLineResponse, CustomerIn, PaymentSplitIn
from restopos.schemas.common import CamelModel


class BillCreate(CamelModel):
    """Create or update payload. ``finalize`` settles inventory and locks the bill."""

    cart: List[CartLineIn] = []
    order_type: Optional[str] = None
    customer: Optional[CustomerIn] = None
    payment_method: Optional[str] = None
    payment: PaymentSplitIn = Field(
        default_factory=PaymentSplitIn,
        validation_alias=AliasChoices("payment", "split"),
    )
    finalize: bool = False
    tax_rate: Optional[Decimal] = None
    discount: Decimal = Decimal("0")
    service_charge: Decimal = Decimal("0")
    order_id: Optional[int] = None


class BillUpdate(BillCreate):
    pass


class PaymentTopUp(CamelModel):
    payment: PaymentSplitIn = Field(
        default_factory=PaymentSplitIn,
        validation_alias=AliasChoices("payment", "split"),
    )


class BillResponse(CamelModel):
    id: int
    billing_number: str
    order_id: Optional[int] = None
    status: BillStatus
    order_type: OrderType
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    table_number: Optional[str] = None
    delivery_address: Optional[str] = None
    payment_mode: PaymentMode
    paid_cash: float
    paid_card: float
    paid_upi: float
    total_paid: float
    due_amount: float
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    service_charge: float
    total: float
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    finalized_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    lines: List[CartLineResponse] = []
