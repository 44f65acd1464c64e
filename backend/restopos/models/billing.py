"""Billing models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restopos.db.base import Base, TimestampMixin, enum_column
from restopos.models.cart import CartLineMixin, OrderType, PaymentMode


class BillStatus(str, Enum):
    """Status of a bill.

    draft -> pending (amount still due) -> paid
    draft -> paid
    """

    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Bill(Base, TimestampMixin):
    """A customer bill with its cart snapshot, totals and payment split."""

    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(primary_key=True)
    billing_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[BillStatus] = enum_column(BillStatus, default=BillStatus.DRAFT, nullable=False)
    order_type: Mapped[OrderType] = enum_column(OrderType, default=OrderType.DINE_IN, nullable=False)

    # Customer
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    table_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Payment
    payment_mode: Mapped[PaymentMode] = enum_column(PaymentMode, default=PaymentMode.CASH, nullable=False)
    paid_cash: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    paid_card: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    paid_upi: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    due_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    service_charge: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    lines: Mapped[List["BillLine"]] = relationship(
        "BillLine",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillLine.position",
    )

    @property
    def is_draft(self) -> bool:
        return self.status == BillStatus.DRAFT


class BillLine(Base, CartLineMixin):
    """One cart line on a bill."""

    __tablename__ = "bill_lines"

    bill_id: Mapped[int] = mapped_column(
        ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True
    )

    bill: Mapped["Bill"] = relationship("Bill", back_populates="lines")
