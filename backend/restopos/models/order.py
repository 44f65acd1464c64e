"""Order-taking models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restopos.db.base import Base, TimestampMixin, enum_column
from restopos.models.cart import CartLineMixin, OrderType, PaymentMode


class OrderStatus(str, Enum):
    """Status of a floor order: running -> completed | cancelled."""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base, TimestampMixin):
    """An order taken on the floor or at the counter."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    temp_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[OrderStatus] = enum_column(OrderStatus, default=OrderStatus.RUNNING, nullable=False)
    order_type: Mapped[OrderType] = enum_column(OrderType, default=OrderType.DINE_IN, nullable=False)
    table_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    steward_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    steward_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Customer (optional on orders)
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    service_charge: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    # Payment, recorded when the order is billed
    payment_mode: Mapped[Optional[PaymentMode]] = enum_column(PaymentMode, nullable=True)
    paid_cash: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    paid_card: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    paid_upi: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    return_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    due_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    # Offline capture
    is_offline: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    synced: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    lines: Mapped[List["OrderLine"]] = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class OrderLine(Base, CartLineMixin):
    """One cart line on an order."""

    __tablename__ = "order_lines"

    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    order: Mapped["Order"] = relationship("Order", back_populates="lines")
