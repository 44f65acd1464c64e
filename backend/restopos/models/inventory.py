"""Inventory models: stock items, their purchase batches and wastage log."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from restopos.core.units import QUANTITY_SCALE, StockUnit
from restopos.db.base import Base, LifecycleMixin, TimestampMixin, enum_column
from restopos.models.validators import non_negative, positive


class StockCategory(str, Enum):
    SPICES = "spices"
    MEAT = "meat"
    VEGETABLES = "vegetables"
    DAIRY = "dairy"
    BEVERAGES = "beverages"
    GRAINS = "grains"
    PACKAGED = "packaged"
    GENERAL = "general"


class StorageLocation(str, Enum):
    DRY_STORAGE = "dry-storage"
    REFRIGERATOR = "refrigerator"
    FREEZER = "freezer"
    COUNTER = "counter"
    OTHER = "other"


class SyncStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"


class StockItem(Base, TimestampMixin, LifecycleMixin):
    """An ingredient tracked in its canonical unit across purchase batches."""

    __tablename__ = "stock_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category: Mapped[StockCategory] = enum_column(
        StockCategory, default=StockCategory.GENERAL, nullable=False
    )
    unit: Mapped[StockUnit] = enum_column(StockUnit, nullable=False)
    storage_location: Mapped[StorageLocation] = enum_column(
        StorageLocation, default=StorageLocation.DRY_STORAGE, nullable=False
    )
    supplier_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    reorder_level: Mapped[Decimal] = mapped_column(Numeric(14, QUANTITY_SCALE), default=0, nullable=False)
    last_updated_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    batches: Mapped[List["StockBatch"]] = relationship(
        "StockBatch",
        back_populates="stock_item",
        cascade="all, delete-orphan",
        order_by="StockBatch.id",
    )
    wastage: Mapped[List["WastageEntry"]] = relationship(
        "WastageEntry",
        back_populates="stock_item",
        cascade="all, delete-orphan",
        order_by="WastageEntry.id",
    )

    @validates("reorder_level")
    def _validate_reorder_level(self, key, value):
        return non_negative(key, value)

    @property
    def total_quantity(self) -> Decimal:
        return sum((b.quantity for b in self.batches), Decimal("0"))

    @property
    def stock_value(self) -> Decimal:
        return sum((b.quantity * b.cost_price for b in self.batches), Decimal("0"))

    @property
    def needs_reorder(self) -> bool:
        return self.total_quantity <= self.reorder_level


class StockBatch(Base):
    """A lot of stock received at one time."""

    __tablename__ = "stock_batches"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_item_id: Mapped[int] = mapped_column(
        ForeignKey("stock_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    batch_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, QUANTITY_SCALE), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    sync_status: Mapped[SyncStatus] = enum_column(
        SyncStatus, default=SyncStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    stock_item: Mapped["StockItem"] = relationship("StockItem", back_populates="batches")

    @validates("quantity", "cost_price")
    def _validate_non_negative(self, key, value):
        return non_negative(key, value)


class WastageEntry(Base):
    """Stock written off as spoiled, spilled or otherwise unusable."""

    __tablename__ = "wastage_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_item_id: Mapped[int] = mapped_column(
        ForeignKey("stock_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, QUANTITY_SCALE), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    recorded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    stock_item: Mapped["StockItem"] = relationship("StockItem", back_populates="wastage")

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return positive(key, value)
