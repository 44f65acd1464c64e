"""Stock item, batch and wastage schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_validator

from restopos.core.units import QUANTITY_SCALE, StockUnit
from restopos.models.inventory import StockCategory, StorageLocation, SyncStatus
from restopos.db.base import LifecycleState
from restopos.schemas.common import CamelModel


class BatchIn(CamelModel):
    """Stock receipt schema."""

    batch_number: Optional[str] = Field(default=None, max_length=64)
    quantity: Decimal = Field(gt=0, decimal_places=QUANTITY_SCALE)
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.purchase_date and self.expiry_date and self.expiry_date < self.purchase_date:
            raise ValueError("Expiry date cannot be before purchase date")
        return self


class BatchCorrection(CamelModel):
    """Correction of an existing batch, addressed by its batch number."""

    batch_number: str
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None


class StockItemCreate(CamelModel):
    """Stock item creation schema."""

    name: str = Field(min_length=1, max_length=200)
    category: StockCategory = StockCategory.GENERAL
    unit: StockUnit
    storage_location: StorageLocation = StorageLocation.DRY_STORAGE
    supplier_name: Optional[str] = Field(default=None, max_length=200)
    reorder_level: Decimal = Field(default=Decimal("0"), ge=0)
    batches: List[BatchIn] = []


class StockItemUpdate(CamelModel):
    """Stock item update schema. The canonical unit is fixed once batches exist."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[StockCategory] = None
    unit: Optional[StockUnit] = None
    storage_location: Optional[StorageLocation] = None
    supplier_name: Optional[str] = Field(default=None, max_length=200)
    reorder_level: Optional[Decimal] = Field(default=None, ge=0)
    batches: List[BatchCorrection] = []


class WastageIn(CamelModel):
    quantity: Decimal = Field(gt=0, decimal_places=QUANTITY_SCALE)
    reason: str = Field(min_length=1)


class BatchResponse(CamelModel):
    id: int
    batch_number: str
    quantity: float
    cost_price: float
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    sync_status: SyncStatus
    created_at: datetime


class WastageResponse(CamelModel):
    id: int
    quantity: float
    reason: str
    recorded_by: Optional[int] = None
    recorded_at: datetime


class StockItemResponse(CamelModel):
    """Stock item with its batches, oldest first, and derived figures."""

    id: int
    name: str
    category: StockCategory
    unit: StockUnit
    storage_location: StorageLocation
    supplier_name: Optional[str] = None
    reorder_level: float
    state: LifecycleState
    total_quantity: float
    stock_value: float
    needs_reorder: bool
    last_updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    batches: List[BatchResponse] = []
