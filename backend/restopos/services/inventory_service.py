"""Inventory Service - stock items, stock receipts, corrections and wastage."""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from restopos.core.exceptions import ConflictError, NotFoundError, POSError, ValidationError
from restopos.core.units import quantize_quantity
from restopos.models.inventory import StockBatch, StockCategory, StockItem, WastageEntry
from restopos.schemas.inventory import BatchIn, StockItemCreate, StockItemUpdate, WastageIn
from restopos.services.batch_ledger import BatchLedger, prune_depleted, snapshot
from restopos.services.numbering import batch_number as new_batch_number

logger = logging.getLogger(__name__)


class InventoryService:
    """CRUD over stock items plus the batch-level operations."""

    def __init__(self, db: Session):
        self.db = db

    # ===== Queries =====

    def _query(self):
        return self.db.query(StockItem).options(selectinload(StockItem.batches))

    def get_item(self, item_id: int, include_retired: bool = False) -> StockItem:
        query = self._query().filter(StockItem.id == item_id)
        if not include_retired:
            query = query.filter(StockItem.active())
        item = query.first()
        if not item:
            raise NotFoundError("Inventory item not found")
        return item

    def list_items(
        self,
        search: Optional[str] = None,
        category: Optional[StockCategory] = None,
        low_stock: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[StockItem], int]:
        query = self._query().filter(StockItem.active())
        if search:
            query = query.filter(StockItem.name.ilike(f"%{search}%"))
        if category is not None:
            query = query.filter(StockItem.category == category)
        items = query.order_by(StockItem.name).all()
        # Quantities live on the batches, so the reorder filter runs in Python.
        if low_stock:
            items = [item for item in items if item.needs_reorder]
        return items[skip:skip + limit], len(items)

    def low_stock(self) -> List[StockItem]:
        items = self._query().filter(StockItem.active()).order_by(StockItem.name).all()
        return [item for item in items if item.needs_reorder]

    def batches_oldest_first(self, item_id: int) -> List[StockBatch]:
        item = self.get_item(item_id)
        order = {state.batch_number: i for i, state in enumerate(snapshot(item.batches))}
        return sorted(item.batches, key=lambda b: order[b.batch_number])

    # ===== Commands =====

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(StockItem.id).filter(
            StockItem.active(),
            func.lower(StockItem.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(StockItem.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"Inventory item '{name.strip()}' already exists")

    def _ensure_unique_batch_number(self, number: str) -> None:
        if self.db.query(StockBatch.id).filter(StockBatch.batch_number == number).first():
            raise ConflictError(f"Batch number '{number}' already exists")

    def _new_batch(self, data: BatchIn) -> StockBatch:
        number = (data.batch_number or "").strip() or new_batch_number()
        self._ensure_unique_batch_number(number)
        return StockBatch(
            batch_number=number,
            quantity=data.quantity,
            cost_price=data.cost_price,
            purchase_date=data.purchase_date or date.today(),
            expiry_date=data.expiry_date,
        )

    def _commit(self, item: StockItem) -> StockItem:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error saving inventory item '{item.name}': {e}")
            raise ConflictError("Duplicate batch number or inventory item")
        self.db.refresh(item)
        return item

    def create_item(self, payload: StockItemCreate, actor_id: Optional[int] = None) -> StockItem:
        try:
            self._ensure_unique_name(payload.name)
            numbers = [b.batch_number.strip() for b in payload.batches if b.batch_number]
            if len(numbers) != len(set(numbers)):
                raise ConflictError("Duplicate batch numbers in request")
            item = StockItem(
                name=payload.name.strip(),
                category=payload.category,
                unit=payload.unit,
                storage_location=payload.storage_location,
                supplier_name=payload.supplier_name,
                reorder_level=payload.reorder_level,
                last_updated_by=actor_id,
                batches=[self._new_batch(b) for b in payload.batches],
            )
            self.db.add(item)
        except POSError:
            self.db.rollback()
            raise
        item = self._commit(item)
        logger.info(f"Created inventory item '{item.name}' with {len(item.batches)} batches")
        return item

    def update_item(self, item_id: int, payload: StockItemUpdate, actor_id: Optional[int] = None) -> StockItem:
        item = self.get_item(item_id)
        data = payload.model_dump(exclude_unset=True, exclude={"batches"})

        if "name" in data and data["name"] is not None:
            self._ensure_unique_name(data["name"], exclude_id=item.id)
            data["name"] = data["name"].strip()
        if data.get("unit") is not None and data["unit"] != item.unit and item.batches:
            raise ValidationError("Unit cannot be changed while the item has stock batches")

        for key, value in data.items():
            if value is not None:
                setattr(item, key, value)

        if payload.batches:
            by_number = {b.batch_number: b for b in item.batches}
            for correction in payload.batches:
                batch = by_number.get(correction.batch_number)
                if batch is None:
                    raise NotFoundError(f"Batch not found: {correction.batch_number}")
                if correction.quantity is not None:
                    batch.quantity = correction.quantity
                if correction.cost_price is not None:
                    batch.cost_price = correction.cost_price
                if correction.expiry_date is not None:
                    batch.expiry_date = correction.expiry_date
            removed = prune_depleted(item)
            if removed:
                logger.info(f"Removed {removed} depleted batches from '{item.name}'")

        item.last_updated_by = actor_id
        return self._commit(item)

    def retire_item(self, item_id: int) -> None:
        item = self.get_item(item_id)
        item.retire()
        self.db.commit()
        logger.info(f"Retired inventory item '{item.name}'")

    def add_batch(self, item_id: int, payload: BatchIn, actor_id: Optional[int] = None) -> StockBatch:
        item = self.get_item(item_id)
        batch = self._new_batch(payload)
        item.batches.append(batch)
        item.last_updated_by = actor_id
        self._commit(item)
        self.db.refresh(batch)
        logger.info(
            f"Received batch {batch.batch_number} of {batch.quantity} {item.unit.value} "
            f"for '{item.name}'"
        )
        return batch

    def record_wastage(self, item_id: int, payload: WastageIn, actor_id: Optional[int] = None) -> WastageEntry:
        """Log wastage and take it out of the oldest batches."""
        item = self.get_item(item_id)
        ledger = BatchLedger(item)
        amount = quantize_quantity(payload.quantity)
        try:
            ledger.deduct(amount)
        except POSError:
            self.db.rollback()
            raise
        ledger.apply(actor_id)

        entry = WastageEntry(
            quantity=amount,
            reason=payload.reason.strip(),
            recorded_by=actor_id,
        )
        item.wastage.append(entry)
        self._commit(item)
        self.db.refresh(entry)
        logger.info(f"Wastage of {payload.quantity} {item.unit.value} recorded for '{item.name}'")
        if item.needs_reorder:
            logger.warning(
                f"REORDER ALERT: '{item.name}' at {item.total_quantity} {item.unit.value} "
                f"(reorder level {item.reorder_level})"
            )
        return entry


def get_inventory_service(db: Session) -> InventoryService:
    return InventoryService(db)
