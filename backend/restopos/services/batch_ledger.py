"""Batch Ledger - oldest-first stock consumption over one stock item's batches.

The ledger works on immutable ``BatchState`` snapshots so a failed deduction
never leaves a half-updated batch list behind. Only ``BatchLedger.apply()``
writes the staged result back onto the ORM rows.

Ordering: batches are consumed by purchase date, oldest first. A batch
without a purchase date is ordered by its creation time instead.

Quantities are held at the stored column scale, so what a deduction takes
in memory is exactly what gets persisted.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from restopos.core.exceptions import InsufficientStockError
from restopos.core.units import quantize_quantity
from restopos.models.inventory import StockBatch, StockItem

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BatchState:
    """Quantity of one batch at a point in time."""

    batch_number: str
    quantity: Decimal
    received_at: datetime
    batch_id: Optional[int] = None


@dataclass(frozen=True)
class BatchConsumption:
    """Amount taken from one batch by a deduction."""

    batch_number: str
    quantity: Decimal
    depleted: bool
    batch_id: Optional[int] = None


@dataclass(frozen=True)
class LedgerDeduction:
    required: Decimal
    remaining: Tuple[BatchState, ...]
    consumed: Tuple[BatchConsumption, ...]


def _naive_utc(value) -> datetime:
    """Normalize dates and aware/naive datetimes to comparable naive UTC datetimes."""
    if value is None:
        return datetime.max
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def received_at(batch: StockBatch) -> datetime:
    """Ordering key for oldest-first consumption."""
    if batch.purchase_date is not None:
        return _naive_utc(batch.purchase_date)
    return _naive_utc(batch.created_at)


def _sort_key(state: BatchState):
    return (state.received_at, state.batch_id or 0, state.batch_number)


def snapshot(batches: Iterable[StockBatch]) -> Tuple[BatchState, ...]:
    """Capture the current batches as states, oldest first."""
    states = [
        BatchState(
            batch_number=b.batch_number,
            quantity=quantize_quantity(b.quantity),
            received_at=received_at(b),
            batch_id=b.id,
        )
        for b in batches
    ]
    return tuple(sorted(states, key=_sort_key))


def total_on_hand(states: Iterable[BatchState]) -> Decimal:
    return sum((s.quantity for s in states), ZERO)


def deduct_oldest_first(
    states: Sequence[BatchState],
    required: Decimal,
    stock_item_name: str = "",
    unit: str = "",
    stock_item_id: Optional[int] = None,
) -> LedgerDeduction:
    """Take ``required`` from the oldest batches first.

    ``required`` is rounded half up to the stored scale first.
    Returns the new batch list (depleted batches removed) and what was taken
    from each batch. Raises ``InsufficientStockError`` carrying the shortfall
    when the batches cannot cover ``required``; ``states`` is never modified.
    """
    if required < 0:
        raise ValueError(f"Deduction quantity cannot be negative, got {required}")
    required = quantize_quantity(required)

    available = total_on_hand(states)
    if required > available:
        raise InsufficientStockError(
            stock_item_name=stock_item_name,
            required=required,
            available=available,
            unit=unit,
            stock_item_id=stock_item_id,
        )

    remaining_to_deduct = required
    remaining: List[BatchState] = []
    consumed: List[BatchConsumption] = []

    for state in sorted(states, key=_sort_key):
        if remaining_to_deduct <= 0 or state.quantity <= 0:
            if state.quantity > 0:
                remaining.append(state)
            continue

        taken = min(state.quantity, remaining_to_deduct)
        left = state.quantity - taken
        remaining_to_deduct -= taken
        consumed.append(BatchConsumption(
            batch_number=state.batch_number,
            quantity=taken,
            depleted=left == 0,
            batch_id=state.batch_id,
        ))
        if left > 0:
            remaining.append(BatchState(
                batch_number=state.batch_number,
                quantity=left,
                received_at=state.received_at,
                batch_id=state.batch_id,
            ))

    return LedgerDeduction(required=required, remaining=tuple(remaining), consumed=tuple(consumed))


class BatchLedger:
    """Staged deductions against one stock item.

    ``deduct()`` may be called several times (one per recipe ingredient that
    uses this item); each call validates against what earlier calls left.
    Nothing touches the database until ``apply()``.
    """

    def __init__(self, stock_item: StockItem):
        self.stock_item = stock_item
        self._states: Tuple[BatchState, ...] = snapshot(stock_item.batches)
        self._consumed: List[BatchConsumption] = []

    @property
    def states(self) -> Tuple[BatchState, ...]:
        return self._states

    @property
    def consumed(self) -> Tuple[BatchConsumption, ...]:
        return tuple(self._consumed)

    @property
    def has_changes(self) -> bool:
        return bool(self._consumed)

    def total_on_hand(self) -> Decimal:
        return total_on_hand(self._states)

    def deduct(self, required: Decimal) -> Tuple[BatchState, ...]:
        unit = getattr(self.stock_item.unit, "value", self.stock_item.unit)
        result = deduct_oldest_first(
            self._states,
            required,
            stock_item_name=self.stock_item.name,
            unit=unit,
            stock_item_id=self.stock_item.id,
        )
        self._states = result.remaining
        self._consumed.extend(result.consumed)
        return result.remaining

    def apply(self, actor_id: Optional[int] = None) -> None:
        """Write staged quantities back to the ORM batches and drop depleted ones."""
        if not self.has_changes:
            return
        quantities = {s.batch_number: s.quantity for s in self._states}
        for batch in list(self.stock_item.batches):
            if batch.batch_number not in quantities:
                self.stock_item.batches.remove(batch)
            elif batch.quantity != quantities[batch.batch_number]:
                batch.quantity = quantities[batch.batch_number]
        if actor_id is not None:
            self.stock_item.last_updated_by = actor_id
        logger.debug(
            f"Applied ledger for '{self.stock_item.name}': "
            f"{len(self._consumed)} batch draws, {len(self._states)} batches left"
        )
        self._consumed = []


def prune_depleted(stock_item: StockItem) -> int:
    """Remove batches whose quantity has reached zero. Returns how many were removed."""
    depleted = [b for b in stock_item.batches if Decimal(b.quantity) <= 0]
    for batch in depleted:
        stock_item.batches.remove(batch)
    return len(depleted)
