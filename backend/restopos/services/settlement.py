"""Settlement Engine - turns a finalized cart into inventory deductions.

Flow:
1. For each cart line, in cart order:
   a. Resolve the recipe for (menu item, variation). No recipe: skip the line.
   b. For each recipe ingredient, in recipe order:
      - Load the stock item (missing or retired: fail)
      - Convert ingredient qty x line qty into the stock item's unit,
        rounded half up to the stored quantity scale
      - Stage an oldest-first deduction on that item's Batch Ledger
        (fails on the first shortfall, before anything is written)
2. Only when every line passed, write each touched stock item's batches.
3. Log reorder alerts for items now at or below their reorder level.

The engine never commits. Callers persist the order/bill in the same
session and commit once, so stock and aggregate land in one transaction
or not at all.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from restopos.core.exceptions import StockItemMissingError
from restopos.core.units import quantize_quantity
from restopos.models.inventory import StockItem
from restopos.services.batch_ledger import BatchLedger
from restopos.services.recipe_resolver import RecipeResolver
from restopos.services.unit_conversion import UnitConverter, get_unit_converter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngredientDeduction:
    stock_item_id: int
    stock_item_name: str
    unit: str
    quantity: Decimal
    batches: tuple

    def as_batches_used(self) -> List[Dict[str, Any]]:
        return [
            {
                "stockItemId": self.stock_item_id,
                "batchNumber": b.batch_number,
                "quantity": float(b.quantity),
                "unit": self.unit,
            }
            for b in self.batches
        ]


@dataclass
class LineSettlement:
    position: int
    menu_item_id: int
    recipe_id: Optional[int] = None
    deductions: List[IngredientDeduction] = field(default_factory=list)

    @property
    def batches_used(self) -> List[Dict[str, Any]]:
        used: List[Dict[str, Any]] = []
        for deduction in self.deductions:
            used.extend(deduction.as_batches_used())
        return used


@dataclass
class SettlementResult:
    lines: List[LineSettlement]
    stock_items: List[StockItem]

    @property
    def deduction_count(self) -> int:
        return sum(len(line.deductions) for line in self.lines)

    def reorder_alerts(self) -> List[StockItem]:
        return [item for item in self.stock_items if item.needs_reorder]


class SettlementEngine:
    """All-or-nothing ingredient deduction for a cart."""

    def __init__(
        self,
        db: Session,
        converter: Optional[UnitConverter] = None,
        resolver: Optional[RecipeResolver] = None,
    ):
        self.db = db
        self.converter = converter or get_unit_converter()
        self.resolver = resolver or RecipeResolver(db)

    def _load_stock_item(self, stock_item_id: int) -> StockItem:
        item = (
            self.db.query(StockItem)
            .options(selectinload(StockItem.batches))
            .filter(StockItem.id == stock_item_id)
            .first()
        )
        if item is None or not item.is_active:
            raise StockItemMissingError(stock_item_id)
        return item

    def plan(self, cart_lines: Sequence[Any]) -> tuple:
        """Validate the whole cart and stage deductions without writing anything.

        ``cart_lines`` need ``menu_item_id``, ``variation_id`` and ``quantity``.
        Returns ``(line_settlements, ledgers)``; raises on the first failure.
        """
        ledgers: Dict[int, BatchLedger] = {}
        line_settlements: List[LineSettlement] = []

        for position, line in enumerate(cart_lines):
            settlement = LineSettlement(position=position, menu_item_id=line.menu_item_id)
            line_settlements.append(settlement)

            recipe = self.resolver.resolve(line.menu_item_id, line.variation_id)
            if recipe is None:
                continue
            settlement.recipe_id = recipe.id
            servings = Decimal(line.quantity)

            for ingredient in recipe.ingredients:
                ledger = ledgers.get(ingredient.stock_item_id)
                if ledger is None:
                    ledger = BatchLedger(self._load_stock_item(ingredient.stock_item_id))
                    ledgers[ingredient.stock_item_id] = ledger
                item = ledger.stock_item

                required = quantize_quantity(self.converter.convert(
                    Decimal(ingredient.quantity) * servings, ingredient.unit, item.unit
                ))
                consumed_before = len(ledger.consumed)
                ledger.deduct(required)

                unit = getattr(item.unit, "value", item.unit)
                settlement.deductions.append(IngredientDeduction(
                    stock_item_id=item.id,
                    stock_item_name=item.name,
                    unit=unit,
                    quantity=required,
                    batches=ledger.consumed[consumed_before:],
                ))

        return line_settlements, ledgers

    def settle(self, cart_lines: Sequence[Any], actor_id: Optional[int] = None) -> SettlementResult:
        """Validate the cart, then write every staged batch update to the session."""
        line_settlements, ledgers = self.plan(cart_lines)

        for ledger in ledgers.values():
            ledger.apply(actor_id=actor_id)
        if ledgers:
            self.db.flush()

        result = SettlementResult(
            lines=line_settlements,
            stock_items=[ledger.stock_item for ledger in ledgers.values()],
        )
        for line in result.lines:
            for deduction in line.deductions:
                logger.info(
                    f"Deducted {deduction.quantity.normalize():f} {deduction.unit} of "
                    f"'{deduction.stock_item_name}' for menu item {line.menu_item_id}"
                )
        for item in result.reorder_alerts():
            logger.warning(
                f"REORDER ALERT: '{item.name}' at {item.total_quantity.normalize():f} {item.unit.value} "
                f"(reorder level {Decimal(item.reorder_level).normalize():f})"
            )
        return result


def get_settlement_engine(db: Session) -> SettlementEngine:
    """Factory used by the billing and order services."""
    return SettlementEngine(db)
