"""Tests for the settlement engine (cart -> ingredient deductions)."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from restopos.core.exceptions import InsufficientStockError, StockItemMissingError
from restopos.core.units import RecipeUnit, StockUnit
from restopos.models.inventory import StockItem
from restopos.services.settlement import SettlementEngine


def line(menu_item, quantity=1, variation_id=None):
    return SimpleNamespace(menu_item_id=menu_item.id, variation_id=variation_id, quantity=quantity)


def quantities(db_session, item_id):
    db_session.expire_all()
    item = db_session.get(StockItem, item_id)
    return [b.quantity for b in item.batches]


class TestSettle:
    def test_tomato_soup_for_three(self, db_session, tomato, tomato_recipe, menu_item):
        result = SettlementEngine(db_session).settle([line(menu_item, 3)])
        db_session.commit()

        assert quantities(db_session, tomato.id) == [Decimal("400")]
        deduction = result.lines[0].deductions[0]
        assert deduction.quantity == Decimal("600")
        assert result.lines[0].batches_used == [
            {"stockItemId": tomato.id, "batchNumber": "TOMATO-1", "quantity": 600.0, "unit": "g"}
        ]

    def test_tomato_soup_for_ten_is_short_by_1000g(self, db_session, tomato, tomato_recipe, menu_item):
        with pytest.raises(InsufficientStockError) as exc_info:
            SettlementEngine(db_session).settle([line(menu_item, 10)])
        db_session.rollback()

        assert exc_info.value.required == Decimal("2000")
        assert exc_info.value.shortfall == Decimal("1000")
        assert exc_info.value.details["shortfall"] == 1000.0
        assert quantities(db_session, tomato.id) == [Decimal("1000")]

    def test_second_line_short_deducts_nothing(
        self, db_session, tomato, tomato_recipe, menu_item, second_menu_item, make_stock_item, make_recipe
    ):
        garlic = make_stock_item("Garlic", StockUnit.G, [(50, date(2024, 1, 1))])
        make_recipe(second_menu_item, [(garlic, 30, RecipeUnit.G)])

        with pytest.raises(InsufficientStockError) as exc_info:
            SettlementEngine(db_session).settle([line(menu_item, 1), line(second_menu_item, 2)])
        db_session.rollback()

        assert exc_info.value.stock_item_name == "Garlic"
        assert quantities(db_session, tomato.id) == [Decimal("1000")]
        assert quantities(db_session, garlic.id) == [Decimal("50")]

    def test_same_stock_item_across_lines_is_validated_cumulatively(
        self, db_session, tomato, tomato_recipe, menu_item
    ):
        # 3 x 200 g + 3 x 200 g = 1200 g > 1000 g on hand
        with pytest.raises(InsufficientStockError):
            SettlementEngine(db_session).settle([line(menu_item, 3), line(menu_item, 3)])
        db_session.rollback()
        assert quantities(db_session, tomato.id) == [Decimal("1000")]

    def test_oldest_batch_consumed_first(self, db_session, menu_item, make_stock_item, make_recipe):
        cheese = make_stock_item("Cheese", StockUnit.KG, [(5, date(2024, 1, 3)), (5, date(2024, 1, 1))])
        make_recipe(menu_item, [(cheese, 7, RecipeUnit.KG)])

        SettlementEngine(db_session).settle([line(menu_item, 1)])
        db_session.commit()

        db_session.expire_all()
        item = db_session.get(StockItem, cheese.id)
        assert [(b.batch_number, b.quantity) for b in item.batches] == [("CHEESE-1", Decimal("3"))]

    def test_line_without_recipe_is_skipped(self, db_session, tomato, tomato_recipe, menu_item, second_menu_item):
        result = SettlementEngine(db_session).settle([line(second_menu_item, 5), line(menu_item, 1)])
        db_session.commit()

        assert result.lines[0].recipe_id is None
        assert result.lines[0].deductions == []
        assert quantities(db_session, tomato.id) == [Decimal("800")]

    def test_variation_recipe_is_used(self, db_session, tomato, tomato_recipe, menu_item, large_variation, make_recipe):
        make_recipe(menu_item, [(tomato, 500, RecipeUnit.G)], variation_id=large_variation.id)

        SettlementEngine(db_session).settle([line(menu_item, 1, variation_id=large_variation.id)])
        db_session.commit()

        assert quantities(db_session, tomato.id) == [Decimal("500")]

    def test_missing_stock_item_fails(self, db_session, menu_item, tomato, tomato_recipe):
        tomato.retire()
        db_session.commit()

        with pytest.raises(StockItemMissingError) as exc_info:
            SettlementEngine(db_session).settle([line(menu_item, 1)])
        assert exc_info.value.status_code == 404

    def test_plan_does_not_touch_batches(self, db_session, tomato, tomato_recipe, menu_item):
        lines, ledgers = SettlementEngine(db_session).plan([line(menu_item, 2)])

        assert ledgers[tomato.id].total_on_hand() == Decimal("600")
        assert db_session.get(StockItem, tomato.id).batches[0].quantity == Decimal("1000")

    def test_reorder_alert_logged(self, db_session, menu_item, make_stock_item, make_recipe, caplog):
        basil = make_stock_item("Basil", StockUnit.G, [(100, date(2024, 1, 1))], reorder_level="50")
        make_recipe(menu_item, [(basil, 60, RecipeUnit.G)])

        with caplog.at_level("WARNING", logger="restopos.services.settlement"):
            result = SettlementEngine(db_session).settle([line(menu_item, 1)])

        assert [item.name for item in result.reorder_alerts()] == ["Basil"]
        assert "REORDER ALERT" in caplog.text


class TestStoredScale:
    """Converted deductions land in the database exactly as staged."""

    def test_twelve_pieces_empty_a_dozen_batch(self, db_session, menu_item, make_stock_item, make_recipe):
        eggs = make_stock_item("Eggs", StockUnit.DOZEN, [(1, date(2024, 1, 1))])
        make_recipe(menu_item, [(eggs, 1, RecipeUnit.PCS)])

        SettlementEngine(db_session).settle([line(menu_item, 12)])
        db_session.commit()

        assert quantities(db_session, eggs.id) == []

    def test_milligrams_from_kilogram_stock(self, db_session, menu_item, make_stock_item, make_recipe):
        saffron = make_stock_item("Saffron", StockUnit.KG, [(1, date(2024, 1, 1))])
        make_recipe(menu_item, [(saffron, 40, RecipeUnit.MG)])

        result = SettlementEngine(db_session).settle([line(menu_item, 5)])
        db_session.commit()

        assert result.lines[0].deductions[0].quantity == Decimal("0.0002")
        assert quantities(db_session, saffron.id) == [Decimal("0.9998")]

    def test_repeated_single_pieces_conserve_stock(self, db_session, menu_item, make_stock_item, make_recipe):
        eggs = make_stock_item("Eggs", StockUnit.DOZEN, [(1, date(2024, 1, 1))])
        make_recipe(menu_item, [(eggs, 1, RecipeUnit.PCS)])

        deducted = Decimal("0")
        for _ in range(12):
            result = SettlementEngine(db_session).settle([line(menu_item, 1)])
            db_session.commit()
            deducted += result.lines[0].deductions[0].quantity

        assert deducted == Decimal("0.9996")
        assert quantities(db_session, eggs.id) == [Decimal("1") - deducted]

    def test_deduction_below_stored_scale_leaves_stock_unchanged(
        self, db_session, menu_item, make_stock_item, make_recipe
    ):
        saffron = make_stock_item("Saffron", StockUnit.KG, [(1, date(2024, 1, 1))])
        make_recipe(menu_item, [(saffron, 40, RecipeUnit.MG)])

        result = SettlementEngine(db_session).settle([line(menu_item, 1)])
        db_session.commit()

        assert result.lines[0].deductions[0].quantity == Decimal("0")
        assert quantities(db_session, saffron.id) == [Decimal("1")]

    def test_shortfall_reports_rounded_requirement(self, db_session, menu_item, make_stock_item, make_recipe):
        eggs = make_stock_item("Eggs", StockUnit.DOZEN, [("0.05", date(2024, 1, 1))])
        make_recipe(menu_item, [(eggs, 1, RecipeUnit.PCS)])

        with pytest.raises(InsufficientStockError) as exc_info:
            SettlementEngine(db_session).settle([line(menu_item, 1)])
        db_session.rollback()

        assert "Required: 0.0833 dozen, Available: 0.05 dozen" in exc_info.value.message
        assert exc_info.value.required == Decimal("0.0833")
