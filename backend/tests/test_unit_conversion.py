"""Tests for unit conversion between recipe and stock units."""

from decimal import Decimal
from types import MappingProxyType

import pytest

from restopos.core.units import DEFAULT_UNIT_MULTIPLIERS, RecipeUnit, StockUnit, get_unit_table
from restopos.services.unit_conversion import UnitConverter, get_unit_converter


@pytest.fixture
def converter():
    return UnitConverter(MappingProxyType(dict(DEFAULT_UNIT_MULTIPLIERS)))


class TestConvert:
    def test_kg_to_g(self, converter):
        assert converter.convert(Decimal("0.6"), "kg", "g") == Decimal("600")

    def test_g_to_kg(self, converter):
        assert converter.convert(Decimal("250"), "g", "kg") == Decimal("0.25")

    def test_liter_alias_matches_ltr(self, converter):
        assert converter.convert(Decimal("1.5"), RecipeUnit.LITER, StockUnit.ML) == Decimal("1500")
        assert converter.convert(Decimal("1.5"), RecipeUnit.LTR, StockUnit.ML) == Decimal("1500")

    def test_dozen_to_pcs(self, converter):
        assert converter.convert(2, "dozen", "pcs") == Decimal("24")

    def test_same_unit_is_identity(self, converter):
        assert converter.convert(Decimal("3.1415"), "g", "g") == Decimal("3.1415")

    def test_enum_and_string_units_are_interchangeable(self, converter):
        assert converter.convert(1, StockUnit.KG, "G") == Decimal("1000")

    def test_unknown_unit_counts_as_base(self, converter):
        assert converter.multiplier("handful") == Decimal("1")
        assert converter.convert(5, "handful", "g") == Decimal("5")

    def test_cross_dimension_converts_through_table(self, converter):
        # kg -> pcs has no dimension check
        assert converter.convert(1, "kg", "pcs") == Decimal("1000")

    @pytest.mark.parametrize("a,b", [("kg", "g"), ("g", "mg"), ("kg", "mg"), ("ltr", "ml"), ("liter", "ml")])
    def test_round_trip_within_family(self, converter, a, b):
        for x in (Decimal("0.2"), Decimal("1"), Decimal("7.125"), Decimal("1234.5")):
            back = converter.convert(converter.convert(x, a, b), b, a)
            assert abs(back - x) < Decimal("1e-9")


class TestConfiguredTable:
    def test_table_is_read_only(self):
        table = get_unit_table()
        with pytest.raises(TypeError):
            table["kg"] = Decimal("1")

    def test_factory_uses_configured_table(self):
        converter = get_unit_converter()
        assert converter.multiplier("kg") == Decimal("1000")

    def test_custom_table_injection(self):
        converter = UnitConverter({"cup": Decimal("240"), "ml": Decimal("1")})
        assert converter.convert(2, "cup", "ml") == Decimal("480")
