"""Unit conversion between recipe units and stock canonical units."""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from restopos.core.units import get_unit_table

logger = logging.getLogger(__name__)

BASE_MULTIPLIER = Decimal("1")


def _unit_key(unit) -> str:
    value = getattr(unit, "value", unit)
    return str(value).strip().lower()


class UnitConverter:
    """Converts quantities through a multiplier table.

    ``result = quantity * multiplier[from] / multiplier[to]``

    Units missing from the table count as base units (multiplier 1). There is
    no dimension check: kg -> pcs converts with the table like any other pair.
    """

    def __init__(self, multipliers: Optional[Mapping[str, Decimal]] = None):
        self.multipliers = multipliers if multipliers is not None else get_unit_table()

    def multiplier(self, unit) -> Decimal:
        key = _unit_key(unit)
        multiplier = self.multipliers.get(key)
        if multiplier is None:
            logger.debug(f"Unknown unit '{key}', treating as base unit")
            return BASE_MULTIPLIER
        return multiplier

    def convert(self, quantity, from_unit, to_unit) -> Decimal:
        quantity = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
        if _unit_key(from_unit) == _unit_key(to_unit):
            return quantity
        return quantity * self.multiplier(from_unit) / self.multiplier(to_unit)


def get_unit_converter() -> UnitConverter:
    """FastAPI dependency / factory returning a converter over the configured table."""
    return UnitConverter(get_unit_table())
