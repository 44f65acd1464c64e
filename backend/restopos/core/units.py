"""Unit-of-measure reference table.

Every unit maps to a multiplier expressing it in a common base:
grams for weight, milliliters for volume, pieces for count-like units.
The table is built once from the defaults plus ``UNIT_MULTIPLIER_OVERRIDES``
and handed out read-only.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from restopos.core.config import settings


class StockUnit(str, Enum):
    """Canonical units a stock item can be tracked in."""

    KG = "kg"
    G = "g"
    MG = "mg"
    LTR = "ltr"
    ML = "ml"
    PCS = "pcs"
    PACK = "pack"
    BOTTLE = "bottle"
    DOZEN = "dozen"
    BOX = "box"


class RecipeUnit(str, Enum):
    """Units a recipe ingredient quantity may be written in."""

    KG = "kg"
    G = "g"
    MG = "mg"
    LITER = "liter"
    LTR = "ltr"
    ML = "ml"
    PCS = "pcs"
    PACK = "pack"
    BOTTLE = "bottle"
    DOZEN = "dozen"
    BOX = "box"


DEFAULT_UNIT_MULTIPLIERS = {
    # Weight: base unit = g
    "kg": Decimal("1000"),
    "g": Decimal("1"),
    "mg": Decimal("0.001"),
    # Volume: base unit = ml
    "liter": Decimal("1000"),
    "ltr": Decimal("1000"),
    "ml": Decimal("1"),
    # Count: base unit = pcs
    "pcs": Decimal("1"),
    "pack": Decimal("1"),
    "bottle": Decimal("1"),
    "box": Decimal("1"),
    "dozen": Decimal("12"),
}


@lru_cache
def get_unit_table() -> Mapping[str, Decimal]:
    """Return the process-wide, read-only unit multiplier table."""
    table = dict(DEFAULT_UNIT_MULTIPLIERS)
    table.update(settings.unit_multiplier_overrides)
    return MappingProxyType(table)


# Stock quantities are stored as Numeric(14, 4).
QUANTITY_SCALE = 4
QUANTITY_STEP = Decimal(1).scaleb(-QUANTITY_SCALE)


def quantize_quantity(value) -> Decimal:
    """Round a stock quantity to the stored scale (half up)."""
    value = value if isinstance(value, Decimal) else Decimal(str(value))
    return value.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)
