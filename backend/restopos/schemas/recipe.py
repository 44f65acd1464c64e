"""Recipe schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from restopos.core.units import RecipeUnit
from restopos.db.base import LifecycleState
from restopos.models.catalog import DietaryType
from restopos.models.inventory import StockCategory
from restopos.schemas.common import CamelModel


class IngredientIn(CamelModel):
    """Recipe ingredient creation schema. Quantity is per serving."""

    stock_item_id: int = Field(validation_alias=AliasChoices("inventoryId", "stockItemId", "stock_item_id"))
    quantity: Decimal = Field(gt=0)
    unit: RecipeUnit


class RecipeCreate(CamelModel):
    """Recipe creation schema."""

    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    menu_item_id: int = Field(validation_alias=AliasChoices("menuId", "menuItemId", "menu_item_id"))
    variation_id: Optional[int] = None
    category: StockCategory = StockCategory.GENERAL
    dietary: DietaryType = Field(
        default=DietaryType.VEG,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    per_serving_cost: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str = ""
    ingredients: List[IngredientIn] = Field(min_length=1)


class RecipeUpdate(CamelModel):
    """Recipe update schema. Ingredients, when given, replace the whole list."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    menu_item_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("menuId", "menuItemId", "menu_item_id"),
    )
    variation_id: Optional[int] = None
    category: Optional[StockCategory] = None
    dietary: Optional[DietaryType] = Field(
        default=None,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    per_serving_cost: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    ingredients: Optional[List[IngredientIn]] = Field(default=None, min_length=1)


class IngredientResponse(CamelModel):
    id: int
    stock_item_id: int
    quantity: float
    unit: RecipeUnit
    position: int


class RecipeResponse(CamelModel):
    id: int
    name: str
    description: str
    menu_item_id: int
    variation_id: Optional[int] = None
    category: StockCategory
    dietary: DietaryType
    per_serving_cost: float
    notes: str
    state: LifecycleState
    last_updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    ingredients: List[IngredientResponse] = []
