"""Recipe (Bill of Materials) models."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from restopos.core.units import QUANTITY_SCALE, RecipeUnit
from restopos.db.base import Base, LifecycleMixin, TimestampMixin, enum_column
from restopos.models.catalog import DietaryType
from restopos.models.inventory import StockCategory
from restopos.models.validators import non_negative, positive


class Recipe(Base, TimestampMixin, LifecycleMixin):
    """Ingredient list consumed when a menu item (optionally one variation of it) is sold.

    ``variation_id = None`` is the default recipe for every variation of the
    menu item that has no recipe of its own.
    """

    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    menu_item_id: Mapped[int] = mapped_column(
        ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variation_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("variations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    category: Mapped[StockCategory] = enum_column(
        StockCategory, default=StockCategory.GENERAL, nullable=False
    )
    dietary: Mapped[DietaryType] = enum_column(DietaryType, default=DietaryType.VEG, nullable=False)
    per_serving_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    last_updated_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )
    menu_item = relationship("MenuItem")
    variation = relationship("Variation")

    @validates("per_serving_cost")
    def _validate_cost(self, key, value):
        return non_negative(key, value)


class RecipeIngredient(Base):
    """A single stock item consumed by a recipe, per serving."""

    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stock_item_id: Mapped[int] = mapped_column(
        ForeignKey("stock_items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, QUANTITY_SCALE), nullable=False)
    unit: Mapped[RecipeUnit] = enum_column(RecipeUnit, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
    stock_item = relationship("StockItem")

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return positive(key, value)
