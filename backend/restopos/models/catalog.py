"""Catalog models: categories, menu items, variations and addons."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, Integer, JSON, Numeric, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from restopos.core.catalog_media import CategoryType
from restopos.db.base import Base, LifecycleMixin, TimestampMixin, enum_column
from restopos.models.validators import non_negative


class DietaryType(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"
    VEGAN = "vegan"


class VariationType(str, Enum):
    SIZE = "size"
    PORTION = "portion"
    QUANTITY = "quantity"
    CUSTOM = "custom"


menu_item_addons = Table(
    "menu_item_addons",
    Base.metadata,
    Column("menu_item_id", ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True),
    Column("addon_id", ForeignKey("addons.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base, TimestampMixin, LifecycleMixin):
    """Menu category."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category_type: Mapped[CategoryType] = enum_column(CategoryType, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    menu_items: Mapped[List["MenuItem"]] = relationship("MenuItem", back_populates="category")


class Variation(Base, TimestampMixin, LifecycleMixin):
    """A size/portion option that can be offered on menu items."""

    __tablename__ = "variations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    variation_type: Mapped[VariationType] = enum_column(
        VariationType, default=VariationType.SIZE, nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    @validates("price")
    def _validate_price(self, key, value):
        return non_negative(key, value)


class Addon(Base, TimestampMixin, LifecycleMixin):
    """Optional extra a customer can add to a menu item."""

    __tablename__ = "addons"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    dietary: Mapped[DietaryType] = enum_column(DietaryType, default=DietaryType.VEG, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    @validates("price")
    def _validate_price(self, key, value):
        return non_negative(key, value)


class MenuItem(Base, TimestampMixin, LifecycleMixin):
    """Sellable menu item."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    dietary: Mapped[DietaryType] = enum_column(DietaryType, default=DietaryType.VEG, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    extra_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    category: Mapped["Category"] = relationship("Category", back_populates="menu_items")
    variations: Mapped[List["MenuItemVariation"]] = relationship(
        "MenuItemVariation",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        order_by="MenuItemVariation.id",
    )
    addons: Mapped[List["Addon"]] = relationship("Addon", secondary=menu_item_addons)

    @validates("price", "extra_charge")
    def _validate_price(self, key, value):
        return non_negative(key, value)


class MenuItemVariation(Base):
    """Price of a variation when sold on a particular menu item."""

    __tablename__ = "menu_item_variations"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "variation_id", name="uq_menu_item_variation"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variation_id: Mapped[int] = mapped_column(
        ForeignKey("variations.id", ondelete="CASCADE"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    menu_item: Mapped["MenuItem"] = relationship("MenuItem", back_populates="variations")
    variation: Mapped["Variation"] = relationship("Variation")

    @property
    def variation_name(self) -> Optional[str]:
        return self.variation.name if self.variation else None
