"""Catalog schemas: categories, menu items, variations and addons."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from restopos.core.catalog_media import CategoryType
from restopos.db.base import LifecycleState
from restopos.models.catalog import DietaryType, VariationType
from restopos.schemas.common import CamelModel


# ===== Categories =====

class CategoryCreate(CamelModel):
    """Category creation schema."""

    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    category_type: CategoryType = Field(
        default=CategoryType.FOOD,
        validation_alias=AliasChoices("categoryType", "type", "category_type"),
    )
    sort_order: int = 0


class CategoryUpdate(CamelModel):
    """Category update schema."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    category_type: Optional[CategoryType] = Field(
        default=None,
        validation_alias=AliasChoices("categoryType", "type", "category_type"),
    )
    sort_order: Optional[int] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: str
    category_type: CategoryType
    image: Optional[str] = None
    sort_order: int
    state: LifecycleState
    created_at: datetime
    updated_at: datetime


# ===== Variations and addons =====

class VariationCreate(CamelModel):
    """Variation creation schema."""

    name: str = Field(min_length=1, max_length=100)
    variation_type: VariationType = Field(
        default=VariationType.SIZE,
        validation_alias=AliasChoices("variationType", "type", "variation_type"),
    )
    price: Decimal = Field(default=Decimal("0"), ge=0)


class VariationUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    variation_type: Optional[VariationType] = Field(
        default=None,
        validation_alias=AliasChoices("variationType", "type", "variation_type"),
    )
    price: Optional[Decimal] = Field(default=None, ge=0)


class VariationResponse(CamelModel):
    id: int
    name: str
    variation_type: VariationType
    price: float
    state: LifecycleState


class AddonCreate(CamelModel):
    """Addon creation schema."""

    name: str = Field(min_length=1, max_length=100)
    dietary: DietaryType = Field(
        default=DietaryType.VEG,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    price: Decimal = Field(default=Decimal("0"), ge=0)


class AddonUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    dietary: Optional[DietaryType] = Field(
        default=None,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    price: Optional[Decimal] = Field(default=None, ge=0)


class AddonResponse(CamelModel):
    id: int
    name: str
    dietary: DietaryType
    price: float
    state: LifecycleState


# ===== Menu items =====

class MenuVariationIn(CamelModel):
    """Variation offered on a menu item, at the item's own price."""

    variation_id: int = Field(validation_alias=AliasChoices("variationId", "id", "variation_id"))
    price: Decimal = Field(default=Decimal("0"), ge=0)


class MenuItemCreate(CamelModel):
    """Menu item creation schema."""

    name: str = Field(min_length=1, max_length=200)
    category_id: int = Field(validation_alias=AliasChoices("categoryId", "category", "category_id"))
    price: Decimal = Field(ge=0)
    dietary: DietaryType = Field(
        default=DietaryType.VEG,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    description: str = ""
    image: Optional[str] = Field(default=None, max_length=500)
    tags: List[str] = []
    extra_charge: Decimal = Field(default=Decimal("0"), ge=0)
    variations: List[MenuVariationIn] = []
    addon_ids: List[int] = Field(default=[], validation_alias=AliasChoices("addonIds", "addons", "addon_ids"))


class MenuItemUpdate(CamelModel):
    """Menu item update schema. Variations and addons, when given, replace the current sets."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("categoryId", "category", "category_id"),
    )
    price: Optional[Decimal] = Field(default=None, ge=0)
    dietary: Optional[DietaryType] = Field(
        default=None,
        validation_alias=AliasChoices("vegType", "dietary"),
    )
    description: Optional[str] = None
    image: Optional[str] = Field(default=None, max_length=500)
    tags: Optional[List[str]] = None
    extra_charge: Optional[Decimal] = Field(default=None, ge=0)
    variations: Optional[List[MenuVariationIn]] = None
    addon_ids: Optional[List[int]] = Field(
        default=None,
        validation_alias=AliasChoices("addonIds", "addons", "addon_ids"),
    )


class MenuVariationResponse(CamelModel):
    variation_id: int
    variation_name: Optional[str] = None
    price: float


class MenuItemResponse(CamelModel):
    id: int
    name: str
    category_id: int
    price: float
    dietary: DietaryType
    description: str
    image: Optional[str] = None
    tags: list = []
    extra_charge: float
    state: LifecycleState
    variations: List[MenuVariationResponse] = []
    addons: List[AddonResponse] = []
    created_at: datetime
    updated_at: datetime
