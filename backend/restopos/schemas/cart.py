"""Cart, customer and payment schemas shared by orders and bills."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from restopos.schemas.common import CamelModel


class VariationSnapshot(CamelModel):
    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "_id", "variationId"))
    name: Optional[str] = None
    extra_price: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("extraPrice", "extra_price", "price"),
    )


class AddonSnapshot(CamelModel):
    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "_id", "addonId"))
    name: str = ""
    price: Decimal = Decimal("0")


class CartLineIn(CamelModel):
    """A cart line as sent by the till. Prices are clamped, not rejected."""

    menu_item_id: int = Field(validation_alias=AliasChoices("menuItemId", "itemId", "menu_item_id"))
    item_name: str = Field(min_length=1, validation_alias=AliasChoices("itemName", "name", "item_name"))
    base_price: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("basePrice", "base_price", "price"),
    )
    quantity: int = 1
    variation: Optional[VariationSnapshot] = None
    addons: List[AddonSnapshot] = []


class PaymentSplitIn(CamelModel):
    cash: Decimal = Decimal("0")
    card: Decimal = Decimal("0")
    upi: Decimal = Decimal("0")


class CustomerIn(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    table_number: Optional[str] = None
    address: Optional[str] = None


class CartLineResponse(CamelModel):
    id: int
    position: int
    menu_item_id: int
    item_name: str
    base_price: float
    quantity: int
    variation_id: Optional[int] = None
    variation_name: Optional[str] = None
    variation_extra_price: float = 0
    addons: list = []
    line_total: float
    batches_used: list = []
