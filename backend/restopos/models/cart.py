"""Cart line columns and enums shared by orders and bills."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Integer, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from restopos.models.validators import non_negative, positive, validate_list_of_dicts


class OrderType(str, Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"
    ONLINE = "online"


class PaymentMode(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    SPLIT = "split"
    DUE = "due"


class CartLineMixin:
    """Snapshot of one sold menu item, priced at the time of sale.

    Names and prices are copied from the catalog so later catalog edits do
    not rewrite history.
    """

    id: Mapped[int] = mapped_column(primary_key=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    menu_item_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    variation_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    variation_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    variation_extra_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    addons: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # [{"stockItemId", "batchNumber", "quantity", "unit"}] filled in by settlement
    batches_used: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    @validates("base_price", "variation_extra_price", "line_total")
    def _validate_money(self, key, value):
        return non_negative(key, value)

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return positive(key, value)

    @validates("addons", "batches_used")
    def _validate_json_lists(self, key, value):
        return validate_list_of_dicts(key, value)
