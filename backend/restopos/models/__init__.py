"""SQLAlchemy models."""

from restopos.models.user import User, RestaurantPreferences
from restopos.models.catalog import (
    Addon,
    Category,
    DietaryType,
    MenuItem,
    MenuItemVariation,
    Variation,
    VariationType,
)
from restopos.models.inventory import (
    StockBatch,
    StockCategory,
    StockItem,
    StorageLocation,
    SyncStatus,
    WastageEntry,
)
from restopos.models.recipe import Recipe, RecipeIngredient
from restopos.models.cart import OrderType, PaymentMode
from restopos.models.order import Order, OrderLine, OrderStatus
from restopos.models.billing import Bill, BillLine, BillStatus

__all__ = [
    "User",
    "RestaurantPreferences",
    "Addon",
    "Category",
    "DietaryType",
    "MenuItem",
    "MenuItemVariation",
    "Variation",
    "VariationType",
    "StockBatch",
    "StockCategory",
    "StockItem",
    "StorageLocation",
    "SyncStatus",
    "WastageEntry",
    "Recipe",
    "RecipeIngredient",
    "OrderType",
    "PaymentMode",
    "Order",
    "OrderLine",
    "OrderStatus",
    "Bill",
    "BillLine",
    "BillStatus",
]
