"""Domain error taxonomy.

Services raise these; ``main.py`` renders them as
``{"success": false, "message": ...}`` with the matching status code.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import status

from restopos.core.units import quantize_quantity


def format_quantity(value: Decimal) -> str:
    """Render a quantity at the stored scale without trailing zeros (``2000.0000`` -> ``2000``)."""
    normalized = quantize_quantity(value).normalize()
    return format(normalized, "f")


class POSError(Exception):
    """Base class for errors reported back to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(POSError):
    """Missing or malformed input (customer info, order type, empty cart...)."""


class NotFoundError(POSError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(POSError):
    """Duplicate value on a field that must be unique."""


class InvalidTransitionError(POSError):
    """Status change not allowed from the aggregate's current state."""


class InsufficientPaymentError(POSError):
    def __init__(self, total_paid: Decimal, total: Decimal):
        self.total_paid = total_paid
        self.total = total
        super().__init__(
            f"Insufficient payment. Total: {total:.2f}, Paid: {total_paid:.2f}",
            details={"totalPaid": float(total_paid), "total": float(total)},
        )


class StockItemMissingError(NotFoundError):
    def __init__(self, stock_item_id: int):
        self.stock_item_id = stock_item_id
        super().__init__(
            f"Inventory item not found: {stock_item_id}",
            details={"stockItemId": stock_item_id},
        )


class InsufficientStockError(POSError):
    """Not enough stock on hand to cover a deduction."""

    def __init__(
        self,
        stock_item_name: str,
        required: Decimal,
        available: Decimal,
        unit: str,
        stock_item_id: Optional[int] = None,
    ):
        self.stock_item_id = stock_item_id
        self.stock_item_name = stock_item_name
        self.required = required
        self.available = available
        self.unit = unit
        self.shortfall = required - available
        super().__init__(
            f"Insufficient inventory for {stock_item_name}. "
            f"Required: {format_quantity(required)} {unit}, "
            f"Available: {format_quantity(available)} {unit}",
            details={
                "stockItemId": stock_item_id,
                "stockItemName": stock_item_name,
                "unit": unit,
                "required": float(required),
                "available": float(available),
                "shortfall": float(self.shortfall),
            },
        )
