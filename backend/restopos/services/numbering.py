"""Human-readable identifiers for bills, orders and stock batches.

Formats:
    Bill   BIL-YYYYMM-NNNN-<4 hex>
    Order  ORD-YYYYMM-NNNN
    Temp   TEMP-<epoch ms>-<9 base36>
    Batch  BATCH-DD-MM-YYYY-HH-MM-SS-<4 hex>

NNNN continues from the most recently created record. The read-increment
is not locked, so collisions are possible under concurrent creation; the
unique constraints catch them and the bill path falls back to a
timestamp + random identifier when generation itself fails.
"""

import logging
import re
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restopos.models.billing import Bill
from restopos.models.order import Order

logger = logging.getLogger(__name__)

BILL_NUMBER_RE = re.compile(r"^BIL-\d{6}-(\d+)-[0-9a-f]{4}$")
ORDER_NUMBER_RE = re.compile(r"^ORD-\d{6}-(\d+)$")

_BASE36 = string.digits + string.ascii_lowercase


def _now() -> datetime:
    return datetime.now(timezone.utc)


def next_sequence(last_number: Optional[str], pattern: re.Pattern) -> int:
    """Sequence after ``last_number``; 1 when there is none or it does not parse."""
    if not last_number:
        return 1
    match = pattern.match(last_number)
    if not match:
        return 1
    return int(match.group(1)) + 1


def format_bill_number(sequence: int, when: datetime, suffix: Optional[str] = None) -> str:
    suffix = suffix or secrets.token_hex(2)
    return f"BIL-{when:%Y%m}-{sequence:04d}-{suffix}"


def format_order_number(sequence: int, when: datetime) -> str:
    return f"ORD-{when:%Y%m}-{sequence:04d}"


def fallback_bill_number(when: Optional[datetime] = None) -> str:
    when = when or _now()
    return f"BIL-{int(when.timestamp() * 1000)}-{uuid.uuid4().hex[:8]}"


def temp_order_number(when: Optional[datetime] = None) -> str:
    when = when or _now()
    random_part = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"TEMP-{int(when.timestamp() * 1000)}-{random_part}"


def batch_number(when: Optional[datetime] = None) -> str:
    when = when or _now()
    return f"BATCH-{when:%d-%m-%Y-%H-%M-%S}-{secrets.token_hex(2)}"


class NumberingService:
    """Reads the last issued number and hands out the next one."""

    def __init__(self, db: Session):
        self.db = db

    def _last_number(self, model, column, pattern: re.Pattern, scan: int = 20) -> Optional[str]:
        """Most recent number in the regular format (fallback numbers are skipped)."""
        rows = (
            self.db.query(column)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(scan)
            .all()
        )
        for (number,) in rows:
            if pattern.match(number):
                return number
        return None

    def next_bill_number(self, when: Optional[datetime] = None) -> str:
        when = when or _now()
        try:
            last = self._last_number(Bill, Bill.billing_number, BILL_NUMBER_RE)
        except SQLAlchemyError as e:
            logger.warning(f"Bill number generation failed, using fallback: {e}")
            return fallback_bill_number(when)
        return format_bill_number(next_sequence(last, BILL_NUMBER_RE), when)

    def next_order_number(self, when: Optional[datetime] = None) -> str:
        when = when or _now()
        last = self._last_number(Order, Order.order_number, ORDER_NUMBER_RE)
        return format_order_number(next_sequence(last, ORDER_NUMBER_RE), when)
