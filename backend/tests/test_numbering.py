"""Tests for bill, order, temp and batch numbering."""

import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from restopos.models.billing import Bill, BillStatus
from restopos.models.cart import OrderType, PaymentMode
from restopos.models.order import Order
from restopos.services.numbering import (
    BILL_NUMBER_RE,
    ORDER_NUMBER_RE,
    NumberingService,
    batch_number,
    fallback_bill_number,
    format_bill_number,
    format_order_number,
    next_sequence,
    temp_order_number,
)

WHEN = datetime(2024, 3, 9, 14, 5, 7, tzinfo=timezone.utc)


def _bill(number: str) -> Bill:
    return Bill(
        billing_number=number,
        status=BillStatus.DRAFT,
        order_type=OrderType.TAKEAWAY,
        customer_name="A",
        customer_phone="9876543210",
        payment_mode=PaymentMode.CASH,
        subtotal=Decimal("0"),
        total=Decimal("0"),
    )


class TestFormats:
    def test_bill_number_format(self):
        number = format_bill_number(7, WHEN, suffix="a1b2")
        assert number == "BIL-202403-0007-a1b2"
        assert BILL_NUMBER_RE.match(number)

    def test_bill_number_random_suffix(self):
        assert re.fullmatch(r"BIL-202403-0001-[0-9a-f]{4}", format_bill_number(1, WHEN))

    def test_order_number_format(self):
        assert format_order_number(12, WHEN) == "ORD-202403-0012"

    def test_sequence_continues_past_four_digits(self):
        assert format_order_number(10000, WHEN) == "ORD-202403-10000"
        assert next_sequence("ORD-202403-10000", ORDER_NUMBER_RE) == 10001

    def test_temp_order_number(self):
        number = temp_order_number(WHEN)
        assert re.fullmatch(rf"TEMP-{int(WHEN.timestamp() * 1000)}-[0-9a-z]{{9}}", number)

    def test_batch_number(self):
        assert re.fullmatch(r"BATCH-09-03-2024-14-05-07-[0-9a-f]{4}", batch_number(WHEN))

    def test_fallback_bill_number(self):
        number = fallback_bill_number(WHEN)
        assert re.fullmatch(rf"BIL-{int(WHEN.timestamp() * 1000)}-[0-9a-f]{{8}}", number)
        assert not BILL_NUMBER_RE.match(number)

    def test_next_sequence_without_history(self):
        assert next_sequence(None, BILL_NUMBER_RE) == 1
        assert next_sequence("garbage", BILL_NUMBER_RE) == 1


class TestNumberingService:
    def test_first_bill_is_one(self, db_session):
        assert NumberingService(db_session).next_bill_number(WHEN).startswith("BIL-202403-0001-")

    def test_bill_sequence_increments(self, db_session):
        db_session.add(_bill("BIL-202403-0041-beef"))
        db_session.commit()
        assert NumberingService(db_session).next_bill_number(WHEN).startswith("BIL-202403-0042-")

    def test_fallback_numbers_do_not_reset_sequence(self, db_session):
        db_session.add(_bill("BIL-202403-0005-0000"))
        db_session.commit()
        db_session.add(_bill("BIL-1700000000000-deadbeef"))
        db_session.commit()
        assert NumberingService(db_session).next_bill_number(WHEN).startswith("BIL-202403-0006-")

    def test_database_failure_uses_fallback(self, db_session):
        service = NumberingService(db_session)
        with patch.object(service, "_last_number", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            number = service.next_bill_number(WHEN)
        assert number.startswith(f"BIL-{int(WHEN.timestamp() * 1000)}-")

    def test_order_sequence_increments(self, db_session):
        db_session.add(Order(order_number="ORD-202402-0009", order_type=OrderType.DINE_IN))
        db_session.commit()
        assert NumberingService(db_session).next_order_number(WHEN) == "ORD-202403-0010"
