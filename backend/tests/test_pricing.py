"""Tests for cart pricing, totals, payment split and customer validation."""

from decimal import Decimal

import pytest

from restopos.core.exceptions import InsufficientPaymentError, ValidationError
from restopos.models.cart import OrderType, PaymentMode
from restopos.schemas.cart import CartLineIn, CustomerIn
from restopos.services import pricing


def cart(*lines):
    return [CartLineIn.model_validate(line) for line in lines]


class TestLineTotals:
    def test_line_total_includes_addons_and_variation(self):
        lines = pricing.sanitize_cart(cart({
            "menuItemId": 1,
            "itemName": "Pizza",
            "basePrice": 100,
            "quantity": 2,
            "variation": {"id": 3, "name": "Large", "extraPrice": 40},
            "addons": [{"id": 1, "name": "Cheese", "price": 15}, {"id": 2, "name": "Olives", "price": 10.5}],
        }))
        assert lines[0].line_total == Decimal("331.00")
        assert lines[0].variation_name == "Large"

    def test_rounding_is_half_up(self):
        assert pricing.round_money(Decimal("2.675")) == Decimal("2.68")
        assert pricing.round_money(Decimal("2.665")) == Decimal("2.67")

    def test_negative_prices_and_quantities_are_clamped(self):
        lines = pricing.sanitize_cart(cart({
            "menuItemId": 1,
            "itemName": " Tea ",
            "basePrice": -10,
            "quantity": 0,
            "addons": [{"name": "Sugar", "price": -2}],
        }))
        assert lines[0].base_price == Decimal("0.00")
        assert lines[0].quantity == 1
        assert lines[0].addons == [{"id": None, "name": "Sugar", "price": 0.0}]
        assert lines[0].item_name == "Tea"

    def test_empty_cart_rejected(self):
        with pytest.raises(ValidationError, match="Cart cannot be empty"):
            pricing.sanitize_cart([])


class TestTotals:
    def lines(self):
        return pricing.sanitize_cart(cart({"menuItemId": 1, "itemName": "Thali", "basePrice": 200, "quantity": 1}))

    def test_percent_tax(self):
        totals = pricing.compute_totals(self.lines(), Decimal("5"), Decimal("10"), Decimal("20"))
        assert totals.subtotal == Decimal("200.00")
        assert totals.tax_amount == Decimal("10.00")
        assert totals.total == Decimal("220.00")

    def test_tax_amount_variant(self):
        totals = pricing.compute_totals_with_tax_amount(self.lines(), Decimal("18"), Decimal("0"), Decimal("0"))
        assert totals.tax_amount == Decimal("18.00")
        assert totals.tax_rate == Decimal("9.00")
        assert totals.total == Decimal("218.00")

    def test_discount_larger_than_bill_rejected(self):
        with pytest.raises(ValidationError):
            pricing.compute_totals(self.lines(), Decimal("0"), Decimal("500"))

    def test_tax_rate_over_100_rejected(self):
        with pytest.raises(ValidationError):
            pricing.compute_totals(self.lines(), Decimal("150"))


class TestPayment:
    def test_split_with_change(self):
        payment = pricing.compute_payment(Decimal("80"), cash=50, card=40)
        assert payment.total_paid == Decimal("90.00")
        assert payment.due == Decimal("0")
        assert payment.change == Decimal("10.00")

    def test_due_amount(self):
        payment = pricing.compute_payment(Decimal("80"), cash=50)
        assert payment.due == Decimal("30.00")

    def test_insufficient_cash_rejected(self):
        payment = pricing.compute_payment(Decimal("80"), cash=50)
        with pytest.raises(InsufficientPaymentError, match="Total: 80.00, Paid: 50.00"):
            pricing.ensure_payment_covers(PaymentMode.CASH, payment, Decimal("80"))

    def test_due_mode_accepts_partial_payment(self):
        payment = pricing.compute_payment(Decimal("80"), cash=50)
        pricing.ensure_payment_covers(PaymentMode.DUE, payment, Decimal("80"))

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_payment_method_required(self, value):
        with pytest.raises(ValidationError, match="Payment method is required"):
            pricing.parse_payment_mode(value)

    def test_payment_method_parsing(self):
        assert pricing.parse_payment_mode(" UPI ") == PaymentMode.UPI
        with pytest.raises(ValidationError):
            pricing.parse_payment_mode("cheque")


class TestOrderType:
    @pytest.mark.parametrize("value", ["dinein", "dine-in", "dine_in", "DINE-IN"])
    def test_dine_in_aliases(self, value):
        assert pricing.normalize_order_type(value) == OrderType.DINE_IN

    def test_missing(self):
        with pytest.raises(ValidationError, match="Order type is required"):
            pricing.normalize_order_type(None)

    def test_not_allowed(self):
        with pytest.raises(ValidationError, match="Invalid orderType"):
            pricing.normalize_order_type("online", allowed=[OrderType.DINE_IN, OrderType.TAKEAWAY])


class TestCustomer:
    def test_required_fields(self):
        with pytest.raises(ValidationError, match="Customer name is required"):
            pricing.validate_customer(CustomerIn(phone="9876543210"))
        with pytest.raises(ValidationError, match="Customer phone is required"):
            pricing.validate_customer(CustomerIn(name="Asha"))
        with pytest.raises(ValidationError, match="Customer name is required"):
            pricing.validate_customer(None)

    def test_phone_digits(self):
        with pytest.raises(ValidationError, match="phone number is invalid"):
            pricing.validate_customer(CustomerIn(name="Asha", phone="12345"))
        info = pricing.validate_customer(CustomerIn(name="Asha", phone="+91 98765-43210"))
        assert info.phone == "+91 98765-43210"

    def test_email_lowercased_and_checked(self):
        info = pricing.validate_customer(CustomerIn(name="Asha", phone="9876543210", email="Asha@Example.COM"))
        assert info.email == "asha@example.com"
        with pytest.raises(ValidationError, match="email is invalid"):
            pricing.validate_customer(CustomerIn(name="Asha", phone="9876543210", email="not-an-email"))

    def test_optional_customer(self):
        info = pricing.validate_customer(None, required=False)
        assert info.name is None and info.phone is None
