"""Cart pricing, totals, payment split and customer validation.

Pure functions shared by the billing and order services. Money is kept as
Decimal and rounded half-up to 2 places at each reported figure.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from email_validator import EmailNotValidError, validate_email

from restopos.core.exceptions import InsufficientPaymentError, ValidationError
from restopos.models.cart import OrderType, PaymentMode

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")

ORDER_TYPE_ALIASES = {
    "dinein": OrderType.DINE_IN,
    "dine-in": OrderType.DINE_IN,
    "dine_in": OrderType.DINE_IN,
    "takeaway": OrderType.TAKEAWAY,
    "take-away": OrderType.TAKEAWAY,
    "delivery": OrderType.DELIVERY,
    "online": OrderType.ONLINE,
}


def round_money(value) -> Decimal:
    value = value if isinstance(value, Decimal) else Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def clamp_non_negative(value) -> Decimal:
    value = value if isinstance(value, Decimal) else Decimal(str(value or 0))
    return max(ZERO, value)


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: int
    item_name: str
    base_price: Decimal
    quantity: int
    variation_id: Optional[int]
    variation_name: Optional[str]
    variation_extra_price: Decimal
    addons: List[dict]
    line_total: Decimal

    def as_columns(self, position: int) -> dict:
        return {
            "position": position,
            "menu_item_id": self.menu_item_id,
            "item_name": self.item_name,
            "base_price": self.base_price,
            "quantity": self.quantity,
            "variation_id": self.variation_id,
            "variation_name": self.variation_name,
            "variation_extra_price": self.variation_extra_price,
            "addons": self.addons,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    service_charge: Decimal
    total: Decimal


@dataclass(frozen=True)
class PaymentSplit:
    cash: Decimal
    card: Decimal
    upi: Decimal
    total_paid: Decimal
    due: Decimal
    change: Decimal


def line_total(base_price: Decimal, addon_prices: Sequence[Decimal], variation_extra: Decimal, quantity: int) -> Decimal:
    """``(basePrice + sum(addons) + variation.extraPrice) * quantity``, rounded."""
    unit_price = base_price + sum(addon_prices, ZERO) + variation_extra
    return round_money(unit_price * quantity)


def sanitize_cart(cart) -> List[PricedLine]:
    """Clamp prices to >= 0 and quantities to >= 1, then price every line.

    ``cart`` is a sequence of ``CartLineIn``. An empty cart is rejected.
    """
    if not cart:
        raise ValidationError("Cart cannot be empty")

    priced: List[PricedLine] = []
    for line in cart:
        base_price = clamp_non_negative(line.base_price)
        quantity = max(1, int(line.quantity or 1))
        addons = [
            {"id": addon.id, "name": addon.name, "price": float(clamp_non_negative(addon.price))}
            for addon in line.addons
        ]
        variation = line.variation
        variation_extra = clamp_non_negative(variation.extra_price) if variation else ZERO
        priced.append(PricedLine(
            menu_item_id=line.menu_item_id,
            item_name=line.item_name.strip(),
            base_price=round_money(base_price),
            quantity=quantity,
            variation_id=variation.id if variation else None,
            variation_name=variation.name if variation else None,
            variation_extra_price=round_money(variation_extra),
            addons=addons,
            line_total=line_total(
                base_price,
                [clamp_non_negative(addon.price) for addon in line.addons],
                variation_extra,
                quantity,
            ),
        ))
    return priced


def _totals(subtotal: Decimal, tax_rate: Decimal, tax_amount: Decimal, discount, service_charge) -> Totals:
    discount = round_money(clamp_non_negative(discount))
    service_charge = round_money(clamp_non_negative(service_charge))
    total = round_money(subtotal + tax_amount - discount + service_charge)
    if total < 0:
        raise ValidationError("Discount cannot exceed the bill amount")
    return Totals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount=discount,
        service_charge=service_charge,
        total=total,
    )


def compute_totals(lines: Sequence[PricedLine], tax_rate, discount=ZERO, service_charge=ZERO) -> Totals:
    """Bill totals with tax given as a percentage of the subtotal."""
    tax_rate = clamp_non_negative(tax_rate)
    if tax_rate > 100:
        raise ValidationError("Tax rate cannot exceed 100 percent")
    subtotal = round_money(sum((line.line_total for line in lines), ZERO))
    tax_amount = round_money(subtotal * tax_rate / Decimal("100"))
    return _totals(subtotal, tax_rate, tax_amount, discount, service_charge)


def compute_totals_with_tax_amount(lines: Sequence[PricedLine], tax=ZERO, discount=ZERO, service_charge=ZERO) -> Totals:
    """Order totals where the till sends the tax as an amount."""
    subtotal = round_money(sum((line.line_total for line in lines), ZERO))
    tax_amount = round_money(clamp_non_negative(tax))
    tax_rate = round_money(tax_amount * 100 / subtotal) if subtotal else ZERO
    return _totals(subtotal, tax_rate, tax_amount, discount, service_charge)


def compute_payment(total: Decimal, cash=ZERO, card=ZERO, upi=ZERO) -> PaymentSplit:
    cash = round_money(clamp_non_negative(cash))
    card = round_money(clamp_non_negative(card))
    upi = round_money(clamp_non_negative(upi))
    total_paid = cash + card + upi
    return PaymentSplit(
        cash=cash,
        card=card,
        upi=upi,
        total_paid=total_paid,
        due=max(ZERO, total - total_paid),
        change=max(ZERO, total_paid - total),
    )


def parse_payment_mode(value) -> PaymentMode:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Payment method is required")
    try:
        return PaymentMode(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid payment method: {value}")


def ensure_payment_covers(mode: PaymentMode, payment: PaymentSplit, total: Decimal) -> None:
    """Anything but a 'due' sale must be paid in full before it is finalized."""
    if mode != PaymentMode.DUE and payment.total_paid < total:
        raise InsufficientPaymentError(total_paid=payment.total_paid, total=total)


def normalize_order_type(value, allowed: Optional[Sequence[OrderType]] = None) -> OrderType:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Order type is required")
    key = str(getattr(value, "value", value)).strip().lower()
    order_type = ORDER_TYPE_ALIASES.get(key)
    if order_type is None or (allowed is not None and order_type not in allowed):
        raise ValidationError(f"Invalid orderType: {value}")
    return order_type


@dataclass(frozen=True)
class CustomerInfo:
    name: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    table_number: Optional[str]
    address: Optional[str]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_phone(phone: str) -> None:
    digits = "".join(ch for ch in phone if ch.isdigit())
    if not 10 <= len(digits) <= 15:
        raise ValidationError("Customer phone number is invalid")


def _check_email(email: str) -> str:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Customer email is invalid")
    return email.lower()


def validate_customer(customer, required: bool = True) -> CustomerInfo:
    """Normalize customer contact fields.

    With ``required`` (bills) name and phone must be present; otherwise
    (orders) whatever is present is still validated.
    """
    name = _clean(getattr(customer, "name", None))
    phone = _clean(getattr(customer, "phone", None))
    email = _clean(getattr(customer, "email", None))

    if required and not name:
        raise ValidationError("Customer name is required")
    if required and not phone:
        raise ValidationError("Customer phone is required")
    if phone:
        _check_phone(phone)
    if email:
        email = _check_email(email)

    return CustomerInfo(
        name=name,
        phone=phone,
        email=email,
        table_number=_clean(getattr(customer, "table_number", None)),
        address=_clean(getattr(customer, "address", None)),
    )
