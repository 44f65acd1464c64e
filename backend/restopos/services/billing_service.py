"""Billing Service - bill lifecycle and the finalize transition.

draft --finalize--> pending (amount due) | paid
pending --payment top-up--> paid

Finalizing runs the Settlement Engine inside the same session; the bill and
the stock deductions are committed together, or neither is.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from restopos.core.config import settings
from restopos.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    POSError,
    ValidationError,
)
from restopos.models.billing import Bill, BillLine, BillStatus
from restopos.models.order import Order
from restopos.schemas.billing import BillCreate, BillUpdate, PaymentTopUp
from restopos.services import pricing
from restopos.services.numbering import NumberingService
from restopos.services.settlement import SettlementEngine, SettlementResult, get_settlement_engine

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (BillStatus.PAID, BillStatus.CANCELLED)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _finalized_status(payment: pricing.PaymentSplit) -> BillStatus:
    return BillStatus.PENDING if payment.due > 0 else BillStatus.PAID


def record_batches_used(lines, result: SettlementResult) -> None:
    """Copy what settlement consumed onto the matching cart lines."""
    for line, settled in zip(lines, result.lines):
        line.batches_used = settled.batches_used


class BillingService:
    """Create, update, pay and delete bills."""

    def __init__(
        self,
        db: Session,
        settlement: Optional[SettlementEngine] = None,
        numbering: Optional[NumberingService] = None,
    ):
        self.db = db
        self.settlement = settlement or get_settlement_engine(db)
        self.numbering = numbering or NumberingService(db)

    # ===== Queries =====

    def get_bill(self, bill_id: int) -> Bill:
        bill = (
            self.db.query(Bill)
            .options(selectinload(Bill.lines))
            .filter(Bill.id == bill_id)
            .first()
        )
        if not bill:
            raise NotFoundError("Bill not found")
        return bill

    def list_bills(
        self,
        status: Optional[BillStatus] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Bill], int]:
        query = self.db.query(Bill)
        if status is not None:
            query = query.filter(Bill.status == status)
        total = query.count()
        bills = (
            query.options(selectinload(Bill.lines))
            .order_by(Bill.created_at.desc(), Bill.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return bills, total

    # ===== Commands =====

    def _prepare(self, payload: BillCreate):
        """Validate and price a create/update payload. Raises ValidationError."""
        if not payload.cart:
            raise ValidationError("Cart cannot be empty")
        order_type = pricing.normalize_order_type(payload.order_type)
        customer = pricing.validate_customer(payload.customer, required=True)
        mode = pricing.parse_payment_mode(payload.payment_method)

        lines = pricing.sanitize_cart(payload.cart)
        tax_rate = payload.tax_rate if payload.tax_rate is not None else settings.default_tax_rate
        totals = pricing.compute_totals(lines, tax_rate, payload.discount, payload.service_charge)
        payment = pricing.compute_payment(
            totals.total, payload.payment.cash, payload.payment.card, payload.payment.upi
        )
        if payload.finalize:
            pricing.ensure_payment_covers(mode, payment, totals.total)
        return order_type, customer, mode, lines, totals, payment

    @staticmethod
    def _apply_header(bill: Bill, order_type, customer, mode, totals, payment) -> None:
        bill.order_type = order_type
        bill.customer_name = customer.name
        bill.customer_phone = customer.phone
        bill.customer_email = customer.email
        bill.table_number = customer.table_number
        bill.delivery_address = customer.address
        bill.payment_mode = mode
        bill.paid_cash = payment.cash
        bill.paid_card = payment.card
        bill.paid_upi = payment.upi
        bill.total_paid = payment.total_paid
        bill.due_amount = payment.due
        bill.subtotal = totals.subtotal
        bill.tax_rate = totals.tax_rate
        bill.tax_amount = totals.tax_amount
        bill.discount_amount = totals.discount
        bill.service_charge = totals.service_charge
        bill.total = totals.total

    def _settle(self, bill: Bill, payment: pricing.PaymentSplit, actor_id: Optional[int]) -> None:
        result = self.settlement.settle(bill.lines, actor_id=actor_id)
        record_batches_used(bill.lines, result)
        bill.status = _finalized_status(payment)
        bill.finalized_at = _now()
        if bill.status == BillStatus.PAID:
            bill.paid_at = bill.finalized_at
        logger.info(
            f"Bill {bill.billing_number} finalized as {bill.status.value}: "
            f"{result.deduction_count} ingredient deductions"
        )

    def _commit(self, bill: Bill) -> Bill:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Bill number collision for {bill.billing_number}: {e}")
            raise ConflictError("Duplicate billing number error. Please try again.")
        self.db.refresh(bill)
        return bill

    def create_bill(self, payload: BillCreate, actor_id: Optional[int] = None) -> Bill:
        try:
            order_type, customer, mode, lines, totals, payment = self._prepare(payload)

            if payload.order_id is not None and self.db.get(Order, payload.order_id) is None:
                raise NotFoundError("Order not found")

            bill = Bill(
                billing_number=self.numbering.next_bill_number(),
                order_id=payload.order_id,
                status=BillStatus.DRAFT,
                created_by=actor_id,
                lines=[BillLine(**line.as_columns(i)) for i, line in enumerate(lines)],
            )
            self._apply_header(bill, order_type, customer, mode, totals, payment)

            if payload.finalize:
                self._settle(bill, payment, actor_id)

            self.db.add(bill)
        except POSError:
            self.db.rollback()
            raise
        return self._commit(bill)

    @staticmethod
    def _same_cart(bill: Bill, lines: List[pricing.PricedLine]) -> bool:
        current = [(l.menu_item_id, l.variation_id, l.quantity) for l in bill.lines]
        incoming = [(l.menu_item_id, l.variation_id, l.quantity) for l in lines]
        return current == incoming

    def update_bill(self, bill_id: int, payload: BillUpdate, actor_id: Optional[int] = None) -> Bill:
        try:
            bill = self.get_bill(bill_id)
            if bill.status in TERMINAL_STATUSES:
                raise InvalidTransitionError(f"Cannot modify a {bill.status.value} bill")
            if not bill.is_draft and not payload.finalize:
                raise InvalidTransitionError("Cannot convert finalized bill back to draft")

            order_type, customer, mode, lines, totals, payment = self._prepare(payload)

            if bill.is_draft:
                bill.lines = [BillLine(**line.as_columns(i)) for i, line in enumerate(lines)]
                self._apply_header(bill, order_type, customer, mode, totals, payment)
                if payload.finalize:
                    self._settle(bill, payment, actor_id)
            else:
                # Already settled: stock was deducted for these exact lines.
                if not self._same_cart(bill, lines):
                    raise ValidationError("Cart of a finalized bill cannot be changed")
                for existing, priced in zip(bill.lines, lines):
                    columns = priced.as_columns(existing.position)
                    for key in ("item_name", "base_price", "variation_name",
                                "variation_extra_price", "addons", "line_total"):
                        setattr(existing, key, columns[key])
                self._apply_header(bill, order_type, customer, mode, totals, payment)
                bill.status = _finalized_status(payment)
                if bill.status == BillStatus.PAID and bill.paid_at is None:
                    bill.paid_at = _now()
        except POSError:
            self.db.rollback()
            raise
        return self._commit(bill)

    def delete_bill(self, bill_id: int) -> None:
        bill = self.get_bill(bill_id)
        if not bill.is_draft:
            raise InvalidTransitionError("Only draft bills can be deleted")
        self.db.delete(bill)
        self.db.commit()
        logger.info(f"Deleted draft bill {bill.billing_number}")

    def add_payment(self, bill_id: int, payload: PaymentTopUp) -> Bill:
        """Top up the payment split of a finalized bill; settles it once nothing is due."""
        bill = self.get_bill(bill_id)
        if bill.is_draft:
            raise InvalidTransitionError("Cannot add payment to draft bill")
        if bill.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Cannot add payment to a {bill.status.value} bill")

        top_up = payload.payment
        payment = pricing.compute_payment(
            Decimal(bill.total),
            Decimal(bill.paid_cash) + pricing.clamp_non_negative(top_up.cash),
            Decimal(bill.paid_card) + pricing.clamp_non_negative(top_up.card),
            Decimal(bill.paid_upi) + pricing.clamp_non_negative(top_up.upi),
        )
        bill.paid_cash = payment.cash
        bill.paid_card = payment.card
        bill.paid_upi = payment.upi
        bill.total_paid = payment.total_paid
        bill.due_amount = payment.due
        if payment.due <= 0:
            bill.status = BillStatus.PAID
            bill.paid_at = _now()
            logger.info(f"Bill {bill.billing_number} fully paid")
        self.db.commit()
        self.db.refresh(bill)
        return bill


def get_billing_service(db: Session) -> BillingService:
    return BillingService(db)
