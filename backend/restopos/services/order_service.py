"""Order Service - running orders taken on the floor.

running --finalize / generate-bill--> completed
running --cancel--> cancelled

Completing an order settles inventory in the same transaction as the
status change. Offline orders are saved under a TEMP- number and receive
their permanent ORD- number when synced.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from restopos.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    POSError,
    ValidationError,
)
from restopos.models.cart import OrderType
from restopos.models.order import Order, OrderLine, OrderStatus
from restopos.schemas.cart import PaymentSplitIn
from restopos.schemas.order import GenerateBill, OrderSave
from restopos.services import pricing
from restopos.services.billing_service import record_batches_used
from restopos.services.numbering import NumberingService, temp_order_number
from restopos.services.settlement import SettlementEngine, get_settlement_engine

logger = logging.getLogger(__name__)

ORDER_TYPES = (OrderType.DINE_IN, OrderType.TAKEAWAY, OrderType.DELIVERY)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """Save, bill, cancel and sync floor orders."""

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

    def get_order(self, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .first()
        )
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_running(self, table_number: Optional[str] = None) -> List[Order]:
        query = (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.status == OrderStatus.RUNNING)
        )
        if table_number:
            query = query.filter(Order.table_number == table_number)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    # ===== Commands =====

    def _number_taken(self, order_number: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Order.id).filter(Order.order_number == order_number)
        if exclude_id is not None:
            query = query.filter(Order.id != exclude_id)
        return query.first() is not None

    def _apply_payload(self, order: Order, payload: OrderSave) -> None:
        """Validate, price and copy a save payload onto ``order``."""
        if not payload.items:
            raise ValidationError("Order must contain at least one item")
        order_type = pricing.normalize_order_type(payload.order_type, allowed=ORDER_TYPES)
        customer = pricing.validate_customer(payload.customer, required=False)
        lines = pricing.sanitize_cart(payload.items)
        totals = pricing.compute_totals_with_tax_amount(
            lines, payload.tax, payload.discount, payload.service_charge
        )

        order.order_type = order_type
        order.table_number = payload.table_number or customer.table_number
        order.steward_id = payload.steward_id
        order.steward_name = payload.steward_name
        order.customer_name = customer.name
        order.customer_phone = customer.phone
        order.customer_email = customer.email
        order.delivery_address = customer.address
        order.notes = payload.notes
        order.subtotal = totals.subtotal
        order.tax = totals.tax_amount
        order.discount = totals.discount
        order.service_charge = totals.service_charge
        order.grand_total = totals.total
        order.lines = [OrderLine(**line.as_columns(i)) for i, line in enumerate(lines)]

    def _complete(self, order: Order, payment_mode, split: PaymentSplitIn, actor_id: Optional[int]) -> None:
        """Check payment, settle stock and mark ``order`` completed."""
        mode = pricing.parse_payment_mode(payment_mode)
        total = order.grand_total
        payment = pricing.compute_payment(total, split.cash, split.card, split.upi)
        pricing.ensure_payment_covers(mode, payment, total)

        result = self.settlement.settle(order.lines, actor_id=actor_id)
        record_batches_used(order.lines, result)

        order.payment_mode = mode
        order.paid_cash = payment.cash
        order.paid_card = payment.card
        order.paid_upi = payment.upi
        order.total_paid = payment.total_paid
        order.return_amount = payment.change
        order.due_amount = payment.due
        order.status = OrderStatus.COMPLETED
        order.completed_at = _now()
        logger.info(
            f"Order {order.order_number} completed: "
            f"{result.deduction_count} ingredient deductions"
        )

    def _commit(self, order: Order) -> Order:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Order number collision for {order.order_number}: {e}")
            raise ConflictError("Order number already exists")
        self.db.refresh(order)
        return order

    def save_order(self, payload: OrderSave, actor_id: Optional[int] = None) -> Order:
        """Create a running order, or update one when ``payload.order_id`` is set."""
        try:
            if payload.order_id is not None:
                order = self.get_order(payload.order_id)
                if order.is_terminal:
                    raise InvalidTransitionError(f"Cannot modify a {order.status.value} order")
                if payload.order_number and payload.order_number != order.order_number:
                    raise ValidationError("Order number cannot be changed")
            else:
                if payload.order_number and self._number_taken(payload.order_number):
                    raise ConflictError("Order number already exists")
                if payload.is_offline:
                    number = payload.order_number or temp_order_number()
                    order = Order(
                        order_number=number,
                        temp_order_id=payload.temp_order_id or number,
                        is_offline=True,
                        synced=False,
                    )
                else:
                    order = Order(order_number=payload.order_number or self.numbering.next_order_number())
                order.status = OrderStatus.RUNNING
                order.created_by = actor_id

            self._apply_payload(order, payload)

            if payload.finalize:
                if payload.payment_mode is None:
                    raise ValidationError("Payment mode is required to finalize an order")
                self._complete(order, payload.payment_mode, payload.split, actor_id)

            self.db.add(order)
        except POSError:
            self.db.rollback()
            raise
        order = self._commit(order)
        logger.info(f"Saved order {order.order_number} ({order.status.value})")
        return order

    def generate_bill(self, payload: GenerateBill, actor_id: Optional[int] = None) -> Order:
        try:
            order = self.get_order(payload.order_id)
            if order.status == OrderStatus.COMPLETED:
                raise InvalidTransitionError("Order already completed")
            if order.status == OrderStatus.CANCELLED:
                raise InvalidTransitionError("Cannot generate bill for cancelled order")
            self._complete(order, payload.payment_mode, payload.split, actor_id)
        except POSError:
            self.db.rollback()
            raise
        return self._commit(order)

    def cancel_order(self, order_id: int, reason: Optional[str] = None) -> Order:
        order = self.get_order(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise InvalidTransitionError("Order already cancelled")
        if order.status == OrderStatus.COMPLETED:
            raise InvalidTransitionError("Cannot cancel completed order")
        order.status = OrderStatus.CANCELLED
        order.cancelled_at = _now()
        order.cancel_reason = reason
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Cancelled order {order.order_number}")
        return order

    def _sync_one(self, payload: OrderSave, actor_id: Optional[int]) -> Order:
        temp_id = payload.temp_order_id or payload.order_number
        existing = None
        if temp_id:
            existing = (
                self.db.query(Order)
                .filter(Order.temp_order_id == temp_id)
                .order_by(Order.id.desc())
                .first()
            )
        if existing is not None and existing.synced:
            return existing

        if existing is not None:
            order = existing
            order.order_number = self.numbering.next_order_number()
        else:
            clean = payload.model_copy(update={"order_id": None, "order_number": None, "is_offline": False})
            order = self.save_order(clean, actor_id=actor_id)
            order.temp_order_id = temp_id
            order.is_offline = True

        order.synced = True
        return self._commit(order)

    def sync_offline_orders(self, orders: List[OrderSave], actor_id: Optional[int] = None) -> Dict[str, Any]:
        """Give each offline order a permanent number. Failures are reported per order."""
        results: Dict[str, Any] = {"successful": [], "failed": []}
        for payload in orders:
            temp_id = payload.temp_order_id or payload.order_number
            try:
                order = self._sync_one(payload, actor_id)
            except POSError as e:
                self.db.rollback()
                logger.warning(f"Offline order {temp_id} failed to sync: {e.message}")
                results["failed"].append({"tempOrderId": temp_id, "error": e.message})
                continue
            results["successful"].append({
                "tempOrderId": temp_id,
                "orderId": order.id,
                "orderNumber": order.order_number,
            })
        logger.info(
            f"Synced {len(results['successful'])} orders, {len(results['failed'])} failed"
        )
        return results


def get_order_service(db: Session) -> OrderService:
    return OrderService(db)
