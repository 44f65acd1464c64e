"""Order routes - running orders, bill generation and offline sync."""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireFloorStaff
from restopos.core.responses import dump, dump_all, success_response
from restopos.core.validators import PositiveIntId
from restopos.db.session import DbSession
from restopos.schemas.order import CancelOrder, GenerateBill, OrderResponse, OrderSave, SyncOrders
from restopos.services.order_service import get_order_service

router = APIRouter()


@router.post("/save", status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def save_order(request: Request, payload: OrderSave, db: DbSession, current_user: RequireFloorStaff):
    """Save a running order. With ``finalize`` the order is billed and stock is deducted."""
    order = get_order_service(db).save_order(payload, actor_id=current_user.user_id)
    return success_response(
        "Order saved successfully",
        orderId=order.id,
        orderNumber=order.order_number,
        order=dump(OrderResponse, order),
    )


@router.post("/generate-bill")
@limiter.limit("30/minute")
def generate_bill(request: Request, payload: GenerateBill, db: DbSession, current_user: RequireFloorStaff):
    order = get_order_service(db).generate_bill(payload, actor_id=current_user.user_id)
    return success_response("Bill generated successfully", order=dump(OrderResponse, order))


@router.get("/running")
@limiter.limit("60/minute")
def list_running_orders(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    table_number: Optional[str] = Query(None, alias="tableNumber"),
):
    orders = get_order_service(db).list_running(table_number=table_number)
    return success_response(orders=dump_all(OrderResponse, orders), total=len(orders))


@router.post("/sync")
@limiter.limit("10/minute")
def sync_offline_orders(request: Request, payload: SyncOrders, db: DbSession, current_user: RequireFloorStaff):
    """Store orders captured offline and give them permanent order numbers."""
    results = get_order_service(db).sync_offline_orders(payload.orders, actor_id=current_user.user_id)
    return success_response(
        f"Synced {len(results['successful'])} orders, {len(results['failed'])} failed",
        results=results,
    )


@router.post("/{order_id}/cancel")
@limiter.limit("30/minute")
def cancel_order(
    request: Request,
    order_id: PositiveIntId,
    db: DbSession,
    current_user: RequireFloorStaff,
    payload: Optional[CancelOrder] = None,
):
    reason = payload.reason if payload else None
    order = get_order_service(db).cancel_order(order_id, reason=reason)
    return success_response("Order cancelled successfully", order=dump(OrderResponse, order))


@router.get("/{order_id}")
@limiter.limit("60/minute")
def get_order(request: Request, order_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    order = get_order_service(db).get_order(order_id)
    return success_response(order=dump(OrderResponse, order))
