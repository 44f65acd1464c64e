"""Billing routes - bills, finalize and payment top-ups."""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireCashier, RequireManager
from restopos.core.responses import dump, dump_all, paginated_response, success_response
from restopos.core.validators import Limit, PositiveIntId, Skip
from restopos.db.session import DbSession
from restopos.models.billing import BillStatus
from restopos.schemas.billing import BillCreate, BillResponse, BillUpdate, PaymentTopUp
from restopos.services.billing_service import get_billing_service

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_bill(request: Request, payload: BillCreate, db: DbSession, current_user: RequireCashier):
    """Create a draft bill, or a finalized one when ``finalize`` is true.

    Finalizing deducts the recipe ingredients of every cart line from stock;
    if any ingredient is short nothing is saved.
    """
    bill = get_billing_service(db).create_bill(payload, actor_id=current_user.user_id)
    message = "Bill finalized successfully" if not bill.is_draft else "Bill saved as draft"
    return success_response(message, bill=dump(BillResponse, bill))


@router.get("/")
@limiter.limit("60/minute")
def list_bills(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    skip: Skip = 0,
    limit: Limit = 50,
):
    """List bills, newest first."""
    bills, total = get_billing_service(db).list_bills(status=bill_status, skip=skip, limit=limit)
    return paginated_response("bills", dump_all(BillResponse, bills), total, skip, limit)


@router.get("/{bill_id}")
@limiter.limit("60/minute")
def get_bill(request: Request, bill_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    bill = get_billing_service(db).get_bill(bill_id)
    return success_response(bill=dump(BillResponse, bill))


@router.put("/{bill_id}")
@limiter.limit("30/minute")
def update_bill(
    request: Request,
    bill_id: PositiveIntId,
    payload: BillUpdate,
    db: DbSession,
    current_user: RequireCashier,
):
    bill = get_billing_service(db).update_bill(bill_id, payload, actor_id=current_user.user_id)
    return success_response("Bill updated successfully", bill=dump(BillResponse, bill))


@router.delete("/{bill_id}")
@limiter.limit("30/minute")
def delete_bill(request: Request, bill_id: PositiveIntId, db: DbSession, current_user: RequireManager):
    get_billing_service(db).delete_bill(bill_id)
    return success_response("Bill deleted successfully")


@router.post("/{bill_id}/payment")
@limiter.limit("30/minute")
def add_payment(
    request: Request,
    bill_id: PositiveIntId,
    payload: PaymentTopUp,
    db: DbSession,
    current_user: RequireCashier,
):
    bill = get_billing_service(db).add_payment(bill_id, payload)
    return success_response("Payment recorded successfully", bill=dump(BillResponse, bill))
