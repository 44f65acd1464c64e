"""Inventory routes - stock items, batches and wastage."""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireAdmin, RequireManager
from restopos.core.responses import dump, dump_all, paginated_response, success_response
from restopos.core.validators import Limit, PositiveIntId, Skip
from restopos.db.session import DbSession
from restopos.models.inventory import StockCategory
from restopos.schemas.inventory import (
    BatchIn,
    BatchResponse,
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
    WastageIn,
    WastageResponse,
)
from restopos.services.inventory_service import get_inventory_service

router = APIRouter()


@router.get("/get-all")
@limiter.limit("60/minute")
def list_stock_items(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    search: Optional[str] = Query(None),
    category: Optional[StockCategory] = Query(None),
    low_stock: bool = Query(False, alias="lowStock"),
    skip: Skip = 0,
    limit: Limit = 50,
):
    """List active stock items with their batches and derived totals."""
    items, total = get_inventory_service(db).list_items(
        search=search, category=category, low_stock=low_stock, skip=skip, limit=limit
    )
    return paginated_response("items", dump_all(StockItemResponse, items), total, skip, limit)


@router.get("/low-stock")
@limiter.limit("60/minute")
def list_low_stock(request: Request, db: DbSession, current_user: CurrentUser):
    """Active stock items at or below their reorder level."""
    items = get_inventory_service(db).low_stock()
    return success_response(items=dump_all(StockItemResponse, items), total=len(items))


@router.get("/get/{item_id}")
@limiter.limit("60/minute")
def get_stock_item(request: Request, item_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    item = get_inventory_service(db).get_item(item_id)
    return success_response(item=dump(StockItemResponse, item))


@router.post("/add-item", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_stock_item(
    request: Request,
    payload: StockItemCreate,
    db: DbSession,
    current_user: RequireManager,
):
    """Create a stock item, optionally with its opening batches."""
    item = get_inventory_service(db).create_item(payload, actor_id=current_user.user_id)
    return success_response("Inventory item created successfully", item=dump(StockItemResponse, item))


@router.put("/update/{item_id}")
@limiter.limit("30/minute")
def update_stock_item(
    request: Request,
    item_id: PositiveIntId,
    payload: StockItemUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    """Update item fields; ``batches`` corrects existing batches by batch number."""
    item = get_inventory_service(db).update_item(item_id, payload, actor_id=current_user.user_id)
    return success_response("Inventory item updated successfully", item=dump(StockItemResponse, item))


@router.delete("/delete/{item_id}")
@limiter.limit("30/minute")
def retire_stock_item(request: Request, item_id: PositiveIntId, db: DbSession, current_user: RequireAdmin):
    get_inventory_service(db).retire_item(item_id)
    return success_response("Inventory item deleted successfully")


@router.post("/add-batch/{item_id}", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def add_batch(
    request: Request,
    item_id: PositiveIntId,
    payload: BatchIn,
    db: DbSession,
    current_user: RequireManager,
):
    """Receive stock into a new batch."""
    service = get_inventory_service(db)
    batch = service.add_batch(item_id, payload, actor_id=current_user.user_id)
    item = service.get_item(item_id)
    return success_response(
        "Batch added successfully",
        batch=dump(BatchResponse, batch),
        item=dump(StockItemResponse, item),
    )


@router.get("/batches/{item_id}")
@limiter.limit("60/minute")
def list_batches(request: Request, item_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    """Batches of one stock item in consumption order (oldest first)."""
    batches = get_inventory_service(db).batches_oldest_first(item_id)
    return success_response(batches=dump_all(BatchResponse, batches), total=len(batches))


@router.post("/add-wastage/{item_id}", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def add_wastage(
    request: Request,
    item_id: PositiveIntId,
    payload: WastageIn,
    db: DbSession,
    current_user: RequireManager,
):
    """Write off stock. The quantity is taken from the oldest batches."""
    service = get_inventory_service(db)
    entry = service.record_wastage(item_id, payload, actor_id=current_user.user_id)
    item = service.get_item(item_id)
    return success_response(
        "Wastage recorded successfully",
        wastage=dump(WastageResponse, entry),
        item=dump(StockItemResponse, item),
    )
