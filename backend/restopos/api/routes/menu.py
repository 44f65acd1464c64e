"""Menu item routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status
from sqlalchemy.orm import selectinload

from restopos.core.exceptions import NotFoundError, ValidationError
from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireManager
from restopos.core.responses import dump, dump_all, paginated_response, success_response
from restopos.core.validators import Limit, PositiveIntId, Skip
from restopos.db.session import DbSession
from restopos.models.catalog import Addon, Category, DietaryType, MenuItem, MenuItemVariation, Variation
from restopos.schemas.catalog import MenuItemCreate, MenuItemResponse, MenuItemUpdate, MenuVariationIn

logger = logging.getLogger(__name__)

router = APIRouter()


def _menu_query(db):
    return db.query(MenuItem).options(
        selectinload(MenuItem.variations).selectinload(MenuItemVariation.variation),
        selectinload(MenuItem.addons),
    )


def _get_menu_item(db, item_id: int) -> MenuItem:
    item = _menu_query(db).filter(MenuItem.id == item_id, MenuItem.active()).first()
    if not item:
        raise NotFoundError("Menu item not found")
    return item


def _check_category(db, category_id: int) -> None:
    category = db.get(Category, category_id)
    if category is None or not category.is_active:
        raise NotFoundError("Category not found")


def _build_variations(db, variations: List[MenuVariationIn]) -> List[MenuItemVariation]:
    seen = set()
    rows = []
    for entry in variations:
        if entry.variation_id in seen:
            raise ValidationError("Each variation can only be offered once per menu item")
        seen.add(entry.variation_id)
        variation = db.get(Variation, entry.variation_id)
        if variation is None or not variation.is_active:
            raise NotFoundError(f"Variation not found: {entry.variation_id}")
        rows.append(MenuItemVariation(variation_id=entry.variation_id, price=entry.price))
    return rows


def _load_addons(db, addon_ids: List[int]) -> List[Addon]:
    unique_ids = list(dict.fromkeys(addon_ids))
    if not unique_ids:
        return []
    addons = db.query(Addon).filter(Addon.id.in_(unique_ids), Addon.active()).all()
    found = {addon.id for addon in addons}
    missing = [addon_id for addon_id in unique_ids if addon_id not in found]
    if missing:
        raise NotFoundError(f"Addon not found: {missing[0]}")
    return addons


@router.get("/get-all")
@limiter.limit("60/minute")
def list_menu_items(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    category_id: Optional[int] = Query(None, alias="categoryId"),
    dietary: Optional[DietaryType] = Query(None),
    search: Optional[str] = Query(None),
    skip: Skip = 0,
    limit: Limit = 50,
):
    query = db.query(MenuItem).filter(MenuItem.active())
    if category_id is not None:
        query = query.filter(MenuItem.category_id == category_id)
    if dietary is not None:
        query = query.filter(MenuItem.dietary == dietary)
    if search:
        query = query.filter(MenuItem.name.ilike(f"%{search}%"))
    total = query.count()
    items = (
        query.options(
            selectinload(MenuItem.variations).selectinload(MenuItemVariation.variation),
            selectinload(MenuItem.addons),
        )
        .order_by(MenuItem.name)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return paginated_response("menuItems", dump_all(MenuItemResponse, items), total, skip, limit)


@router.get("/get/{item_id}")
@limiter.limit("60/minute")
def get_menu_item(request: Request, item_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    return success_response(menuItem=dump(MenuItemResponse, _get_menu_item(db, item_id)))


@router.post("/add-menu", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_menu_item(request: Request, payload: MenuItemCreate, db: DbSession, current_user: RequireManager):
    _check_category(db, payload.category_id)
    item = MenuItem(
        name=payload.name.strip(),
        category_id=payload.category_id,
        price=payload.price,
        dietary=payload.dietary,
        description=payload.description,
        image=payload.image,
        tags=payload.tags,
        extra_charge=payload.extra_charge,
        variations=_build_variations(db, payload.variations),
        addons=_load_addons(db, payload.addon_ids),
    )
    db.add(item)
    db.commit()
    item = _get_menu_item(db, item.id)
    logger.info(f"Created menu item '{item.name}'")
    return success_response("Menu item created successfully", menuItem=dump(MenuItemResponse, item))


@router.put("/update/{item_id}")
@limiter.limit("30/minute")
def update_menu_item(
    request: Request,
    item_id: PositiveIntId,
    payload: MenuItemUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    item = _get_menu_item(db, item_id)
    data = payload.model_dump(exclude_unset=True, exclude={"variations", "addon_ids"})
    if data.get("category_id") is not None:
        _check_category(db, data["category_id"])
    if data.get("name"):
        data["name"] = data["name"].strip()
    for key, value in data.items():
        if value is not None:
            setattr(item, key, value)
    if payload.variations is not None:
        variations = _build_variations(db, payload.variations)
        # Old rows must be gone before re-inserting the same (item, variation) pairs.
        item.variations = []
        db.flush()
        item.variations = variations
    if payload.addon_ids is not None:
        item.addons = _load_addons(db, payload.addon_ids)
    db.commit()
    item = _get_menu_item(db, item_id)
    return success_response("Menu item updated successfully", menuItem=dump(MenuItemResponse, item))


@router.delete("/delete/{item_id}")
@limiter.limit("30/minute")
def retire_menu_item(request: Request, item_id: PositiveIntId, db: DbSession, current_user: RequireManager):
    item = _get_menu_item(db, item_id)
    item.retire()
    db.commit()
    logger.info(f"Retired menu item '{item.name}'")
    return success_response("Menu item deleted successfully")
