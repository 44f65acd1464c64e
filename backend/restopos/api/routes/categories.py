"""Menu category routes."""

import logging
from typing import Annotated, Mapping, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func

from restopos.core.catalog_media import CategoryType, get_category_images, image_for
from restopos.core.exceptions import ConflictError, NotFoundError
from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireManager
from restopos.core.responses import dump, dump_all, success_response
from restopos.core.validators import PositiveIntId
from restopos.db.session import DbSession
from restopos.models.catalog import Category, MenuItem
from restopos.schemas.catalog import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

CategoryImages = Annotated[Mapping[CategoryType, str], Depends(get_category_images)]


def _get_category(db, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id, Category.active()).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def _ensure_unique_name(db, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Category '{name.strip()}' already exists")


@router.get("/get-all")
@limiter.limit("60/minute")
def list_categories(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    category_type: Optional[CategoryType] = Query(None, alias="type"),
):
    query = db.query(Category).filter(Category.active())
    if category_type is not None:
        query = query.filter(Category.category_type == category_type)
    categories = query.order_by(Category.sort_order, Category.name).all()
    return success_response(categories=dump_all(CategoryResponse, categories), total=len(categories))


@router.get("/get/{category_id}")
@limiter.limit("60/minute")
def get_category(request: Request, category_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    return success_response(category=dump(CategoryResponse, _get_category(db, category_id)))


@router.post("/add-category", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_category(
    request: Request,
    payload: CategoryCreate,
    db: DbSession,
    images: CategoryImages,
    current_user: RequireManager,
):
    """Create a category; its image follows from the category type."""
    _ensure_unique_name(db, payload.name)
    category = Category(
        name=payload.name.strip(),
        description=payload.description,
        category_type=payload.category_type,
        image=image_for(payload.category_type, images),
        sort_order=payload.sort_order,
        created_by=current_user.user_id,
        updated_by=current_user.user_id,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info(f"Created category '{category.name}' ({category.category_type.value})")
    return success_response("Category created successfully", category=dump(CategoryResponse, category))


@router.put("/update/{category_id}")
@limiter.limit("30/minute")
def update_category(
    request: Request,
    category_id: PositiveIntId,
    payload: CategoryUpdate,
    db: DbSession,
    images: CategoryImages,
    current_user: RequireManager,
):
    category = _get_category(db, category_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name"):
        _ensure_unique_name(db, data["name"], exclude_id=category.id)
        data["name"] = data["name"].strip()
    for key, value in data.items():
        if value is not None:
            setattr(category, key, value)
    if data.get("category_type") is not None:
        category.image = image_for(category.category_type, images)
    category.updated_by = current_user.user_id
    db.commit()
    db.refresh(category)
    return success_response("Category updated successfully", category=dump(CategoryResponse, category))


@router.delete("/delete/{category_id}")
@limiter.limit("30/minute")
def retire_category(request: Request, category_id: PositiveIntId, db: DbSession, current_user: RequireManager):
    """Retire a category. Categories still holding active menu items are kept."""
    category = _get_category(db, category_id)
    in_use = (
        db.query(MenuItem.id)
        .filter(MenuItem.category_id == category.id, MenuItem.active())
        .first()
    )
    if in_use is not None:
        raise ConflictError("Category still has active menu items")
    category.retire()
    category.updated_by = current_user.user_id
    db.commit()
    logger.info(f"Retired category '{category.name}'")
    return success_response("Category deleted successfully")
