"""Variation and addon routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from restopos.core.exceptions import NotFoundError
from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireManager
from restopos.core.responses import dump, dump_all, success_response
from restopos.core.validators import PositiveIntId
from restopos.db.session import DbSession
from restopos.models.catalog import Addon, DietaryType, Variation, VariationType
from restopos.schemas.catalog import (
    AddonCreate,
    AddonResponse,
    AddonUpdate,
    VariationCreate,
    VariationResponse,
    VariationUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_active(db, model, object_id: int, label: str):
    obj = db.query(model).filter(model.id == object_id, model.active()).first()
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def _apply(obj, data: dict) -> None:
    for key, value in data.items():
        if value is not None:
            setattr(obj, key, value.strip() if isinstance(value, str) else value)


# ===== Variations =====

@router.get("/variations")
@limiter.limit("60/minute")
def list_variations(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    variation_type: Optional[VariationType] = Query(None, alias="type"),
):
    query = db.query(Variation).filter(Variation.active())
    if variation_type is not None:
        query = query.filter(Variation.variation_type == variation_type)
    variations = query.order_by(Variation.name).all()
    return success_response(variations=dump_all(VariationResponse, variations), total=len(variations))


@router.post("/create-variation", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_variation(request: Request, payload: VariationCreate, db: DbSession, current_user: RequireManager):
    variation = Variation(
        name=payload.name.strip(),
        variation_type=payload.variation_type,
        price=payload.price,
    )
    db.add(variation)
    db.commit()
    db.refresh(variation)
    logger.info(f"Created variation '{variation.name}'")
    return success_response("Variation created successfully", variation=dump(VariationResponse, variation))


@router.get("/variation/{variation_id}")
@limiter.limit("60/minute")
def get_variation(request: Request, variation_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    variation = _get_active(db, Variation, variation_id, "Variation")
    return success_response(variation=dump(VariationResponse, variation))


@router.put("/variation/{variation_id}")
@limiter.limit("30/minute")
def update_variation(
    request: Request,
    variation_id: PositiveIntId,
    payload: VariationUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    variation = _get_active(db, Variation, variation_id, "Variation")
    _apply(variation, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(variation)
    return success_response("Variation updated successfully", variation=dump(VariationResponse, variation))


@router.delete("/variation/{variation_id}")
@limiter.limit("30/minute")
def retire_variation(request: Request, variation_id: PositiveIntId, db: DbSession, current_user: RequireManager):
    variation = _get_active(db, Variation, variation_id, "Variation")
    variation.retire()
    db.commit()
    logger.info(f"Retired variation '{variation.name}'")
    return success_response("Variation deleted successfully")


# ===== Addons =====

@router.get("/addons")
@limiter.limit("60/minute")
def list_addons(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    dietary: Optional[DietaryType] = Query(None),
):
    query = db.query(Addon).filter(Addon.active())
    if dietary is not None:
        query = query.filter(Addon.dietary == dietary)
    addons = query.order_by(Addon.name).all()
    return success_response(addons=dump_all(AddonResponse, addons), total=len(addons))


@router.post("/create-addon", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_addon(request: Request, payload: AddonCreate, db: DbSession, current_user: RequireManager):
    addon = Addon(name=payload.name.strip(), dietary=payload.dietary, price=payload.price)
    db.add(addon)
    db.commit()
    db.refresh(addon)
    logger.info(f"Created addon '{addon.name}'")
    return success_response("Addon created successfully", addon=dump(AddonResponse, addon))


@router.get("/addon/{addon_id}")
@limiter.limit("60/minute")
def get_addon(request: Request, addon_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    return success_response(addon=dump(AddonResponse, _get_active(db, Addon, addon_id, "Addon")))


@router.put("/addon/{addon_id}")
@limiter.limit("30/minute")
def update_addon(
    request: Request,
    addon_id: PositiveIntId,
    payload: AddonUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    addon = _get_active(db, Addon, addon_id, "Addon")
    _apply(addon, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(addon)
    return success_response("Addon updated successfully", addon=dump(AddonResponse, addon))


@router.delete("/addon/{addon_id}")
@limiter.limit("30/minute")
def retire_addon(request: Request, addon_id: PositiveIntId, db: DbSession, current_user: RequireManager):
    addon = _get_active(db, Addon, addon_id, "Addon")
    addon.retire()
    db.commit()
    logger.info(f"Retired addon '{addon.name}'")
    return success_response("Addon deleted successfully")
