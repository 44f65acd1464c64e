"""Recipe routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status
from sqlalchemy.orm import selectinload

from restopos.core.exceptions import ConflictError, NotFoundError, StockItemMissingError
from restopos.core.rate_limit import limiter
from restopos.core.rbac import CurrentUser, RequireAdmin, RequireManager
from restopos.core.responses import dump, dump_all, paginated_response, success_response
from restopos.core.validators import Limit, PositiveIntId, Skip
from restopos.db.session import DbSession
from restopos.models.catalog import MenuItem, Variation
from restopos.models.inventory import StockItem
from restopos.models.recipe import Recipe, RecipeIngredient
from restopos.schemas.recipe import IngredientIn, RecipeCreate, RecipeResponse, RecipeUpdate
from restopos.services.recipe_resolver import RecipeResolver

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_recipe(db, recipe_id: int) -> Recipe:
    recipe = (
        db.query(Recipe)
        .options(selectinload(Recipe.ingredients))
        .filter(Recipe.id == recipe_id, Recipe.active())
        .first()
    )
    if not recipe:
        raise NotFoundError("Recipe not found")
    return recipe


def _check_targets(db, menu_item_id: int, variation_id: Optional[int]) -> None:
    menu_item = db.get(MenuItem, menu_item_id)
    if menu_item is None or not menu_item.is_active:
        raise NotFoundError("Menu item not found")
    if variation_id is not None:
        variation = db.get(Variation, variation_id)
        if variation is None or not variation.is_active:
            raise NotFoundError("Variation not found")


def _build_ingredients(db, ingredients: List[IngredientIn]) -> List[RecipeIngredient]:
    """Ingredient rows in request order; every stock item must exist and be active."""
    rows = []
    for position, ingredient in enumerate(ingredients):
        stock_item = db.get(StockItem, ingredient.stock_item_id)
        if stock_item is None or not stock_item.is_active:
            raise StockItemMissingError(ingredient.stock_item_id)
        rows.append(RecipeIngredient(
            stock_item_id=ingredient.stock_item_id,
            quantity=ingredient.quantity,
            unit=ingredient.unit,
            position=position,
        ))
    return rows


def _ensure_unique_target(db, menu_item_id: int, variation_id: Optional[int], exclude_id: Optional[int] = None):
    duplicate = RecipeResolver(db).find_duplicate(menu_item_id, variation_id, exclude_id=exclude_id)
    if duplicate is not None:
        target = "this variation" if variation_id is not None else "the default variation"
        raise ConflictError(
            f"Recipe '{duplicate.name}' already exists for this menu item and {target}"
        )


@router.get("/get-all")
@limiter.limit("60/minute")
def list_recipes(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    search: Optional[str] = Query(None),
    menu_item_id: Optional[int] = Query(None, alias="menuId"),
    skip: Skip = 0,
    limit: Limit = 50,
):
    """List active recipes."""
    query = db.query(Recipe).filter(Recipe.active())
    if search:
        query = query.filter(Recipe.name.ilike(f"%{search}%"))
    if menu_item_id is not None:
        query = query.filter(Recipe.menu_item_id == menu_item_id)
    total = query.count()
    recipes = (
        query.options(selectinload(Recipe.ingredients))
        .order_by(Recipe.name)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return paginated_response("recipes", dump_all(RecipeResponse, recipes), total, skip, limit)


@router.get("/get/{recipe_id}")
@limiter.limit("60/minute")
def get_recipe(request: Request, recipe_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    return success_response(recipe=dump(RecipeResponse, _get_recipe(db, recipe_id)))


@router.get("/by-menu/{menu_item_id}")
@limiter.limit("60/minute")
def get_recipe_for_menu_item(
    request: Request,
    menu_item_id: PositiveIntId,
    db: DbSession,
    current_user: CurrentUser,
    variation_id: Optional[int] = Query(None, alias="variationId"),
):
    """The recipe a sale of this menu item (and variation) would settle against."""
    recipe = RecipeResolver(db).resolve(menu_item_id, variation_id)
    if recipe is None:
        raise NotFoundError("No recipe found for this menu item")
    return success_response(recipe=dump(RecipeResponse, recipe))


@router.post("/add-recipe", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_recipe(request: Request, payload: RecipeCreate, db: DbSession, current_user: RequireManager):
    _check_targets(db, payload.menu_item_id, payload.variation_id)
    _ensure_unique_target(db, payload.menu_item_id, payload.variation_id)

    recipe = Recipe(
        name=payload.name.strip(),
        description=payload.description,
        menu_item_id=payload.menu_item_id,
        variation_id=payload.variation_id,
        category=payload.category,
        dietary=payload.dietary,
        per_serving_cost=payload.per_serving_cost,
        notes=payload.notes,
        last_updated_by=current_user.user_id,
        ingredients=_build_ingredients(db, payload.ingredients),
    )
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info(f"Created recipe '{recipe.name}' with {len(recipe.ingredients)} ingredients")
    return success_response("Recipe created successfully", recipe=dump(RecipeResponse, recipe))


@router.put("/update/{recipe_id}")
@limiter.limit("30/minute")
def update_recipe(
    request: Request,
    recipe_id: PositiveIntId,
    payload: RecipeUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    """Update a recipe. A new ingredient list replaces the old one."""
    recipe = _get_recipe(db, recipe_id)
    data = payload.model_dump(exclude_unset=True, exclude={"ingredients"})

    menu_item_id = data.get("menu_item_id") or recipe.menu_item_id
    variation_id = data["variation_id"] if "variation_id" in data else recipe.variation_id
    if menu_item_id != recipe.menu_item_id or variation_id != recipe.variation_id:
        _check_targets(db, menu_item_id, variation_id)
        _ensure_unique_target(db, menu_item_id, variation_id, exclude_id=recipe.id)

    for key, value in data.items():
        if value is not None or key == "variation_id":
            setattr(recipe, key, value)
    if payload.ingredients is not None:
        recipe.ingredients = _build_ingredients(db, payload.ingredients)
    recipe.last_updated_by = current_user.user_id

    db.commit()
    db.refresh(recipe)
    return success_response("Recipe updated successfully", recipe=dump(RecipeResponse, recipe))


@router.delete("/delete/{recipe_id}")
@limiter.limit("30/minute")
def retire_recipe(request: Request, recipe_id: PositiveIntId, db: DbSession, current_user: RequireAdmin):
    recipe = _get_recipe(db, recipe_id)
    recipe.retire()
    db.commit()
    logger.info(f"Retired recipe '{recipe.name}'")
    return success_response("Recipe deleted successfully")
