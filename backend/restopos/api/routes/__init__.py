"""API routes."""

from fastapi import APIRouter

from restopos.api.routes import (
    billing,
    categories,
    inventory,
    menu,
    orders,
    recipes,
    restaurant,
    variations,
)

api_router = APIRouter()

# Catalog
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(menu.router, prefix="/menu", tags=["menu"])
api_router.include_router(variations.router, prefix="/variation", tags=["variations", "addons"])
api_router.include_router(recipes.router, prefix="/recipe", tags=["recipes"])

# Stock
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])

# Sales
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])

# Account
api_router.include_router(restaurant.router, prefix="/restaurant", tags=["restaurant"])
