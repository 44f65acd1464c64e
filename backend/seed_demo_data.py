"""Seed demo data for local development.

Creates one user per role, a small catalog, stock items with batches and
recipes, then prints a bearer token for each user so the API can be tried
from curl or the interactive docs.

Usage:
    cd backend
    python seed_demo_data.py
"""

import os
import sys
from datetime import date, timedelta
from decimal import Decimal

# Ensure the backend package is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from restopos.core.catalog_media import CategoryType, get_category_images, image_for
from restopos.core.rbac import UserRole
from restopos.core.security import create_access_token
from restopos.core.units import RecipeUnit, StockUnit
from restopos.db.base import Base
from restopos.db.session import SessionLocal, engine
from restopos.models import (
    Addon,
    Category,
    DietaryType,
    MenuItem,
    MenuItemVariation,
    Recipe,
    RecipeIngredient,
    StockBatch,
    StockCategory,
    StockItem,
    StorageLocation,
    User,
    Variation,
    VariationType,
)

USERS = [
    ("admin@restopos.local", "Asha", "Owner", UserRole.ADMIN),
    ("manager@restopos.local", "Vikram", "Manager", UserRole.MANAGER),
    ("cashier@restopos.local", "Meera", "Cashier", UserRole.CASHIER),
    ("steward@restopos.local", "Ravi", "Steward", UserRole.STEWARD),
]


def seed():
    """Create tables if needed and insert demo records."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users = _seed_users(db)
        if db.query(Category).first() is None:
            _seed_catalog_and_stock(db, actor_id=users[0].id)
        else:
            print("  = Catalog already present, skipped")
        db.commit()
        print("Seed data committed successfully.")
        _print_tokens(users)
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()


def _seed_users(db):
    users = []
    for email, first_name, last_name, role in USERS:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(email=email, first_name=first_name, last_name=last_name, role=role, is_verified=True)
            db.add(user)
        users.append(user)
    db.flush()
    print(f"  + Users ({len(users)})")
    return users


def _seed_catalog_and_stock(db, actor_id):
    images = get_category_images()

    # ---------------------------------------------------------------
    # 1. Categories, variations, addons
    # ---------------------------------------------------------------
    mains = Category(name="Mains", category_type=CategoryType.FOOD,
                     image=image_for(CategoryType.FOOD, images), created_by=actor_id)
    drinks = Category(name="Drinks", category_type=CategoryType.BEVERAGE,
                      image=image_for(CategoryType.BEVERAGE, images), created_by=actor_id)
    half = Variation(name="Half", variation_type=VariationType.PORTION, price=Decimal("0"))
    large = Variation(name="Large", variation_type=VariationType.SIZE, price=Decimal("40"))
    cheese = Addon(name="Extra Cheese", dietary=DietaryType.VEG, price=Decimal("25"))
    db.add_all([mains, drinks, half, large, cheese])
    db.flush()
    print("  + Categories (2), Variations (2), Addons (1)")

    # ---------------------------------------------------------------
    # 2. Menu items
    # ---------------------------------------------------------------
    soup = MenuItem(name="Tomato Soup", category_id=mains.id, price=Decimal("80"),
                    variations=[MenuItemVariation(variation_id=large.id, price=Decimal("40"))])
    paneer = MenuItem(name="Paneer Tikka", category_id=mains.id, price=Decimal("220"),
                      variations=[MenuItemVariation(variation_id=half.id, price=Decimal("0"))],
                      addons=[cheese])
    lime = MenuItem(name="Fresh Lime Soda", category_id=drinks.id, price=Decimal("60"))
    db.add_all([soup, paneer, lime])
    db.flush()
    print("  + Menu items (3)")

    # ---------------------------------------------------------------
    # 3. Stock items and batches
    # ---------------------------------------------------------------
    today = date.today()

    def stock(name, category, unit, location, reorder, batches):
        item = StockItem(name=name, category=category, unit=unit, storage_location=location,
                         reorder_level=Decimal(reorder), last_updated_by=actor_id)
        for i, (quantity, cost, age_days) in enumerate(batches):
            item.batches.append(StockBatch(
                batch_number=f"SEED-{name.upper().replace(' ', '-')}-{i + 1}",
                quantity=Decimal(quantity),
                cost_price=Decimal(cost),
                purchase_date=today - timedelta(days=age_days),
            ))
        db.add(item)
        return item

    tomato = stock("Tomato", StockCategory.VEGETABLES, StockUnit.G, StorageLocation.REFRIGERATOR,
                   "500", [("3000", "0.04", 3), ("2000", "0.05", 1)])
    paneer_block = stock("Paneer", StockCategory.DAIRY, StockUnit.KG, StorageLocation.REFRIGERATOR,
                         "1", [("4", "320", 2)])
    cream = stock("Cream", StockCategory.DAIRY, StockUnit.ML, StorageLocation.REFRIGERATOR,
                  "200", [("1000", "0.2", 1)])
    lime_juice = stock("Lime Juice", StockCategory.BEVERAGES, StockUnit.LTR, StorageLocation.REFRIGERATOR,
                       "0.5", [("2", "150", 1)])
    db.flush()
    print("  + Stock items (4)")

    # ---------------------------------------------------------------
    # 4. Recipes (quantities per serving)
    # ---------------------------------------------------------------
    def recipe(name, menu_item, ingredients, variation_id=None):
        db.add(Recipe(
            name=name,
            menu_item_id=menu_item.id,
            variation_id=variation_id,
            last_updated_by=actor_id,
            ingredients=[
                RecipeIngredient(stock_item_id=item.id, quantity=Decimal(qty), unit=unit, position=i)
                for i, (item, qty, unit) in enumerate(ingredients)
            ],
        ))

    recipe("Tomato Soup", soup, [(tomato, "0.2", RecipeUnit.KG), (cream, "20", RecipeUnit.ML)])
    recipe("Tomato Soup (Large)", soup, [(tomato, "0.3", RecipeUnit.KG), (cream, "30", RecipeUnit.ML)],
           variation_id=large.id)
    recipe("Paneer Tikka", paneer, [(paneer_block, "150", RecipeUnit.G)])
    recipe("Fresh Lime Soda", lime, [(lime_juice, "30", RecipeUnit.ML)])
    db.flush()
    print("  + Recipes (4)")


def _print_tokens(users):
    print("\nDevelopment tokens:")
    for user in users:
        token = create_access_token(data={"sub": str(user.id), "email": user.email})
        print(f"  {user.role.value:<8} {user.email:<26} Bearer {token}")


if __name__ == "__main__":
    seed()
