"""Pytest configuration and fixtures."""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from restopos.core.catalog_media import CategoryType
from restopos.core.rbac import UserRole
from restopos.core.security import create_access_token
from restopos.core.units import RecipeUnit, StockUnit
from restopos.db.base import Base
from restopos.db.session import get_db
from restopos.main import app
# Import all models to ensure they're registered with Base.metadata
from restopos.models import *
from restopos.models.catalog import Category, MenuItem, MenuItemVariation, Variation
from restopos.models.inventory import StockBatch, StockItem
from restopos.models.recipe import Recipe, RecipeIngredient
from restopos.models.user import User

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiting during tests to avoid flaky failures
    from restopos.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


# ===== Users =====

def _make_user(db_session: Session, role: UserRole, email: str) -> User:
    user = User(
        email=email,
        first_name=role.value.title(),
        last_name="Tester",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, UserRole.ADMIN, "admin@example.com")


@pytest.fixture
def manager_user(db_session: Session) -> User:
    return _make_user(db_session, UserRole.MANAGER, "manager@example.com")


@pytest.fixture
def cashier_user(db_session: Session) -> User:
    return _make_user(db_session, UserRole.CASHIER, "cashier@example.com")


@pytest.fixture
def steward_user(db_session: Session) -> User:
    return _make_user(db_session, UserRole.STEWARD, "steward@example.com")


@pytest.fixture
def basic_user(db_session: Session) -> User:
    return _make_user(db_session, UserRole.USER, "user@example.com")


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def manager_headers(manager_user: User) -> dict:
    return _headers(manager_user)


@pytest.fixture
def cashier_headers(cashier_user: User) -> dict:
    return _headers(cashier_user)


@pytest.fixture
def steward_headers(steward_user: User) -> dict:
    return _headers(steward_user)


@pytest.fixture
def user_headers(basic_user: User) -> dict:
    return _headers(basic_user)


# ===== Catalog =====

@pytest.fixture
def category(db_session: Session) -> Category:
    category = Category(
        name="Mains",
        category_type=CategoryType.FOOD,
        image="/static/categories/food.png",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def large_variation(db_session: Session) -> Variation:
    variation = Variation(name="Large", price=Decimal("40.00"))
    db_session.add(variation)
    db_session.commit()
    db_session.refresh(variation)
    return variation


@pytest.fixture
def menu_item(db_session: Session, category: Category, large_variation: Variation) -> MenuItem:
    """Tomato soup, offered in a large variation for 40 extra."""
    item = MenuItem(
        name="Tomato Soup",
        category_id=category.id,
        price=Decimal("80.00"),
        variations=[MenuItemVariation(variation_id=large_variation.id, price=Decimal("40.00"))],
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def second_menu_item(db_session: Session, category: Category) -> MenuItem:
    item = MenuItem(name="Garlic Bread", category_id=category.id, price=Decimal("50.00"))
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


# ===== Stock =====

def _make_stock_item(db_session: Session, name: str, unit: StockUnit, batches, reorder_level="0") -> StockItem:
    item = StockItem(name=name, unit=unit, reorder_level=Decimal(reorder_level))
    for i, (quantity, purchased) in enumerate(batches):
        item.batches.append(StockBatch(
            batch_number=f"{name.upper()}-{i + 1}",
            quantity=Decimal(str(quantity)),
            cost_price=Decimal("0.05"),
            purchase_date=purchased,
        ))
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


def _make_recipe(db_session: Session, menu_item: MenuItem, ingredients, variation_id=None) -> Recipe:
    recipe = Recipe(
        name=f"{menu_item.name} recipe",
        menu_item_id=menu_item.id,
        variation_id=variation_id,
        ingredients=[
            RecipeIngredient(
                stock_item_id=stock_item.id,
                quantity=Decimal(str(quantity)),
                unit=unit,
                position=position,
            )
            for position, (stock_item, quantity, unit) in enumerate(ingredients)
        ],
    )
    db_session.add(recipe)
    db_session.commit()
    db_session.refresh(recipe)
    return recipe


@pytest.fixture
def make_stock_item(db_session: Session):
    """Factory: stock item with batches given as (quantity, purchase_date) pairs."""
    def factory(name: str, unit: StockUnit, batches, reorder_level="0") -> StockItem:
        return _make_stock_item(db_session, name, unit, batches, reorder_level)
    return factory


@pytest.fixture
def make_recipe(db_session: Session):
    """Factory: recipe with ingredients given as (stock_item, quantity, unit) triples."""
    def factory(menu_item: MenuItem, ingredients, variation_id=None) -> Recipe:
        return _make_recipe(db_session, menu_item, ingredients, variation_id)
    return factory


@pytest.fixture
def tomato(db_session: Session) -> StockItem:
    """Tomato kept in grams, one batch of 1000 g."""
    return _make_stock_item(db_session, "Tomato", StockUnit.G, [(1000, date(2024, 1, 1))])


@pytest.fixture
def tomato_recipe(db_session: Session, menu_item: MenuItem, tomato: StockItem) -> Recipe:
    """0.2 kg of tomato per serving of soup."""
    return _make_recipe(db_session, menu_item, [(tomato, "0.2", RecipeUnit.KG)])


# ===== Request payloads =====

@pytest.fixture
def cart_line():
    """Builds a cart line the way the till sends it."""
    def build(menu_item: MenuItem, quantity: int = 1, price=None, variation=None, addons=None) -> dict:
        line = {
            "menuItemId": menu_item.id,
            "itemName": menu_item.name,
            "basePrice": float(price if price is not None else menu_item.price),
            "quantity": quantity,
            "addons": addons or [],
        }
        if variation is not None:
            line["variation"] = variation
        return line
    return build


@pytest.fixture
def customer() -> dict:
    return {"name": "Asha Rao", "phone": "9876543210", "email": "Asha@Example.com", "tableNumber": "T4"}
