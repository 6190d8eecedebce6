"""
Fixtures compartidas para los tests de todos los módulos.

Base de datos SQLite en memoria (StaticPool) con todas las tablas creadas,
un TestClient que usa esa sesión y helpers para crear usuarios y tokens.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database.database import Base, get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.service import build_token_payload
from app.modules.auth.utils import create_access_token, hash_password
from app.modules.categories.models import ProductCategory
from app.modules.products.models import Product


# ===== DATABASE =====

@pytest.fixture
def db_session():
    """Sesión sobre una base SQLite en memoria, nueva para cada test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    """TestClient con get_db apuntando a la sesión de pruebas"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ===== USERS & AUTH =====

def make_user(db, role: str = UserRole.ADMIN.value, email: str = None, password: str = "Password123") -> User:
    suffix = uuid4().hex[:8]
    user = User(
        email_address=email or f"{role}-{suffix}@localfishing.test",
        business_name=f"Business {suffix}",
        owner_name=f"{role.title()} User",
        password=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(build_token_payload(user))}"}


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, UserRole.ADMIN.value)


@pytest.fixture
def manager_user(db_session):
    return make_user(db_session, UserRole.MANAGER.value)


@pytest.fixture
def employee_user(db_session):
    return make_user(db_session, UserRole.EMPLOYEE.value)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def manager_headers(manager_user):
    return auth_headers(manager_user)


@pytest.fixture
def employee_headers(employee_user):
    return auth_headers(employee_user)


# ===== CATALOG =====

@pytest.fixture
def sample_category(db_session):
    category = ProductCategory(name="Tilapia", description="Fresh tilapia")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sample_product(db_session, sample_category):
    """Producto con 10 cajas de 20kg y 5kg sueltos"""
    product = Product(
        name="Tilapia Grande",
        category_id=sample_category.category_id,
        quantity_box=10,
        box_to_kg_ratio=Decimal("20"),
        quantity_kg=Decimal("5"),
        cost_per_box=Decimal("80"),
        cost_per_kg=Decimal("4"),
        price_per_box=Decimal("100"),
        price_per_kg=Decimal("6"),
        boxed_low_stock_threshold=3,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product
