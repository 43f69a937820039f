import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_api.core.deps import get_db
from catalog_api.core.security import create_access_token
from catalog_api.main import app
from catalog_api.models import Base
from catalog_api.schemas.catalog import CategoryCreate, ProductCreate
from catalog_api.services import category_service, product_service


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token("admin-1", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = create_access_token("user-1", role="user")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_category(db):
    def _make(name, parent=None, **extra):
        parent_id = parent.id if parent is not None else None
        return category_service.create_category(
            db, CategoryCreate(name=name, parent_category_id=parent_id, **extra)
        )
    return _make


@pytest.fixture
def make_product(db):
    def _make(name, category, **extra):
        data = {
            "name": name,
            "description": extra.pop("description", f"Descripción de {name}"),
            "price": extra.pop("price", 10.0),
            "category_id": category.id,
        }
        data.update(extra)
        return product_service.create_product(db, ProductCreate(**data))
    return _make
