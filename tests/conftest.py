# tests/conftest.py
import os
import time
import uuid

# Settings are read at import time; configure before importing the app.
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel, Session, create_engine

from smartmart.database import get_session, get_session_factory
from smartmart.main import app
from smartmart.models.product import Product
from smartmart.models.user import User


@pytest.fixture
def engine(tmp_path):
    # File-backed so the concurrent summary queries each get a connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'smartmart.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def session_factory(engine):
    return lambda: Session(engine)


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_session_factory] = lambda: (lambda: Session(engine))
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user_id: uuid.UUID, email: str) -> str:
    return jwt.encode(
        {"sub": str(user_id), "email": email, "exp": int(time.time()) + 3600},
        os.environ["SUPABASE_JWT_SECRET"],
        algorithm="HS256",
    )


@pytest.fixture
def make_user(session):
    def _make(role: str = "user", **overrides) -> User:
        data = {
            "id": uuid.uuid4(),
            "email": f"{uuid.uuid4().hex[:8]}@smartmart.io",
            "role": role,
            "first_name": "Ada",
            "last_name": "Lovelace",
        }
        data.update(overrides)
        user = User(**data)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", first_name="Grace", last_name="Hopper")


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user.id, user.email)}"}

    return _headers


@pytest.fixture
def make_product(session):
    def _make(**overrides) -> Product:
        data = {
            "name": "Milk",
            "sku": f"SKU-{uuid.uuid4().hex[:6]}",
            "category": "Dairy",
            "price": 1.0,
            "quantity": 10,
        }
        data.update(overrides)
        product = Product(**data)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make
