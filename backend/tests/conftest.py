import os

# before any backend import: the app engine is built at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.api.deps import get_db
from backend.app.db.base import Base
from backend.app.db.models import models_v1  # noqa: F401  (registers the tables)
from backend.app.db.models.core_types import ArticleCategory, DeliveryMethod, MovementType
from backend.app.db.models.models_v1 import Article, Supplier
from backend.app.schemas.order import OrderCreate
from backend.services import inventory, orders


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive, so every session of the
    test (including the ones handed out to the API) sees the same data.
    """
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    from backend.app.main import app

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


# ---------- factories ----------
@pytest.fixture
def make_article(db_session):
    counter = {"n": 0}

    def _make(
        category: ArticleCategory = ArticleCategory.standard,
        *,
        stock: int = 0,
        incoming: int = 0,
        sku: str | None = None,
        name: str | None = None,
        min_stock_level: int = 0,
    ) -> Article:
        counter["n"] += 1
        article = Article(
            sku=sku or f"TEST-{counter['n']:03d}",
            name=name or f"Test article {counter['n']}",
            category=category,
            min_stock_level=min_stock_level,
        )
        db_session.add(article)
        db_session.flush()
        if stock:
            inventory.record_movement(
                db_session, article, MovementType.incoming, stock, reason="Opening stock", performed_by="test"
            )
        # incoming stock normally comes from procurement; tests set it directly
        article.incoming_stock = incoming
        db_session.commit()
        return article

    return _make


@pytest.fixture
def make_supplier(db_session):
    def _make(name: str = "Test supplier") -> Supplier:
        s = Supplier(name=name)
        db_session.add(s)
        db_session.commit()
        return s

    return _make


@pytest.fixture
def make_order(db_session):
    def _make(items=(), mobilfunk=(), **header):
        data = {
            "ordered_by": "Jasmin Mueller",
            "ordered_for": "Max Mustermann",
            "cost_center": "4711",
            "delivery_method": DeliveryMethod.pickup,
            "items": list(items),
            "mobilfunk": list(mobilfunk),
        }
        data.update(header)
        order = orders.create_order(db_session, OrderCreate.model_validate(data))
        db_session.commit()
        return order

    return _make
