"""Pytest fixtures: in-memory SQLite, inline index tasks, mocked Elasticsearch."""

import os

os.environ["STOREFRONT_DATABASE_URL"] = "sqlite://"

from unittest.mock import MagicMock

import pytest

from app import create_app
from app.services.cache_service import CacheService
from app.services.index_tasks import shutdown_index_tasks
from database import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME, SessionFactory, engine
from models import Base, Category, Product, User


class DictRedis:
    """Just enough of the redis client surface for CacheService."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.fixture
def app():
    Base.metadata.drop_all(bind=engine)
    app = create_app(
        {
            "TESTING": True,
            "ELASTICSEARCH_ENABLED": True,
            "ELASTICSEARCH_AUTO_INDEX": False,
            "INDEX_TASKS_EAGER": True,
            "INDEX_RETRY_WAIT_SECONDS": 0,
        }
    )
    app.extensions["elasticsearch"] = MagicMock(name="elasticsearch")
    app.extensions["cache"] = CacheService(DictRedis(), app.logger)
    yield app
    shutdown_index_tasks(app)


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def es(app):
    return app.extensions["elasticsearch"]


@pytest.fixture
def redis_store(app):
    return app.extensions["cache"].client


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    session = SessionFactory()
    yield session
    session.close()


@pytest.fixture
def admin_user(db_session):
    return db_session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).one()


@pytest.fixture
def make_product(db_session):
    def _make(name="Phone", price=199.0, categories=(), description=None, user_id=None, stock_quantity=5):
        category_rows = [
            db_session.query(Category).filter_by(name=category_name).one()
            for category_name in categories
        ]
        product = Product(
            name=name,
            description=description,
            price=price,
            stock_quantity=stock_quantity,
            user_id=user_id,
            categories=category_rows,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def login_admin(client):
    def _login():
        response = client.post(
            "/auth/login",
            json={"username": DEFAULT_ADMIN_USERNAME, "password": DEFAULT_ADMIN_PASSWORD},
        )
        assert response.status_code == 200
        return response.get_json()

    return _login
