import os

from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from models import Base, Category, User


DATABASE_URL = os.environ.get("STOREFRONT_DATABASE_URL", "sqlite:///storefront.db")
DEFAULT_ADMIN_USERNAME = os.environ.get("STOREFRONT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_PASSWORD = os.environ.get("STOREFRONT_ADMIN_PASSWORD", "admin1234")


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # in-memory databases live inside a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionFactory = sessionmaker(bind=engine)
SessionLocal = scoped_session(SessionFactory)


def init_db():
    """Create tables and seed the admin account and starter categories."""
    Base.metadata.create_all(bind=engine)

    session = SessionFactory()
    try:
        admin = session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).first()
        if admin is None:
            session.add(
                User(
                    username=DEFAULT_ADMIN_USERNAME,
                    full_name="Administrator",
                    is_admin=True,
                    password_hash=generate_password_hash(DEFAULT_ADMIN_PASSWORD),
                )
            )

        category_defaults = ["Electronics", "Home", "Fashion", "Sports", "Books"]
        if session.query(Category).count() == 0:
            session.add_all(Category(name=name) for name in category_defaults)

        session.commit()
    finally:
        session.close()
