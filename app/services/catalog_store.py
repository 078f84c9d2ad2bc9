from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from constants import ACTIVITY_SIGNALS
from models import Category, Product, UserActivity, product_categories


def find_product(session, product_id):
    return session.get(Product, product_id)


def find_categories(session, category_ids):
    if not category_ids:
        return []
    return session.query(Category).filter(Category.id.in_(list(category_ids))).all()


def find_product_categories(session, product_id):
    return (
        session.query(Category)
        .join(product_categories, product_categories.c.category_id == Category.id)
        .filter(product_categories.c.product_id == product_id)
        .order_by(Category.id)
        .all()
    )


def stream_products(session, batch_size=100):
    """Iterate every product over one server-side cursor, ``batch_size`` rows per fetch."""
    return session.query(Product).order_by(Product.id).yield_per(batch_size)


def activity_count(
    session,
    product_id,
    activity_type,
    start: datetime | None = None,
    end: datetime | None = None,
) -> int:
    query = session.query(func.count(UserActivity.id)).filter(
        UserActivity.product_id == product_id,
        UserActivity.activity_type == activity_type,
    )
    if start is not None and end is not None:
        query = query.filter(UserActivity.created_at.between(start, end))
    return int(query.scalar() or 0)


def activity_counters(session, product_id) -> dict:
    rows = (
        session.query(UserActivity.activity_type, func.count(UserActivity.id))
        .filter(UserActivity.product_id == product_id)
        .group_by(UserActivity.activity_type)
        .all()
    )
    counts = dict(rows)
    return {
        field: int(counts.get(activity_type, 0))
        for activity_type, (field, _weight) in ACTIVITY_SIGNALS.items()
    }
