from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta

from flask import current_app

from app.services.catalog_store import activity_count
from app.services.index_tasks import submit_index_task
from app.services.index_writer import ProductIndexWriter
from constants import ACTIVITY_PURCHASE, ACTIVITY_SIGNALS, ACTIVITY_VIEW
from database import SessionFactory
from models import UserActivity


def top_product_ids(activities, limit=5) -> list[int]:
    """Most frequent product ids first; ties keep the order they were first seen."""
    counts = Counter(activity.product_id for activity in activities)
    return [product_id for product_id, _count in counts.most_common(limit)]


class UserActivityService:
    def __init__(self, session, app=None, writer: ProductIndexWriter | None = None):
        self.session = session
        self.app = app or current_app
        self.writer = writer

    def _writer(self):
        if self.writer is None:
            self.writer = ProductIndexWriter(self.app)
        return self.writer

    def track_view(self, product_id, user_id) -> UserActivity:
        return self.track(product_id, user_id, ACTIVITY_VIEW)

    def track_purchase(self, product_id, user_id) -> UserActivity:
        return self.track(product_id, user_id, ACTIVITY_PURCHASE)

    def track(self, product_id, user_id, activity_type) -> UserActivity:
        if activity_type not in ACTIVITY_SIGNALS:
            raise ValueError(f"Unsupported activity type: {activity_type}")
        activity = UserActivity(
            product_id=product_id,
            user_id=user_id,
            activity_type=activity_type,
            created_at=datetime.utcnow(),
        )
        self.session.add(activity)
        self.session.commit()
        count = self.activity_count(product_id, activity_type)
        self._writer().reindex_activity(product_id, activity_type, count)
        return activity

    def activity_count(self, product_id, activity_type) -> int:
        return activity_count(self.session, product_id, activity_type)

    def activity_count_between(self, product_id, activity_type, start, end) -> int:
        return activity_count(self.session, product_id, activity_type, start=start, end=end)

    def recent_activity(self, user_id, activity_type, days: int | None = None) -> list[UserActivity]:
        if days is None:
            days = int(self.app.config.get("RECOMMENDATION_WINDOW_DAYS", 30))
        end = datetime.utcnow()
        start = end - timedelta(days=days)
        return (
            self.session.query(UserActivity)
            .filter(
                UserActivity.user_id == user_id,
                UserActivity.activity_type == activity_type,
                UserActivity.created_at.between(start, end),
            )
            .order_by(UserActivity.created_at.desc(), UserActivity.id.desc())
            .all()
        )


def _track_task(app, product_id, user_id, activity_type):
    session = SessionFactory()
    try:
        UserActivityService(session, app).track(product_id, user_id, activity_type)
    finally:
        session.close()


def schedule_activity_tracking(app, product_id, user_id, activity_type):
    return submit_index_task(app, _track_task, app, product_id, user_id, activity_type)
