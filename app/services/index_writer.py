from __future__ import annotations

import time

from flask import current_app

from app.services.catalog_store import activity_counters, find_product, find_product_categories
from app.services.index_tasks import submit_index_task
from app.services.search_documents import build_document
from app.services.search_index import TRANSIENT_ERRORS, ProductSearchIndex
from constants import ACTIVITY_SIGNALS
from database import SessionFactory


class ProductIndexWriter:
    def __init__(self, app=None, index: ProductSearchIndex | None = None, sleep=time.sleep):
        self.app = app or current_app
        self.index = index or ProductSearchIndex(self.app)
        self._sleep = sleep

    def run_with_retry(self, action, description: str):
        """Call ``action`` until it succeeds or the attempt budget runs out.

        Only transient transport failures are retried. Returns ``(True, result)``
        on success and ``(False, None)`` once every attempt failed.
        """
        attempts = max(int(self.app.config.get("INDEX_RETRY_MAX_ATTEMPTS", 3)), 1)
        wait_seconds = float(self.app.config.get("INDEX_RETRY_WAIT_SECONDS", 5.0))
        last_exc = None
        for attempt in range(1, attempts + 1):
            try:
                return True, action()
            except TRANSIENT_ERRORS as exc:
                last_exc = exc
                self.app.logger.warning(
                    "Index call failed (%s), attempt %s/%s: %s",
                    description,
                    attempt,
                    attempts,
                    exc,
                )
                if attempt < attempts:
                    self._sleep(wait_seconds)
        self.app.logger.error("Giving up on %s after %s attempts: %s", description, attempts, last_exc)
        return False, None

    def upsert_product(self, product_id, session=None) -> bool:
        if not self.index.is_enabled():
            return False
        owns_session = session is None
        session = session or SessionFactory()
        try:
            product = find_product(session, product_id)
            if product is None:
                self.app.logger.warning("Skipping index upsert, product %s no longer exists", product_id)
                return False
            document = build_document(
                product,
                find_product_categories(session, product_id),
                activity_counters(session, product_id),
            )
        finally:
            if owns_session:
                session.close()
        ok, _ = self.run_with_retry(
            lambda: self.index.index_document(document["id"], document),
            f"upsert product {product_id}",
        )
        return ok

    def delete_product(self, product_id) -> bool:
        if not self.index.is_enabled():
            return False
        ok, _ = self.run_with_retry(
            lambda: self.index.delete_document(str(product_id)),
            f"delete product {product_id}",
        )
        return ok

    def reindex_activity(self, product_id, activity_type: str, count: int) -> bool:
        if not self.index.is_enabled():
            return False
        field, _weight = ACTIVITY_SIGNALS[activity_type]
        ok, _ = self.run_with_retry(
            lambda: self.index.update_document(str(product_id), {field: int(count)}),
            f"update {field} of product {product_id}",
        )
        return ok


def _upsert_task(app, product_id):
    ProductIndexWriter(app).upsert_product(product_id)


def _delete_task(app, product_id):
    ProductIndexWriter(app).delete_product(product_id)


def schedule_product_upsert(app, product_id):
    return submit_index_task(app, _upsert_task, app, product_id)


def schedule_product_delete(app, product_id):
    return submit_index_task(app, _delete_task, app, product_id)
