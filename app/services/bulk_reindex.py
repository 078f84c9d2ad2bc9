from __future__ import annotations

import os
import time
from dataclasses import dataclass

from flask import current_app

from app.services.catalog_store import activity_counters, find_product_categories, stream_products
from app.services.index_tasks import submit_index_task
from app.services.index_writer import ProductIndexWriter
from app.services.search_documents import build_document
from app.services.search_index import ProductSearchIndex
from database import SessionFactory
from models import Product


@dataclass
class ReindexReport:
    total_indexed: int = 0
    elapsed_seconds: float = 0.0


class BulkReindexService:
    def __init__(self, app=None, index: ProductSearchIndex | None = None, writer: ProductIndexWriter | None = None):
        self.app = app or current_app._get_current_object()
        self.index = index or ProductSearchIndex(self.app)
        self.writer = writer or ProductIndexWriter(self.app, index=self.index)

    def _batch_size(self) -> int:
        return max(int(self.app.config.get("REINDEX_BATCH_SIZE", 100)), 1)

    def _log_item_errors(self, errors):
        for item in errors:
            for op, details in item.items():
                self.app.logger.error(
                    "Bulk %s failed for product %s: %s",
                    op,
                    details.get("_id"),
                    details.get("error"),
                )

    def _index_batch(self, batch: list[dict]) -> int:
        ok, result = self.writer.run_with_retry(
            lambda: self.index.bulk_upsert(batch),
            f"bulk index of {len(batch)} products",
        )
        if not ok:
            return 0
        _success, errors = result
        if errors:
            self.app.logger.error("Bulk index reported %s failed item(s)", len(errors))
            self._log_item_errors(errors)
        return len(batch)

    def reindex_all(self, session=None) -> ReindexReport:
        started = time.monotonic()
        report = ReindexReport()
        if not self.index.is_enabled():
            return report

        owns_session = session is None
        session = session or SessionFactory()
        batch_size = self._batch_size()
        batch = []
        try:
            for product in stream_products(session, batch_size):
                batch.append(
                    build_document(
                        product,
                        find_product_categories(session, product.id),
                        activity_counters(session, product.id),
                    )
                )
                if len(batch) >= batch_size:
                    report.total_indexed += self._index_batch(batch)
                    batch = []
            if batch:
                report.total_indexed += self._index_batch(batch)
        finally:
            if owns_session:
                session.close()

        report.elapsed_seconds = time.monotonic() - started
        self.app.logger.info(
            "Reindex complete. Total documents indexed: %s. Time taken: %.2f s",
            report.total_indexed,
            report.elapsed_seconds,
        )
        return report


def _reindex_task(app):
    return BulkReindexService(app).reindex_all()


def launch_full_reindex(app) -> bool:
    if not ProductSearchIndex(app).is_enabled():
        return False
    submit_index_task(app, _reindex_task, app)
    return True


def _bootstrap_index(app):
    index = ProductSearchIndex(app)
    if not index.ping():
        app.logger.warning("Elasticsearch is not reachable; search results will be empty.")
        return
    if not index.ensure_index():
        return

    session = SessionFactory()
    try:
        product_count = session.query(Product.id).count()
    finally:
        session.close()
    if product_count == 0:
        return

    force_reindex = bool(app.config.get("ELASTICSEARCH_FORCE_REINDEX", False))
    if not force_reindex and index.count_documents() == product_count:
        return
    if force_reindex and not index.rebuild_index():
        return
    BulkReindexService(app, index=index).reindex_all()


def schedule_search_index(app):
    if not app.config.get("ELASTICSEARCH_AUTO_INDEX", True):
        return None
    if not ProductSearchIndex(app).is_enabled():
        return None
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return None
    return submit_index_task(app, _bootstrap_index, app)
