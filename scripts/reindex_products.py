from __future__ import annotations

import os
import sys

os.environ.setdefault("ELASTICSEARCH_AUTO_INDEX", "0")

from app import create_app
from app.services.bulk_reindex import BulkReindexService
from app.services.index_tasks import shutdown_index_tasks
from app.services.search_index import ProductSearchIndex


def main() -> int:
    app = create_app()
    try:
        with app.app_context():
            index = ProductSearchIndex(app)
            if not index.is_enabled():
                print("Elasticsearch is disabled. Set ELASTICSEARCH_ENABLED=1.")
                return 1

            rebuild = "--rebuild" in sys.argv or app.config.get("ELASTICSEARCH_FORCE_REINDEX", False)
            if rebuild:
                if not index.rebuild_index():
                    print("Failed to rebuild index.")
                    return 1
            elif not index.ensure_index():
                print("Failed to create or verify index.")
                return 1

            print(f"Indexing products in batches of {app.config.get('REINDEX_BATCH_SIZE')}...")
            report = BulkReindexService(app, index=index).reindex_all()
            print(f"Done. Indexed {report.total_indexed} products in {report.elapsed_seconds:.2f}s.")
            return 0
    finally:
        shutdown_index_tasks(app)


if __name__ == "__main__":
    raise SystemExit(main())
