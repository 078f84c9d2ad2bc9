from flask import Blueprint, current_app, g, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.services.search_index import ProductSearchIndex

main_bp = Blueprint("main", __name__)


@main_bp.get("/healthz")
def healthz():
    try:
        g.db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as exc:
        current_app.logger.warning("Database health check failed: %s", exc)
        database_ok = False

    index = ProductSearchIndex(current_app._get_current_object())
    index_ok = index.ping() if index.is_enabled() else False
    status = 200 if database_ok else 503
    return jsonify(
        {
            "database": database_ok,
            "search_index": {"enabled": index.is_enabled(), "available": index_ok},
        }
    ), status
