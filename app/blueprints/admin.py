from flask import Blueprint, current_app, jsonify
from flask_login import login_required

from app.services.bulk_reindex import launch_full_reindex
from helpers import require_admin

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.before_request
@login_required
def restrict_to_admins():
    require_admin()


@admin_bp.post("/reindex/products")
def reindex_products():
    if not launch_full_reindex(current_app._get_current_object()):
        return jsonify({"error": "Search index is disabled"}), 503
    current_app.logger.info("Full product reindex launched")
    return jsonify({"status": "Reindex started"}), 202
