from flask import Blueprint, abort, current_app, g, jsonify, request
from flask_login import login_required

from app.services.autocomplete import CachedAutocompleteService
from app.services.product_service import ProductService
from app.services.search_models import SearchRequest
from app.services.search_service import ProductSearchService
from app.services.user_activity_service import schedule_activity_tracking
from constants import ACTIVITY_PURCHASE, ACTIVITY_VIEW
from helpers import current_user_id

products_bp = Blueprint("products", __name__, url_prefix="/products")


def _search_service():
    return ProductSearchService(g.db)


def _bad_request(exc):
    return jsonify({"error": str(exc)}), 400


def _require_owner_or_admin(product):
    user = g.current_user
    if getattr(user, "is_admin", False):
        return
    if product.get("user_id") != current_user_id():
        abort(403)


@products_bp.post("/search")
def search():
    try:
        search_request = SearchRequest.from_payload(request.get_json(silent=True) or {})
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify(_search_service().search(search_request).to_dict())


@products_bp.get("/<int:product_id>")
def product_detail(product_id):
    product = ProductService(g.db).find_by_id(product_id)
    user_id = current_user_id()
    if user_id is not None and product.get("user_id") != user_id:
        schedule_activity_tracking(current_app._get_current_object(), product_id, user_id, ACTIVITY_VIEW)
    return jsonify(product)


@products_bp.get("/<int:product_id>/similar")
def similar_products(product_id):
    return jsonify(_search_service().similar_products(product_id).to_dict())


@products_bp.get("/recommendations")
@login_required
def recommendations():
    activity_type = request.args.get("user_activity", ACTIVITY_VIEW)
    result = _search_service().user_recommendation(current_user_id(), activity_type)
    return jsonify(result.to_dict())


@products_bp.get("/autocomplete")
def autocomplete():
    query = request.args.get("query", "")
    strategy = request.args.get("strategy", "combined")
    service = CachedAutocompleteService(_search_service())
    try:
        suggestions = service.suggest(query, strategy)
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify(suggestions)


@products_bp.post("")
@login_required
def create_product():
    try:
        product = ProductService(g.db).create(request.get_json(silent=True) or {}, user_id=current_user_id())
    except ValueError as exc:
        g.db.rollback()
        return _bad_request(exc)
    return jsonify(product), 201


@products_bp.put("/<int:product_id>")
@login_required
def update_product(product_id):
    service = ProductService(g.db)
    _require_owner_or_admin(service.find_by_id(product_id))
    try:
        product = service.update(product_id, request.get_json(silent=True) or {})
    except ValueError as exc:
        g.db.rollback()
        return _bad_request(exc)
    return jsonify(product)


@products_bp.delete("/<int:product_id>")
@login_required
def delete_product(product_id):
    service = ProductService(g.db)
    _require_owner_or_admin(service.find_by_id(product_id))
    service.delete(product_id)
    return "", 204


@products_bp.post("/<int:product_id>/purchase")
@login_required
def purchase_product(product_id):
    ProductService(g.db).find_by_id(product_id)
    schedule_activity_tracking(
        current_app._get_current_object(), product_id, current_user_id(), ACTIVITY_PURCHASE
    )
    return jsonify({"product_id": product_id, "activity_type": ACTIVITY_PURCHASE}), 202
