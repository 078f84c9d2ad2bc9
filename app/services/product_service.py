from __future__ import annotations

from flask import current_app

from app.services.cache_service import CacheService, create_cache
from app.services.catalog_store import find_categories, find_product, find_product_categories
from app.services.index_writer import schedule_product_delete, schedule_product_upsert
from constants import PRODUCT_CACHE_PREFIX
from helpers import parse_float, parse_int
from models import Product


class ResourceNotFound(LookupError):
    pass


class ProductNotFound(ResourceNotFound):
    def __init__(self, product_id):
        super().__init__(f"Product not found with id: {product_id}")
        self.product_id = product_id


class CategoryNotFound(ResourceNotFound):
    def __init__(self, category_id):
        super().__init__(f"Category not found for id: {category_id}")
        self.category_id = category_id


def product_response(product, categories) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price) if product.price is not None else None,
        "stock_quantity": product.stock_quantity,
        "weight": product.weight,
        "user_id": product.user_id,
        "categories": [{"id": category.id, "name": category.name} for category in categories],
    }


class ProductService:
    def __init__(self, session, app=None, cache: CacheService | None = None):
        self.session = session
        self.app = app or current_app._get_current_object()
        self.cache = cache or create_cache(self.app)

    @staticmethod
    def _cache_key(product_id) -> str:
        return f"{PRODUCT_CACHE_PREFIX}{product_id}"

    def find_by_id(self, product_id) -> dict:
        key = self._cache_key(product_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        product = find_product(self.session, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        response = product_response(product, find_product_categories(self.session, product_id))
        self.cache.put(key, response, self.app.config.get("PRODUCT_CACHE_TTL"))
        return response

    def _resolve_categories(self, category_ids):
        ids = []
        for raw in category_ids or []:
            category_id = parse_int(raw)
            if category_id is None:
                raise ValueError(f"Invalid category id: {raw!r}")
            ids.append(category_id)
        found = {category.id: category for category in find_categories(self.session, ids)}
        for category_id in ids:
            if category_id not in found:
                raise CategoryNotFound(category_id)
        return [found[category_id] for category_id in dict.fromkeys(ids)]

    @staticmethod
    def _apply_payload(product, payload: dict):
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        price = parse_float(payload.get("price"))
        if price is None or price < 0:
            raise ValueError("price must be a non-negative number")
        stock = parse_int(payload.get("stock_quantity"))
        if stock is None or stock < 0:
            raise ValueError("stock_quantity must be a non-negative integer")
        product.name = name
        product.description = (payload.get("description") or "").strip() or None
        product.price = price
        product.stock_quantity = stock
        product.weight = parse_float(payload.get("weight"))

    def create(self, payload: dict, user_id=None) -> dict:
        categories = self._resolve_categories(payload.get("category_ids"))
        product = Product(user_id=user_id)
        self._apply_payload(product, payload)
        product.categories = categories
        self.session.add(product)
        self.session.commit()

        response = product_response(product, categories)
        self.cache.put(self._cache_key(product.id), response, self.app.config.get("PRODUCT_CACHE_TTL"))
        schedule_product_upsert(self.app, product.id)
        return response

    def update(self, product_id, payload: dict) -> dict:
        product = find_product(self.session, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        categories = self._resolve_categories(payload.get("category_ids"))
        self._apply_payload(product, payload)
        product.categories = categories
        self.session.commit()

        self.cache.evict(self._cache_key(product_id))
        schedule_product_upsert(self.app, product_id)
        return product_response(product, categories)

    def delete(self, product_id):
        product = find_product(self.session, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        product.categories = []
        self.session.delete(product)
        self.session.commit()

        self.cache.evict(self._cache_key(product_id))
        schedule_product_delete(self.app, product_id)
