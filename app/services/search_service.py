from __future__ import annotations

from flask import current_app

from app.services.product_service import ProductService
from app.services.search_documents import safe_text
from app.services.search_index import SEARCH_ERRORS, ProductSearchIndex
from app.services.search_models import (
    RECOMMENDABLE_ACTIVITY_TYPES,
    SearchRequest,
    SearchResult,
    normalize_activity_type,
)
from app.services.search_queries import (
    build_fuzzy_body,
    build_ngram_body,
    build_prefix_suggest_body,
    build_recommendation_body,
    build_search_body,
    build_similar_body,
)
from app.services.search_results import hit_names, map_search_results, suggestion_texts
from app.services.user_activity_service import UserActivityService, top_product_ids


class ProductSearchService:
    def __init__(
        self,
        session,
        app=None,
        index: ProductSearchIndex | None = None,
        products: ProductService | None = None,
        activities: UserActivityService | None = None,
    ):
        self.session = session
        self.app = app or current_app._get_current_object()
        self.index = index or ProductSearchIndex(self.app)
        self.products = products or ProductService(session, self.app)
        self.activities = activities or UserActivityService(session, self.app)

    def _limit(self, key: str, default: int) -> int:
        return int(self.app.config.get(key, default))

    def _ranked_search(self, body: dict, description: str) -> SearchResult:
        if not self.index.is_enabled():
            return SearchResult.empty()
        try:
            response = self.index.search(body)
        except SEARCH_ERRORS as exc:
            self.app.logger.warning("Elasticsearch %s failed: %s", description, exc)
            self.app.config["ELASTICSEARCH_AVAILABLE"] = False
            return SearchResult.empty()
        return map_search_results(response, self.products.find_by_id)

    def search(self, request: SearchRequest) -> SearchResult:
        return self._ranked_search(build_search_body(request), "search")

    def similar_products(self, product_id) -> SearchResult:
        product = self.products.find_by_id(product_id)
        category_names = [category["name"] for category in product.get("categories") or []]
        body = build_similar_body(
            product_id,
            category_names,
            size=self._limit("SIMILAR_PRODUCT_LIMIT", 10),
        )
        return self._ranked_search(body, "similar products")

    def user_recommendation(self, user_id, activity_type) -> SearchResult:
        activity_type = normalize_activity_type(activity_type)
        if activity_type not in RECOMMENDABLE_ACTIVITY_TYPES:
            return SearchResult.empty()

        activities = self.activities.recent_activity(user_id, activity_type)
        product_ids = top_product_ids(activities, limit=self._limit("RECOMMENDATION_SEED_LIMIT", 5))
        if not product_ids:
            return SearchResult.empty()

        body = build_recommendation_body(
            product_ids,
            activity_type,
            size=self._limit("RECOMMENDATION_LIMIT", 10),
        )
        return self._ranked_search(body, "recommendation")

    def _suggest(self, body: dict, extract, description: str) -> list[str]:
        if not self.index.is_enabled():
            return []
        try:
            response = self.index.search(body)
        except SEARCH_ERRORS as exc:
            self.app.logger.warning("Elasticsearch %s failed: %s", description, exc)
            self.app.config["ELASTICSEARCH_AVAILABLE"] = False
            return []
        return extract(response)

    def autocomplete(self, query) -> list[str]:
        text_query = safe_text(query)
        if not text_query:
            return []
        size = self._limit("AUTOCOMPLETE_STRATEGY_LIMIT", 3)
        return self._suggest(build_prefix_suggest_body(text_query, size), suggestion_texts, "autocomplete")[:size]

    def ngram_autocomplete(self, query) -> list[str]:
        text_query = safe_text(query)
        if not text_query:
            return []
        size = self._limit("AUTOCOMPLETE_STRATEGY_LIMIT", 3)
        return self._suggest(build_ngram_body(text_query, size), hit_names, "ngram autocomplete")[:size]

    def fuzzy_autocomplete(self, query) -> list[str]:
        text_query = safe_text(query)
        if not text_query:
            return []
        size = self._limit("AUTOCOMPLETE_STRATEGY_LIMIT", 3)
        return self._suggest(build_fuzzy_body(text_query, size), hit_names, "fuzzy autocomplete")[:size]

    def combined_autocomplete(self, query) -> list[str]:
        limit = self._limit("AUTOCOMPLETE_COMBINED_LIMIT", 5)
        results = list(self.autocomplete(query))
        if len(results) < limit:
            results.extend(self.ngram_autocomplete(query))
        if len(results) < limit:
            results.extend(self.fuzzy_autocomplete(query))
        return list(dict.fromkeys(results))[:limit]
