"""Elasticsearch query bodies for product search, similarity and autocomplete.

Every ranked query wraps its base query in a ``function_score`` whose
popularity functions are summed (``score_mode: sum``) and then multiplied
into the text relevance (``boost_mode: multiply``). A document that does not
match the text keeps a score of zero however popular it is.

Requests without query text carry no relevance to multiply, so they are sent
without the popularity wrapper and come back in plain index order.
"""

from __future__ import annotations

from app.services.search_models import SearchRequest
from constants import (
    ACTIVITY_SIGNALS,
    CATEGORY_FACET,
    CATEGORY_NAMES_AGG,
    NAME_SUGGESTER,
    NGRAM_ANALYZER,
    PRODUCT_INDEX,
)

TEXT_FIELDS = ["name", "description"]
CATEGORY_NAME_KEYWORD = "categories.name.keyword"


def _signal(field: str, factor: float) -> dict:
    return {
        "field_value_factor": {
            "field": field,
            "factor": factor,
            "modifier": "log1p",
            "missing": 0,
        }
    }


def popularity_functions(activity_type: str | None = None) -> list[dict]:
    """Both view and purchase signals, or only the one matching ``activity_type``."""
    if activity_type is not None:
        field, factor = ACTIVITY_SIGNALS[activity_type]
        return [_signal(field, factor)]
    return [_signal(field, factor) for field, factor in ACTIVITY_SIGNALS.values()]


def function_score(query: dict, functions: list[dict]) -> dict:
    return {
        "function_score": {
            "query": query,
            "functions": functions,
            "score_mode": "sum",
            "boost_mode": "multiply",
        }
    }


def build_bool_query(request: SearchRequest) -> dict:
    must = []
    filters = []

    if request.query:
        must.append({"multi_match": {"query": request.query, "fields": TEXT_FIELDS}})

    if request.category:
        filters.append(
            {
                "nested": {
                    "path": "categories",
                    "query": {"term": {CATEGORY_NAME_KEYWORD: request.category}},
                }
            }
        )

    if request.min_price is not None or request.max_price is not None:
        price_range = {}
        if request.min_price is not None:
            price_range["gte"] = request.min_price
        if request.max_price is not None:
            price_range["lte"] = request.max_price
        filters.append({"range": {"price": price_range}})

    if not must and not filters:
        return {"match_all": {}}
    bool_query = {}
    if must:
        bool_query["must"] = must
    if filters:
        bool_query["filter"] = filters
    return {"bool": bool_query}


def category_facet_aggregation() -> dict:
    return {
        CATEGORY_FACET: {
            "nested": {"path": "categories"},
            "aggs": {CATEGORY_NAMES_AGG: {"terms": {"field": CATEGORY_NAME_KEYWORD}}},
        }
    }


def build_search_body(request: SearchRequest) -> dict:
    order = "asc" if request.sort_order == "asc" else "desc"
    query = build_bool_query(request)
    if request.query:
        query = function_score(query, popularity_functions())
    return {
        "from": request.offset,
        "size": request.size,
        "query": query,
        "sort": [{request.sort_by: {"order": order}}],
        "aggs": category_facet_aggregation(),
        "track_total_hits": True,
    }


def _more_like_this(product_ids) -> dict:
    return {
        "more_like_this": {
            "fields": TEXT_FIELDS,
            "like": [{"_index": PRODUCT_INDEX, "_id": str(product_id)} for product_id in product_ids],
            "min_term_freq": 1,
            "max_query_terms": 12,
            "min_doc_freq": 1,
        }
    }


def build_similar_body(product_id, category_names, size: int = 10) -> dict:
    query = {"must": [_more_like_this([product_id])]}
    if category_names:
        query["should"] = [
            {
                "nested": {
                    "path": "categories",
                    "query": {"terms": {CATEGORY_NAME_KEYWORD: list(category_names)}},
                    "score_mode": "avg",
                }
            }
        ]
    return {
        "size": size,
        "query": function_score({"bool": query}, popularity_functions()),
    }


def build_recommendation_body(product_ids, activity_type: str, size: int = 10) -> dict:
    return {
        "size": size,
        "query": function_score(_more_like_this(product_ids), popularity_functions(activity_type)),
    }


def build_prefix_suggest_body(query: str, size: int = 3) -> dict:
    return {
        "_source": False,
        "suggest": {
            NAME_SUGGESTER: {
                "prefix": query,
                "completion": {
                    "field": "name_suggest",
                    "skip_duplicates": True,
                    "size": size,
                },
            }
        },
    }


def build_ngram_body(query: str, size: int = 3) -> dict:
    return {
        "size": size,
        "_source": ["name"],
        "query": {"match": {"name_ngram": {"query": query, "analyzer": NGRAM_ANALYZER}}},
    }


def build_fuzzy_body(query: str, size: int = 3) -> dict:
    return {
        "size": size,
        "_source": ["name"],
        "query": {"fuzzy": {"name": {"value": query, "fuzziness": "AUTO"}}},
    }
