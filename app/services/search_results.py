from __future__ import annotations

from flask import current_app

from app.services.product_service import ResourceNotFound
from app.services.search_models import FacetEntry, SearchResult
from constants import CATEGORY_FACET, CATEGORY_NAMES_AGG, NAME_SUGGESTER


def _hit_product_id(hit):
    raw = (hit or {}).get("_id")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _total_hits(hits: dict) -> int:
    total = hits.get("total")
    if total is None:
        return 0
    if isinstance(total, dict):
        return int(total.get("value") or 0)
    return int(total)


def _category_facets(aggregations: dict) -> list[FacetEntry] | None:
    nested = aggregations.get(CATEGORY_FACET)
    if not nested:
        return None
    names = nested.get(CATEGORY_NAMES_AGG)
    if not names:
        return None
    return [
        FacetEntry(key=str(bucket.get("key")), doc_count=int(bucket.get("doc_count") or 0))
        for bucket in names.get("buckets", [])
    ]


def map_search_results(response, resolve) -> SearchResult:
    """Turn a raw search response into a ``SearchResult``.

    ``resolve`` maps a product id to its response dict; hits keep the index
    rank order. Hits without an id are dropped, and so are ids the canonical
    store no longer knows about.
    """
    hits = response.get("hits") or {}
    data = []
    for hit in hits.get("hits") or []:
        product_id = _hit_product_id(hit)
        if product_id is None:
            continue
        try:
            data.append(resolve(product_id))
        except ResourceNotFound:
            current_app.logger.warning("Search hit %s has no matching product, skipping", product_id)

    facets = {}
    aggregations = response.get("aggregations")
    if aggregations:
        categories = _category_facets(aggregations)
        if categories is not None:
            facets[CATEGORY_FACET] = categories

    return SearchResult(data=data, total_hits=_total_hits(hits), facets=facets)


def suggestion_texts(response) -> list[str]:
    suggestions = (response.get("suggest") or {}).get(NAME_SUGGESTER) or []
    return [
        option.get("text")
        for entry in suggestions
        for option in entry.get("options") or []
        if option.get("text")
    ]


def hit_names(response) -> list[str]:
    hits = (response.get("hits") or {}).get("hits") or []
    return [
        hit["_source"]["name"]
        for hit in hits
        if (hit.get("_source") or {}).get("name")
    ]
