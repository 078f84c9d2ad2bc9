from __future__ import annotations

from typing import Iterable

from constants import NGRAM_ANALYZER


def safe_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _safe_float(value):
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def build_document(product, categories: Iterable, counters: dict | None = None) -> dict:
    counters = counters or {}
    name = safe_text(product.name)
    return {
        "id": str(product.id),
        "name": name,
        "description": safe_text(product.description),
        "price": _safe_float(product.price),
        "stock_quantity": product.stock_quantity,
        "weight": _safe_float(product.weight),
        "user_id": product.user_id,
        "view_count": int(counters.get("view_count") or 0),
        "purchase_count": int(counters.get("purchase_count") or 0),
        "categories": [
            {"category_id": category.id, "name": safe_text(category.name)}
            for category in categories
        ],
        "name_ngram": name,
        "name_suggest": {"input": [name]} if name else None,
    }


def index_settings() -> dict:
    return {
        "settings": {
            "analysis": {
                "tokenizer": {
                    "ngram_tokenizer": {
                        "type": "ngram",
                        "min_gram": 2,
                        "max_gram": 3,
                        "token_chars": ["letter", "digit"],
                    }
                },
                "analyzer": {
                    NGRAM_ANALYZER: {
                        "type": "custom",
                        "tokenizer": "ngram_tokenizer",
                        "filter": ["lowercase", "asciifolding"],
                    },
                    "product_text": {
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding"],
                    },
                },
            }
        },
        "mappings": {
            "properties": {
                "id": {"type": "keyword"},
                "name": {
                    "type": "text",
                    "analyzer": "product_text",
                    "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
                },
                "description": {"type": "text", "analyzer": "product_text"},
                "price": {"type": "double"},
                "stock_quantity": {"type": "integer"},
                "weight": {"type": "double"},
                "user_id": {"type": "long"},
                "view_count": {"type": "long"},
                "purchase_count": {"type": "long"},
                "categories": {
                    "type": "nested",
                    "properties": {
                        "category_id": {"type": "long"},
                        "name": {
                            "type": "text",
                            "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
                        },
                    },
                },
                "name_ngram": {
                    "type": "text",
                    "analyzer": NGRAM_ANALYZER,
                    "search_analyzer": NGRAM_ANALYZER,
                },
                "name_suggest": {"type": "completion", "analyzer": "simple"},
            }
        },
    }
