from __future__ import annotations

from flask import current_app

from app.services.cache_service import CacheService, create_cache
from constants import SUGGESTION_CACHE_PREFIXES


class CachedAutocompleteService:
    def __init__(self, search_service, cache: CacheService | None = None, app=None):
        self.search_service = search_service
        self.app = app or current_app._get_current_object()
        self.cache = cache or create_cache(self.app)

    def _cached(self, strategy: str, query, compute) -> list[str]:
        key = f"{SUGGESTION_CACHE_PREFIXES[strategy]}{query}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        suggestions = compute(query)
        self.cache.put(key, suggestions, self.app.config.get("SUGGESTION_CACHE_TTL"))
        return suggestions

    def autocomplete(self, query) -> list[str]:
        return self._cached("prefix", query, self.search_service.autocomplete)

    def ngram_autocomplete(self, query) -> list[str]:
        return self._cached("ngram", query, self.search_service.ngram_autocomplete)

    def fuzzy_autocomplete(self, query) -> list[str]:
        return self._cached("fuzzy", query, self.search_service.fuzzy_autocomplete)

    def combined_autocomplete(self, query) -> list[str]:
        return self._cached("combined", query, self.search_service.combined_autocomplete)

    def suggest(self, query, strategy: str = "combined") -> list[str]:
        handlers = {
            "prefix": self.autocomplete,
            "ngram": self.ngram_autocomplete,
            "fuzzy": self.fuzzy_autocomplete,
            "combined": self.combined_autocomplete,
        }
        if strategy not in handlers:
            raise ValueError(f"Unknown autocomplete strategy: {strategy}")
        return handlers[strategy](query)
