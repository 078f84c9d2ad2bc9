"""
Redis-backed response cache.

Redis is only a cache, never the source of truth: every failure talking to it
is logged and treated as a miss so callers fall through to the index or the
database.

Key namespaces:
- products:{product_id}                  resolved product responses
- product:suggestions:{query}            completion-suggester autocomplete
- product:ngram:suggestions:{query}      n-gram autocomplete
- product:fuzzy:suggestions:{query}      fuzzy autocomplete
- product:combined:suggestions:{query}   cascaded autocomplete
"""

from __future__ import annotations

import json

import redis
from flask import current_app


class CacheService:
    def __init__(self, client=None, logger=None):
        self.client = client
        self.logger = logger or current_app.logger

    def get(self, key: str):
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            self.logger.warning("Cache get failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            self.logger.warning("Discarding unreadable cache entry %s", key)
            return None

    def put(self, key: str, value, ttl: int | None = None) -> bool:
        if self.client is None:
            return False
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.client.setex(key, int(ttl), payload)
            else:
                self.client.set(key, payload)
            return True
        except redis.RedisError as exc:
            self.logger.warning("Cache put failed for %s: %s", key, exc)
            return False

    def evict(self, key: str) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.delete(key))
        except redis.RedisError as exc:
            self.logger.warning("Cache evict failed for %s: %s", key, exc)
            return False


def create_cache(app=None) -> CacheService:
    """Return the app's shared cache, creating the Redis connection on first use."""
    app = app or current_app
    cache = app.extensions.get("cache")
    if cache is not None:
        return cache
    client = None
    if app.config.get("CACHE_ENABLED", True):
        client = redis.Redis.from_url(
            app.config.get("REDIS_URL", "redis://localhost:6379/0"),
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    cache = CacheService(client, app.logger)
    app.extensions["cache"] = cache
    return cache
