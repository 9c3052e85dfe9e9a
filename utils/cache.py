from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

from config import get_config_value

logger = logging.getLogger(__name__)

_client: Optional[redis.Redis] = None

CACHE_ERRORS = (redis.RedisError, OSError, ValueError)


def get_client() -> Optional[redis.Redis]:
    """Lazily build the Redis client; None when caching is switched off."""
    global _client
    if not get_config_value("cache", "enabled", True):
        return None
    if _client is None:
        _client = redis.Redis.from_url(
            get_config_value("cache", "url", "redis://localhost:6379/0"),
            decode_responses=True,
            socket_timeout=1,
            socket_connect_timeout=1,
        )
    return _client


def set_client(client: Optional[redis.Redis]) -> None:
    global _client
    _client = client


def cache_get(key: str) -> Optional[Any]:
    client = get_client()
    if client is None:
        return None
    try:
        raw = client.get(key)
    except CACHE_ERRORS as exc:
        logger.warning("Cache read error for %s: %s", key, exc)
        return None
    if raw is None:
        logger.debug("Cache miss %s", key)
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding undecodable cache entry %s", key)
        return None


def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> None:
    client = get_client()
    if client is None:
        return
    ttl = ttl or int(get_config_value("cache", "ttl_seconds", 60))
    try:
        client.setex(key, ttl, json.dumps(value, default=str))
    except CACHE_ERRORS as exc:
        logger.warning("Cache write error for %s: %s", key, exc)


def cache_invalidate(*patterns: str) -> None:
    """Delete exact keys and glob patterns; failures never block the caller."""
    client = get_client()
    if client is None:
        return
    for pattern in patterns:
        try:
            if "*" in pattern:
                keys = list(client.scan_iter(match=pattern))
                if keys:
                    client.delete(*keys)
            else:
                client.delete(pattern)
        except CACHE_ERRORS as exc:
            logger.warning("Cache invalidation error for %s: %s", pattern, exc)


def family_children_key(family_code: str) -> str:
    return f"children:family:{family_code.upper()}"


def assignments_list_key(role: str, user_id: str, *filters: Optional[str]) -> str:
    return f"assignments:{role}:{user_id}:list:" + ":".join(item or "" for item in filters)


def invalidate_assignments(parent_id: Optional[str] = None, child_id: Optional[str] = None) -> None:
    patterns = []
    if parent_id:
        patterns.append(f"assignments:parent:{parent_id}:*")
    if child_id:
        patterns.append(f"assignments:child:{child_id}:*")
    cache_invalidate(*patterns)
