import json
import logging
from typing import Any

from redis import RedisError
from redis.asyncio import Redis as AsyncRedis

from ..config import settings

logger = logging.getLogger("onboarding_pa.redis")

SESSION_KEY_PREFIX = "session:"


def get_async_redis_client(redis_url: str | None = None) -> AsyncRedis:
    """Create an async Redis client; no connection is opened until first use."""
    url = redis_url or settings.redis_url
    if not url:
        raise ValueError("REDIS_URL environment variable must be set")
    return AsyncRedis.from_url(url, decode_responses=True)


class RedisSessionStore:
    """
    Logged user sessions keyed by session token.

    Each session is the JSON form of a SpidLoggedUser, stored with a TTL.
    Payloads are returned undecoded: validating them is up to the caller.
    """

    def __init__(self, redis_client: AsyncRedis):
        self._redis = redis_client

    @staticmethod
    def _key(token: str) -> str:
        return f"{SESSION_KEY_PREFIX}{token}"

    async def get(self, token: str) -> dict[str, Any] | None:
        try:
            raw = await self._redis.get(self._key(token))
        except RedisError as exc:
            logger.error("Redis operation failed operation=GET key=session error=%s", exc)
            raise
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed session payload")
            return None
        return payload if isinstance(payload, dict) else None

    async def set(self, token: str, payload: dict[str, Any], ttl_seconds: int) -> None:
        try:
            await self._redis.set(self._key(token), json.dumps(payload), ex=ttl_seconds)
        except RedisError as exc:
            logger.error("Redis operation failed operation=SET key=session error=%s", exc)
            raise

    async def delete(self, token: str) -> bool:
        try:
            deleted = await self._redis.delete(self._key(token))
        except RedisError as exc:
            logger.error("Redis operation failed operation=DEL key=session error=%s", exc)
            raise
        return bool(deleted)

    async def close(self) -> None:
        await self._redis.aclose()
