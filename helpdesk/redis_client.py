"""Optional Redis client backing typing presence. No-op when REDIS_URL is not set."""
import json
import time
from typing import Optional

from redis.asyncio import Redis

_redis: Optional[Redis] = None


async def init_redis(url: Optional[str]) -> None:
    global _redis
    if url:
        _redis = Redis.from_url(url, decode_responses=True)


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[Redis]:
    return _redis


def _typing_key(ticket_id: str) -> str:
    return f"typing:{ticket_id}"


async def typing_mark(ticket_id: str, user_id: str, user_name: str, ttl_seconds: int) -> bool:
    """Record that user_id is typing in ticket_id for ttl_seconds. False when Redis is off."""
    redis = get_redis()
    if redis is None:
        return False
    key = _typing_key(ticket_id)
    entry = json.dumps({"userName": user_name, "until": time.time() + ttl_seconds})
    await redis.hset(key, user_id, entry)
    await redis.expire(key, ttl_seconds)
    return True


async def typing_list(ticket_id: str, exclude: Optional[str] = None) -> list[dict[str, str]]:
    """Users currently typing in ticket_id, as [{userId, userName}]."""
    redis = get_redis()
    if redis is None:
        return []
    raw = await redis.hgetall(_typing_key(ticket_id))
    now = time.time()
    result = []
    for user_id, value in sorted(raw.items()):
        if user_id == exclude:
            continue
        entry = json.loads(value)
        if entry.get("until", 0) < now:
            continue
        result.append({"userId": user_id, "userName": entry.get("userName", "")})
    return result
