"""
Command de-duplication using Redis.

Status-changing commands may carry a client idempotency key. The first
request with a given (command, booking, caller, key) claims a marker for a
short window; replays inside the window are rejected with 409. Requests
without a key are never deduplicated.
"""

import logging
from typing import Optional

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.exceptions import DuplicateCommandError

logger = logging.getLogger(__name__)

COMMAND_KEY_PREFIX = "cmd:"
ANONYMOUS_ACTOR = "-"

# Connection is opened lazily on first command
redis_client = redis_asyncio.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    return redis_client


async def ping_redis() -> bool:
    try:
        return await redis_client.ping()
    except (RedisError, OSError):
        return False


def _marker_key(command: str, booking_id: str, idempotency_key: str, actor_id: Optional[str]) -> str:
    # Keys are client-chosen, so they are scoped to the caller
    return f"{COMMAND_KEY_PREFIX}{command}:{booking_id}:{actor_id or ANONYMOUS_ACTOR}:{idempotency_key}"


async def claim_command(
    command: str,
    booking_id: str,
    idempotency_key: Optional[str],
    actor_id: Optional[str] = None,
) -> bool:
    """
    Claim the marker for a command.

    Returns:
        True if a marker was claimed, False if no key was given or Redis is
        unavailable (the command then proceeds without deduplication)

    Raises:
        DuplicateCommandError: if the marker already exists
    """
    if not idempotency_key:
        return False

    redis = await get_redis()
    key = _marker_key(command, booking_id, idempotency_key, actor_id)
    try:
        claimed = await redis.set(key, "1", ex=settings.command_dedupe_ttl_seconds, nx=True)
    except RedisError as e:
        logger.warning("Command dedupe unavailable, proceeding", extra={"command": command, "error": str(e)})
        return False

    if not claimed:
        raise DuplicateCommandError(f"Duplicate {command.replace('_', ' ')} request")
    return True


async def release_command(
    command: str,
    booking_id: str,
    idempotency_key: Optional[str],
    actor_id: Optional[str] = None,
) -> None:
    """Drop a claimed marker so a failed command can be retried with the same key."""
    if not idempotency_key:
        return
    redis = await get_redis()
    try:
        await redis.delete(_marker_key(command, booking_id, idempotency_key, actor_id))
    except RedisError as e:
        logger.warning("Could not release command marker", extra={"command": command, "error": str(e)})
