# =============================================================================
# File: app/infra/persistence/redis_client.py - Async Redis Client
# =============================================================================
# • Per-app (.state.redis) client for FastAPI lifespan and workers.
# • Built from RedisConfig (REDIS_HOST / REDIS_PORT / REDIS_PASSWORD).
# • A failed startup ping is logged, not raised: the cache layer degrades to
#   cache-less operation and recovers once Redis becomes reachable.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config.redis_config import RedisConfig, get_redis_config

log = logging.getLogger("message_service.infra.redis_client")


def build_redis_client(config: Optional[RedisConfig] = None, **kwargs: Any) -> redis.Redis:
    """Build Redis client from RedisConfig"""
    config = config or get_redis_config()
    opts = config.get_connection_kwargs()
    opts.update(kwargs)  # Allow overrides

    if config.socket_keepalive:
        keepalive_opts = config.get_socket_keepalive_options()
        if keepalive_opts:
            opts["socket_keepalive_options"] = keepalive_opts

    return redis.from_url(config.redis_url, **opts)


async def init_app_redis(app, config: Optional[RedisConfig] = None, **kwargs: Any) -> redis.Redis:
    """
    Per-app Redis client for FastAPI lifespan.
    Usage: await init_app_redis(app)
    Sets app.state.redis.
    """
    config = config or get_redis_config()
    app.state.redis = build_redis_client(config, **kwargs)

    try:
        await app.state.redis.ping()
        log.info(f"Redis connected ({config.host}:{config.port}/{config.db})")
    except (RedisError, OSError) as e:
        log.warning(f"Redis unreachable at startup ({config.host}:{config.port}): {e}. "
                    f"Continuing without cache until it recovers.")

    return app.state.redis


async def close_app_redis(app) -> None:
    client = getattr(app.state, "redis", None)
    if client:
        try:
            await client.aclose()
            log.info("FastAPI app.state.redis client closed.")
        except Exception as e:
            log.warning(f"Error closing app.state.redis: {e}", exc_info=True)
        finally:
            app.state.redis = None


def get_app_redis(app) -> redis.Redis:
    client = getattr(app.state, "redis", None)
    if client is None:
        raise RuntimeError("app.state.redis not initialized. Did you call init_app_redis() in lifespan?")
    return client


# -----------------------------------------------------------------------------
# Health and Diagnostics
# -----------------------------------------------------------------------------
async def health_check(r: Optional[redis.Redis]) -> Dict[str, Any]:
    """Ping Redis and report basic server info."""
    if r is None:
        return {"is_healthy": False, "error": "not initialized"}

    try:
        await r.ping()
        details: Dict[str, Any] = {"is_healthy": True}
        try:
            info = await r.info()
            details["redis_version"] = info.get("redis_version")
            details["connected_clients"] = info.get("connected_clients")
            details["used_memory_human"] = info.get("used_memory_human")
        except (RedisError, OSError) as e:
            details["info_error"] = str(e)
        return details
    except (RedisError, OSError) as e:
        log.error(f"Error during Redis health check: {e}")
        return {"is_healthy": False, "error": str(e)}
