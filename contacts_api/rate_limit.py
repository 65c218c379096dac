import logging

import redis.asyncio as redis
from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from contacts_api import config

logger = logging.getLogger(__name__)

contacts_limiter = RateLimiter(times=config.RATE_LIMIT_TIMES, seconds=config.RATE_LIMIT_SECONDS)


async def init_rate_limiter() -> None:
    redis_client = redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        db=config.REDIS_DB,
        encoding="utf-8",
        decode_responses=True,
    )
    await FastAPILimiter.init(redis_client)
    logger.info("Rate limiter connected to redis at %s:%s", config.REDIS_HOST, config.REDIS_PORT)


async def close_rate_limiter() -> None:
    await FastAPILimiter.close()


async def contacts_rate_limit(request: Request, response: Response) -> None:
    if not config.RATE_LIMIT_ENABLED:
        return
    await contacts_limiter(request, response)
