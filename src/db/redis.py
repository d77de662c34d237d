import logging
from redis.asyncio import Redis
from src.config import Config

logger = logging.getLogger(__name__)

# Initialize
redis_client = Redis.from_url(
    Config.REDIS_URL,
    decode_responses=True
)

async def check_redis_connection():
    try:
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}")


async def add_jti_to_blocklist(jti: str, time_to_live: int):
    await redis_client.setex(name=jti, time=time_to_live, value="true")


async def jti_in_blocklist(jti: str) -> bool:
    result = await redis_client.get(jti)
    return result is not None


async def close_redis_connection():
    if redis_client:
        await redis_client.close()
