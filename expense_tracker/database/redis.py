"""
Redis 연결 설정 및 관리

Rate Limiting 카운터를 위한 Redis 연결을 제공합니다.
"""

from typing import Optional, Tuple
import redis.asyncio as redis
from redis.asyncio import ConnectionPool

from expense_tracker.core.config import settings
from expense_tracker.core.logging import get_logger

logger = get_logger(__name__)

# Redis 연결 인스턴스들
redis_client: Optional[redis.Redis] = None
redis_pool: Optional[ConnectionPool] = None


async def init_redis():
    """Redis 연결 초기화"""
    global redis_client, redis_pool

    try:
        redis_pool = ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            encoding='utf-8'
        )
        redis_client = redis.Redis(connection_pool=redis_pool)

        # 연결 테스트
        await redis_client.ping()
        logger.info("Redis connection initialized successfully")

    except Exception as e:
        logger.error(f"Redis initialization failed: {e}")
        raise


async def close_redis():
    """Redis 연결 종료"""
    global redis_client, redis_pool

    try:
        if redis_client:
            await redis_client.aclose()
        if redis_pool:
            await redis_pool.aclose()
        logger.info("Redis connections closed")
    except Exception as e:
        logger.error(f"Error closing Redis connections: {e}")
    finally:
        redis_client = None
        redis_pool = None


async def get_redis() -> redis.Redis:
    """Redis 클라이언트 인스턴스 반환"""
    if redis_client is None:
        await init_redis()
    return redis_client


async def check_redis_connection() -> bool:
    """Redis 연결 상태 확인"""
    try:
        client = await get_redis()
        return await client.ping()
    except Exception as e:
        logger.error(f"Redis connection check failed: {e}")
        return False


async def increment_counter(key: str, expire: int = 60) -> int:
    """카운터 증가 (Rate Limiting용)"""
    client = await get_redis()

    # 파이프라인을 사용하여 원자적 연산 수행
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.expire(key, expire, nx=True)
    results = await pipe.execute()
    return results[0]


async def check_rate_limit(identifier: str, limit: int, window: int = 60) -> Tuple[bool, int, int]:
    """
    Rate limit 확인

    Args:
        identifier: 사용자/IP 식별자
        limit: 허용 요청 수
        window: 시간 윈도우 (초)

    Returns:
        (허용 여부, 현재 카운트, 남은 시간)
    """
    try:
        key = f"rate_limit:{identifier}"
        current_count = await increment_counter(key, window)

        if current_count <= limit:
            return True, current_count, window

        client = await get_redis()
        remaining_time = await client.ttl(key)
        return False, current_count, max(remaining_time, 0)

    except Exception as e:
        logger.error(f"Rate limit check failed for {identifier}: {e}")
        # 에러 시 허용 (fail-open)
        return True, 0, 0
