from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from .config import get_redis_url, get_socket_timeout


logger = logging.getLogger(__name__)


def create_client() -> Redis:
    """REDIS_URL 로 Redis 클라이언트를 만들고 ping 으로 연결을 검증한다.

    - 프로세스당 한 번(앱 lifespan 시작 시) 호출해 만든 클라이언트를 요청마다 재사용한다.
    - decode_responses=True 로 모든 값을 str 로 받는다.
    - 연결 실패는 RuntimeError 로 감싸 애플리케이션 기동을 중단시킨다.
    """

    url = get_redis_url()
    timeout = get_socket_timeout()
    client = Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )

    try:
        client.ping()
    except RedisError as exc:
        client.close()
        raise RuntimeError(f"failed to connect to Redis: {exc}") from exc

    logger.info("Redis connected (socket_timeout=%.1fs)", timeout)
    return client
