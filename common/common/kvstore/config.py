from __future__ import annotations

import os


REDIS_URL_ENV = "REDIS_URL"
REDIS_SOCKET_TIMEOUT_ENV = "REDIS_SOCKET_TIMEOUT_SECONDS"

DEFAULT_SOCKET_TIMEOUT_SECONDS = 5.0


def get_redis_url() -> str:
    """Redis 연결에 사용할 URL 을 반환한다.

    환경 변수에서만 읽고, 설정되지 않은 경우 애플리케이션이 즉시 실패하도록
    RuntimeError 를 발생시킨다. (예: redis://localhost:6379/0, rediss://...)
    """

    value = os.getenv(REDIS_URL_ENV, "").strip()
    if not value:
        raise RuntimeError(
            f"{REDIS_URL_ENV} environment variable is required for the key-value store",
        )
    return value


def get_socket_timeout() -> float:
    """Redis 소켓 타임아웃(초). 원장 연산은 자체 타임아웃을 두지 않고 이 값을 따른다."""

    raw = os.getenv(REDIS_SOCKET_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_SOCKET_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{REDIS_SOCKET_TIMEOUT_ENV} must be a number if set, got: {raw!r}"
        ) from exc
