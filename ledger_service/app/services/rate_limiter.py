from __future__ import annotations

from fastapi import Depends

from common.types.datetime import utc_now

from ..dependencies import Clock, get_clock, get_key_value_store
from ..models.credit import RateLimitDecision
from ..repositories.interfaces import KeyValueStoreInterface


class RateLimiter:
    """고정 윈도우 카운터 기반 요청 제한 (`rl:<key>:<window index>`).

    완벽하지는 않지만 스팸 요청을 막기에는 충분하다.
    """

    def __init__(self, store: KeyValueStoreInterface, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def hit(self, key: str, window_seconds: int, max_hits: int) -> RateLimitDecision:
        now = int(self._clock().timestamp())
        bucket = now // window_seconds
        redis_key = f"rl:{key}:{bucket}"

        count = self._store.increment_by(redis_key, 1)
        if count == 1:
            self._store.expire(redis_key, window_seconds)
            ttl = window_seconds
        else:
            ttl = self._store.ttl(redis_key)
            if ttl == -1:
                # 첫 요청의 expire 가 실패해 만료 없이 남은 버킷
                self._store.expire(redis_key, window_seconds)
                ttl = window_seconds

        if count > max_hits:
            retry_after = ttl if ttl > 0 else window_seconds
            return RateLimitDecision(ok=False, retry_after_seconds=max(1, retry_after))
        return RateLimitDecision(ok=True)


def get_rate_limiter(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    clock: Clock = Depends(get_clock),
) -> RateLimiter:
    return RateLimiter(store, clock=clock)
