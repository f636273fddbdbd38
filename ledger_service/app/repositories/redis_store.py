"""redis-py 기반 KeyValueStoreInterface 구현체."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Mapping

from redis import Redis
from redis.exceptions import RedisError

from ..exceptions import StoreUnavailable
from .interfaces import KeyValueStoreInterface


logger = logging.getLogger(__name__)


@contextmanager
def _store_call(op: str, key: str) -> Iterator[None]:
    """Redis 예외를 StoreUnavailable 로 변환한다. 재시도는 하지 않는다."""

    try:
        yield
    except RedisError as exc:
        logger.error("redis %s failed key=%s: %s", op, key, exc)
        raise StoreUnavailable(f"redis {op} failed for key={key}: {exc}") from exc


def _as_int(op: str, key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise StoreUnavailable(
            f"redis {op} returned non-integer for key={key}: {value!r}"
        ) from exc


class RedisKeyValueStore(KeyValueStoreInterface):
    """Redis 클라이언트 래퍼. 클라이언트는 decode_responses=True 로 생성되어 있어야 한다."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    def get(self, key: str) -> str | None:
        with _store_call("get", key):
            return self._client.get(key)

    def set(
        self,
        key: str,
        value: str,
        *,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:
        with _store_call("set", key):
            result = self._client.set(key, value, ex=ttl_seconds, nx=only_if_absent)
        # nx=True 이고 이미 키가 있으면 None 이 돌아온다.
        return bool(result)

    def delete(self, key: str) -> bool:
        with _store_call("delete", key):
            removed = self._client.delete(key)
        return _as_int("delete", key, removed) > 0

    def increment_by(self, key: str, delta: int) -> int:
        with _store_call("incrby", key):
            value = self._client.incrby(key, delta)
        return _as_int("incrby", key, value)

    def expire(self, key: str, seconds: int) -> bool:
        with _store_call("expire", key):
            return bool(self._client.expire(key, seconds))

    def ttl(self, key: str) -> int:
        with _store_call("ttl", key):
            value = self._client.ttl(key)
        return _as_int("ttl", key, value)

    def hash_get_all(self, key: str) -> dict[str, str] | None:
        with _store_call("hgetall", key):
            data = self._client.hgetall(key)
        if not data:
            return None
        return dict(data)

    def hash_get(self, key: str, field: str) -> str | None:
        with _store_call("hget", key):
            return self._client.hget(key, field)

    def hash_set(self, key: str, mapping: Mapping[str, str]) -> None:
        if not mapping:
            return
        with _store_call("hset", key):
            self._client.hset(key, mapping=dict(mapping))

    def hash_set_if_absent(self, key: str, field: str, value: str) -> bool:
        with _store_call("hsetnx", key):
            return bool(self._client.hsetnx(key, field, value))

    def hash_increment_by(self, key: str, field: str, delta: int) -> int:
        with _store_call("hincrby", key):
            value = self._client.hincrby(key, field, delta)
        return _as_int("hincrby", key, value)

    def set_add(self, key: str, member: str) -> bool:
        with _store_call("sadd", key):
            added = self._client.sadd(key, member)
        return _as_int("sadd", key, added) > 0

    def set_is_member(self, key: str, member: str) -> bool:
        with _store_call("sismember", key):
            return bool(self._client.sismember(key, member))

    def set_remove(self, key: str, member: str) -> bool:
        with _store_call("srem", key):
            removed = self._client.srem(key, member)
        return _as_int("srem", key, removed) > 0

    def sorted_set_add(self, key: str, score: float, member: str) -> None:
        with _store_call("zadd", key):
            self._client.zadd(key, {member: score})

    def sorted_set_range_by_score(
        self,
        key: str,
        min_score: float | str,
        max_score: float | str,
        limit: int | None = None,
    ) -> list[str]:
        with _store_call("zrangebyscore", key):
            if limit is None:
                members = self._client.zrangebyscore(key, min_score, max_score)
            else:
                members = self._client.zrangebyscore(
                    key, min_score, max_score, start=0, num=limit
                )
        return list(members)

    def list_push(self, key: str, value: str) -> int:
        with _store_call("lpush", key):
            length = self._client.lpush(key, value)
        return _as_int("lpush", key, length)

    def list_range(self, key: str, start: int, end: int) -> list[str]:
        with _store_call("lrange", key):
            return list(self._client.lrange(key, start, end))

    def list_remove(self, key: str, value: str) -> int:
        with _store_call("lrem", key):
            removed = self._client.lrem(key, -1, value)
        return _as_int("lrem", key, removed)
