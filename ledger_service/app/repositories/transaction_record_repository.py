"""온체인 트랜잭션 반영 기록 레포지토리 (`tx:<소문자 해시>`).

키의 존재 자체가 "이미 크레딧을 지급함"을 뜻하며, 보관 기간이 지나면 자동 만료된다.
"""

from __future__ import annotations

from .interfaces import KeyValueStoreInterface


DEFAULT_RETENTION_SECONDS = 90 * 24 * 60 * 60


def normalize_tx_id(tx_id: str) -> str:
    return tx_id.strip().lower()


def tx_key(tx_id: str) -> str:
    return f"tx:{normalize_tx_id(tx_id)}"


class TransactionRecordRepository:
    def __init__(
        self,
        store: KeyValueStoreInterface,
        retention_seconds: int = DEFAULT_RETENTION_SECONDS,
    ) -> None:
        self._store = store
        self._retention_seconds = retention_seconds

    def exists(self, tx_id: str) -> bool:
        return self._store.get(tx_key(tx_id)) is not None

    def mark(self, tx_id: str) -> None:
        self._store.set(tx_key(tx_id), "1", ttl_seconds=self._retention_seconds)

    def claim(self, tx_id: str) -> bool:
        return self._store.set(
            tx_key(tx_id),
            "1",
            ttl_seconds=self._retention_seconds,
            only_if_absent=True,
        )

    def release(self, tx_id: str) -> None:
        self._store.delete(tx_key(tx_id))
