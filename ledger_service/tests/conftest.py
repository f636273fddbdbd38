from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping

import pytest

from ledger_service.app.config import CreditPolicy
from ledger_service.app.exceptions import StoreUnavailable
from ledger_service.app.onchain.rpc_client import TransactionReceipt
from ledger_service.app.repositories.gift_repository import GiftRepository
from ledger_service.app.repositories.user_account_repository import (
    UserAccountRepository,
)
from ledger_service.app.services.credit_service import CreditService
from ledger_service.app.services.daily_bonus_service import DailyBonusService
from ledger_service.app.services.gift_service import GiftService
from ledger_service.app.services.users_service import UserAccountService


class FakeKeyValueStore:
    """KeyValueStoreInterface 의 인메모리 구현 (TTL 은 값만 기록하고 만료시키지 않는다)."""

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.sets: dict[str, set[str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}
        self.fail_ops: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _op(self, name: str, key: str) -> None:
        self.calls.append((name, key))
        if name in self.fail_ops or "*" in self.fail_ops:
            raise StoreUnavailable(f"fake {name} failed for key={key}")

    def _exists(self, key: str) -> bool:
        return any(
            key in bucket
            for bucket in (self.strings, self.hashes, self.sets, self.zsets, self.lists)
        )

    # strings
    def get(self, key: str) -> str | None:
        self._op("get", key)
        return self.strings.get(key)

    def set(
        self,
        key: str,
        value: str,
        *,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:
        self._op("set", key)
        if only_if_absent and key in self.strings:
            return False
        self.strings[key] = value
        if ttl_seconds is not None:
            self.ttls[key] = ttl_seconds
        return True

    def delete(self, key: str) -> bool:
        self._op("delete", key)
        existed = self._exists(key)
        for bucket in (self.strings, self.hashes, self.sets, self.zsets, self.lists):
            bucket.pop(key, None)
        self.ttls.pop(key, None)
        return existed

    def increment_by(self, key: str, delta: int) -> int:
        self._op("incrby", key)
        value = int(self.strings.get(key, "0")) + delta
        self.strings[key] = str(value)
        return value

    def expire(self, key: str, seconds: int) -> bool:
        self._op("expire", key)
        if not self._exists(key):
            return False
        self.ttls[key] = seconds
        return True

    def ttl(self, key: str) -> int:
        self._op("ttl", key)
        if not self._exists(key):
            return -2
        return self.ttls.get(key, -1)

    # hashes
    def hash_get_all(self, key: str) -> dict[str, str] | None:
        self._op("hgetall", key)
        data = self.hashes.get(key)
        return dict(data) if data else None

    def hash_get(self, key: str, field: str) -> str | None:
        self._op("hget", key)
        return self.hashes.get(key, {}).get(field)

    def hash_set(self, key: str, mapping: Mapping[str, str]) -> None:
        self._op("hset", key)
        self.hashes.setdefault(key, {}).update(mapping)

    def hash_set_if_absent(self, key: str, field: str, value: str) -> bool:
        self._op("hsetnx", key)
        data = self.hashes.setdefault(key, {})
        if field in data:
            return False
        data[field] = value
        return True

    def hash_increment_by(self, key: str, field: str, delta: int) -> int:
        self._op("hincrby", key)
        data = self.hashes.setdefault(key, {})
        value = int(data.get(field, "0")) + delta
        data[field] = str(value)
        return value

    # sets
    def set_add(self, key: str, member: str) -> bool:
        self._op("sadd", key)
        members = self.sets.setdefault(key, set())
        if member in members:
            return False
        members.add(member)
        return True

    def set_is_member(self, key: str, member: str) -> bool:
        self._op("sismember", key)
        return member in self.sets.get(key, set())

    def set_remove(self, key: str, member: str) -> bool:
        self._op("srem", key)
        members = self.sets.get(key, set())
        if member not in members:
            return False
        members.discard(member)
        if not members:
            self.sets.pop(key, None)
        return True

    # sorted sets
    def sorted_set_add(self, key: str, score: float, member: str) -> None:
        self._op("zadd", key)
        self.zsets.setdefault(key, {})[member] = float(score)

    def sorted_set_range_by_score(
        self,
        key: str,
        min_score: float | str,
        max_score: float | str,
        limit: int | None = None,
    ) -> list[str]:
        self._op("zrangebyscore", key)

        def bound(raw: float | str) -> tuple[float, bool]:
            text = str(raw)
            exclusive = text.startswith("(")
            text = text.lstrip("(")
            if text in ("+inf", "inf"):
                return float("inf"), exclusive
            if text == "-inf":
                return float("-inf"), exclusive
            return float(text), exclusive

        low, low_ex = bound(min_score)
        high, high_ex = bound(max_score)
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
        result = [
            member
            for member, score in items
            if (score > low if low_ex else score >= low)
            and (score < high if high_ex else score <= high)
        ]
        return result if limit is None else result[:limit]

    # lists
    def list_push(self, key: str, value: str) -> int:
        self._op("lpush", key)
        items = self.lists.setdefault(key, [])
        items.insert(0, value)
        return len(items)

    def list_range(self, key: str, start: int, end: int) -> list[str]:
        self._op("lrange", key)
        items = self.lists.get(key, [])
        size = len(items)
        if start < 0:
            start = max(0, size + start)
        if end < 0:
            end = size + end
        return items[start : end + 1]

    def list_remove(self, key: str, value: str) -> int:
        self._op("lrem", key)
        items = self.lists.get(key, [])
        for index in range(len(items) - 1, -1, -1):
            if items[index] == value:
                del items[index]
                if not items:
                    self.lists.pop(key, None)
                return 1
        return 0


class FakeReceiptReader:
    """ReceiptReaderInterface 가짜 구현. add 로 등록하지 않은 해시는 대기 중(None)으로 본다."""

    def __init__(self) -> None:
        self.receipts: dict[str, TransactionReceipt] = {}
        self.calls: list[str] = []

    def add(self, tx_hash: str, to: str | None, *, succeeded: bool = True) -> None:
        self.receipts[tx_hash.lower()] = TransactionReceipt(
            tx_hash=tx_hash.lower(), succeeded=succeeded, to=to, block_number=1
        )

    def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        self.calls.append(tx_hash)
        return self.receipts.get(tx_hash)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@dataclass
class LedgerFixture:
    store: FakeKeyValueStore
    clock: FakeClock
    account_repo: UserAccountRepository
    accounts: UserAccountService
    ledger: CreditService
    bonus: DailyBonusService
    gifts: GiftService


@pytest.fixture
def store() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def receipts() -> FakeReceiptReader:
    return FakeReceiptReader()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger_fixture(store: FakeKeyValueStore, clock: FakeClock) -> LedgerFixture:
    policy = CreditPolicy()
    account_repo = UserAccountRepository(store)
    accounts = UserAccountService(
        account_repo, starting_credits=policy.starting_credits, clock=clock
    )
    ledger = CreditService(accounts, account_repo, clock=clock)
    bonus = DailyBonusService(
        accounts, ledger, account_repo, bonus_amount=policy.share_bonus, clock=clock
    )
    gifts = GiftService(GiftRepository(store), accounts, ledger, policy=policy, clock=clock)
    return LedgerFixture(
        store=store,
        clock=clock,
        account_repo=account_repo,
        accounts=accounts,
        ledger=ledger,
        bonus=bonus,
        gifts=gifts,
    )
