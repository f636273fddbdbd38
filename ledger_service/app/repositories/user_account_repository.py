"""유저 계정 레포지토리 (Redis hash `user:<user_id>`).

잔액 증감은 HINCRBY 로만 수행해 동시 요청 간 갱신 유실이 없도록 한다.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from ..models.user_account import UserAccount
from .documents.user_account_document import UserAccountDocument, loose_int
from .interfaces import KeyValueStoreInterface


CREDITS_FIELD = "credits"
UPDATED_AT_FIELD = "updatedAt"

# 일일 보너스 게이트 키는 날짜가 바뀐 뒤 하루 더 보관하면 충분하다.
SHARE_GATE_TTL_SECONDS = 2 * 24 * 60 * 60

# HINCRBY 가 받아들이는 정수 표기 (선행 0, "+", 소수점 불가)
_REDIS_INTEGER_PATTERN = re.compile(r"0|-?[1-9][0-9]*")


logger = logging.getLogger(__name__)


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def share_gate_key(user_id: str, day: str) -> str:
    return f"share:{user_id}:{day}"


class UserAccountRepository:
    """user 해시에 대한 Redis 접근 레이어."""

    def __init__(self, store: KeyValueStoreInterface) -> None:
        self._store = store

    def find(self, user_id: str) -> UserAccount | None:
        data = self._store.hash_get_all(user_key(user_id))
        if not data:
            return None
        self._repair_credits(user_id, data)
        return UserAccountDocument.from_hash(data).to_domain(user_id)

    def _repair_credits(self, user_id: str, data: dict[str, str]) -> None:
        """HINCRBY 가 거부할 잔액 값("12.0", "abc" 등)을 읽힌 값 그대로 정수 문자열로 다시 쓴다."""
        raw = data.get(CREDITS_FIELD)
        if raw is None or _REDIS_INTEGER_PATTERN.fullmatch(raw):
            return
        repaired = str(loose_int(raw))
        logger.warning(
            "rewriting malformed credits value %r -> %s", raw, repaired,
            extra={"user_id": user_id},
        )
        self._store.hash_set(user_key(user_id), {CREDITS_FIELD: repaired})
        data[CREDITS_FIELD] = repaired

    def create_if_absent(self, account: UserAccount) -> UserAccount:
        """필드 단위 HSETNX 로 기본값을 채운다.

        같은 유저를 동시에 생성해도 먼저 쓴 값이 남고 나머지는 무시되므로 하나의 레코드로 수렴한다.
        """

        key = user_key(account.user_id)
        record = UserAccountDocument.from_domain(account).to_hash()
        for field, value in record.items():
            self._store.hash_set_if_absent(key, field, value)

        stored = self.find(account.user_id)
        return stored if stored is not None else account

    def get_credits(self, user_id: str) -> int:
        """저장된 잔액을 그대로(음수 포함) 읽는다."""
        return loose_int(self._store.hash_get(user_key(user_id), CREDITS_FIELD))

    def increment_credits(self, user_id: str, delta: int, now: datetime) -> int:
        """잔액을 원자적으로 delta 만큼 증감하고 증감 후 저장값을 반환한다."""
        key = user_key(user_id)
        # updatedAt 을 먼저 쓴다. 여기서 실패하면 잔액은 아직 바뀌지 않았다.
        self._store.hash_set(key, {UPDATED_AT_FIELD: now.isoformat()})
        return self._store.hash_increment_by(key, CREDITS_FIELD, delta)

    def update_fields(
        self,
        user_id: str,
        now: datetime,
        *,
        last_share_date: str | None = None,
        last_global_gift_cursor: int | None = None,
    ) -> None:
        updates: dict[str, str] = {UPDATED_AT_FIELD: now.isoformat()}
        if last_share_date is not None:
            updates["lastShareDate"] = last_share_date
        if last_global_gift_cursor is not None:
            updates["lastGlobalGiftCursor"] = str(last_global_gift_cursor)
        self._store.hash_set(user_key(user_id), updates)

    def claim_share_day(self, user_id: str, day: str) -> bool:
        """해당 UTC 날짜의 보너스 게이트를 SET NX 로 선점한다. 선점에 성공한 요청만 지급한다."""
        return self._store.set(
            share_gate_key(user_id, day),
            "1",
            ttl_seconds=SHARE_GATE_TTL_SECONDS,
            only_if_absent=True,
        )

    def release_share_day(self, user_id: str, day: str) -> None:
        self._store.delete(share_gate_key(user_id, day))
