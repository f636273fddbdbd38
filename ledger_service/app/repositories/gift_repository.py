"""선물 레포지토리.

키 구성:
- gift:seq                    global/targeted 공용 id 시퀀스 (INCR)
- gift:global:<id>            global 선물 JSON
- gift:global:index           global 선물 id 인덱스 (ZSET, score=member=id)
- gift:fid:<fid>:pending      targeted 선물 대기열 (LIST, LPUSH 로 최신이 head)
- gift:applied:<user_id>      유저에게 이미 반영된 선물 id (SET)
"""

from __future__ import annotations

from .documents.gift_document import GiftDocument, parse_gift
from .interfaces import KeyValueStoreInterface
from ..models.gift import GiftRecord


GIFT_SEQ_KEY = "gift:seq"
GLOBAL_INDEX_KEY = "gift:global:index"

# 반영 기록은 커서가 지나간 뒤에는 필요 없다. 동시 요청 경합 구간만 덮으면 된다.
APPLIED_TTL_SECONDS = 90 * 24 * 60 * 60


def global_gift_key(gift_id: int) -> str:
    return f"gift:global:{gift_id}"


def pending_key(fid: int) -> str:
    return f"gift:fid:{fid}:pending"


def applied_key(user_id: str) -> str:
    return f"gift:applied:{user_id}"


class GiftRepository:
    def __init__(self, store: KeyValueStoreInterface) -> None:
        self._store = store

    def next_id(self) -> int:
        return self._store.increment_by(GIFT_SEQ_KEY, 1)

    def save_global(self, gift: GiftRecord) -> None:
        # 본문을 먼저 쓰고 인덱스에 올려야 인덱스만 있고 본문이 없는 상태가 생기지 않는다.
        self._store.set(global_gift_key(gift.id), GiftDocument.from_domain(gift).to_json())
        self._store.sorted_set_add(GLOBAL_INDEX_KEY, gift.id, str(gift.id))

    def push_targeted(self, fid: int, gift: GiftRecord) -> None:
        self._store.list_push(pending_key(fid), GiftDocument.from_domain(gift).to_json())

    def global_ids_after(self, cursor: int, limit: int) -> list[int]:
        members = self._store.sorted_set_range_by_score(
            GLOBAL_INDEX_KEY, f"({cursor}", "+inf", limit=limit
        )
        ids: list[int] = []
        for member in members:
            try:
                gift_id = int(member)
            except ValueError:
                continue
            if gift_id > cursor:
                ids.append(gift_id)
        return sorted(ids)

    def get_global(self, gift_id: int) -> GiftRecord | None:
        return parse_gift(self._store.get(global_gift_key(gift_id)))

    def oldest_pending(self, fid: int, limit: int) -> list[str]:
        """대기열 tail(가장 오래된 쪽)에서 최대 limit 개의 원본 JSON 을 오래된 순으로 반환한다."""
        raws = self._store.list_range(pending_key(fid), -limit, -1)
        return list(reversed(raws))

    def remove_pending(self, fid: int, raw: str) -> None:
        self._store.list_remove(pending_key(fid), raw)

    def claim_for_user(self, user_id: str, gift_id: int) -> bool:
        """유저에 대해 선물 id 를 선점한다. 처음 선점한 호출만 True."""
        key = applied_key(user_id)
        added = self._store.set_add(key, str(gift_id))
        if added:
            self._store.expire(key, APPLIED_TTL_SECONDS)
        return added

    def release_for_user(self, user_id: str, gift_id: int) -> None:
        """지급에 실패한 선점을 되돌려 다음 반영 때 다시 집계되게 한다."""
        self._store.set_remove(applied_key(user_id), str(gift_id))
