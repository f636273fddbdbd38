"""유저 계정 도메인 모델.

유저당 하나의 레코드(Redis hash)에 잔액, 마지막 공유 보너스 날짜, 글로벌 선물 커서를 보관한다.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from common.types.datetime import UtcDateTime


class UserAccount(BaseModel):
    """유저 계정 (잔액은 항상 0 이상으로 노출된다)."""

    user_id: str  # "fid:<int>" | "addr:<0x...>"
    credits: int
    last_share_date: str | None = None  # UTC YYYY-MM-DD
    last_global_gift_cursor: int = 0
    created_at: UtcDateTime
    updated_at: UtcDateTime

    def has_claimed_on(self, day: str) -> bool:
        return self.last_share_date == day


def new_account(user_id: str, starting_credits: int, now: datetime) -> UserAccount:
    return UserAccount(
        user_id=user_id,
        credits=starting_credits,
        last_share_date=None,
        last_global_gift_cursor=0,
        created_at=now,
        updated_at=now,
    )
