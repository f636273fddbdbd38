"""선물(관리자 크레딧 조정) 도메인 모델.

- global: 모든 유저에게 보이며, 유저별 커서(last_global_gift_cursor)로 한 번만 반영된다.
- targeted: 특정 FID 의 대기열에 쌓이고, 해당 유저가 반영하면 대기열에서 제거된다.
id 는 두 종류가 공유하는 단조 증가 시퀀스에서 발급된다.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class GiftKind(StrEnum):
    GLOBAL = "global"
    TARGETED = "targeted"


class GiftRecord(BaseModel):
    id: int
    amount: int  # 음수면 페널티
    message: str
    kind: GiftKind
    target_fid: int | None = None
    created_at: UtcDateTime


class AppliedGifts(BaseModel):
    """한 번의 apply_pending 호출 결과."""

    applied: list[GiftRecord] = Field(default_factory=list)
    total: int = 0
    cursor: int = 0
    balance_after: int | None = None
