from __future__ import annotations

from pydantic import BaseModel, Field

from ...models.gift import GiftRecord


class CreateGiftRequest(BaseModel):
    """관리자 선물 요청. fids 가 비어 있으면 global 선물."""

    amount: int
    message: str | None = None
    fids: list[int] = Field(default_factory=list)


class CreateGiftResponse(BaseModel):
    ok: bool = True
    kind: str  # "global" | "targeted"
    gift: GiftRecord | None = None
    queued: int = 0
    sample: list[GiftRecord] = Field(default_factory=list)


class AppliedGiftsResponse(BaseModel):
    applied: list[GiftRecord]
    total: int
    cursor: int
    credits: int
