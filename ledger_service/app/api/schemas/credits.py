from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class AmountRequest(BaseModel):
    """차감/환불 요청."""

    amount: int = Field(default=1, gt=0)


class ShareStatus(BaseModel):
    can_claim_today: bool
    today_utc: str


class AccountResponse(BaseModel):
    """유저 잔액 및 공유 보너스 상태."""

    user_id: str
    credits: int
    last_share_date: str | None
    created_at: UtcDateTime
    updated_at: UtcDateTime
    share: ShareStatus


class SpendResponse(BaseModel):
    ok: bool
    credits: int


class BalanceResponse(BaseModel):
    credits: int


class ShareBonusResponse(BaseModel):
    """일일 공유 보너스 결과. 이미 받았으면 200 + already_claimed=True."""

    ok: bool
    already_claimed: bool
    credits: int
    today_utc: str


class VerifyTxRequest(BaseModel):
    tx_hash: str = Field(min_length=1)


class VerifyTxResponse(BaseModel):
    ok: bool
    already_counted: bool
    credits: int
    tx_hash: str
