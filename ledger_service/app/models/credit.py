"""크레딧 원장 연산 결과 모델.

잔액 부족, 이미 받은 보너스, 이미 반영된 트랜잭션은 예외가 아니라 정상 결과(ok=False 등)로 돌려준다.
"""

from __future__ import annotations

from pydantic import BaseModel


class SpendResult(BaseModel):
    """차감 결과. ok=False 면 보상 증가 후의 잔액이 balance_after 에 들어있다."""

    ok: bool
    balance_after: int


class ClaimCheck(BaseModel):
    """일일 보너스 수령 가능 여부."""

    ok: bool
    today_utc: str


class BonusResult(BaseModel):
    """일일 보너스 지급 결과."""

    ok: bool
    balance_after: int
    today_utc: str


class TxCreditResult(BaseModel):
    """온체인 트랜잭션 검증/지급 결과."""

    ok: bool
    already_counted: bool
    balance_after: int
    tx_hash: str


class RateLimitDecision(BaseModel):
    ok: bool
    retry_after_seconds: int = 0
