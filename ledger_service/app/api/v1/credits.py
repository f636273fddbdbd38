"""크레딧 관련 내부 API 라우터.

Mini App 의 서버리스 핸들러가 호출하는 내부 API. 잔액 부족은 402, 이미 받은 보너스/이미 반영된
트랜잭션은 200 + 플래그로 응답한다. Redis 장애(StoreUnavailable)는 앱 전역 핸들러에서 503 으로 바뀐다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...config import AppConfig
from ...dependencies import get_app_config
from ...exceptions import (
    InvalidTransactionError,
    InvalidUserIdError,
    ReceiptNotFoundError,
    ReceiptUnavailableError,
    TransactionRejectedError,
)
from ...models.identity import normalize_user_id
from ...services.credit_service import CreditService, get_credit_service
from ...services.daily_bonus_service import DailyBonusService, get_daily_bonus_service
from ...services.gift_service import GiftService, get_gift_service
from ...services.rate_limiter import RateLimiter, get_rate_limiter
from ...services.transaction_service import (
    TransactionCreditService,
    get_transaction_credit_service,
)
from ...services.users_service import UserAccountService, get_user_account_service
from ..schemas.credits import (
    AccountResponse,
    AmountRequest,
    BalanceResponse,
    ShareBonusResponse,
    ShareStatus,
    SpendResponse,
    VerifyTxRequest,
    VerifyTxResponse,
)
from ..schemas.gifts import AppliedGiftsResponse


router = APIRouter(prefix="/credits", tags=["credits"])


# -------- Dependencies --------


def get_user_id(user_id: str) -> str:
    """경로의 user_id 를 검증/정규화한다."""
    try:
        return normalize_user_id(user_id)
    except InvalidUserIdError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_user_id", "message": str(exc)},
        ) from exc


UserId = Annotated[str, Depends(get_user_id)]


# -------- Endpoints --------


@router.get("/{user_id}")
def get_account(
    user_id: UserId,
    account_service: Annotated[UserAccountService, Depends(get_user_account_service)],
    bonus_service: Annotated[DailyBonusService, Depends(get_daily_bonus_service)],
) -> AccountResponse:
    """잔액 조회 (없으면 시작 크레딧으로 생성) 및 오늘 공유 보너스 가능 여부."""
    account = account_service.get_or_create(user_id)
    share = bonus_service.can_claim(user_id)
    return AccountResponse(
        user_id=account.user_id,
        credits=account.credits,
        last_share_date=account.last_share_date,
        created_at=account.created_at,
        updated_at=account.updated_at,
        share=ShareStatus(can_claim_today=share.ok, today_utc=share.today_utc),
    )


@router.post("/{user_id}/spend")
def spend_credits(
    user_id: UserId,
    req: AmountRequest,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
) -> SpendResponse:
    """크레딧 차감. 잔액 부족 시 402."""
    result = credit_service.spend(user_id, req.amount)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "code": "insufficient_credits",
                "message": "Not enough credits",
                "credits": result.balance_after,
            },
        )
    return SpendResponse(ok=True, credits=result.balance_after)


@router.post("/{user_id}/refund")
def refund_credits(
    user_id: UserId,
    req: AmountRequest,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
) -> BalanceResponse:
    """생성 실패 등으로 이미 차감한 크레딧을 되돌린다."""
    return BalanceResponse(credits=credit_service.refund(user_id, req.amount))


@router.post("/{user_id}/share-bonus")
def claim_share_bonus(
    user_id: UserId,
    bonus_service: Annotated[DailyBonusService, Depends(get_daily_bonus_service)],
) -> ShareBonusResponse:
    """공유 성공 후 호출. UTC 날짜당 한 번 지급한다."""
    result = bonus_service.claim_and_award(user_id)
    return ShareBonusResponse(
        ok=True,
        already_claimed=not result.ok,
        credits=result.balance_after,
        today_utc=result.today_utc,
    )


@router.post("/{user_id}/verify-tx")
def verify_transaction(
    user_id: UserId,
    req: VerifyTxRequest,
    tx_service: Annotated[
        TransactionCreditService, Depends(get_transaction_credit_service)
    ],
    rate_limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> VerifyTxResponse:
    """온체인 결제 트랜잭션을 검증하고 크레딧을 지급한다 (트랜잭션당 한 번)."""
    policy = config.rate_limit
    decision = rate_limiter.hit(
        f"{user_id}:verify", policy.window_seconds, policy.max_hits
    )
    if not decision.ok:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "code": "rate_limited",
                "message": f"Rate limited. Try again in {decision.retry_after_seconds}s.",
            },
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

    try:
        result = tx_service.verify_and_credit(user_id, req.tx_hash)
    except InvalidTransactionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_tx_hash", "message": str(exc)},
        ) from exc
    except TransactionRejectedError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "tx_rejected", "message": str(exc)},
        ) from exc
    except ReceiptNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "receipt_not_found", "message": "Receipt not found yet. Try again."},
        ) from exc
    except ReceiptUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "chain_unavailable", "message": "Could not verify tx. Try again."},
        ) from exc

    return VerifyTxResponse(
        ok=result.ok,
        already_counted=result.already_counted,
        credits=result.balance_after,
        tx_hash=result.tx_hash,
    )


@router.post("/{user_id}/gifts/apply")
def apply_pending_gifts(
    user_id: UserId,
    gift_service: Annotated[GiftService, Depends(get_gift_service)],
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
) -> AppliedGiftsResponse:
    """앱을 열 때 호출. 대기 중인 global/targeted 선물을 반영한다."""
    result = gift_service.apply_pending(user_id)
    credits = (
        result.balance_after
        if result.balance_after is not None
        else credit_service.balance(user_id)
    )
    return AppliedGiftsResponse(
        applied=result.applied,
        total=result.total,
        cursor=result.cursor,
        credits=credits,
    )
