from __future__ import annotations

import logging

from fastapi import Depends

from common.types.datetime import utc_date_key, utc_now

from ..config import AppConfig
from ..dependencies import Clock, get_app_config, get_clock, get_key_value_store
from ..models.credit import BonusResult, ClaimCheck
from ..models.user_account import UserAccount
from ..repositories.interfaces import KeyValueStoreInterface
from ..repositories.user_account_repository import UserAccountRepository
from .credit_service import CreditService, get_credit_service
from .users_service import UserAccountService, get_user_account_service


logger = logging.getLogger(__name__)


class DailyBonusService:
    """UTC 날짜 기준 하루 한 번 공유 보너스.

    - can_claim 은 lastShareDate 와 오늘(UTC)을 비교한다.
    - claim_and_award 는 날짜별 SET NX 게이트를 먼저 잡아 동시 중복 요청에도 한 번만 지급한다.
    """

    def __init__(
        self,
        account_service: UserAccountService,
        credit_service: CreditService,
        account_repo: UserAccountRepository,
        bonus_amount: int = 2,
        clock: Clock = utc_now,
    ) -> None:
        self._accounts = account_service
        self._ledger = credit_service
        self._account_repo = account_repo
        self._bonus_amount = bonus_amount
        self._clock = clock

    def _check(self, user_id: str) -> tuple[ClaimCheck, UserAccount]:
        today = utc_date_key(self._clock())
        account = self._accounts.get_or_create(user_id)
        return ClaimCheck(ok=not account.has_claimed_on(today), today_utc=today), account

    def can_claim(self, user_id: str) -> ClaimCheck:
        check, _ = self._check(user_id)
        return check

    def claim_and_award(
        self, user_id: str, bonus_amount: int | None = None
    ) -> BonusResult:
        amount = self._bonus_amount if bonus_amount is None else bonus_amount
        check, account = self._check(user_id)
        today = check.today_utc

        if not check.ok:
            logger.info("share bonus already claimed today", extra={"user_id": user_id})
            return BonusResult(ok=False, balance_after=account.credits, today_utc=today)

        if not self._account_repo.claim_share_day(user_id, today):
            # 같은 순간 들어온 다른 요청이 먼저 게이트를 잡았다.
            logger.info("share bonus claim lost race", extra={"user_id": user_id})
            return BonusResult(
                ok=False, balance_after=self._ledger.balance(user_id), today_utc=today
            )

        try:
            balance = self._ledger.award(user_id, amount)
        except Exception:
            # 지급이 실패하면 오늘 다시 시도할 수 있도록 게이트를 푼다.
            self._account_repo.release_share_day(user_id, today)
            raise

        self._accounts.record_share_date(user_id, today)
        logger.info(
            "share bonus awarded",
            extra={"user_id": user_id, "amount": amount, "balance": balance},
        )
        return BonusResult(ok=True, balance_after=balance, today_utc=today)


def get_daily_bonus_service(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    config: AppConfig = Depends(get_app_config),
    account_service: UserAccountService = Depends(get_user_account_service),
    credit_service: CreditService = Depends(get_credit_service),
    clock: Clock = Depends(get_clock),
) -> DailyBonusService:
    """FastAPI DI용 DailyBonusService 팩토리."""
    return DailyBonusService(
        account_service,
        credit_service,
        UserAccountRepository(store),
        bonus_amount=config.credits.share_bonus,
        clock=clock,
    )
