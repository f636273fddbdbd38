"""크레딧 원장 서비스.

차감은 "먼저 원자적으로 빼고, 음수면 되돌린다" 순서로 처리한다. 잔액 근처에서 경합하는
요청들은 HINCRBY 가 직렬화하므로 둘 다 성공할 수 없고, 되돌리기 전 한 번의 왕복 동안만
저장값이 음수일 수 있다. 읽기는 항상 0 이상으로 보정한다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Depends

from common.types.datetime import utc_now

from ..dependencies import Clock, get_clock, get_key_value_store
from ..exceptions import InsufficientCreditsError
from ..models.credit import SpendResult
from ..repositories.interfaces import KeyValueStoreInterface
from ..repositories.user_account_repository import UserAccountRepository
from .users_service import UserAccountService, get_user_account_service


logger = logging.getLogger(__name__)


def _require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"amount must be a positive integer, got: {amount!r}")


class CreditService:
    """잔액 조회/차감/환불/지급."""

    def __init__(
        self,
        account_service: UserAccountService,
        account_repo: UserAccountRepository,
        clock: Clock = utc_now,
    ) -> None:
        self._accounts = account_service
        self._account_repo = account_repo
        self._clock = clock

    def balance(self, user_id: str) -> int:
        return self._accounts.get_or_create(user_id).credits

    def spend(self, user_id: str, amount: int) -> SpendResult:
        """잔액 차감. 부족하면 차감분을 되돌리고 ok=False 를 반환한다."""
        _require_positive(amount)
        self._accounts.get_or_create(user_id)

        balance = self._account_repo.increment_credits(user_id, -amount, self._clock())
        if balance < 0:
            self._account_repo.increment_credits(user_id, amount, self._clock())
            current = max(0, self._account_repo.get_credits(user_id))
            logger.info(
                "spend rejected: insufficient credits",
                extra={"user_id": user_id, "amount": amount, "balance": current},
            )
            return SpendResult(ok=False, balance_after=current)

        logger.info(
            "credits spent",
            extra={"user_id": user_id, "amount": amount, "balance": balance},
        )
        return SpendResult(ok=True, balance_after=balance)

    def refund(self, user_id: str, amount: int) -> int:
        """차감 이후 외부 호출이 실패했을 때 되돌린다. 상한은 두지 않는다."""
        _require_positive(amount)
        self._accounts.get_or_create(user_id)
        balance = self._account_repo.increment_credits(user_id, amount, self._clock())
        logger.info(
            "credits refunded",
            extra={"user_id": user_id, "amount": amount, "balance": balance},
        )
        return max(0, balance)

    def award(self, user_id: str, amount: int) -> int:
        """보너스/선물/온체인 지급. 음수(페널티)도 허용하지만 저장값은 0 밑으로 남기지 않는다."""
        self._accounts.get_or_create(user_id)
        if amount == 0:
            return max(0, self._account_repo.get_credits(user_id))

        balance = self._account_repo.increment_credits(user_id, amount, self._clock())
        if balance < 0:
            balance = self._account_repo.increment_credits(
                user_id, -balance, self._clock()
            )

        logger.info(
            "credits awarded",
            extra={"user_id": user_id, "amount": amount, "balance": balance},
        )
        return max(0, balance)

    @contextmanager
    def charged(self, user_id: str, amount: int) -> Iterator[SpendResult]:
        """유료 외부 호출을 감싼다. 미리 차감하고, 블록에서 예외가 나면 환불한 뒤 다시 던진다.

        잔액이 부족하면 InsufficientCreditsError.
        """
        result = self.spend(user_id, amount)
        if not result.ok:
            raise InsufficientCreditsError(user_id, amount, result.balance_after)
        try:
            yield result
        except Exception:
            self.refund(user_id, amount)
            raise


def get_credit_service(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    account_service: UserAccountService = Depends(get_user_account_service),
    clock: Clock = Depends(get_clock),
) -> CreditService:
    """FastAPI DI용 CreditService 팩토리."""
    return CreditService(account_service, UserAccountRepository(store), clock=clock)
