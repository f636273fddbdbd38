from __future__ import annotations

import logging

from fastapi import Depends

from common.types.datetime import utc_now

from ..config import AppConfig
from ..dependencies import Clock, get_app_config, get_clock, get_key_value_store
from ..models.user_account import UserAccount, new_account
from ..repositories.interfaces import KeyValueStoreInterface
from ..repositories.user_account_repository import UserAccountRepository


logger = logging.getLogger(__name__)


class UserAccountService:
    """유저 계정 read-or-create 및 부가 필드 갱신.

    - 레코드가 없으면 시작 크레딧(기본 10)으로 생성한다.
    - 잔액 증감은 CreditService 가 담당하고, 여기서는 날짜/커서 같은 메타 필드만 쓴다.
    """

    def __init__(
        self,
        account_repo: UserAccountRepository,
        starting_credits: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        self._account_repo = account_repo
        self._starting_credits = starting_credits
        self._clock = clock

    def get_or_create(self, user_id: str) -> UserAccount:
        existing = self._account_repo.find(user_id)
        if existing is not None:
            return existing

        account = new_account(user_id, self._starting_credits, self._clock())
        created = self._account_repo.create_if_absent(account)
        logger.info(
            "created user account",
            extra={"user_id": user_id, "balance": created.credits},
        )
        return created

    def record_share_date(self, user_id: str, day: str) -> None:
        self._account_repo.update_fields(user_id, self._clock(), last_share_date=day)

    def advance_gift_cursor(self, user_id: str, cursor: int) -> None:
        """커서를 앞으로만 움직인다. 이미 더 앞서 있으면 쓰지 않는다."""
        current = self._account_repo.find(user_id)
        if current is not None and current.last_global_gift_cursor >= cursor:
            return
        self._account_repo.update_fields(
            user_id, self._clock(), last_global_gift_cursor=cursor
        )


def get_user_account_service(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    config: AppConfig = Depends(get_app_config),
    clock: Clock = Depends(get_clock),
) -> UserAccountService:
    """FastAPI DI용 UserAccountService 팩토리."""
    return UserAccountService(
        UserAccountRepository(store),
        starting_credits=config.credits.starting_credits,
        clock=clock,
    )
