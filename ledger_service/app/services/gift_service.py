"""관리자 선물(크레딧 조정) 생성 및 유저별 반영.

반영은 pull 방식이다. 유저가 앱을 열 때 apply_pending 이 호출되어야 대기 중인 선물을 받는다.

- global: 유저 커서(last_global_gift_cursor) 이후의 id 를 최대 batch_limit 개 반영하고 커서를 올린다.
- targeted: FID 대기열의 가장 오래된 항목부터 최대 batch_limit 개 반영하고, 지급이 끝난 뒤 대기열에서 지운다.
- 두 경우 모두 선물 id 를 유저별 applied 집합에 먼저 선점해, 동시에 들어온 반영 요청이 같은 선물을 두 번 지급하지 않는다.
- 지급이 예외로 실패하면 선점을 되돌리고 다시 던진다. 커서와 대기열은 그대로라 다음 호출에서 재집계된다.
  선점 후 지급 전에 프로세스가 죽으면 그 선물은 유실된다 (최대 한 번 전달).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import Depends

from common.types.datetime import utc_now

from ..config import AppConfig, CreditPolicy
from ..dependencies import Clock, get_app_config, get_clock, get_key_value_store
from ..exceptions import StoreUnavailable
from ..models.gift import AppliedGifts, GiftKind, GiftRecord
from ..models.identity import fid_of
from ..repositories.documents.gift_document import parse_gift
from ..repositories.gift_repository import GiftRepository
from ..repositories.interfaces import KeyValueStoreInterface
from .credit_service import CreditService, get_credit_service
from .users_service import UserAccountService, get_user_account_service


logger = logging.getLogger(__name__)


DEFAULT_GIFT_MESSAGE = "Gift credits"


class GiftService:
    def __init__(
        self,
        gift_repo: GiftRepository,
        account_service: UserAccountService,
        credit_service: CreditService,
        policy: CreditPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._gift_repo = gift_repo
        self._accounts = account_service
        self._ledger = credit_service
        self._policy = policy or CreditPolicy()
        self._clock = clock

    # -------- 생성 (관리자) --------

    def _validate(self, amount: int, message: str | None) -> str:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise ValueError("amount must be a non-zero integer")
        if abs(amount) > self._policy.max_gift_amount:
            raise ValueError("amount too large")
        text = (message or "").strip()
        return text or DEFAULT_GIFT_MESSAGE

    def create_global_gift(self, amount: int, message: str | None = None) -> GiftRecord:
        text = self._validate(amount, message)
        gift = GiftRecord(
            id=self._gift_repo.next_id(),
            amount=amount,
            message=text,
            kind=GiftKind.GLOBAL,
            created_at=self._clock(),
        )
        self._gift_repo.save_global(gift)
        logger.info(
            "created global gift", extra={"gift_id": gift.id, "amount": amount}
        )
        return gift

    def queue_targeted_gift(
        self, fid: int, amount: int, message: str | None = None
    ) -> GiftRecord:
        text = self._validate(amount, message)
        if fid <= 0:
            raise ValueError(f"invalid fid: {fid}")
        gift = GiftRecord(
            id=self._gift_repo.next_id(),
            amount=amount,
            message=text,
            kind=GiftKind.TARGETED,
            target_fid=fid,
            created_at=self._clock(),
        )
        self._gift_repo.push_targeted(fid, gift)
        logger.info(
            "queued targeted gift fid=%d",
            fid,
            extra={"gift_id": gift.id, "amount": amount},
        )
        return gift

    def queue_targeted_gifts(
        self, fids: Iterable[int], amount: int, message: str | None = None
    ) -> list[GiftRecord]:
        """FID 목록마다 하나씩 선물을 큐에 넣는다 (중복 제거, 최대 max_gift_targets 개)."""
        self._validate(amount, message)
        unique: list[int] = []
        for fid in fids:
            if fid > 0 and fid not in unique:
                unique.append(fid)
        return [
            self.queue_targeted_gift(fid, amount, message)
            for fid in unique[: self._policy.max_gift_targets]
        ]

    # -------- 반영 (유저) --------

    def apply_pending(self, user_id: str) -> AppliedGifts:
        account = self._accounts.get_or_create(user_id)
        cursor = account.last_global_gift_cursor
        limit = self._policy.gift_batch_limit

        applied: list[GiftRecord] = []
        new_cursor = self._collect_global(user_id, cursor, limit, applied)

        fid = fid_of(user_id)
        consumed: list[str] = []
        if fid is not None:
            consumed = self._collect_targeted(user_id, fid, limit, applied)

        total = sum(gift.amount for gift in applied)
        balance: int | None = None
        if total != 0:
            try:
                balance = self._ledger.award(user_id, total)
            except Exception:
                # 커서와 대기열은 그대로이므로 선점만 풀면 다음 호출에서 같은 선물을 다시 집계한다.
                self._release_claims(user_id, applied)
                raise
        if new_cursor != cursor:
            self._accounts.advance_gift_cursor(user_id, new_cursor)

        if fid is not None:
            self._remove_consumed(fid, consumed)

        if applied:
            logger.info(
                "applied %d pending gifts",
                len(applied),
                extra={"user_id": user_id, "amount": total, "balance": balance},
            )
        return AppliedGifts(
            applied=applied, total=total, cursor=new_cursor, balance_after=balance
        )

    def _collect_global(
        self, user_id: str, cursor: int, limit: int, applied: list[GiftRecord]
    ) -> int:
        """커서 이후 global 선물을 선점해 applied 에 담고, 새 커서를 반환한다.

        조회 실패는 "선물 없음"으로 취급한다. 실패한 id 부터는 다음 호출에서 다시 본다.
        """
        try:
            gift_ids = self._gift_repo.global_ids_after(cursor, limit)
        except StoreUnavailable:
            logger.warning("global gift lookup failed", extra={"user_id": user_id})
            return cursor

        new_cursor = cursor
        for gift_id in gift_ids:
            try:
                gift = self._gift_repo.get_global(gift_id)
                claimed = (
                    gift is not None
                    and gift.amount != 0
                    and self._gift_repo.claim_for_user(user_id, gift_id)
                )
            except StoreUnavailable:
                logger.warning(
                    "global gift read failed",
                    extra={"user_id": user_id, "gift_id": gift_id},
                )
                break

            new_cursor = gift_id
            if claimed and gift is not None:
                applied.append(gift)
        return new_cursor

    def _collect_targeted(
        self, user_id: str, fid: int, limit: int, applied: list[GiftRecord]
    ) -> list[str]:
        """대기열의 오래된 항목부터 선점해 applied 에 담고, 대기열에서 지울 원본 목록을 반환한다."""
        try:
            raws = self._gift_repo.oldest_pending(fid, limit)
        except StoreUnavailable:
            logger.warning("targeted gift lookup failed", extra={"user_id": user_id})
            return []

        consumed: list[str] = []
        for raw in raws:
            gift = parse_gift(raw)
            if gift is None or gift.amount == 0:
                consumed.append(raw)
                continue
            try:
                claimed = self._gift_repo.claim_for_user(user_id, gift.id)
            except StoreUnavailable:
                logger.warning(
                    "targeted gift claim failed",
                    extra={"user_id": user_id, "gift_id": gift.id},
                )
                break
            consumed.append(raw)
            if claimed:
                applied.append(gift)
        return consumed

    def _release_claims(self, user_id: str, applied: list[GiftRecord]) -> None:
        for gift in applied:
            try:
                self._gift_repo.release_for_user(user_id, gift.id)
            except StoreUnavailable:
                logger.error(
                    "failed to release gift claim",
                    extra={"user_id": user_id, "gift_id": gift.id},
                )

    def _remove_consumed(self, fid: int, consumed: list[str]) -> None:
        # 이미 applied 집합에 기록되어 있으므로, 여기서 실패해도 다음 호출에서 중복 지급 없이 정리된다.
        for raw in consumed:
            try:
                self._gift_repo.remove_pending(fid, raw)
            except StoreUnavailable:
                logger.warning("failed to trim pending gift list fid=%d", fid)
                return


def get_gift_service(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    config: AppConfig = Depends(get_app_config),
    account_service: UserAccountService = Depends(get_user_account_service),
    credit_service: CreditService = Depends(get_credit_service),
    clock: Clock = Depends(get_clock),
) -> GiftService:
    """FastAPI DI용 GiftService 팩토리."""
    return GiftService(
        GiftRepository(store),
        account_service,
        credit_service,
        policy=config.credits,
        clock=clock,
    )
