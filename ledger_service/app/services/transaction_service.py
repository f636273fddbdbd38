"""온체인 트랜잭션 기반 크레딧 지급.

같은 트랜잭션 해시는 대소문자와 관계없이 최대 한 번만 크레딧으로 바뀐다.
"""

from __future__ import annotations

import logging
import re

from fastapi import Depends, Request

from ..config import AppConfig
from ..dependencies import get_app_config, get_key_value_store
from ..exceptions import (
    InvalidTransactionError,
    ReceiptNotFoundError,
    ReceiptUnavailableError,
    TransactionRejectedError,
)
from ..models.credit import TxCreditResult
from ..onchain.rpc_client import ReceiptReaderInterface
from ..repositories.interfaces import KeyValueStoreInterface
from ..repositories.transaction_record_repository import (
    TransactionRecordRepository,
    normalize_tx_id,
)
from .credit_service import CreditService, get_credit_service


logger = logging.getLogger(__name__)


_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


class TransactionRecorder:
    """트랜잭션 반영 여부 기록.

    was_counted/mark_counted 를 따로 호출하면 그 사이에 경합 구간이 생긴다.
    지급 경로는 claim 한 번으로 확인과 기록을 동시에 처리한다.
    """

    def __init__(self, tx_repo: TransactionRecordRepository) -> None:
        self._tx_repo = tx_repo

    def was_counted(self, tx_id: str) -> bool:
        return self._tx_repo.exists(tx_id)

    def mark_counted(self, tx_id: str) -> None:
        self._tx_repo.mark(tx_id)

    def claim(self, tx_id: str) -> bool:
        """True 면 호출자가 지금 지급할 주체다. False 면 이미 누군가 처리했다."""
        return self._tx_repo.claim(tx_id)

    def release(self, tx_id: str) -> None:
        self._tx_repo.release(tx_id)


class TransactionCreditService:
    """영수증을 검증하고 트랜잭션당 한 번 크레딧을 지급한다."""

    def __init__(
        self,
        recorder: TransactionRecorder,
        credit_service: CreditService,
        receipts: ReceiptReaderInterface | None,
        credit_contract: str | None,
        credit_amount: int = 1,
    ) -> None:
        self._recorder = recorder
        self._ledger = credit_service
        self._receipts = receipts
        self._credit_contract = credit_contract.lower() if credit_contract else None
        self._credit_amount = credit_amount

    def verify_and_credit(self, user_id: str, tx_hash: str) -> TxCreditResult:
        normalized = normalize_tx_id(tx_hash)
        if not _TX_HASH_PATTERN.match(normalized):
            raise InvalidTransactionError(f"invalid transaction hash: {tx_hash!r}")

        if self._recorder.was_counted(normalized):
            return self._already_counted(user_id, normalized)

        if self._receipts is None or self._credit_contract is None:
            raise ReceiptUnavailableError("chain verification is not configured")

        receipt = self._receipts.get_receipt(normalized)
        if receipt is None:
            raise ReceiptNotFoundError(f"receipt not found yet: {normalized}")
        if not receipt.succeeded:
            raise TransactionRejectedError("transaction failed")
        if receipt.to != self._credit_contract:
            raise TransactionRejectedError(
                "transaction was not sent to the credit contract"
            )

        if not self._recorder.claim(normalized):
            return self._already_counted(user_id, normalized)

        try:
            balance = self._ledger.award(user_id, self._credit_amount)
        except Exception:
            # 지급 실패 시 기록을 지워 재시도할 수 있게 한다.
            self._recorder.release(normalized)
            raise

        logger.info(
            "credited on-chain transaction",
            extra={
                "user_id": user_id,
                "tx_hash": normalized,
                "amount": self._credit_amount,
                "balance": balance,
            },
        )
        return TxCreditResult(
            ok=True, already_counted=False, balance_after=balance, tx_hash=normalized
        )

    def _already_counted(self, user_id: str, tx_hash: str) -> TxCreditResult:
        logger.info(
            "transaction already counted",
            extra={"user_id": user_id, "tx_hash": tx_hash},
        )
        return TxCreditResult(
            ok=True,
            already_counted=True,
            balance_after=self._ledger.balance(user_id),
            tx_hash=tx_hash,
        )


def get_receipt_reader(request: Request) -> ReceiptReaderInterface | None:
    return getattr(request.app.state, "receipts", None)


def get_transaction_credit_service(
    store: KeyValueStoreInterface = Depends(get_key_value_store),
    config: AppConfig = Depends(get_app_config),
    credit_service: CreditService = Depends(get_credit_service),
    receipts: ReceiptReaderInterface | None = Depends(get_receipt_reader),
) -> TransactionCreditService:
    """FastAPI DI용 TransactionCreditService 팩토리."""
    recorder = TransactionRecorder(
        TransactionRecordRepository(
            store, retention_seconds=config.credits.tx_retention_seconds
        )
    )
    return TransactionCreditService(
        recorder,
        credit_service,
        receipts,
        credit_contract=config.chain.credit_contract,
        credit_amount=config.credits.tx_credit_amount,
    )
