from __future__ import annotations

import os
from dataclasses import dataclass


LEDGER_STARTING_CREDITS = "LEDGER_STARTING_CREDITS"
LEDGER_SHARE_BONUS = "LEDGER_SHARE_BONUS"
LEDGER_TX_CREDIT_AMOUNT = "LEDGER_TX_CREDIT_AMOUNT"
LEDGER_TX_RETENTION_DAYS = "LEDGER_TX_RETENTION_DAYS"
LEDGER_GIFT_BATCH_LIMIT = "LEDGER_GIFT_BATCH_LIMIT"
LEDGER_ADMIN_SECRET = "LEDGER_ADMIN_SECRET"
BASE_RPC_URL = "BASE_RPC_URL"
BASE_CREDIT_CONTRACT = "BASE_CREDIT_CONTRACT"
BASE_RPC_TIMEOUT_SECONDS = "BASE_RPC_TIMEOUT_SECONDS"


@dataclass(slots=True)
class CreditPolicy:
    """크레딧 지급/보관 정책."""

    starting_credits: int = 10
    share_bonus: int = 2
    tx_credit_amount: int = 1
    tx_retention_days: int = 90
    gift_batch_limit: int = 100
    max_gift_amount: int = 100_000
    max_gift_targets: int = 5000

    @property
    def tx_retention_seconds(self) -> int:
        return self.tx_retention_days * 24 * 60 * 60


@dataclass(slots=True)
class RateLimitPolicy:
    """트랜잭션 검증 요청 제한 (유저당 window_seconds 동안 max_hits 회)."""

    window_seconds: int = 60
    max_hits: int = 12


@dataclass(slots=True)
class ChainConfig:
    """Base 체인 RPC 설정. rpc_url 이 없으면 트랜잭션 검증 API 는 503 을 반환한다."""

    rpc_url: str | None = None
    credit_contract: str | None = None
    timeout_seconds: float = 10.0


@dataclass(slots=True)
class AppConfig:
    """ledger-service 전체 설정 루트."""

    credits: CreditPolicy
    rate_limit: RateLimitPolicy
    chain: ChainConfig
    admin_secret: str | None = None


def _read_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{name} must be an integer if set, got: {raw!r}"
        ) from exc
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}, got: {value}")
    return value


def load_credit_policy() -> CreditPolicy:
    return CreditPolicy(
        starting_credits=_read_int(LEDGER_STARTING_CREDITS, 10),
        share_bonus=_read_int(LEDGER_SHARE_BONUS, 2),
        tx_credit_amount=_read_int(LEDGER_TX_CREDIT_AMOUNT, 1, minimum=1),
        tx_retention_days=_read_int(LEDGER_TX_RETENTION_DAYS, 90, minimum=1),
        gift_batch_limit=_read_int(LEDGER_GIFT_BATCH_LIMIT, 100, minimum=1),
    )


def load_chain_config() -> ChainConfig:
    rpc_url = os.getenv(BASE_RPC_URL, "").strip() or None

    contract = os.getenv(BASE_CREDIT_CONTRACT, "").strip().lower() or None
    if contract is not None and (not contract.startswith("0x") or len(contract) != 42):
        raise RuntimeError(
            f"{BASE_CREDIT_CONTRACT} must be a 0x-prefixed 20-byte address, got: {contract!r}"
        )

    timeout_raw = os.getenv(BASE_RPC_TIMEOUT_SECONDS)
    try:
        timeout = float(timeout_raw) if timeout_raw else 10.0
    except ValueError as exc:
        raise RuntimeError(
            f"{BASE_RPC_TIMEOUT_SECONDS} must be a number if set, got: {timeout_raw!r}"
        ) from exc

    return ChainConfig(rpc_url=rpc_url, credit_contract=contract, timeout_seconds=timeout)


def load_config() -> AppConfig:
    """ledger-service 설정을 환경변수에서 로드하여 AppConfig 로 반환한다."""

    return AppConfig(
        credits=load_credit_policy(),
        rate_limit=RateLimitPolicy(),
        chain=load_chain_config(),
        admin_secret=os.getenv(LEDGER_ADMIN_SECRET) or None,
    )
