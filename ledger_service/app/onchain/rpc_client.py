"""Base 체인 JSON-RPC 클라이언트 (트랜잭션 영수증 조회 전용)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from ..exceptions import ReceiptUnavailableError


logger = logging.getLogger(__name__)


RPC_TIMEOUT_SECONDS = 10.0
RECEIPT_STATUS_SUCCESS = "0x1"


@dataclass(slots=True)
class TransactionReceipt:
    tx_hash: str
    succeeded: bool
    to: str | None  # 소문자 주소, 컨트랙트 생성 트랜잭션이면 None
    block_number: int | None = None


class ReceiptReaderInterface(Protocol):
    def get_receipt(
        self, tx_hash: str
    ) -> TransactionReceipt | None:  # pragma: no cover - Protocol
        """영수증이 아직 없으면(대기 중) None."""
        ...


def _parse_hex_int(value: Any) -> int | None:
    if not isinstance(value, str) or not value.startswith("0x"):
        return None
    try:
        return int(value, 16)
    except ValueError:
        return None


class RpcReceiptClient(ReceiptReaderInterface):
    """eth_getTransactionReceipt 호출 래퍼."""

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = RPC_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._request_id = 0

    def close(self) -> None:
        self._client.close()

    def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_getTransactionReceipt",
            "params": [tx_hash],
        }

        try:
            resp = self._client.post(self._rpc_url, json=payload)
        except httpx.HTTPError as exc:
            raise ReceiptUnavailableError(f"rpc request failed: {exc}") from exc

        if resp.status_code != 200:
            raise ReceiptUnavailableError(
                f"rpc returned status {resp.status_code}: {resp.text[:200]}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise ReceiptUnavailableError("rpc returned non-JSON body") from exc

        if not isinstance(body, dict):
            raise ReceiptUnavailableError(f"unexpected rpc body: {body!r}")

        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise ReceiptUnavailableError(f"rpc error: {message}")

        result = body.get("result")
        if result is None:
            return None
        if not isinstance(result, dict):
            raise ReceiptUnavailableError(f"unexpected receipt payload: {result!r}")

        to = result.get("to")
        receipt = TransactionReceipt(
            tx_hash=str(result.get("transactionHash") or tx_hash).lower(),
            succeeded=result.get("status") == RECEIPT_STATUS_SUCCESS,
            to=to.lower() if isinstance(to, str) and to else None,
            block_number=_parse_hex_int(result.get("blockNumber")),
        )
        logger.debug(
            "fetched receipt tx=%s status_ok=%s block=%s",
            receipt.tx_hash,
            receipt.succeeded,
            receipt.block_number,
        )
        return receipt
