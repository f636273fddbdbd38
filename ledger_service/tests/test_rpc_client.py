from __future__ import annotations

import json

import httpx
import pytest

from ledger_service.app.exceptions import ReceiptUnavailableError
from ledger_service.app.onchain.rpc_client import RpcReceiptClient


RPC_URL = "https://rpc.example.test"
TX_HASH = "0x" + "2e" * 32


def _client(handler) -> RpcReceiptClient:
    transport = httpx.MockTransport(handler)
    return RpcReceiptClient(RPC_URL, client=httpx.Client(transport=transport))


def test_get_receipt_parses_successful_receipt() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "transactionHash": TX_HASH,
                    "status": "0x1",
                    "to": "0xABCDEF0000000000000000000000000000000001",
                    "blockNumber": "0x10",
                },
            },
        )

    receipt = _client(handler).get_receipt(TX_HASH)

    assert receipt is not None
    assert receipt.succeeded is True
    assert receipt.to == "0xabcdef0000000000000000000000000000000001"
    assert receipt.block_number == 16
    assert seen[0]["method"] == "eth_getTransactionReceipt"
    assert seen[0]["params"] == [TX_HASH]


def test_reverted_receipt_is_not_successful() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "result": {"status": "0x0", "to": None}}
        )

    receipt = _client(handler).get_receipt(TX_HASH)

    assert receipt is not None
    assert receipt.succeeded is False
    assert receipt.to is None
    assert receipt.tx_hash == TX_HASH


def test_pending_transaction_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

    assert _client(handler).get_receipt(TX_HASH) is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(502, text="bad gateway"),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"message": "limit"}}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
def test_bad_rpc_responses_raise_unavailable(response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(ReceiptUnavailableError):
        client.get_receipt(TX_HASH)


def test_transport_error_raises_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ReceiptUnavailableError):
        _client(handler).get_receipt(TX_HASH)
