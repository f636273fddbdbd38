from __future__ import annotations

from datetime import datetime, timezone

from ledger_service.app.models.user_account import new_account
from ledger_service.app.repositories.documents.user_account_document import (
    UserAccountDocument,
)


USER = "addr:0x00000000000000000000000000000000000000aa"


def test_get_or_create_writes_default_record(ledger_fixture) -> None:
    account = ledger_fixture.accounts.get_or_create(USER)

    assert account.user_id == USER
    assert account.credits == 10
    assert account.last_share_date is None
    assert account.last_global_gift_cursor == 0
    assert account.created_at == ledger_fixture.clock.now

    stored = ledger_fixture.store.hashes[f"user:{USER}"]
    assert stored["credits"] == "10"
    assert stored["lastShareDate"] == ""
    assert stored["lastGlobalGiftCursor"] == "0"


def test_get_or_create_returns_existing_record(ledger_fixture) -> None:
    ledger_fixture.accounts.get_or_create(USER)
    ledger_fixture.ledger.spend(USER, 4)

    account = ledger_fixture.accounts.get_or_create(USER)

    assert account.credits == 6


def test_concurrent_creation_converges_on_first_writer(ledger_fixture) -> None:
    repo = ledger_fixture.account_repo
    early = datetime(2024, 1, 1, tzinfo=timezone.utc)
    late = datetime(2024, 1, 2, tzinfo=timezone.utc)

    first = repo.create_if_absent(new_account(USER, 10, early))
    # 다른 요청이 이미 잔액을 쓴 상태에서 늦게 도착한 생성 요청
    ledger_fixture.store.hashes[f"user:{USER}"]["credits"] = "7"
    second = repo.create_if_absent(new_account(USER, 10, late))

    assert first.created_at == early
    assert second.created_at == early
    assert second.credits == 7


def test_malformed_fields_are_coerced_to_defaults() -> None:
    document = UserAccountDocument.from_hash(
        {
            "credits": "abc",
            "lastShareDate": "",
            "lastGlobalGiftCursor": "4.0",
            "createdAt": "1717243200000",
            "updatedAt": "not-a-date",
        }
    )

    account = document.to_domain("fid:7")

    assert account.user_id == "fid:7"
    assert account.credits == 0
    assert account.last_share_date is None
    assert account.last_global_gift_cursor == 4
    assert account.created_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert account.updated_at.tzinfo is not None


def test_negative_stored_credits_read_as_zero(ledger_fixture) -> None:
    ledger_fixture.store.hashes[f"user:{USER}"] = {"id": USER, "credits": "-3"}

    account = ledger_fixture.accounts.get_or_create(USER)

    assert account.credits == 0


def test_gift_cursor_only_moves_forward(ledger_fixture) -> None:
    accounts = ledger_fixture.accounts
    accounts.get_or_create(USER)

    accounts.advance_gift_cursor(USER, 9)
    accounts.advance_gift_cursor(USER, 4)

    assert accounts.get_or_create(USER).last_global_gift_cursor == 9
