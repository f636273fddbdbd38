from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ledger_service.app.exceptions import StoreUnavailable


USER = "fid:42"


def _set_last_share(fixture, day: str) -> None:
    fixture.accounts.get_or_create(USER)
    fixture.store.hashes[f"user:{USER}"]["lastShareDate"] = day


def test_cannot_claim_twice_on_same_utc_day(ledger_fixture) -> None:
    _set_last_share(ledger_fixture, "2024-06-01")
    ledger_fixture.clock.now = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)

    check = ledger_fixture.bonus.can_claim(USER)

    assert check.ok is False
    assert check.today_utc == "2024-06-01"


def test_can_claim_on_next_utc_day(ledger_fixture) -> None:
    _set_last_share(ledger_fixture, "2024-06-01")
    ledger_fixture.clock.now = datetime(2024, 6, 2, 0, 0, tzinfo=timezone.utc)

    check = ledger_fixture.bonus.can_claim(USER)

    assert check.ok is True
    assert check.today_utc == "2024-06-02"


def test_claim_awards_once_per_day(ledger_fixture) -> None:
    bonus = ledger_fixture.bonus

    first = bonus.claim_and_award(USER)
    second = bonus.claim_and_award(USER)

    assert first.ok is True
    assert first.balance_after == 12
    assert first.today_utc == "2024-06-01"
    assert second.ok is False
    assert second.balance_after == 12
    assert ledger_fixture.accounts.get_or_create(USER).last_share_date == "2024-06-01"


def test_claims_across_utc_midnight_count_as_two_days(ledger_fixture) -> None:
    bonus = ledger_fixture.bonus
    ledger_fixture.clock.now = datetime(2024, 6, 1, 23, 59, tzinfo=timezone.utc)
    assert bonus.claim_and_award(USER).ok is True

    ledger_fixture.clock.now = datetime(2024, 6, 2, 0, 1, tzinfo=timezone.utc)
    result = bonus.claim_and_award(USER)

    assert result.ok is True
    assert result.today_utc == "2024-06-02"
    assert result.balance_after == 14


def test_day_boundary_uses_utc_not_local_offset(ledger_fixture) -> None:
    from datetime import timedelta

    seoul = timezone(timedelta(hours=9))
    # 서울 기준 6월 2일 오전 8시 = UTC 6월 1일 23시
    ledger_fixture.clock.now = datetime(2024, 6, 2, 8, 0, tzinfo=seoul)

    assert ledger_fixture.bonus.can_claim(USER).today_utc == "2024-06-01"


def test_custom_bonus_amount(ledger_fixture) -> None:
    result = ledger_fixture.bonus.claim_and_award(USER, bonus_amount=5)

    assert result.balance_after == 15


def test_concurrent_claim_that_lost_the_gate_awards_nothing(ledger_fixture) -> None:
    # 다른 요청이 같은 날짜 게이트를 먼저 잡았지만 아직 lastShareDate 를 쓰기 전인 상태
    ledger_fixture.store.strings[f"share:{USER}:2024-06-01"] = "1"

    result = ledger_fixture.bonus.claim_and_award(USER)

    assert result.ok is False
    assert result.balance_after == 10


def test_failed_award_releases_gate(ledger_fixture) -> None:
    ledger_fixture.accounts.get_or_create(USER)
    ledger_fixture.store.fail_ops.add("hincrby")

    with pytest.raises(StoreUnavailable):
        ledger_fixture.bonus.claim_and_award(USER)

    assert f"share:{USER}:2024-06-01" not in ledger_fixture.store.strings

    ledger_fixture.store.fail_ops.clear()
    assert ledger_fixture.bonus.claim_and_award(USER).ok is True
