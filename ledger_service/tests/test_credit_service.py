from __future__ import annotations

import pytest

from ledger_service.app.exceptions import InsufficientCreditsError, StoreUnavailable


USER = "fid:1001"


def test_new_user_receives_starting_grant(ledger_fixture) -> None:
    assert ledger_fixture.ledger.balance(USER) == 10


def test_spend_then_refund_restores_balance(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger

    spent = ledger.spend(USER, 5)
    assert spent.ok is True
    assert spent.balance_after == 5

    assert ledger.refund(USER, 5) == 10
    assert ledger.balance(USER) == 10


def test_overspend_is_rejected_and_compensated(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger
    ledger.spend(USER, 7)  # 10 -> 3

    result = ledger.spend(USER, 5)

    assert result.ok is False
    assert result.balance_after == 3
    assert ledger_fixture.store.hashes[f"user:{USER}"]["credits"] == "3"


def test_balance_never_observed_negative(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger
    operations = [
        ("spend", 4),
        ("spend", 9),
        ("award", -20),
        ("refund", 1),
        ("spend", 2),
        ("award", 3),
        ("spend", 3),
        ("spend", 1),
    ]

    for name, amount in operations:
        if name == "spend":
            ledger.spend(USER, amount)
        elif name == "refund":
            ledger.refund(USER, amount)
        else:
            ledger.award(USER, amount)
        assert ledger.balance(USER) >= 0
        stored = int(ledger_fixture.store.hashes[f"user:{USER}"]["credits"])
        assert stored >= 0


def test_negative_award_clamps_stored_balance_to_zero(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger

    assert ledger.award(USER, -25) == 0
    assert ledger_fixture.store.hashes[f"user:{USER}"]["credits"] == "0"


def test_zero_award_returns_current_balance_without_write(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger
    ledger.balance(USER)
    ledger_fixture.store.calls.clear()

    assert ledger.award(USER, 0) == 10
    assert ("hincrby", f"user:{USER}") not in ledger_fixture.store.calls


@pytest.mark.parametrize("amount", [0, -1, True])
def test_spend_requires_positive_amount(ledger_fixture, amount) -> None:
    with pytest.raises(ValueError):
        ledger_fixture.ledger.spend(USER, amount)


def test_charged_refunds_when_block_raises(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger

    with pytest.raises(RuntimeError):
        with ledger.charged(USER, 1) as charge:
            assert charge.balance_after == 9
            raise RuntimeError("image generation failed")

    assert ledger.balance(USER) == 10


def test_charged_keeps_charge_on_success(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger

    with ledger.charged(USER, 2):
        pass

    assert ledger.balance(USER) == 8


def test_charged_raises_when_balance_is_too_low(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger

    with pytest.raises(InsufficientCreditsError) as excinfo:
        with ledger.charged(USER, 11):
            pytest.fail("block must not run")

    assert excinfo.value.balance == 10
    assert ledger.balance(USER) == 10


def test_store_failure_propagates(ledger_fixture) -> None:
    ledger_fixture.store.fail_ops.add("hgetall")

    with pytest.raises(StoreUnavailable):
        ledger_fixture.ledger.spend(USER, 1)


@pytest.mark.parametrize(
    ("stored", "expected_after_spend"),
    [("12.0", 11), (" 12", 11), ("007", 6)],
)
def test_spend_against_non_integer_stored_credits(
    ledger_fixture, stored: str, expected_after_spend: int
) -> None:
    ledger = ledger_fixture.ledger
    ledger.balance(USER)
    ledger_fixture.store.hashes[f"user:{USER}"]["credits"] = stored

    result = ledger.spend(USER, 1)

    assert result.ok is True
    assert result.balance_after == expected_after_spend
    assert ledger_fixture.store.hashes[f"user:{USER}"]["credits"] == str(expected_after_spend)


def test_refund_and_award_against_unparseable_credits(ledger_fixture) -> None:
    ledger = ledger_fixture.ledger
    ledger.balance(USER)
    ledger_fixture.store.hashes[f"user:{USER}"]["credits"] = "abc"

    assert ledger.spend(USER, 1).ok is False
    assert ledger.refund(USER, 2) == 2
    assert ledger.award(USER, 3) == 5

    ledger_fixture.store.hashes[f"user:{USER}"]["credits"] = "abc"
    assert ledger.award(USER, 4) == 4
