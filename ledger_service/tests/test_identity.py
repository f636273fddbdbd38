from __future__ import annotations

import pytest

from ledger_service.app.exceptions import InvalidUserIdError
from ledger_service.app.models.identity import fid_of, normalize_user_id, to_user_id


ADDRESS = "0x" + "Ab" * 20


def test_fid_takes_precedence_over_address() -> None:
    assert to_user_id(fid=42, address=ADDRESS) == "fid:42"
    assert to_user_id(fid=" 42 ") == "fid:42"


def test_address_is_lowercased() -> None:
    assert to_user_id(address=ADDRESS) == "addr:" + ADDRESS.lower()


@pytest.mark.parametrize(
    ("fid", "address"),
    [
        (None, None),
        (0, None),
        (True, None),
        ("-3", None),
        (None, "0x1234"),
        (None, "ab" * 21),
    ],
)
def test_unusable_identity_returns_none(fid, address) -> None:
    assert to_user_id(fid=fid, address=address) is None


def test_invalid_fid_falls_back_to_address() -> None:
    assert to_user_id(fid=0, address=ADDRESS) == "addr:" + ADDRESS.lower()


def test_normalize_user_id() -> None:
    assert normalize_user_id("fid:007") == "fid:7"
    assert normalize_user_id("ADDR:" + ADDRESS) == "addr:" + ADDRESS.lower()


@pytest.mark.parametrize("raw", ["", "bob", "fid:", "fid:abc", "addr:0x12"])
def test_normalize_user_id_rejects_garbage(raw: str) -> None:
    with pytest.raises(InvalidUserIdError):
        normalize_user_id(raw)


def test_fid_of() -> None:
    assert fid_of("fid:9") == 9
    assert fid_of("addr:" + ADDRESS.lower()) is None
