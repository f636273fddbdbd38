"""유저 식별자 정규화.

유저 ID 는 "fid:<farcaster-id>" 또는 "addr:<소문자 0x 지갑 주소>" 형식이다.
"""

from __future__ import annotations

import re
from typing import Any

from ..exceptions import InvalidUserIdError


FID_PREFIX = "fid:"
ADDR_PREFIX = "addr:"

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


def to_user_id(fid: Any = None, address: Any = None) -> str | None:
    """요청 바디의 fid/address 에서 유저 ID 를 만든다. 둘 다 쓸 수 없으면 None.

    fid 가 우선이며, 숫자 또는 숫자 문자열을 허용한다.
    """

    if isinstance(fid, int) and not isinstance(fid, bool) and fid > 0:
        return f"{FID_PREFIX}{fid}"
    if isinstance(fid, str) and fid.strip().isdigit() and int(fid.strip()) > 0:
        return f"{FID_PREFIX}{int(fid.strip())}"

    if isinstance(address, str):
        lowered = address.strip().lower()
        if _ADDRESS_PATTERN.match(lowered):
            return f"{ADDR_PREFIX}{lowered}"

    return None


def normalize_user_id(raw: str) -> str:
    """경로 등으로 들어온 유저 ID 를 검증하고 정규화한다."""

    value = raw.strip()
    if value.startswith(FID_PREFIX):
        user_id = to_user_id(fid=value[len(FID_PREFIX):])
    elif value.lower().startswith(ADDR_PREFIX):
        user_id = to_user_id(address=value[len(ADDR_PREFIX):])
    else:
        user_id = None

    if user_id is None:
        raise InvalidUserIdError(f"invalid user id: {raw!r}")
    return user_id


def fid_of(user_id: str) -> int | None:
    """fid 유저면 Farcaster ID 를, 지갑 유저면 None 을 반환한다."""

    if not user_id.startswith(FID_PREFIX):
        return None
    digits = user_id[len(FID_PREFIX):]
    return int(digits) if digits.isdigit() else None
