"""유저 계정 Redis hash 도큐먼트.

hash 필드는 모두 문자열로 저장되므로, 읽을 때의 숫자/날짜 변환을 이 모델 한 곳에서 처리한다.
수동 편집이나 부분 쓰기로 값이 깨져 있어도 예외 대신 안전한 기본값으로 복구한다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from common.types.datetime import ensure_utc, utc_now

from ...models.user_account import UserAccount


def loose_int(value: Any) -> int:
    """문자열/숫자를 int 로 변환한다 ("12", "12.0" → 12). 해석할 수 없으면 0."""

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def loose_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def loose_datetime(value: Any) -> datetime:
    """ISO8601 문자열 또는 epoch 밀리초를 UTC datetime 으로. 해석할 수 없으면 현재 시각."""

    if isinstance(value, datetime):
        return ensure_utc(value)
    text = "" if value is None else str(value).strip()
    if not text:
        return utc_now()
    if text.isdigit():
        try:
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return utc_now()
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return utc_now()


LooseInt = Annotated[int, BeforeValidator(loose_int)]
LooseOptionalStr = Annotated[str | None, BeforeValidator(loose_optional_str)]
LooseDateTime = Annotated[datetime, BeforeValidator(loose_datetime)]


class UserAccountDocument(BaseModel):
    """Redis `user:<user_id>` hash 레코드 모델 (camelCase 필드명)."""

    model_config = ConfigDict(populate_by_name=True)

    id: LooseOptionalStr = None
    credits: LooseInt = 0
    last_share_date: LooseOptionalStr = Field(default=None, alias="lastShareDate")
    last_global_gift_cursor: LooseInt = Field(default=0, alias="lastGlobalGiftCursor")
    created_at: LooseDateTime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: LooseDateTime = Field(default_factory=utc_now, alias="updatedAt")

    @classmethod
    def from_hash(cls, data: dict[str, str]) -> "UserAccountDocument":
        return cls.model_validate(data)

    @classmethod
    def from_domain(cls, account: UserAccount) -> "UserAccountDocument":
        return cls(
            id=account.user_id,
            credits=account.credits,
            last_share_date=account.last_share_date,
            last_global_gift_cursor=account.last_global_gift_cursor,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    def to_hash(self) -> dict[str, str]:
        """hset 에 그대로 넘길 수 있는 문자열 dict."""

        return {
            "id": self.id or "",
            "credits": str(self.credits),
            "lastShareDate": self.last_share_date or "",
            "lastGlobalGiftCursor": str(self.last_global_gift_cursor),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def to_domain(self, user_id: str) -> UserAccount:
        # 잔액/커서는 저장값이 음수여도 0 으로 읽는다.
        return UserAccount(
            user_id=self.id or user_id,
            credits=max(0, self.credits),
            last_share_date=self.last_share_date,
            last_global_gift_cursor=max(0, self.last_global_gift_cursor),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
