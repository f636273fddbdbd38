"""선물 레코드 JSON 도큐먼트.

global 선물은 `gift:global:<id>` 문자열 키에, targeted 선물은 FID 별 리스트에 JSON 으로 저장된다.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from common.types.datetime import UtcDateTime

from ...models.gift import GiftKind, GiftRecord


logger = logging.getLogger(__name__)


class GiftDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    amount: int
    message: str = ""
    kind: GiftKind
    target_fid: int | None = Field(default=None, alias="fid")
    created_at: UtcDateTime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, gift: GiftRecord) -> "GiftDocument":
        return cls(
            id=gift.id,
            amount=gift.amount,
            message=gift.message,
            kind=gift.kind,
            target_fid=gift.target_fid,
            created_at=gift.created_at,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_domain(self) -> GiftRecord:
        return GiftRecord(
            id=self.id,
            amount=self.amount,
            message=self.message,
            kind=self.kind,
            target_fid=self.target_fid,
            created_at=self.created_at,
        )


def parse_gift(raw: str | None) -> GiftRecord | None:
    """JSON 문자열을 GiftRecord 로. 깨진 레코드는 로그만 남기고 None."""

    if not raw:
        return None
    try:
        return GiftDocument.model_validate_json(raw).to_domain()
    except (ValidationError, json.JSONDecodeError, ValueError):
        logger.warning("ignoring malformed gift record: %.200s", raw)
        return None
