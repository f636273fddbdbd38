from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer


def utc_now() -> datetime:
    """tz-aware 현재 UTC 시각."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """tzinfo 가 없으면 UTC 로 간주하고, 있으면 UTC 로 변환한다."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date_key(value: datetime | None = None) -> str:
    """UTC 달력 기준 날짜 문자열(YYYY-MM-DD).

    로컬 타임존이 아닌 UTC 필드로만 계산한다. 23:59 UTC 와 다음날 00:01 UTC 는 다른 날이다.
    """
    moment = ensure_utc(value) if value is not None else utc_now()
    return moment.strftime("%Y-%m-%d")


def serialize_datetime_to_utc_iso8601(value: datetime) -> str:
    """모든 datetime을 UTC 기준 ISO8601(+타임존) 문자열로 직렬화한다."""
    return ensure_utc(value).isoformat()


UtcDateTime = Annotated[
    datetime,
    PlainSerializer(
        serialize_datetime_to_utc_iso8601,
        return_type=str,
        when_used="json",
    ),
]
