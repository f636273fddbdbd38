from __future__ import annotations

from typing import Mapping, Protocol


class KeyValueStoreInterface(Protocol):
    """원장이 요구하는 최소한의 key-value 저장소 계약 (Redis 호환).

    - 모든 값은 str 로 주고받는다.
    - increment 계열은 키 단위로 선형화(linearizable)되어야 하며 음수 delta 를 지원해야 한다.
    - 연결 실패나 비정상 응답은 StoreUnavailable 로 올라온다.
    """

    def get(self, key: str) -> str | None:  # pragma: no cover - Protocol
        ...

    def set(
        self,
        key: str,
        value: str,
        *,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:  # pragma: no cover - Protocol
        """값을 쓴다. only_if_absent=True 인데 키가 이미 있으면 False."""
        ...

    def delete(self, key: str) -> bool:  # pragma: no cover - Protocol
        ...

    def increment_by(self, key: str, delta: int) -> int:  # pragma: no cover - Protocol
        ...

    def expire(self, key: str, seconds: int) -> bool:  # pragma: no cover - Protocol
        ...

    def ttl(self, key: str) -> int:  # pragma: no cover - Protocol
        """남은 TTL(초). 키가 없으면 -2, TTL 이 없으면 -1."""
        ...

    def hash_get_all(
        self, key: str
    ) -> dict[str, str] | None:  # pragma: no cover - Protocol
        ...

    def hash_get(
        self, key: str, field: str
    ) -> str | None:  # pragma: no cover - Protocol
        ...

    def hash_set(
        self, key: str, mapping: Mapping[str, str]
    ) -> None:  # pragma: no cover - Protocol
        ...

    def hash_set_if_absent(
        self, key: str, field: str, value: str
    ) -> bool:  # pragma: no cover - Protocol
        ...

    def hash_increment_by(
        self, key: str, field: str, delta: int
    ) -> int:  # pragma: no cover - Protocol
        ...

    def set_add(self, key: str, member: str) -> bool:  # pragma: no cover - Protocol
        """추가되었으면 True, 이미 멤버였으면 False."""
        ...

    def set_is_member(
        self, key: str, member: str
    ) -> bool:  # pragma: no cover - Protocol
        ...

    def set_remove(self, key: str, member: str) -> bool:  # pragma: no cover - Protocol
        """제거되었으면 True."""
        ...

    def sorted_set_add(
        self, key: str, score: float, member: str
    ) -> None:  # pragma: no cover - Protocol
        ...

    def sorted_set_range_by_score(
        self,
        key: str,
        min_score: float | str,
        max_score: float | str,
        limit: int | None = None,
    ) -> list[str]:  # pragma: no cover - Protocol
        """score 오름차순. min/max 에는 "(5" 같은 exclusive 표기와 "+inf" 를 쓸 수 있다."""
        ...

    def list_push(self, key: str, value: str) -> int:  # pragma: no cover - Protocol
        """리스트 head 에 추가하고 길이를 반환한다."""
        ...

    def list_range(
        self, key: str, start: int, end: int
    ) -> list[str]:  # pragma: no cover - Protocol
        ...

    def list_remove(
        self, key: str, value: str
    ) -> int:  # pragma: no cover - Protocol
        """tail 쪽부터 값이 같은 항목 하나를 제거하고 제거 개수를 반환한다."""
        ...
