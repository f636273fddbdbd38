from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_key_value_store
from ..exceptions import StoreUnavailable
from ..repositories.interfaces import KeyValueStoreInterface


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="헬스 체크 (Redis 연결 포함)")
def health(
    response: Response,
    store: KeyValueStoreInterface = Depends(get_key_value_store),
) -> dict[str, str]:
    try:
        store.get("health:ping")
    except StoreUnavailable:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "degraded", "store": "unavailable"}
    return {"status": "ok", "store": "ok"}
