"""관리자 전용 API (Bearer LEDGER_ADMIN_SECRET)."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.gift import GiftKind
from ...services.gift_service import GiftService, get_gift_service
from ..auth import require_admin
from ..schemas.gifts import CreateGiftRequest, CreateGiftResponse


router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.post("/gifts")
def create_gift(
    req: CreateGiftRequest,
    gift_service: Annotated[GiftService, Depends(get_gift_service)],
) -> CreateGiftResponse:
    """fids 가 없으면 global 선물 1건, 있으면 FID 마다 targeted 선물을 큐에 넣는다."""
    try:
        if not req.fids:
            gift = gift_service.create_global_gift(req.amount, req.message)
            return CreateGiftResponse(kind=GiftKind.GLOBAL, gift=gift)

        gifts = gift_service.queue_targeted_gifts(req.fids, req.amount, req.message)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_gift", "message": str(exc)},
        ) from exc

    return CreateGiftResponse(
        kind=GiftKind.TARGETED, queued=len(gifts), sample=gifts[:3]
    )
