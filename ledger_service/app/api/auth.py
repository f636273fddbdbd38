from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, status

from ..config import AppConfig
from ..dependencies import get_app_config


def require_admin(
    authorization: str | None = Header(default=None),
    config: AppConfig = Depends(get_app_config),
) -> None:
    """`Authorization: Bearer <LEDGER_ADMIN_SECRET>` 검증. 시크릿이 설정되지 않았으면 항상 거부한다."""

    secret = config.admin_secret
    token = (authorization or "").strip()
    if not secret or not hmac.compare_digest(token, f"Bearer {secret}"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthorized", "message": "Unauthorized"},
        )
