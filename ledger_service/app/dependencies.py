"""FastAPI DI 용 공통 의존성.

Redis 클라이언트와 설정은 lifespan 에서 한 번 만들어 app.state 에 보관하고, 요청마다 꺼내 쓴다.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import Request

from common.types.datetime import utc_now

from .config import AppConfig
from .repositories.interfaces import KeyValueStoreInterface


Clock = Callable[[], datetime]


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_key_value_store(request: Request) -> KeyValueStoreInterface:
    return request.app.state.store


def get_clock() -> Clock:
    return utc_now
