import json
import logging
import os
import sys


DEFAULT_SERVICE_NAME = "basepost-ledger"

# 요청 추적/원장 관련 extra 필드. 값이 있으면 JSON 로그에 그대로 싣는다.
EXTRA_LOG_KEYS: tuple[str, ...] = (
    "request_id",
    "span_id",
    "method",
    "path",
    "query_params",
    "status",
    "duration",
    "user_id",
    "tx_hash",
    "gift_id",
    "amount",
    "balance",
)


def setup_logger(
    name: str = DEFAULT_SERVICE_NAME, level: str | None = None
) -> logging.Logger:
    """애플리케이션 전역 로거를 설정하고 반환한다.

    Args:
        name: 로거 이름 (기본값: basepost-ledger, SERVICE_NAME 환경변수가 우선)
        level: 로그 레벨 (기본값: None -> 환경변수 LOG_LEVEL 또는 INFO 사용)

    Returns:
        설정된 logging.Logger 인스턴스
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)

    service_name = os.getenv("SERVICE_NAME", name)
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # 재호출 시 핸들러 중복 방지
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter(service_name=service_name))
    logger.addHandler(handler)

    # 서비스 모듈 로거(ledger_service.*)와 라이브러리 로그도 같은 포맷으로 내보낸다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


class JsonFormatter(logging.Formatter):
    """구조화 로그 수집용 JSON 포맷터.

    - datetime, level, logger, message 를 기본으로 포함한다.
    - EXTRA_LOG_KEYS 에 해당하는 extra 값은 최상위 필드로 올린다.
    - 예외 정보가 있으면 exc_info 필드에 문자열로 추가한다.
    """

    def __init__(self, service_name: str | None = None) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_LOG_KEYS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        service_name = (
            getattr(record, "service_name", None)
            or self._service_name
            or os.getenv("SERVICE_NAME")
        )
        if service_name:
            log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
