import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

# 헬스체크는 로그에서 제외한다.
IGNORED_LOG_PATHS: set[str] = {"/health"}

# /api/v1/credits/{user_id}/... 형태의 경로에서 user_id 를 뽑아 로그에 싣는다.
_USER_PATH_PATTERN = re.compile(r"/credits/(?P<user_id>(?:fid|addr):[^/]+)")


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """공통 Request/Span ID 로그 미들웨어.

    - X-Request-Id, X-Span-Id 를 읽고, 없으면 request_id 만 새로 생성한다.
    - request.state 에 request_id, span_id, user_id 를 저장한다.
    - 응답 헤더에 동일한 trace 값을 설정한다.
    - 요청 바디는 기록하지 않는다 (tx hash 외에는 의미 있는 값이 없고 admin 요청이 섞인다).
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id, span_id = self._extract_trace_ids(request)
        user_id = self._extract_user_id(request)

        request.state.request_id = request_id
        request.state.span_id = span_id
        request.state.user_id = user_id

        should_log = request.url.path not in IGNORED_LOG_PATHS
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                self._logger.exception(
                    "request failed",
                    extra=self._build_log_extra(
                        request,
                        request_id,
                        span_id,
                        user_id,
                        duration=time.monotonic() - start,
                    ),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers.setdefault(SPAN_ID_HEADER, span_id)

        if should_log:
            self._logger.info(
                "completed request",
                extra=self._build_log_extra(
                    request,
                    request_id,
                    span_id,
                    user_id,
                    status=response.status_code,
                    duration=time.monotonic() - start,
                ),
            )

        return response

    def _extract_trace_ids(self, request: Request) -> tuple[str, str]:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        span_id = request.headers.get(SPAN_ID_HEADER) or "0"
        return request_id, span_id

    def _extract_user_id(self, request: Request) -> str | None:
        match = _USER_PATH_PATTERN.search(request.url.path)
        if match is None:
            return None
        return match.group("user_id")

    def _build_log_extra(
        self,
        request: Request,
        request_id: str,
        span_id: str,
        user_id: str | None,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "span_id": span_id,
            "method": request.method,
            "path": request.url.path,
        }
        if user_id:
            extra["user_id"] = user_id
        if request.query_params:
            extra["query_params"] = dict(request.query_params)
        if status is not None:
            extra["status"] = status
        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"
        return extra
