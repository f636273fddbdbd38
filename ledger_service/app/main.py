from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.kvstore.client import create_client
from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware

from .api.health import router as health_router
from .api.v1 import api_router
from .config import AppConfig, load_config
from .exceptions import StoreUnavailable
from .onchain.rpc_client import ReceiptReaderInterface, RpcReceiptClient
from .repositories.interfaces import KeyValueStoreInterface
from .repositories.redis_store import RedisKeyValueStore


logger = logging.getLogger(__name__)


def _build_lifespan(
    config: AppConfig | None,
    store: KeyValueStoreInterface | None,
    receipts: ReceiptReaderInterface | None,
):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.config = config or load_config()

        redis_client = None
        if store is None:
            redis_client = create_client()
            app.state.store = RedisKeyValueStore(redis_client)
        else:
            app.state.store = store

        rpc_client: RpcReceiptClient | None = None
        if receipts is not None:
            app.state.receipts = receipts
        elif app.state.config.chain.rpc_url:
            rpc_client = RpcReceiptClient(
                app.state.config.chain.rpc_url,
                timeout_seconds=app.state.config.chain.timeout_seconds,
            )
            app.state.receipts = rpc_client
        else:
            logger.warning("BASE_RPC_URL is not set; transaction verification disabled")
            app.state.receipts = None

        try:
            yield
        finally:
            if rpc_client is not None:
                rpc_client.close()
            if redis_client is not None:
                redis_client.close()

    return lifespan


async def _store_unavailable_handler(
    request: Request, exc: StoreUnavailable
) -> JSONResponse:
    logger.error("store unavailable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"code": "store_unavailable", "message": "Server error"}},
    )


def create_app(
    config: AppConfig | None = None,
    store: KeyValueStoreInterface | None = None,
    receipts: ReceiptReaderInterface | None = None,
) -> FastAPI:
    """앱 팩토리. 테스트에서는 config/store/receipts 를 직접 주입한다."""
    setup_logger()
    app = FastAPI(
        title="BasePost Ledger Service",
        version="0.1.0",
        lifespan=_build_lifespan(config, store, receipts),
    )

    app.add_middleware(RequestTraceMiddleware)
    app.add_exception_handler(StoreUnavailable, _store_unavailable_handler)  # type: ignore[arg-type]

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    port = int(os.getenv("LEDGER_SERVICE_PORT", "8010"))
    uvicorn.run(
        "ledger_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
