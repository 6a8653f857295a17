from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from golddesk.api.middleware import CorrelationMiddleware
from golddesk.api.routes import account as account_routes
from golddesk.api.routes import slips as slip_routes
from golddesk.config import settings
from golddesk.db.session import dispose_engine
from golddesk.errors import ApiError
from golddesk.logging_config import setup_logging
from golddesk.services.notifications import aclose_bot
from golddesk.slip.client import aclose_shared as aclose_verifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.is_production and not settings.easyslip_api_key:
        raise RuntimeError("EASYSLIP_API_KEY not configured")
    logger.info("golddesk starting", extra={"extra": {"env": settings.app_env, "tz": settings.tz}})
    try:
        yield
    finally:
        # Close shared clients
        try:
            await aclose_bot()
        finally:
            try:
                await aclose_verifier()
            finally:
                await dispose_engine()


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(exc.body(), status_code=exc.status_code)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse({"status": 500, "message": "server_error"}, status_code=500)


def create_app() -> FastAPI:
    app = FastAPI(title="golddesk", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CorrelationMiddleware)
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> dict:
        return {"status": "ok"}

    app.include_router(slip_routes.router)
    app.include_router(account_routes.router)
    return app


def main() -> None:
    setup_logging()
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
