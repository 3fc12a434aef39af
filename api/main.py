from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.middleware import StaticTokenMiddleware
from core import config
from core.errors import ExpenseStoreError
from core.log import configure_logging
from expenses import bootstrap
from expenses.repository import ExpenseRepository, PostgresExpenseRepository
from expenses.router import router as expenses_router
from expenses.schemas import ErrorResponse

logger = logging.getLogger(__name__)

GRACEFUL_SHUTDOWN_S = 10


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = str(err.get("msg", "invalid value"))
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request body."


async def _on_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Only request bodies are validated by FastAPI here; path ids are parsed in the router.
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message=_validation_message(exc)).model_dump(),
    )


async def _on_store_error(request: Request, exc: ExpenseStoreError) -> JSONResponse:
    logger.warning(
        "request_failed method=%s path=%s error=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message=str(exc)).model_dump(),
    )


async def _on_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_crashed method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message="Internal Server Error").model_dump(),
    )


async def _on_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


def create_app(
    repository: ExpenseRepository | None = None,
    *,
    database_url: str | None = None,
    auth_token: str | None = None,
    helper: bootstrap.DatabaseHelper | None = None,
) -> FastAPI:
    """
    Build the API.

    With `repository` given, it is used as-is and no database is opened.
    Otherwise startup connects to `database_url` (or DATABASE_URL), creates
    the table if needed, and closes the pool on shutdown. Startup errors
    propagate and stop the server.

    `auth_token=None` leaves the Authorization check off.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if repository is not None:
            app.state.expense_repository = repository
            yield
            return

        database = await bootstrap.init_database(database_url or config.database_url(), helper)
        app.state.expense_repository = PostgresExpenseRepository(database)
        try:
            yield
        finally:
            await database.close()
            logger.info("database_closed")

    app = FastAPI(lifespan=lifespan)

    if auth_token is not None:
        app.add_middleware(StaticTokenMiddleware, token=auth_token)

    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(ExpenseStoreError, _on_store_error)
    app.add_exception_handler(StarletteHTTPException, _on_http_error)
    app.add_exception_handler(Exception, _on_unexpected_error)

    app.include_router(expenses_router, tags=["expenses"])

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Hello, World!"

    return app


def build_app_from_env() -> FastAPI:
    return create_app(database_url=config.database_url(), auth_token=config.auth_token())


def run() -> None:
    log_config = configure_logging(config.log_level())
    uvicorn.run(
        "main:build_app_from_env",
        factory=True,
        host="0.0.0.0",
        port=config.listen_port(),
        log_config=log_config,
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_S,
    )


if __name__ == "__main__":
    run()
