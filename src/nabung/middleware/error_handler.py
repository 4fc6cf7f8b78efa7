"""Global exception handlers: every error leaves as JSON with a detail field.

Ledger errors propagate out of the savings routes untouched and are mapped to
status codes here, so every caller of the orchestrator gets the same answers.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nabung.savings.errors import (
    AccessDeniedError,
    InvalidAmountError,
    LedgerError,
    StorageFailureError,
    TargetNotFoundError,
)

logger = structlog.get_logger()

LEDGER_ERROR_STATUS: dict[type[LedgerError], int] = {
    InvalidAmountError: 400,
    AccessDeniedError: 403,
    TargetNotFoundError: 404,
}

STORAGE_RETRY_AFTER_SECONDS = 5


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = LEDGER_ERROR_STATUS.get(type(exc), 500)
    logger.info(
        "ledger_request_rejected",
        path=request.url.path,
        status_code=status_code,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def storage_failure_handler(request: Request, exc: StorageFailureError) -> JSONResponse:
    """The ledger could not commit; the client may retry."""
    logger.error("storage_failure", path=request.url.path, method=request.method, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable"},
        headers={"Retry-After": str(STORAGE_RETRY_AFTER_SECONDS)},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register the JSON exception handlers on the app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_errors(exc)},
        )

    for error_type in LEDGER_ERROR_STATUS:
        app.add_exception_handler(error_type, ledger_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StorageFailureError, storage_failure_handler)  # type: ignore[arg-type]

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw exception objects pydantic puts in ctx."""
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
