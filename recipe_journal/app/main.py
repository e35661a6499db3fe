import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from recipe_journal.app.api.routes import api_router
from recipe_journal.app.core.errors import ErrorCode, RecipeError, to_api_error

logger = logging.getLogger(__name__)


def _request_id(request) -> str:
    state = getattr(request, "state", None)
    return getattr(state, "request_id", None) or str(uuid.uuid4())


def _error_meta(request: Request) -> dict:
    started = getattr(request.state, "started_at", None)
    elapsed = int((time.perf_counter() - started) * 1000) if started is not None else 0
    request_id = _request_id(request)
    return {"request_id": request_id, "processing_time_ms": elapsed}


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", []) if part is not None)
        msg = err.get("msg", "Invalid value")
        details.append({"field": loc or None, "message": msg})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "validation_error",
            "message": "Invalid request payload.",
            "details": details,
            "request_id": request_id,
        },
    )


async def recipe_error_handler(request: Request, exc: RecipeError):
    logger.info("Request failed with %s: %s", exc.code.value, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "data": None,
            "error": to_api_error(exc),
            "meta": _error_meta(request),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "data": None,
            "error": {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "message": "An unexpected error occurred",
                "details": None,
            },
            "meta": _error_meta(request),
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Recipe Journal", version="0.1.0")
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RecipeError, recipe_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(api_router)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request.state.request_id = str(uuid.uuid4())
        request.state.started_at = time.perf_counter()
        return await call_next(request)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
