import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.models import GenerationServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "statusCode": status_code},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "Route not found"
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def generation_exception_handler(request: Request, exc: GenerationServiceError) -> JSONResponse:
    logger.error(f"[{request.method} {request.url.path}] Generation backend failure: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[{request.method} {request.url.path}] Unhandled error")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(GenerationServiceError, generation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
