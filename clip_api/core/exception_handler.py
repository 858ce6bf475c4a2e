from functools import wraps
import logging
from typing import Any, Callable

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from clip_api.constants import AVAILABLE_ENDPOINTS, CORS_HEADERS
from clip_api.core.exceptions import EvaluationError, ServiceError

logger = logging.getLogger(__name__)


def common_exception_handler(func: Callable) -> Callable:
    """
    Common exception handler for FastAPI routes.

    Maps exceptions to HTTP status codes:
    - EvaluationError: its http_status, with the failure reason as message
    - ServiceError: Uses the exception's http_status
    - ValueError: 400 Bad Request
    - Exception: 500 Internal Server Error
    """
    @wraps(func)
    async def inner_function(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except EvaluationError as e:
            logger.error("Evaluation failed in %s: %s", func.__name__, e)
            raise HTTPException(
                e.http_status,
                {"error": "Failed to evaluate image-text similarity", "message": str(e)},
            ) from e
        except ServiceError as e:
            raise HTTPException(e.http_status, str(e)) from e
        except ValueError as e:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Invalid input: {e}") from e
        except HTTPException:
            raise
        except Exception as e:
            logger.exception("Unexpected error in %s", func.__name__)
            raise HTTPException(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                {"error": "Internal server error", "message": str(e)},
            ) from e

    return inner_function


def not_found_content() -> dict[str, Any]:
    return {"success": False, "error": "Endpoint not found", "available_endpoints": AVAILABLE_ENDPOINTS}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as JSON; unmatched routes and methods become a 404 endpoint listing"""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=not_found_content())

    detail = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content={"success": False, **detail})


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or wrongly shaped bodies are client errors, not 422s"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Service errors raised outside route bodies, e.g. while building a handler dependency"""
    logger.error("Service error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.http_status, content={"success": False, "error": str(exc)})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last resort for errors raised outside route bodies.

    Starlette runs this handler outside every user middleware, so the CORS
    headers are set here.
    """
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error", "message": str(exc)},
        headers=CORS_HEADERS,
    )
