"""Error responses for the HTTP surface.

Every route family has its own error envelope:
- /api/docs: the document response envelope with empty data
- /api/assistant: {"successful": false, "errors": [...]}
- everything else: {"status": "error", "errors": [...]}

No stack traces are ever included in the response body.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from edi_portal.documents.schema import DocumentApiResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error raised by route handlers and rendered by api_error_handler.

    Attributes:
        message: Client-visible error message
        status_code: HTTP status to answer with
        messages: Extra informational messages (document routes only)
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        messages: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.messages = messages or []


def error_body(path: str, errors: list[str], messages: list[str] | None = None) -> dict[str, Any]:
    """Build the error envelope used by the route family serving path."""
    if path.startswith("/api/docs"):
        return DocumentApiResponse(
            errors=errors, messages=messages or [], successful=False
        ).model_dump(by_alias=True)
    if path.startswith("/api/assistant"):
        return {"errors": errors, "successful": False}
    return {"status": "error", "errors": errors}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError in the envelope of the requested route."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request.url.path, [exc.message], exc.messages),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 errors with an errors array."""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    logger.warning(f"{request.method} {request.url.path} invalid request: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request.url.path, errors or ["Invalid request"]),
    )


def unhandled_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Render an unexpected exception as a generic 500 without internals."""
    logger.exception(f"{request.method} {request.url.path} unhandled error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request.url.path, ["Internal server error"]),
    )
