import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

logger = logging.getLogger(__name__)


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Render HTTP exceptions as JSON."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return Response(
        content={"status_code": exc.status_code, "detail": detail},
        status_code=exc.status_code,
        media_type="application/json",
    )


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected exceptions and hide their details from the client."""
    logger.exception("Unhandled error on %s", request.url.path)
    return Response(
        content={"status_code": HTTP_500_INTERNAL_SERVER_ERROR, "detail": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json",
    )


EXCEPTION_HANDLERS = {
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}
