"""
Request logging middleware.

Each request is tagged with an id, taken from the caller's X-Request-ID
header when present. The id is echoed back and stamped on every log record
written while the request is served, Plaid call failures included.
"""
import time
import uuid
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logger import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and time the request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        started = time.perf_counter()
        logger.info(f"{request.method} {request.url.path} started")
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed after "
                f"{time.perf_counter() - started:.4f}s: {e}"
            )
            raise
        else:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"in {time.perf_counter() - started:.4f}s"
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def add_logging_middleware(app: FastAPI) -> None:
    """Add request logging middleware to the application."""
    app.add_middleware(RequestContextMiddleware)
