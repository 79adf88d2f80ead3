import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from oliver.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and its outcome, tagged with a request id."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()
        try:
            logger.info(
                f"{request.method} {request.url.path} - "
                f"Client: {request.client.host if request.client else 'unknown'}"
            )
            response = await call_next(request)
            process_time = time.perf_counter() - start_time

            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - Time: {process_time:.4f}s"
            )
            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)
