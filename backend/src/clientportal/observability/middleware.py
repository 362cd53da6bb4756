"""Request correlation middleware.

Every request gets an ``X-Request-ID`` (taken from the client or generated)
and a start and completion log line. The tenant binding is reset at the start
so nothing leaks from a previous request on the same worker; the completion
line carries the identity authentication attached to the request, if any.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import bind_tenant, generate_request_id, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)
        bind_tenant(None, None)

        started = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path}",
            extra={"method": request.method, "path": request.url.path},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed: {type(e).__name__}",
                extra={"error_type": type(e).__name__, "duration_ms": _elapsed_ms(started)},
                exc_info=True,
            )
            raise

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(started),
                "org_id": getattr(request.state, "organization_id", None),
                "user_id": getattr(request.state, "user_id", None),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
