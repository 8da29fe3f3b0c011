# ==============================================================================
# REQUEST LOGGER MIDDLEWARE
# ==============================================================================
# Request/response logging with request-ID propagation
# ==============================================================================

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.constants import APIConstants

logger = logging.getLogger(__name__)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of every request.

    Reuses an incoming ``X-Request-ID`` or generates one, and echoes it
    together with ``X-Response-Time``. Confirmation tokens travel in the
    path, so ``/orders/confirm/...`` paths are logged without them.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = (
            request.headers.get(APIConstants.REQUEST_ID_HEADER)
            or str(uuid.uuid4())[:8]
        )
        path = _redact(request.url.path)
        start_time = time.perf_counter()

        logger.debug(f"[{request_id}] {request.method} {path} - Started")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] {request.method} {path} "
                f"- Error ({duration_ms:.2f}ms): {e}"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_level = logging.INFO if response.status_code < 400 else logging.WARNING
        logger.log(
            log_level,
            f"[{request_id}] {request.method} {path} "
            f"- {response.status_code} ({duration_ms:.2f}ms)",
        )

        response.headers[APIConstants.REQUEST_ID_HEADER] = request_id
        response.headers[APIConstants.RESPONSE_TIME_HEADER] = f"{duration_ms:.2f}ms"
        return response


def _redact(path: str) -> str:
    marker = "/orders/confirm/"
    index = path.find(marker)
    if index == -1:
        return path
    return path[: index + len(marker)] + "***"
