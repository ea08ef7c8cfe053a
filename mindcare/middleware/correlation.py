"""Correlation ID middleware.

Generates or extracts a correlation ID per request, binds it to the logging
context, and echoes it back in the response headers.

Pure ASGI middleware rather than BaseHTTPMiddleware so the request body and
the Redis connection stay on the handler's task.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from mindcare.logging_config import correlation_id_ctx, get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Probe paths are hit every few seconds; keep them out of the request log
_QUIET_PATHS = frozenset({"/health", "/health/live"})

# Longest inbound correlation ID accepted before a fresh one is generated
_MAX_ID_LENGTH = 128


class CorrelationIdMiddleware:
    """Pure ASGI middleware that adds correlation IDs to requests.

    If the incoming request has an X-Correlation-ID header, it uses that value.
    Otherwise, it generates a new UUID for the request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        inbound = headers.get(b"x-correlation-id", b"").decode(errors="ignore")
        correlation_id = (
            inbound if 0 < len(inbound) <= _MAX_ID_LENGTH else str(uuid.uuid4())
        )

        token = correlation_id_ctx.set(correlation_id)

        start_time = time.perf_counter()
        status_code: int | None = None

        method = scope.get("method", "")
        path = scope.get("path", "")
        quiet = path in _QUIET_PATHS

        if not quiet:
            logger.info("Request started", method=method, path=path)

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code

            if message["type"] == "http.response.start":
                status_code = message.get("status")
                response_headers = list(message.get("headers", []))
                response_headers.append(
                    (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode())
                )
                message = {**message, "headers": response_headers}

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)

            if not quiet:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    "Request completed",
                    method=method,
                    path=path,
                    status_code=status_code,
                    duration_ms=round(duration_ms, 2),
                )
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
            )
            raise
        finally:
            correlation_id_ctx.reset(token)
