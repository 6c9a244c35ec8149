"""Request logging and ID injection middleware."""

import time
import uuid

import sentry_sdk
from starlette.types import ASGIApp, Receive, Scope, Send

from posledger.core.logging import bind_request_context, get_logger


class RequestIDMiddleware:
    """
    Inject unique request ID into context.

    Every request gets a UUID. If X-Request-ID header exists, use it.
    The ID and the tenant headers (X-Store-ID, X-Actor) are bound into every
    log line of the request. The ID is also tagged on Sentry events and echoed
    back as a response header.
    """

    def __init__(self, app: ASGIApp):
        self.app = app
        self.logger = get_logger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", str(uuid.uuid4()).encode()).decode("latin1")
        store_id = _header(headers, b"x-store-id")
        actor = _header(headers, b"x-actor")
        bind_request_context(request_id, store_id=store_id, actor=actor)

        sentry_sdk.set_tag("request_id", request_id)
        if store_id:
            sentry_sdk.set_tag("store_id", store_id)

        started = time.perf_counter()
        self.logger.info("request.start", method=scope["method"], path=scope["path"])

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode("latin1")))
                message["headers"] = response_headers

                self.logger.info(
                    "request.complete",
                    status_code=message.get("status"),
                    duration_ms=int((time.perf_counter() - started) * 1000),
                )

            await send(message)

        await self.app(scope, receive, send_with_request_id)


def _header(headers: dict[bytes, bytes], name: bytes) -> str | None:
    value = headers.get(name)
    if value is None:
        return None
    return value.decode("latin1").strip() or None
