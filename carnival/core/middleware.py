import logging
import threading
import time
from collections import deque

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
}

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
TOO_LARGE_MESSAGE = "Request entity too large"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turns unexpected exceptions into a 500 body while the outer middleware can still decorate it."""

    def __init__(self, app, expose_detail: bool = True):
        super().__init__(app)
        self.expose_detail = expose_detail

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal Server Error",
                    "message": str(exc) if self.expose_detail else "Something went wrong",
                },
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request counter per client address."""

    def __init__(self, app, max_requests: int, window_seconds: int, path_prefix: str = "/api/", clock=time.monotonic):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.clock = clock
        self._hits = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        # clients whose newest hit left the window
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def _allow(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.path_prefix):
            client = request.client.host if request.client else "unknown"
            if not self._allow(client):
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"error": RATE_LIMIT_MESSAGE},
                )
        return await call_next(request)


class BodySizeLimitMiddleware:
    """Rejects request bodies above ``max_bytes``, whether declared in Content-Length or streamed."""

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length is not None and length.isdigit() and int(length) > self.max_bytes:
            await self._reject(scope, receive, send)
            return

        received = 0
        started = False

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=TOO_LARGE_MESSAGE)
            return message

        async def tracked_send(message):
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracked_send)
        except HTTPException as exc:
            if exc.status_code != status.HTTP_413_REQUEST_ENTITY_TOO_LARGE or started:
                raise
            await self._reject(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"error": TOO_LARGE_MESSAGE},
        )
        await response(scope, receive, send)
