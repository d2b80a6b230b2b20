# security_middleware.py
import logging
import math
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

# Only these routes are rate limited
PROTECTED_PREFIX = "/api/"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
}

logger = logging.getLogger("payment_security")


class RateLimiter:
    """Fixed-window request counter keyed by client address"""

    def __init__(self, max_requests: int = 120, window_seconds: int = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> Tuple[bool, int, int]:
        """
        Count one request.

        Returns:
            (allowed, remaining, seconds until the window resets)
        """
        now = self._clock()
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
            # Forget clients whose window has expired
            self._windows = {
                k: v for k, v in self._windows.items()
                if now - v[0] < self.window_seconds
            }

        count += 1
        self._windows[key] = (started, count)
        reset = max(math.ceil(started + self.window_seconds - now), 0)
        return count <= self.max_requests, max(self.max_requests - count, 0), reset


def _reject(status_code: int, error: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error},
        headers=headers,
    )
    response.headers.update(SECURITY_HEADERS)
    return response


async def payment_security_middleware(request: Request, call_next):
    started = time.perf_counter()
    limiter: RateLimiter = request.app.state.rate_limiter

    # Body size cap, checked before the body is read
    content_length = request.headers.get("content-length")
    if content_length is not None:
        max_body = request.app.state.settings.MAX_BODY_BYTES
        if not content_length.isdigit():
            return _reject(400, "Invalid Content-Length header.")
        if int(content_length) > max_body:
            logger.warning(f"Rejected {content_length} byte body on {request.method} {request.url.path}")
            return _reject(413, f"Request body exceeds {max_body} bytes.")

    rate_headers = {}
    if request.url.path.startswith(PROTECTED_PREFIX):
        client = request.client.host if request.client else "unknown"
        allowed, remaining, reset = limiter.hit(client)
        rate_headers = {
            "RateLimit-Limit": str(limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }
        if not allowed:
            logger.warning(f"[{client}] rate limited on {request.method} {request.url.path}")
            return _reject(
                429,
                "Too many requests, please try again later.",
                {**rate_headers, "Retry-After": str(reset)},
            )

    response = await call_next(request)

    response.headers.update(SECURITY_HEADERS)
    response.headers.update(rate_headers)

    # Access log
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} - {elapsed_ms:.1f} ms")

    return response
