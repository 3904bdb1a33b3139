"""Response timing and cache status headers.

Adds X-Response-Time ("<n>ms") to every HTTP response. When the bypass
header is present the request is flagged in scope state (bypass_cache)
and the response carries X-Cache-Status: BYPASSED. Paths under
skip_prefixes get the timing header only.
"""

import time
from typing import Callable, Sequence

DEFAULT_SKIP_PREFIXES = ("/docs", "/redoc", "/openapi.json", "/favicon.ico")


def _get_header(scope: dict, name: str) -> str | None:
    """First value of header name (case-insensitive), or None."""
    want = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == want:
            return value.decode("latin-1")
    return None


def CacheHeadersMiddleware(
    app: Callable,
    bypass_header: str = "X-Bypass-Cache",
    skip_prefixes: Sequence[str] = DEFAULT_SKIP_PREFIXES,
) -> Callable:
    """Set timing and cache-status headers. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        started = time.perf_counter()
        path = scope.get("path", "")
        skipped = any(path.startswith(prefix) for prefix in skip_prefixes)
        bypass = not skipped and bool(_get_header(scope, bypass_header))
        scope.setdefault("state", {})["bypass_cache"] = bypass

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                elapsed_ms = (time.perf_counter() - started) * 1000
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time", f"{elapsed_ms:.0f}ms".encode()))
                if bypass:
                    headers.append((b"x-cache-status", b"BYPASSED"))
                message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
