"""Request memoization middleware.

Opens a request_scope() around each HTTP request so memoize_request-
decorated calls are deduplicated within that request only.
"""

from typing import Callable

from school_cache.infrastructure.cache.request_memo import request_scope


def RequestMemoMiddleware(app: Callable) -> Callable:
    """Give every HTTP request its own memo table. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        with request_scope():
            await app(scope, receive, send)

    return asgi_app
