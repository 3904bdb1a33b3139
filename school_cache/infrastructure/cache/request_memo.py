"""Request-scoped memoization of async calls.

Inside request_scope(), calls to a memoize_request-decorated function
with equal arguments share one execution (including concurrent calls and
raised errors). Outside a scope the decorator passes straight through.
The middleware opens one scope per HTTP request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Memo table for the current request (None outside a scope).
_memo_table: ContextVar[dict[Hashable, asyncio.Future[Any]] | None] = ContextVar(
    "request_memo_table", default=None
)


@contextmanager
def request_scope() -> Iterator[None]:
    """Open a fresh memo table for the duration of the block."""
    token = _memo_table.set({})
    try:
        yield
    finally:
        _memo_table.reset(token)


def in_request_scope() -> bool:
    return _memo_table.get() is not None


def memo_size() -> int:
    """Number of memoized calls in the current scope (0 outside a scope)."""
    table = _memo_table.get()
    return len(table) if table is not None else 0


def memoize_request(
    fn: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Deduplicate calls to fn with equal arguments within one request scope."""

    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        table = _memo_table.get()
        if table is None:
            return await fn(*args, **kwargs)
        key = (fn, args, tuple(sorted(kwargs.items())))
        try:
            future = table.get(key)
        except TypeError:
            logger.debug("Unhashable arguments for %s; not memoized", fn.__qualname__)
            return await fn(*args, **kwargs)
        if future is None:
            future = asyncio.ensure_future(fn(*args, **kwargs))
            table[key] = future
        else:
            logger.debug("Request memo HIT: %s", fn.__qualname__)
        return await asyncio.shield(future)

    return wrapper
