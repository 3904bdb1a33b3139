"""Fallback cache maintenance against the configured store.

Usage:
    python -m scripts.cache_maintenance stats
    python -m scripts.cache_maintenance cleanup
    python -m scripts.cache_maintenance clear-user <user_id>
    python -m scripts.cache_maintenance clear-tenant <school_id>
    python -m scripts.cache_maintenance clear-all
Uses CACHE_STORE_BACKEND (file or redis; memory holds nothing between runs).
"""

import asyncio
import logging
import sys

from school_cache.core.config import get_settings
from school_cache.core.container import CacheContainer
from school_cache.shared.telemetry.logging import setup_logging

USAGE = (
    "Usage: python -m scripts.cache_maintenance "
    "stats | cleanup | clear-user <user_id> | clear-tenant <school_id> | clear-all"
)


async def run(container: CacheContainer, argv: list[str]) -> int:
    """Execute one command; returns the process exit code."""
    if not argv:
        print(USAGE, file=sys.stderr)
        return 1
    command, args = argv[0], argv[1:]
    manager = container.manager

    if command == "stats":
        stats = await manager.get_stats()
        print(f"Keys: {stats.total_keys}")
        print(f"Size: {stats.approx_size_description} ({stats.total_size_bytes} bytes)")
        print(f"Expired: {stats.expired_keys}")
        print(f"Network: {'online' if stats.is_network_online else 'offline'}")
        return 0
    if command == "cleanup":
        result = await manager.cleanup_expired()
        print(f"Removed {result.removed_count} expired entries ({result.freed_bytes} bytes)")
        return 0
    if command in ("clear-user", "clear-tenant"):
        if len(args) != 1:
            print(USAGE, file=sys.stderr)
            return 1
        if command == "clear-user":
            cleared = await manager.clear_user_cache(args[0])
        else:
            cleared = await manager.clear_tenant_cache(args[0])
    elif command == "clear-all":
        cleared = await manager.clear_all()
    else:
        print(f"Unknown command: {command}\n{USAGE}", file=sys.stderr)
        return 1

    print(f"Removed {cleared.removed_count} entries")
    if not cleared.ok:
        print(f"Failed to remove {len(cleared.failed)} entries", file=sys.stderr)
        return 2
    return 0


async def main() -> None:
    settings = get_settings()
    setup_logging(logging.WARNING)
    if settings.cache_store_backend == "memory":
        print("CACHE_STORE_BACKEND=memory: nothing persists between runs", file=sys.stderr)
    container = CacheContainer(settings)
    await container.init()
    try:
        code = await run(container, sys.argv[1:])
    finally:
        await container.dispose()
    sys.exit(code)


if __name__ == "__main__":
    asyncio.run(main())
