"""Shutdown Handler — flush every cached session, then release the backing store.

Invariants:
    - Schedules stop before the final flush (no sweep races the shutdown flush)
    - Store is closed even when the flush fails
    - Sessions whose final write failed are reported, not silently dropped

Design Decisions:
    - Logger passed in explicitly: shutdown runs after request scope is gone
"""

import logging

from session_cache.core.store_protocols import PersistentStore
from session_cache.services.registry import FlushStats, SessionRegistry


async def shutdown(
    registry: SessionRegistry,
    store: PersistentStore,
    logger: logging.Logger,
) -> FlushStats:
    """Stop schedules, persist all active sessions, close the store."""
    await registry.stop()
    try:
        stats = await registry.flush_all()
        if stats.failed:
            logger.error(
                f"{stats.failed} session(s) could not be persisted on shutdown",
                extra={"failed": stats.failed},
            )
    finally:
        await store.close()
        logger.info("Session store closed")
    return stats
