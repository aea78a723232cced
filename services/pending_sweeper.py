import asyncio
import logging

from services.pending_requests import PendingRequestStore

logger = logging.getLogger(__name__)


async def run_pending_sweep_once(store: PendingRequestStore) -> int:
    """Evict expired pending requests once; returns how many were dropped."""
    evicted = store.sweep_expired()
    if evicted:
        logger.info(f"[SWEEP] Evicted {evicted} expired pending request(s)")
    return evicted


async def run_pending_sweep_loop(store: PendingRequestStore, interval_seconds: float) -> None:
    """Sweep forever until cancelled by application shutdown."""
    logger.info(f"[SWEEP] Pending request sweep every {interval_seconds:.0f}s")
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_pending_sweep_once(store)
        except Exception as e:
            logger.error(f"[SWEEP] Error in iteration: {e}")
