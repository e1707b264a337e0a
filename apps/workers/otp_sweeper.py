"""Background sweeper for expired one-time codes."""

import asyncio
import logging

from core.metrics import otp_purged_total
from services.otp import OtpStore

logger = logging.getLogger(__name__)


class OtpSweeper:
    """Periodically removes expired codes from an OTP store."""

    def __init__(self, store: OtpStore, interval_seconds: float = 300) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self.running = False
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        """Start sweeping in a background task."""
        if self._task is not None:
            return
        self.running = True
        self._task = asyncio.create_task(self._run(), name="otp-sweeper")
        logger.info(f"OTP sweeper started, interval={self.interval_seconds}s")

    async def stop(self) -> None:
        """Stop sweeping and wait for the task to finish."""
        self.running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("OTP sweeper stopped")

    async def sweep_once(self) -> int:
        """Purge expired codes now."""
        removed = await self.store.purge_expired()
        if removed:
            otp_purged_total.inc(removed)
            logger.info(f"Purged {removed} expired verification codes")
        return removed

    async def _run(self) -> None:
        while self.running:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Error in OTP sweeper loop")
