"""
Periodic sweep that deletes expired OTP codes.
"""
import asyncio
import logging
from typing import Optional

from app.core.errors import GatewayError
from app.services.otp_service import OTPService

logger = logging.getLogger("lael.OTPCleanupScheduler")


class OTPCleanupScheduler:
    """Runs ``OTPService.cleanup_expired`` every ``interval_seconds``."""

    def __init__(self, otp_service: OTPService, interval_seconds: int = 900):
        self.otp_service = otp_service
        self.interval = interval_seconds

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the scheduler"""
        if self._running:
            logger.warning("OTP cleanup scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"OTP cleanup scheduler started with interval={self.interval}s")

    async def stop(self):
        """Stop the scheduler gracefully"""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("OTP cleanup scheduler stopped")

    async def run_once(self) -> int:
        try:
            return await self.otp_service.cleanup_expired()
        except GatewayError as e:
            logger.error(f"OTP cleanup failed: {e}", exc_info=True)
            return 0

    async def _run_loop(self):
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in OTP cleanup loop: {e}", exc_info=True)
            await asyncio.sleep(self.interval)
