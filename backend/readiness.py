"""
Readiness tracking for the health endpoints
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from browser_session import BrowserSessionManager

logger = logging.getLogger(__name__)

STARTUP_PROBE_TIMEOUT_MS = 15000


@dataclass(frozen=True)
class ReadinessState:
    server_ready: bool
    browser_ready: bool
    last_checked: Optional[datetime]


class ReadinessReporter:
    """
    Owns the server/browser readiness flags.

    Browser readiness comes from launching a real browser, which is too
    expensive to do on every health check, so the result is cached for
    ``ttl_seconds``. Only one probe runs at a time; callers that arrive
    while a probe is in flight reuse its result.
    """

    def __init__(
        self,
        session_manager: BrowserSessionManager,
        ttl_seconds: float = 300,
        clock=time.monotonic,
    ):
        self.session_manager = session_manager
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._server_ready = False
        self._browser_ready = False
        self._last_checked: Optional[datetime] = None
        self._checked_at: Optional[float] = None
        self._lock = asyncio.Lock()

    def get(self) -> ReadinessState:
        return ReadinessState(self._server_ready, self._browser_ready, self._last_checked)

    def mark_server_ready(self):
        self._server_ready = True

    def is_fresh(self) -> bool:
        if self._checked_at is None:
            return False
        return self._clock() - self._checked_at < self.ttl_seconds

    def _record(self, ready: bool):
        self._browser_ready = ready
        self._checked_at = self._clock()
        self._last_checked = datetime.now(timezone.utc)

    async def refresh(self, force: bool = False) -> ReadinessState:
        async with self._lock:
            if force or not self.is_fresh():
                self._record(await self.session_manager.probe())
        return self.get()

    async def browser_status(self) -> Dict[str, Any]:
        cached = self.is_fresh()
        state = self.get() if cached else await self.refresh()
        return {
            "ready": state.browser_ready,
            "lastChecked": state.last_checked.isoformat() if state.last_checked else None,
            "cached": cached,
        }

    async def startup_check(self) -> bool:
        """Full launch + page round-trip, run in the background at startup"""
        logger.info("🔍 Performing startup readiness checks...")
        async with self._lock:
            ready = await self.session_manager.probe(
                timeout_ms=STARTUP_PROBE_TIMEOUT_MS, exercise_page=True
            )
            self._record(ready)
        if ready:
            logger.info("✅ Playwright readiness check passed")
        else:
            logger.warning(
                "⚠️ Startup readiness check failed; browsers may not be installed. "
                "Health checks will keep probing."
            )
        return ready
