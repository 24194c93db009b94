"""
Refresh scheduling and the last-good-result slot.

State machine::

    IDLE --trigger--> FETCHING --(SUCCESS | PARTIAL_FAILURE | FAILURE)--> IDLE

Triggers: empty cache, stale cache (older than the staleness window),
focus regained, periodic check, or a manual refresh. A trigger while
FETCHING is dropped and reported as SKIPPED. The state flips to FETCHING
before the first await, so two triggers in the same tick start one run.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Literal

from lit_pulse.models.model_refresh import (
    CacheEntry,
    RefreshNotice,
    RefreshState,
    RunStatus,
)
from lit_pulse.services.pipeline import PipelineResult, utc_now
from lit_pulse.utils.cache import CacheError, CacheStore

logger = logging.getLogger(__name__)

NoticeListener = Callable[[RefreshNotice], None]


class RefreshScheduler:
    def __init__(
        self,
        runner: Callable[[], Awaitable[PipelineResult]],
        store: CacheStore,
        *,
        cache_key: str,
        staleness: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._runner = runner
        self._store = store
        self.cache_key = cache_key
        self.staleness = staleness
        self._clock = clock

        self._state = RefreshState.IDLE
        self._entry: CacheEntry | None = None
        self._loaded = False
        self._listeners: list[NoticeListener] = []
        self.notices: list[RefreshNotice] = []
        self.last_status: RunStatus | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    # -- Notices -------------------------------------------------------------

    def subscribe(self, listener: NoticeListener) -> None:
        self._listeners.append(listener)

    def _notify(self, level: Literal["warning", "error"], message: str) -> None:
        notice = RefreshNotice(level=level, message=message, at=self._clock())
        self.notices.append(notice)
        for listener in self._listeners:
            listener(notice)

    @property
    def last_error(self) -> RefreshNotice | None:
        for notice in reversed(self.notices):
            if notice.level == "error":
                return notice
        return None

    # -- Cache slot ----------------------------------------------------------

    def current_entry(self) -> CacheEntry | None:
        """Last good result, read from the store once, then held in memory."""
        if self._entry is None and not self._loaded:
            self._loaded = True
            try:
                self._entry = self._store.get(self.cache_key)
            except CacheError as e:
                logger.warning("Cache read failed: %s", e)
                self._notify("warning", f"Cache unavailable, starting empty: {e}")
        return self._entry

    def last_refresh_timestamp(self) -> datetime | None:
        entry = self.current_entry()
        return entry.timestamp if entry else None

    def is_stale(self, now: datetime | None = None) -> bool:
        entry = self.current_entry()
        if entry is None:
            return True
        return (now or self._clock()) - entry.timestamp >= self.staleness

    # -- Triggers ------------------------------------------------------------

    async def maybe_refresh(self) -> RunStatus | None:
        """Refresh if the cache is empty or stale; None when it is fresh."""
        if self._state is RefreshState.FETCHING:
            logger.info("Refresh already in flight; trigger dropped")
            return RunStatus.SKIPPED
        if not self.is_stale():
            return None
        return await self._run()

    async def notify_focus(self) -> RunStatus | None:
        """Focus-regain trigger from the presentation layer."""
        return await self.maybe_refresh()

    async def refresh(self) -> RunStatus:
        """Manual refresh regardless of staleness."""
        return await self._run()

    async def run_periodic(self, interval_seconds: float) -> None:
        """Check staleness every ``interval_seconds`` until cancelled."""
        while True:
            await self.maybe_refresh()
            await asyncio.sleep(interval_seconds)

    # -- Run -----------------------------------------------------------------

    async def _run(self) -> RunStatus:
        if self._state is RefreshState.FETCHING:
            logger.info("Refresh already in flight; trigger dropped")
            return RunStatus.SKIPPED

        self._state = RefreshState.FETCHING
        try:
            status = await self._execute()
        finally:
            self._state = RefreshState.IDLE
        self.last_status = status
        return status

    async def _execute(self) -> RunStatus:
        try:
            result = await self._runner()
        except Exception as e:
            logger.exception("Pipeline run failed")
            self._notify("error", f"Refresh failed: {e}")
            return RunStatus.FAILURE

        if result.status is RunStatus.FAILURE:
            detail = "; ".join(result.warnings) or "no query succeeded"
            logger.error("Refresh failed, keeping previous results: %s", detail)
            self._notify("error", f"Refresh failed: {detail}")
            return RunStatus.FAILURE

        entry = CacheEntry(timestamp=self._clock(), data=result.articles)
        self._entry = entry
        self._loaded = True
        try:
            self._store.set(self.cache_key, entry)
        except CacheError as e:
            logger.warning("Cache write failed, results kept in memory: %s", e)
            self._notify("warning", f"Results not persisted: {e}")

        if result.status is RunStatus.PARTIAL_FAILURE:
            self._notify(
                "warning",
                "Some queries failed: " + ", ".join(result.failed_queries),
            )
        logger.info(
            "Refresh finished: %s, %d articles", result.status.value, len(entry.data)
        )
        return result.status
