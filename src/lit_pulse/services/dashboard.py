"""Read-side facade over the scheduler's current result set."""

from datetime import date, datetime, timedelta

from lit_pulse.config import Settings
from lit_pulse.models.model_article import Article
from lit_pulse.models.model_refresh import (
    DashboardStatus,
    RefreshNotice,
    RefreshState,
    RunStatus,
)
from lit_pulse.models.model_stats import DashboardStats, Leaderboard, WeeklyPoint
from lit_pulse.profiles import DomainProfile, get_profile
from lit_pulse.services import aggregator
from lit_pulse.services.fetch_client import FetchClient
from lit_pulse.services.pipeline import Pipeline
from lit_pulse.services.scheduler import NoticeListener, RefreshScheduler
from lit_pulse.utils.cache import CacheStore, FileCacheStore


class LiteratureDashboard:
    """What a presentation layer talks to.

    Aggregates are computed on demand from the scheduler's last good
    result, so they always agree with ``current_articles()``.
    """

    def __init__(
        self,
        scheduler: RefreshScheduler,
        profile: DomainProfile,
        *,
        weekly_periods: int = 12,
        check_interval_seconds: float = 30 * 60,
        fetch_client: FetchClient | None = None,
    ):
        self.scheduler = scheduler
        self.profile = profile
        self.weekly_periods = weekly_periods
        self.check_interval_seconds = check_interval_seconds
        self._fetch_client = fetch_client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        profile: DomainProfile | None = None,
        store: CacheStore | None = None,
    ) -> "LiteratureDashboard":
        profile = profile or get_profile(settings)
        fetch_client = FetchClient.from_settings(settings)
        pipeline = Pipeline(
            fetch_client, profile, lookback_days=settings.lookback_days
        )
        scheduler = RefreshScheduler(
            pipeline.run,
            store or FileCacheStore(settings.cache_dir),
            cache_key=f"{settings.cache_key}:{profile.name}",
            staleness=timedelta(hours=settings.staleness_hours),
        )
        return cls(
            scheduler,
            profile,
            weekly_periods=settings.weekly_periods,
            check_interval_seconds=settings.refresh_check_minutes * 60,
            fetch_client=fetch_client,
        )

    async def close(self) -> None:
        if self._fetch_client is not None:
            await self._fetch_client.close()

    # -- Reads ---------------------------------------------------------------

    def current_articles(self) -> list[Article]:
        entry = self.scheduler.current_entry()
        return list(entry.data) if entry else []

    def bucket_stats(self) -> dict[str, int]:
        return aggregator.bucket_counts(
            self.current_articles(), self.profile.classifier.labels
        )

    def weekly_series(self) -> list[WeeklyPoint]:
        return aggregator.weekly_series(self.current_articles(), self.weekly_periods)

    def leaderboard(self) -> Leaderboard:
        return aggregator.leaderboard(self.current_articles())

    def stats(self) -> DashboardStats:
        return aggregator.aggregate(
            self.current_articles(),
            self.profile.classifier.labels,
            self.weekly_periods,
        )

    def query_articles(
        self,
        *,
        search: str | None = None,
        bucket: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Article]:
        return aggregator.query_articles(
            self.current_articles(), search=search, bucket=bucket, start=start, end=end
        )

    def last_refresh_timestamp(self) -> datetime | None:
        return self.scheduler.last_refresh_timestamp()

    def status(self) -> DashboardStatus:
        """READY whenever a result set exists, even while a refresh runs."""
        if self.scheduler.current_entry() is not None:
            return DashboardStatus.READY
        if self.scheduler.state is RefreshState.FETCHING:
            return DashboardStatus.LOADING
        if self.scheduler.last_status is RunStatus.FAILURE:
            return DashboardStatus.ERROR
        return DashboardStatus.EMPTY

    # -- Refresh -------------------------------------------------------------

    async def refresh(self) -> RunStatus:
        return await self.scheduler.refresh()

    async def maybe_refresh(self) -> RunStatus | None:
        return await self.scheduler.maybe_refresh()

    async def notify_focus(self) -> RunStatus | None:
        return await self.scheduler.notify_focus()

    async def run_periodic(self) -> None:
        """Apply the staleness rule every ``check_interval_seconds``."""
        await self.scheduler.run_periodic(self.check_interval_seconds)

    # -- Notices -------------------------------------------------------------

    @property
    def notices(self) -> list[RefreshNotice]:
        return list(self.scheduler.notices)

    def subscribe(self, listener: NoticeListener) -> None:
        self.scheduler.subscribe(listener)
