"""
One pipeline run: fetch -> normalize -> filter -> classify -> dedupe.

Only the fetch step suspends; the remaining stages are pure and run after
every query has been joined.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from lit_pulse.data_sources.base_client import FetchError
from lit_pulse.models.model_article import Article
from lit_pulse.models.model_query import DateWindow
from lit_pulse.models.model_raw_record import RawRecord
from lit_pulse.models.model_refresh import RunStatus
from lit_pulse.profiles import DomainProfile
from lit_pulse.services.aggregator import sort_newest_first
from lit_pulse.services.classifier import classify
from lit_pulse.services.deduplicator import deduplicate
from lit_pulse.services.fetch_client import FetchClient
from lit_pulse.services.normalizer import normalize_records
from lit_pulse.services.relevance_filter import is_relevant

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineResult:
    status: RunStatus
    articles: list[Article] = field(default_factory=list)
    failed_queries: list[str] = field(default_factory=list)
    errors: list[FetchError] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [str(e) for e in self.errors]


def process_records(
    records: list[RawRecord], profile: DomainProfile, ingested_at: datetime
) -> list[Article]:
    """Run the pure stages over fetched records.

    Normalization failures are expected and skipped with a warning. Any
    exception from the filter or classifier is a defect: it is logged with
    its traceback and only the offending article is dropped.
    """
    normalized = normalize_records(records, ingested_at)

    relevant = []
    for article in normalized:
        try:
            keep = is_relevant(article, profile.filter)
        except Exception:
            logger.exception("Relevance filter failed on %s; skipping", article.id)
            continue
        if keep:
            relevant.append(article)

    classified = []
    for article in relevant:
        try:
            bucket = classify(article, profile.classifier)
        except Exception:
            logger.exception("Classifier failed on %s; skipping", article.id)
            continue
        classified.append(article.model_copy(update={"bucket": bucket}))

    unique = deduplicate(classified)
    logger.info(
        "Processed %d records: %d normalized, %d relevant, %d unique",
        len(records),
        len(normalized),
        len(relevant),
        len(unique),
    )
    return sort_newest_first(unique)


class Pipeline:
    """Binds a fetch client to a domain profile."""

    def __init__(
        self,
        fetch_client: FetchClient,
        profile: DomainProfile,
        *,
        lookback_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.fetch_client = fetch_client
        self.profile = profile
        self.lookback_days = lookback_days
        self.clock = clock

    async def run(self, window: DateWindow | None = None) -> PipelineResult:
        now = self.clock()
        window = window or DateWindow.trailing(self.lookback_days, now.date())
        logger.info(
            "Pipeline run for %s: %d queries, %s..%s",
            self.profile.name,
            len(self.profile.queries),
            window.mindate,
            window.maxdate,
        )

        report = await self.fetch_client.fetch(self.profile.queries, window)
        if report.all_failed:
            return PipelineResult(
                status=RunStatus.FAILURE,
                failed_queries=report.failed_queries,
                errors=report.errors,
            )

        articles = process_records(report.records, self.profile, now)
        status = (
            RunStatus.PARTIAL_FAILURE if report.failed_queries else RunStatus.SUCCESS
        )
        return PipelineResult(
            status=status,
            articles=articles,
            failed_queries=report.failed_queries,
            errors=report.errors,
        )
