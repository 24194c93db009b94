"""
Pure reductions over the deduplicated article set.

Ties in every leaderboard field go to the value encountered first in
article order (Counter.most_common keeps insertion order for equal counts).
Empty input never raises: counts are zero and leaderboard fields fall back
to NOT_AVAILABLE.
"""

from collections import Counter
from datetime import date, datetime, timedelta

from lit_pulse.constants import NOT_AVAILABLE, WEEKLY_PERIODS
from lit_pulse.models.model_article import Article
from lit_pulse.models.model_stats import DashboardStats, Leaderboard, WeeklyPoint


def bucket_counts(articles: list[Article], labels: list[str]) -> dict[str, int]:
    """Article count per bucket; every configured label is present."""
    counts = {label: 0 for label in labels}
    for article in articles:
        counts[article.bucket] = counts.get(article.bucket, 0) + 1
    return counts


def week_start(moment: datetime) -> date:
    """Monday of the ISO week containing ``moment``."""
    day = moment.date()
    return day - timedelta(days=day.weekday())


def iso_week_key(monday: date) -> str:
    year, week, _ = monday.isocalendar()
    return f"{year}-W{week:02d}"


def weekly_series(
    articles: list[Article], periods: int = WEEKLY_PERIODS
) -> list[WeeklyPoint]:
    """Chronological weekly counts for the most recent ``periods`` weeks.

    Weeks without publications between the first and last populated week
    are included with a zero count so the series has no gaps.
    """
    counts = Counter(week_start(a.publication_date) for a in articles)
    if not counts or periods <= 0:
        return []

    last = max(counts)
    current = max(min(counts), last - timedelta(weeks=periods - 1))

    points = []
    while current <= last:
        points.append(
            WeeklyPoint(
                week=iso_week_key(current),
                week_start=current,
                count=counts.get(current, 0),
            )
        )
        current += timedelta(weeks=1)
    return points


def _most_common(values: list[str]) -> str:
    counter = Counter(v for v in values if v)
    if not counter:
        return NOT_AVAILABLE
    return counter.most_common(1)[0][0]


def leaderboard(articles: list[Article]) -> Leaderboard:
    if not articles:
        return Leaderboard()

    author_total = sum(len(a.authors) for a in articles)
    return Leaderboard(
        total_articles=len(articles),
        top_journal=_most_common([a.journal for a in articles]),
        top_bucket=_most_common([a.bucket for a in articles]),
        top_author=_most_common([name for a in articles for name in a.authors]),
        avg_authors=round(author_total / len(articles), 1),
    )


def aggregate(
    articles: list[Article],
    labels: list[str],
    periods: int = WEEKLY_PERIODS,
) -> DashboardStats:
    return DashboardStats(
        bucket_counts=bucket_counts(articles, labels),
        weekly=weekly_series(articles, periods),
        leaderboard=leaderboard(articles),
    )


def sort_newest_first(articles: list[Article]) -> list[Article]:
    """Newest publication first; id breaks ties so the order is stable."""
    by_id = sorted(articles, key=lambda a: a.id)
    return sorted(by_id, key=lambda a: a.publication_date, reverse=True)


def query_articles(
    articles: list[Article],
    *,
    search: str | None = None,
    bucket: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Article]:
    """Title search, bucket and inclusive date-range filtering."""
    needle = search.lower().strip() if search else ""
    selected = []
    for article in articles:
        published = article.publication_date.date()
        if needle and needle not in article.title.lower():
            continue
        if bucket and article.bucket != bucket:
            continue
        if start and published < start:
            continue
        if end and published > end:
            continue
        selected.append(article)
    return selected
