"""Aggregate statistics handed to the presentation layer."""

from datetime import date

from pydantic import BaseModel

from lit_pulse.constants import NOT_AVAILABLE


class WeeklyPoint(BaseModel):
    """Publication count for one ISO week."""

    week: str  # ISO week key, e.g. "2024-W07"
    week_start: date  # Monday of that week
    count: int = 0


class Leaderboard(BaseModel):
    """Top-N style reductions over the article set."""

    total_articles: int = 0
    top_journal: str = NOT_AVAILABLE
    top_bucket: str = NOT_AVAILABLE
    top_author: str = NOT_AVAILABLE
    avg_authors: float = 0.0


class DashboardStats(BaseModel):
    """Everything the dashboard charts need in one object."""

    bucket_counts: dict[str, int] = {}
    weekly: list[WeeklyPoint] = []
    leaderboard: Leaderboard = Leaderboard()
