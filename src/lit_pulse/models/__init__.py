"""Data models for lit-pulse."""

from lit_pulse.models.model_article import Article
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord
from lit_pulse.models.model_refresh import (
    CacheEntry,
    DashboardStatus,
    RefreshNotice,
    RefreshState,
    RunStatus,
)
from lit_pulse.models.model_stats import DashboardStats, Leaderboard, WeeklyPoint

__all__ = [
    "Article",
    "CacheEntry",
    "DashboardStats",
    "DashboardStatus",
    "DateWindow",
    "Leaderboard",
    "QueryDescriptor",
    "RawRecord",
    "RefreshNotice",
    "RefreshState",
    "RunStatus",
    "WeeklyPoint",
]
