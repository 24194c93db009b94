"""Refresh state, outcomes, notices and the cached result slot."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from lit_pulse.models.model_article import Article


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"
    SKIPPED = "skipped"  # trigger dropped because a run was in flight


class DashboardStatus(str, Enum):
    EMPTY = "empty"  # nothing cached, no run attempted yet
    LOADING = "loading"  # first run in flight, nothing to show yet
    READY = "ready"
    ERROR = "error"  # first run failed; refresh() retries


class RefreshNotice(BaseModel):
    """A warning or error surfaced to the consumer."""

    level: Literal["warning", "error"]
    message: str
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CacheEntry(BaseModel):
    """Last good result set and when it was produced."""

    timestamp: datetime
    data: list[Article] = []
