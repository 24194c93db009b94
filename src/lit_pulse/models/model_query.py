"""Query and date-window models handed to the fetch layer."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel, PositiveInt, field_validator, model_validator

from lit_pulse.constants import PUBMED_SEARCH_MAX_RESULTS

SourceName = Literal["pubmed", "scholar"]


class QueryDescriptor(BaseModel):
    """A single upstream search expression.

    ``term`` is opaque to the pipeline; its dialect belongs to ``source``.
    """

    label: str
    source: SourceName = "pubmed"
    term: str
    max_results: PositiveInt = PUBMED_SEARCH_MAX_RESULTS

    @field_validator("label", "term")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class DateWindow(BaseModel):
    """Inclusive publication-date window."""

    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> DateWindow:
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @classmethod
    def trailing(cls, days: int, today: date | None = None) -> DateWindow:
        """Window covering the ``days`` days up to and including ``today``."""
        end = today or date.today()
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def mindate(self) -> str:
        return self.start.strftime("%Y/%m/%d")

    @property
    def maxdate(self) -> str:
        return self.end.strftime("%Y/%m/%d")
