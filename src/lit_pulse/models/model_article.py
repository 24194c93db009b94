"""Canonical Article model.

Every stage after the normalizer works on Articles only. They never see
raw API responses.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from lit_pulse.constants import PLACEHOLDER_TITLE, UNCLASSIFIED_BUCKET

DateSource = Literal["pubdate", "sortpubdate", "ingested"]

UPSTREAM_ID_PREFIXES: tuple[str, ...] = ("pubmed:",)
DERIVED_ID_PREFIX: str = "derived:"


class Article(BaseModel):
    """A normalized literature record."""

    id: str  # "pubmed:<uid>" or "derived:<hash>"
    title: str = PLACEHOLDER_TITLE
    abstract: str = ""
    authors: list[str] = []
    journal: str = ""
    publication_date: datetime  # always tz-aware UTC
    date_source: DateSource = "ingested"
    source_tags: list[str] = []  # MeSH terms, publication types, keywords
    bucket: str = UNCLASSIFIED_BUCKET
    provenance: list[str] = []  # "<source>:<query_label>"
    indexed_at: datetime
    link: str | None = None
    doi: str | None = None
    citations: int = 0

    @property
    def has_upstream_id(self) -> bool:
        return self.id.startswith(UPSTREAM_ID_PREFIXES)

    @property
    def has_placeholder_title(self) -> bool:
        return self.title == PLACEHOLDER_TITLE

    def search_text(self, include_source_tags: bool = False) -> str:
        """Lower-cased text used for keyword matching."""
        parts = [self.title, self.abstract]
        if include_source_tags:
            parts.extend(self.source_tags)
        return " ".join(parts).lower()
