"""
Cross-source deduplication.

Two articles are the same publication when, checked in this order:
  1. both carry the same id (e.g. the same PMID returned by two
     overlapping queries, or the same derived id),
  2. their normalized titles are identical,
  3. their normalized titles are at least ``threshold`` similar
     (difflib ratio on a 0-1 scale).

Placeholder titles never match by title. The first-seen record survives a
merge and absorbs the more complete fields of the other.
"""

import logging
from difflib import SequenceMatcher

from lit_pulse.constants import TITLE_SIMILARITY_THRESHOLD
from lit_pulse.helpers.text_helpers import normalize_title, unique_in_order
from lit_pulse.models.model_article import Article

logger = logging.getLogger(__name__)


def merge_articles(first: Article, other: Article) -> Article:
    """Merge ``other`` into ``first``; id and bucket of ``first`` are kept."""
    update: dict = {
        "provenance": unique_in_order(first.provenance + other.provenance),
        "source_tags": unique_in_order(first.source_tags + other.source_tags),
        "citations": max(first.citations, other.citations),
        "indexed_at": min(first.indexed_at, other.indexed_at),
    }
    if first.has_placeholder_title and not other.has_placeholder_title:
        update["title"] = other.title
    for name in ("abstract", "journal", "link", "doi"):
        if not getattr(first, name) and getattr(other, name):
            update[name] = getattr(other, name)
    if not first.authors and other.authors:
        update["authors"] = other.authors
    if first.date_source == "ingested" and other.date_source != "ingested":
        update["publication_date"] = other.publication_date
        update["date_source"] = other.date_source
    return first.model_copy(update=update)


class _Pass:
    """One left-to-right merge pass over a candidate list."""

    def __init__(self, threshold: float):
        self.threshold = threshold
        self.kept: list[Article] = []
        self.titles: list[str | None] = []
        self.by_id: dict[str, int] = {}
        self.by_title: dict[str, int] = {}
        self.merges = 0

    @staticmethod
    def _title_key(article: Article) -> str | None:
        if article.has_placeholder_title:
            return None
        return normalize_title(article.title) or None

    def _register(self, article: Article, index: int) -> None:
        self.by_id.setdefault(article.id, index)
        key = self._title_key(article)
        if key:
            self.by_title.setdefault(key, index)

    def _find(self, article: Article) -> int | None:
        if article.id in self.by_id:
            return self.by_id[article.id]

        key = self._title_key(article)
        if key is None:
            return None
        if key in self.by_title:
            return self.by_title[key]

        for index, existing in enumerate(self.titles):
            if existing is None:
                continue
            matcher = SequenceMatcher(None, key, existing)
            if (
                matcher.real_quick_ratio() >= self.threshold
                and matcher.quick_ratio() >= self.threshold
                and matcher.ratio() >= self.threshold
            ):
                return index
        return None

    def add(self, article: Article) -> None:
        index = self._find(article)
        if index is None:
            index = len(self.kept)
            self.kept.append(article)
            self.titles.append(self._title_key(article))
        else:
            logger.debug("Merging %s into %s", article.id, self.kept[index].id)
            self.kept[index] = merge_articles(self.kept[index], article)
            self.titles[index] = self._title_key(self.kept[index])
            self.merges += 1
        self._register(article, index)
        self._register(self.kept[index], index)


def deduplicate(
    articles: list[Article], threshold: float = TITLE_SIMILARITY_THRESHOLD
) -> list[Article]:
    """Collapse duplicates; idempotent on its own output.

    Passes repeat until one merges nothing, so a merge that fills in a
    placeholder title cannot leave a new duplicate behind.
    """
    current = list(articles)
    while True:
        dedupe_pass = _Pass(threshold)
        for article in current:
            dedupe_pass.add(article)
        if dedupe_pass.merges == 0:
            return dedupe_pass.kept
        logger.info(
            "Deduplication pass merged %d of %d articles",
            dedupe_pass.merges,
            len(current),
        )
        current = dedupe_pass.kept
