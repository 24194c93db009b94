"""
Keyword-based topical classification.

Two deterministic strategies:

  first_match  buckets are tried in configured order; the first bucket with
               a keyword in the text wins.
  weighted     each bucket scores the number of its distinct keywords found
               in the text; the strictly highest score wins and ties go to
               the default bucket.

The bucket configured with no keywords is the catch-all default. Without
one, the default is UNCLASSIFIED_BUCKET.
"""

from typing import Literal

from pydantic import BaseModel, field_validator

from lit_pulse.constants import UNCLASSIFIED_BUCKET
from lit_pulse.helpers.text_helpers import matched_keywords
from lit_pulse.models.model_article import Article


class ClassifierConfig(BaseModel):
    """Ordered bucket -> keywords mapping plus the scoring strategy."""

    buckets: dict[str, list[str]]
    strategy: Literal["first_match", "weighted"] = "first_match"
    include_source_tags: bool = False

    @field_validator("buckets")
    @classmethod
    def _single_catch_all(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        catch_all = [label for label, keywords in value.items() if not keywords]
        if len(catch_all) > 1:
            raise ValueError(f"at most one catch-all bucket allowed, got {catch_all}")
        return value

    @property
    def default_bucket(self) -> str:
        for label, keywords in self.buckets.items():
            if not keywords:
                return label
        return UNCLASSIFIED_BUCKET

    @property
    def labels(self) -> list[str]:
        """Every label classify() can return, in configured order."""
        labels = list(self.buckets)
        if self.default_bucket not in labels:
            labels.append(self.default_bucket)
        return labels


def score_buckets(article: Article, config: ClassifierConfig) -> dict[str, int]:
    """Distinct keyword hits per keyword-bearing bucket."""
    text = article.search_text(config.include_source_tags)
    return {
        label: len(matched_keywords(text, keywords))
        for label, keywords in config.buckets.items()
        if keywords
    }


def classify(article: Article, config: ClassifierConfig) -> str:
    """Return exactly one bucket label for ``article``."""
    scores = score_buckets(article, config)

    if config.strategy == "first_match":
        for label, score in scores.items():
            if score > 0:
                return label
        return config.default_bucket

    best = max(scores.values(), default=0)
    if best == 0:
        return config.default_bucket
    winners = [label for label, score in scores.items() if score == best]
    return winners[0] if len(winners) == 1 else config.default_bucket


def classify_all(articles: list[Article], config: ClassifierConfig) -> list[Article]:
    """Copies of ``articles`` with their bucket assigned."""
    return [
        article.model_copy(update={"bucket": classify(article, config)})
        for article in articles
    ]
