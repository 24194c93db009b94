"""
Domain relevance filter.

An article passes when all of these hold:
  1. its journal matches the allow-list (when one is configured),
  2. every keyword group has at least one hit in the text,
  3. no exclusion keyword appears in the text.

Exclusions always win. All matching is case-insensitive substring matching.
"""

from pydantic import BaseModel, field_validator

from lit_pulse.helpers.text_helpers import matched_keywords
from lit_pulse.models.model_article import Article


class FilterConfig(BaseModel):
    """Keyword groups, venue allow-list and exclusions for one domain."""

    journal_allow_list: list[str] = []
    keyword_groups: dict[str, list[str]] = {}
    exclusion_keywords: list[str] = []
    include_source_tags: bool = False

    @field_validator("keyword_groups")
    @classmethod
    def _groups_not_empty(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for name, keywords in value.items():
            if not [kw for kw in keywords if kw.strip()]:
                raise ValueError(f"keyword group {name!r} has no keywords")
        return value


def journal_allowed(journal: str, allow_list: list[str]) -> bool:
    if not allow_list:
        return True
    lower = journal.lower()
    return any(venue.lower() in lower for venue in allow_list)


def is_relevant(article: Article, config: FilterConfig) -> bool:
    """Return True if ``article`` is in scope for the configured domain."""
    if not journal_allowed(article.journal, config.journal_allow_list):
        return False

    text = article.search_text(config.include_source_tags)

    if matched_keywords(text, config.exclusion_keywords):
        return False

    return all(
        matched_keywords(text, keywords) for keywords in config.keyword_groups.values()
    )
