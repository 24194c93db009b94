"""Unit tests for the relevance filter."""

import pytest
from pydantic import ValidationError

from lit_pulse.profiles import radiology_ai_profile
from lit_pulse.services.relevance_filter import (
    FilterConfig,
    is_relevant,
    journal_allowed,
)

CONFIG = FilterConfig(
    journal_allow_list=["Radiology", "Journal of Digital Imaging"],
    keyword_groups={
        "ai": ["deep learning", "machine learning"],
        "imaging": ["imaging", "radiograph"],
    },
    exclusion_keywords=["erratum", "editorial"],
)


class TestIsRelevant:
    def test_all_groups_matched_passes(self, make_article):
        article = make_article(
            title="Deep Learning for chest RADIOGRAPH triage", journal="Radiology"
        )
        assert is_relevant(article, CONFIG)

    def test_missing_group_rejects(self, make_article):
        article = make_article(title="Deep learning for sepsis prediction")
        assert not is_relevant(article, CONFIG)

    def test_exclusion_wins_over_matches(self, make_article):
        article = make_article(
            title="Erratum: Deep learning for chest radiograph triage"
        )
        assert not is_relevant(article, CONFIG)

    def test_abstract_counts_as_text(self, make_article):
        article = make_article(
            title="A triage model",
            abstract="We trained a machine learning model on imaging studies.",
        )
        assert is_relevant(article, CONFIG)

    def test_journal_outside_allow_list_rejects(self, make_article):
        article = make_article(journal="Nature Medicine")
        assert not is_relevant(article, CONFIG)

    def test_source_tags_only_when_enabled(self, make_article):
        article = make_article(
            title="A triage model for radiographs", source_tags=["Deep Learning"]
        )
        with_tags = CONFIG.model_copy(update={"include_source_tags": True})

        assert not is_relevant(article, CONFIG)
        assert is_relevant(article, with_tags)

    def test_no_allow_list_accepts_any_journal(self, make_article):
        config = FilterConfig(keyword_groups={"ai": ["deep learning"]})
        article = make_article(journal="")
        assert is_relevant(article, config)

    def test_radiology_profile_filter(self, make_article):
        config = radiology_ai_profile().filter
        article = make_article(
            title="Artificial intelligence for brain MRI imaging",
            journal="European Radiology",
        )
        assert is_relevant(article, config)


class TestJournalAllowed:
    def test_substring_case_insensitive(self):
        assert journal_allowed("AJR. American Journal of Roentgenology", ["american journal of roentgenology"])

    def test_empty_allow_list(self):
        assert journal_allowed("anything", [])


class TestFilterConfig:
    def test_empty_group_rejected(self):
        with pytest.raises(ValidationError, match="no keywords"):
            FilterConfig(keyword_groups={"ai": []})

    def test_loads_from_json(self):
        config = FilterConfig.model_validate_json(
            '{"keyword_groups": {"ai": ["deep learning"]}, "exclusion_keywords": ["erratum"]}'
        )
        assert config.keyword_groups == {"ai": ["deep learning"]}
        assert config.journal_allow_list == []
