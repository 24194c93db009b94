"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from lit_pulse.models.model_article import Article
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord
from lit_pulse.profiles import DomainProfile
from lit_pulse.services.classifier import ClassifierConfig
from lit_pulse.services.relevance_filter import FilterConfig

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


def _make_article(**overrides) -> Article:
    fields = {
        "id": "pubmed:38000001",
        "title": "Deep learning for chest radiograph triage",
        "abstract": "",
        "authors": ["Smith J"],
        "journal": "Radiology",
        "publication_date": datetime(2024, 3, 4, tzinfo=timezone.utc),
        "date_source": "pubdate",
        "provenance": ["pubmed:mesh_ai"],
        "indexed_at": NOW,
    }
    fields.update(overrides)
    return Article(**fields)


@pytest.fixture
def now() -> datetime:
    """Fixed ingestion time used across tests."""
    return NOW


@pytest.fixture
def make_article():
    """Factory for Articles with sensible defaults."""
    return _make_article


@pytest.fixture
def window() -> DateWindow:
    return DateWindow(start=datetime(2024, 2, 19).date(), end=NOW.date())


@pytest.fixture
def pubmed_query() -> QueryDescriptor:
    return QueryDescriptor(label="mesh_ai", term="deep learning[Title]")


@pytest.fixture
def pubmed_payload() -> dict:
    """A realistic esummary record after abstract merging."""
    return {
        "uid": "38000001",
        "title": "Deep  learning for chest\nradiograph triage.",
        "authors": [
            {"name": "Smith J", "authtype": "Author"},
            {"name": "Lee A", "authtype": "Author"},
        ],
        "source": "Radiology",
        "fulljournalname": "Radiology",
        "pubdate": "2024 Mar 15",
        "sortpubdate": "2024/03/15 00:00",
        "pubtype": ["Journal Article"],
        "articleids": [
            {"idtype": "pubmed", "value": "38000001"},
            {"idtype": "doi", "value": "10.1148/radiol.240001"},
        ],
        "abstract": "A deep learning model triages chest radiographs in imaging workflows.",
        "mesh": ["Deep Learning", "Radiography, Thoracic"],
        "keywords": ["triage"],
    }


@pytest.fixture
def pubmed_record(pubmed_payload) -> RawRecord:
    return RawRecord(source="pubmed", query_label="mesh_ai", payload=pubmed_payload)


@pytest.fixture
def small_profile() -> DomainProfile:
    """A compact profile: AI + imaging keywords, three buckets."""
    return DomainProfile(
        name="test-profile",
        queries=[
            QueryDescriptor(label="q1", term="deep learning"),
            QueryDescriptor(label="q2", term="machine learning"),
        ],
        filter=FilterConfig(
            keyword_groups={
                "ai": ["deep learning", "machine learning"],
                "imaging": ["imaging", "radiograph"],
            },
            exclusion_keywords=["erratum"],
        ),
        classifier=ClassifierConfig(
            buckets={
                "Chest": ["chest", "lung"],
                "Neuro": ["brain", "spine"],
                "Other": [],
            },
            strategy="weighted",
        ),
    )
