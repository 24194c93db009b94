"""Domain profiles: the queries, filter and classifier for one dashboard.

Profiles are data. The built-in radiology-AI profile is assembled from
``constants``; any other domain can be supplied as a JSON file with the
same shape (see ``DomainProfile``).
"""

from pathlib import Path

from pydantic import BaseModel, field_validator

from lit_pulse.config import Settings
from lit_pulse.constants import (
    AI_KEYWORDS,
    CLINICAL_RADIOLOGY_JOURNALS,
    IMAGING_KEYWORDS,
    NON_CLINICAL_KEYWORDS,
    RADIOLOGY_SUBDOMAINS,
    SCHOLAR_QUERY,
)
from lit_pulse.models.model_query import QueryDescriptor
from lit_pulse.services.classifier import ClassifierConfig
from lit_pulse.services.relevance_filter import FilterConfig


class DomainProfile(BaseModel):
    name: str
    queries: list[QueryDescriptor]
    filter: FilterConfig
    classifier: ClassifierConfig

    @field_validator("queries")
    @classmethod
    def _unique_labels(cls, value: list[QueryDescriptor]) -> list[QueryDescriptor]:
        labels = [q.label for q in value]
        duplicates = sorted({label for label in labels if labels.count(label) > 1})
        if duplicates:
            raise ValueError(f"duplicate query labels: {duplicates}")
        return value

    def for_settings(self, settings: Settings) -> "DomainProfile":
        """Drop disabled sources and cap result counts at the configured maximum."""
        queries = [
            q.model_copy(
                update={"max_results": min(q.max_results, settings.search_max_results)}
            )
            for q in self.queries
            if settings.enable_scholar or q.source != "scholar"
        ]
        return self.model_copy(update={"queries": queries})


def _journal_clause() -> str:
    return " OR ".join(f'"{journal}"[Journal]' for journal in CLINICAL_RADIOLOGY_JOURNALS)


def radiology_ai_profile() -> DomainProfile:
    journals = _journal_clause()
    return DomainProfile(
        name="radiology-ai",
        queries=[
            QueryDescriptor(
                label="mesh_ai",
                term=(
                    '("Artificial Intelligence"[Mesh] OR "Deep Learning"[Mesh] '
                    f'OR "Machine Learning"[Mesh]) AND ({journals})'
                ),
            ),
            QueryDescriptor(
                label="clinical_validation",
                term=(
                    '("Artificial Intelligence" OR "Deep Learning" OR "Machine Learning") '
                    f"AND ({journals}) "
                    'AND ("Clinical Trial"[Publication Type] '
                    'OR "Validation Studies"[Publication Type])'
                ),
            ),
            QueryDescriptor(
                label="title_abstract_ai",
                term=(
                    "(artificial intelligence[Title/Abstract] "
                    f"OR machine learning[Title/Abstract]) AND ({journals})"
                ),
            ),
            QueryDescriptor(
                label="scholar_clinical",
                source="scholar",
                term=SCHOLAR_QUERY,
                max_results=20,
            ),
        ],
        filter=FilterConfig(
            journal_allow_list=CLINICAL_RADIOLOGY_JOURNALS,
            keyword_groups={"ai": AI_KEYWORDS, "imaging": IMAGING_KEYWORDS},
            exclusion_keywords=NON_CLINICAL_KEYWORDS,
        ),
        classifier=ClassifierConfig(
            buckets=RADIOLOGY_SUBDOMAINS,
            strategy="weighted",
        ),
    )


def load_profile(path: Path) -> DomainProfile:
    """Read a DomainProfile from a JSON file."""
    return DomainProfile.model_validate_json(Path(path).read_text())


def get_profile(settings: Settings) -> DomainProfile:
    """The profile named by settings, else the built-in radiology profile."""
    profile = (
        load_profile(settings.profile_path)
        if settings.profile_path
        else radiology_ai_profile()
    )
    return profile.for_settings(settings)
