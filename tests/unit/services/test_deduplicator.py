"""Unit tests for cross-source deduplication."""

from datetime import datetime, timezone

from lit_pulse.constants import PLACEHOLDER_TITLE
from lit_pulse.services.deduplicator import deduplicate, merge_articles


class TestDeduplicate:
    def test_same_upstream_id_merges(self, make_article):
        first = make_article(provenance=["pubmed:mesh_ai"])
        second = make_article(
            title="Completely different title text",
            provenance=["pubmed:clinical_validation"],
        )

        result = deduplicate([first, second])

        assert len(result) == 1
        assert result[0].provenance == ["pubmed:mesh_ai", "pubmed:clinical_validation"]

    def test_exact_normalized_title_merges_across_sources(self, make_article):
        pubmed = make_article(id="pubmed:1", title="Deep learning for chest radiograph triage.")
        scholar = make_article(
            id="derived:abc",
            title="DEEP LEARNING  for chest radiograph triage",
            provenance=["scholar:scholar_clinical"],
            citations=12,
        )

        result = deduplicate([pubmed, scholar])

        assert len(result) == 1
        assert result[0].id == "pubmed:1"
        assert result[0].citations == 12
        assert result[0].provenance == ["pubmed:mesh_ai", "scholar:scholar_clinical"]

    def test_similar_titles_merge(self, make_article):
        a = make_article(
            id="pubmed:1",
            title="Deep learning for chest radiograph triage in the emergency department",
        )
        b = make_article(
            id="derived:b",
            title="Deep learning for chest radiograph triage in emergency departments",
        )
        assert len(deduplicate([a, b])) == 1

    def test_dissimilar_titles_kept(self, make_article):
        a = make_article(id="pubmed:1", title="Deep learning for chest radiograph triage")
        b = make_article(id="pubmed:2", title="Radiomics of pancreatic cancer on CT")
        assert [x.id for x in deduplicate([a, b])] == ["pubmed:1", "pubmed:2"]

    def test_threshold_is_configurable(self, make_article):
        a = make_article(id="derived:a", title="Deep learning for knee MRI")
        b = make_article(id="derived:b", title="Deep learning for knee CT")

        assert len(deduplicate([a, b], threshold=0.99)) == 2
        assert len(deduplicate([a, b], threshold=0.5)) == 1

    def test_placeholder_titles_never_match(self, make_article):
        a = make_article(id="derived:a", title=PLACEHOLDER_TITLE)
        b = make_article(id="derived:b", title=PLACEHOLDER_TITLE)
        assert len(deduplicate([a, b])) == 2

    def test_same_derived_id_merges(self, make_article):
        a = make_article(id="derived:a", title=PLACEHOLDER_TITLE, citations=1)
        b = make_article(
            id="derived:a",
            title=PLACEHOLDER_TITLE,
            citations=4,
            provenance=["scholar:scholar_clinical"],
        )

        (merged,) = deduplicate([a, b])

        assert merged.citations == 4
        assert merged.provenance == ["pubmed:mesh_ai", "scholar:scholar_clinical"]

    def test_first_seen_keeps_id_and_bucket(self, make_article):
        a = make_article(id="derived:a", bucket="Chest")
        b = make_article(id="pubmed:9", bucket="Neuro")

        (merged,) = deduplicate([a, b])

        assert merged.id == "derived:a"
        assert merged.bucket == "Chest"

    def test_ids_unique_after_dedup(self, make_article):
        articles = [
            make_article(id="pubmed:1"),
            make_article(id="pubmed:1", title="Lung cancer screening with AI"),
            make_article(id="pubmed:2", title="Lung cancer screening with AI"),
            make_article(id="pubmed:3", title="Stroke detection on head CT"),
        ]
        ids = [a.id for a in deduplicate(articles)]
        assert len(ids) == len(set(ids))

    def test_idempotent(self, make_article):
        articles = [
            make_article(id="pubmed:1", title=PLACEHOLDER_TITLE),
            make_article(id="derived:x", title="Stroke detection on head CT"),
            make_article(id="pubmed:1", title="Stroke detection on head CT"),
            make_article(id="pubmed:2", title="Stroke detection on head CT."),
            make_article(id="pubmed:3", title="Bone age estimation with deep learning"),
        ]

        once = deduplicate(articles)
        twice = deduplicate(once)

        assert once == twice
        assert len(once) == 2

    def test_empty_input(self):
        assert deduplicate([]) == []


class TestMergeArticles:
    def test_prefers_populated_fields(self, make_article):
        first = make_article(
            title=PLACEHOLDER_TITLE,
            abstract="",
            authors=[],
            journal="",
            doi=None,
            source_tags=["Journal Article"],
        )
        other = make_article(
            id="derived:x",
            abstract="An abstract.",
            authors=["Lee A"],
            doi="10.1/x",
            source_tags=["Journal Article", "Deep Learning"],
        )

        merged = merge_articles(first, other)

        assert merged.title == other.title
        assert merged.abstract == "An abstract."
        assert merged.authors == ["Lee A"]
        assert merged.journal == "Radiology"
        assert merged.doi == "10.1/x"
        assert merged.source_tags == ["Journal Article", "Deep Learning"]
        assert merged.id == first.id

    def test_upstream_date_beats_ingestion_fallback(self, make_article, now):
        first = make_article(publication_date=now, date_source="ingested")
        other = make_article(
            publication_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
            date_source="pubdate",
        )

        merged = merge_articles(first, other)

        assert merged.publication_date == other.publication_date
        assert merged.date_source == "pubdate"

    def test_keeps_resolved_date_of_first(self, make_article, now):
        first = make_article()
        other = make_article(publication_date=now, date_source="ingested")
        assert merge_articles(first, other).publication_date == first.publication_date

    def test_earliest_indexed_at(self, make_article, now):
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        merged = merge_articles(make_article(), make_article(indexed_at=earlier))
        assert merged.indexed_at == earlier
