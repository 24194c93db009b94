"""Unit tests for the record normalizer."""

from datetime import datetime, timezone

from unittest.mock import patch

import pytest

from lit_pulse.constants import PLACEHOLDER_TITLE
from lit_pulse.models.model_raw_record import RawRecord
from lit_pulse.services import normalizer
from lit_pulse.services.normalizer import (
    NormalizationError,
    derive_article_id,
    normalize_record,
    normalize_records,
    parse_date,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestParseDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024/03/15 00:00", _utc(2024, 3, 15)),
            ("2024-03-15", _utc(2024, 3, 15)),
            ("2024 Mar 15", _utc(2024, 3, 15)),
            ("2024 Mar", _utc(2024, 3, 1)),
            ("2024", _utc(2024, 1, 1)),
            ("2023 Dec 12-26", _utc(2023, 12, 12)),
            ("2024 Jan-Feb", _utc(2024, 1, 1)),
            ("2024 Spring", _utc(2024, 1, 1)),
        ],
    )
    def test_parses_upstream_formats(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 20240315])
    def test_unparseable_is_none(self, value):
        assert parse_date(value) is None


class TestNormalizePubmed:
    def test_full_record(self, pubmed_record, now):
        article = normalize_record(pubmed_record, now)

        assert article.id == "pubmed:38000001"
        assert article.title == "Deep learning for chest radiograph triage."
        assert article.authors == ["Smith J", "Lee A"]
        assert article.journal == "Radiology"
        assert article.publication_date == _utc(2024, 3, 15)
        assert article.date_source == "pubdate"
        assert article.doi == "10.1148/radiol.240001"
        assert article.link == "https://pubmed.ncbi.nlm.nih.gov/38000001/"
        assert article.source_tags == [
            "Journal Article",
            "Deep Learning",
            "Radiography, Thoracic",
            "triage",
        ]
        assert article.provenance == ["pubmed:mesh_ai"]
        assert article.indexed_at == now
        assert article.bucket == "Unclassified"

    def test_missing_fields_get_defaults(self, now):
        raw = RawRecord(source="pubmed", query_label="q", payload={"uid": "7"})
        article = normalize_record(raw, now)

        assert article.title == PLACEHOLDER_TITLE
        assert article.abstract == ""
        assert article.authors == []
        assert article.journal == ""
        assert article.publication_date == now
        assert article.date_source == "ingested"

    def test_falls_back_to_sortpubdate(self, pubmed_payload, now):
        pubmed_payload["pubdate"] = "Winter"
        raw = RawRecord(source="pubmed", query_label="q", payload=pubmed_payload)

        article = normalize_record(raw, now)

        assert article.publication_date == _utc(2024, 3, 15)
        assert article.date_source == "sortpubdate"

    def test_error_marker_raises(self, now):
        raw = RawRecord(
            source="pubmed",
            query_label="q",
            payload={"uid": "9", "error": "cannot get document summary"},
        )
        with pytest.raises(NormalizationError, match="cannot get document summary"):
            normalize_record(raw, now)

    def test_missing_uid_raises(self, now):
        raw = RawRecord(source="pubmed", query_label="q", payload={"title": "x"})
        with pytest.raises(NormalizationError, match="no uid"):
            normalize_record(raw, now)


class TestNormalizeScholar:
    def test_derives_stable_id(self, now):
        raw = RawRecord(
            source="scholar",
            query_label="scholar_clinical",
            payload={
                "title": "Deep learning for chest radiograph triage",
                "authors": "J Smith, A Lee",
                "journal": "Radiology",
                "link": "https://example.org/chest",
                "citations": "12",
            },
        )
        article = normalize_record(raw, now)

        assert article.id == derive_article_id(
            "Deep learning for chest radiograph triage", "Radiology"
        )
        assert article.id.startswith("derived:")
        assert not article.has_upstream_id
        assert article.authors == ["J Smith", "A Lee"]
        assert article.citations == 12
        assert article.date_source == "ingested"
        assert article.provenance == ["scholar:scholar_clinical"]

    def test_derived_id_ignores_case_and_spacing(self):
        assert derive_article_id("Deep  Learning.", "Radiology") == derive_article_id(
            "deep learning", "radiology"
        )

    def test_derived_id_differs_by_journal(self):
        assert derive_article_id("Same title", "Radiology") != derive_article_id(
            "Same title", "European Radiology"
        )

    def test_untitled_records_get_distinct_ids(self, now):
        records = [
            RawRecord(
                source="scholar",
                query_label="scholar_clinical",
                payload={"title": "", "journal": "Radiology", "abstract": abstract},
            )
            for abstract in ("Chest CT triage.", "Knee MRI grading.")
        ]

        first, second = normalize_records(records, now)

        assert first.title == second.title == PLACEHOLDER_TITLE
        assert first.id != second.id

    def test_untitled_id_prefers_link(self, now):
        raw = RawRecord(
            source="scholar",
            query_label="scholar_clinical",
            payload={"journal": "Radiology", "link": "https://example.org/a"},
        )

        article = normalize_record(raw, now)

        assert article.id == derive_article_id(
            PLACEHOLDER_TITLE, "Radiology", "https://example.org/a"
        )


class TestRejections:
    def test_unknown_source(self, now):
        raw = RawRecord(source="crossref", query_label="q", payload={})
        with pytest.raises(NormalizationError, match="Unknown source"):
            normalize_record(raw, now)

    def test_non_object_payload(self, now):
        raw = RawRecord(source="pubmed", query_label="q", payload=["1"])
        with pytest.raises(NormalizationError, match="not an object"):
            normalize_record(raw, now)

    def test_batch_skips_bad_records(self, pubmed_record, now, caplog):
        bad = RawRecord(source="pubmed", query_label="q", payload="oops")

        articles = normalize_records([bad, pubmed_record], now)

        assert [a.id for a in articles] == ["pubmed:38000001"]
        assert "Skipping record" in caplog.text

    def test_non_list_articleids_are_ignored(self, pubmed_payload, now):
        raw = RawRecord(
            source="pubmed",
            query_label="mesh_ai",
            payload={**pubmed_payload, "articleids": 5},
        )

        article = normalize_record(raw, now)

        assert article.id == "pubmed:38000001"
        assert article.doi is None

    def test_batch_survives_unexpected_error(self, pubmed_record, now, caplog):
        broken = RawRecord(source="pubmed", query_label="q", payload={"uid": "2"})
        real = normalizer.normalize_record

        def flaky(raw, ingested_at):
            if raw is broken:
                raise TypeError("'int' object is not iterable")
            return real(raw, ingested_at)

        with patch.object(normalizer, "normalize_record", side_effect=flaky):
            articles = normalize_records([pubmed_record, broken], now)

        assert [a.id for a in articles] == ["pubmed:38000001"]
        assert "Normalization failed on pubmed record from q" in caplog.text
