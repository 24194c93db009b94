"""
RawRecord -> Article normalization.

This is the only place that knows upstream response shapes. Every field is
validated and defaulted exactly once here:

  - missing title     -> PLACEHOLDER_TITLE
  - missing abstract  -> ""
  - missing authors   -> []
  - publication date  -> pubdate, else sortpubdate, else ingestion time
  - id                -> "pubmed:<uid>", else a hash of title + journal
                         (+ link or abstract when the title is missing)
"""

import hashlib
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable

from dateutil import parser as date_parser

from lit_pulse.constants import PLACEHOLDER_TITLE, PUBMED_ARTICLE_URL
from lit_pulse.helpers.text_helpers import (
    collapse_whitespace,
    normalize_title,
    unique_in_order,
)
from lit_pulse.models.model_article import DERIVED_ID_PREFIX, Article
from lit_pulse.models.model_raw_record import RawRecord

logger = logging.getLogger(__name__)

# Missing date components default to the first month / day.
_DATE_DEFAULT = datetime(2000, 1, 1)
_DATE_RANGE_RE = re.compile(r"^(.*\s\w+)-\w+$")
_LEADING_YEAR_RE = re.compile(r"^\s*((?:19|20)\d{2})\b")


class NormalizationError(Exception):
    """A single RawRecord that cannot be turned into an Article."""

    def __init__(self, source: str, message: str, record_id: str | None = None):
        self.source = source
        self.record_id = record_id
        label = f"{source}:{record_id}" if record_id else source
        super().__init__(f"[{label}] {message}")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return collapse_whitespace(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(value: Any) -> datetime | None:
    """Parse an upstream date string; anything unparseable is None.

    Handles full dates ("2024/03/15 00:00", "2024-03-15"), partial dates
    ("2024 Mar", "2024"), and ranges ("2023 Dec 12-26", "2024 Jan-Feb"),
    which resolve to their first day.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    date_range = _DATE_RANGE_RE.match(text)
    if date_range:
        text = date_range.group(1)

    try:
        return _as_utc(date_parser.parse(text, default=_DATE_DEFAULT))
    except (ValueError, OverflowError):
        pass

    year = _LEADING_YEAR_RE.match(text)
    if year:
        return datetime(int(year.group(1)), 1, 1, tzinfo=timezone.utc)
    return None


def derive_article_id(title: str, journal: str, disambiguator: str = "") -> str:
    """Deterministic id for records without an upstream identifier.

    Stable across runs so the cache and the deduplicator see the same key
    for the same publication. ``disambiguator`` separates untitled records
    that share a journal.
    """
    key = f"{normalize_title(title)}|{collapse_whitespace(journal).lower()}"
    if disambiguator:
        key = f"{key}|{collapse_whitespace(disambiguator)}"
    return DERIVED_ID_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def _author_names(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    names = []
    for author in value:
        if isinstance(author, dict):
            author = author.get("name")
        name = _text(author)
        if name:
            names.append(name)
    return names


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (_text(v) for v in value) if s]


def _int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


# ---------------------------------------------------------------------------
# Source-specific extraction
# ---------------------------------------------------------------------------


def _extract_pubmed(payload: dict[str, Any]) -> dict[str, Any]:
    raw_uid = payload.get("uid")
    uid = _text(str(raw_uid)) if raw_uid is not None else ""
    if "error" in payload:
        raise NormalizationError("pubmed", str(payload["error"]), record_id=uid or None)
    if not uid:
        raise NormalizationError("pubmed", "Record has no uid")

    doi = None
    article_ids = payload.get("articleids")
    for article_id in article_ids if isinstance(article_ids, list) else []:
        if isinstance(article_id, dict) and article_id.get("idtype") == "doi":
            doi = _text(article_id.get("value")) or None
            break

    return {
        "upstream_id": f"pubmed:{uid}",
        "title": payload.get("title"),
        "abstract": payload.get("abstract"),
        "authors": _author_names(payload.get("authors")),
        "journal": payload.get("fulljournalname") or payload.get("source"),
        "pubdate": payload.get("pubdate"),
        "sortpubdate": payload.get("sortpubdate"),
        "source_tags": _string_list(payload.get("pubtype"))
        + _string_list(payload.get("mesh"))
        + _string_list(payload.get("keywords")),
        "link": f"{PUBMED_ARTICLE_URL}/{uid}/",
        "doi": doi,
        "citations": 0,
    }


def _extract_scholar(payload: dict[str, Any]) -> dict[str, Any]:
    authors = payload.get("authors")
    if isinstance(authors, str):
        authors = authors.split(",")
    return {
        "upstream_id": None,
        "title": payload.get("title"),
        "abstract": payload.get("abstract"),
        "authors": _string_list(authors),
        "journal": payload.get("journal"),
        "pubdate": payload.get("pubdate"),
        "sortpubdate": None,
        "source_tags": [],
        "link": _text(payload.get("link")) or None,
        "doi": None,
        "citations": _int(payload.get("citations")),
    }


def _derived_id(title: str, journal: str, fields: dict[str, Any]) -> str:
    if title != PLACEHOLDER_TITLE:
        return derive_article_id(title, journal)
    return derive_article_id(
        title, journal, fields["link"] or _text(fields["abstract"])
    )


_EXTRACTORS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "pubmed": _extract_pubmed,
    "scholar": _extract_scholar,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_record(raw: RawRecord, ingested_at: datetime) -> Article:
    """Convert one RawRecord into an Article.

    Raises NormalizationError for unusable records; never for missing or
    malformed optional fields, which are defaulted instead.
    """
    extractor = _EXTRACTORS.get(raw.source)
    if extractor is None:
        raise NormalizationError(raw.source, "Unknown source")
    if not isinstance(raw.payload, dict):
        raise NormalizationError(raw.source, "Payload is not an object")

    fields = extractor(raw.payload)
    ingested_at = _as_utc(ingested_at)

    title = _text(fields["title"]) or PLACEHOLDER_TITLE
    journal = _text(fields["journal"])

    publication_date = ingested_at
    date_source = "ingested"
    for name in ("pubdate", "sortpubdate"):
        parsed = parse_date(fields[name])
        if parsed is not None:
            publication_date, date_source = parsed, name
            break

    return Article(
        id=fields["upstream_id"] or _derived_id(title, journal, fields),
        title=title,
        abstract=_text(fields["abstract"]),
        authors=fields["authors"],
        journal=journal,
        publication_date=publication_date,
        date_source=date_source,
        source_tags=unique_in_order(fields["source_tags"]),
        provenance=[f"{raw.source}:{raw.query_label}"],
        indexed_at=ingested_at,
        link=fields["link"],
        doi=fields["doi"],
        citations=fields["citations"],
    )


def normalize_records(
    records: list[RawRecord], ingested_at: datetime
) -> list[Article]:
    """Normalize a batch, skipping (and logging) unusable records.

    A NormalizationError is an expected rejection. Anything else is a defect
    in one record's handling and is logged with its traceback; either way
    the rest of the batch is kept.
    """
    articles = []
    for raw in records:
        try:
            articles.append(normalize_record(raw, ingested_at))
        except NormalizationError as e:
            logger.warning("Skipping record: %s", e)
        except Exception:
            logger.exception(
                "Normalization failed on %s record from %s; skipping",
                raw.source,
                raw.query_label,
            )
    return articles
