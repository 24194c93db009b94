"""
Google Scholar results-page client.

Scholar has no API; result pages are fetched as HTML and scraped. Each
result becomes one RawRecord without an upstream id, so the normalizer
derives one from title and journal.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

from bs4 import BeautifulSoup, Tag

from lit_pulse.constants import SCHOLAR_SEARCH_URL, SCHOLAR_USER_AGENT
from lit_pulse.data_sources.base_client import (
    BaseClient,
    FetchError,
    QueryResult,
    RequestContext,
)
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord

logger = logging.getLogger("lit_pulse.data_sources.scholar")

_PAGE_SIZE = 10
_TITLE_TAG_RE = re.compile(r"^(\[[A-Z]+\]\s*)+")
_YEAR_RE = re.compile(r"^(19|20)\d{2}$")
_BLOCKED_MARKERS = ("gs_captcha", "unusual traffic")


class ScholarClient(BaseClient):
    """Client for Google Scholar result pages."""

    SEARCH_URL = SCHOLAR_SEARCH_URL

    @property
    def _source_name(self) -> str:
        return "scholar"

    async def search(
        self,
        query: str,
        window: DateWindow,
        max_results: int = _PAGE_SIZE,
        *,
        label: str = "adhoc",
    ) -> list[RawRecord]:
        """Return scraped result records, ten per page, up to ``max_results``."""
        ctx = RequestContext(source=self._source_name, method="search", query=label)
        headers = {"User-Agent": SCHOLAR_USER_AGENT}
        records: list[RawRecord] = []

        while len(records) < max_results:
            params = {
                "q": query,
                "hl": "en",
                "as_ylo": window.start.year,
                "as_yhi": window.end.year,
                "start": len(records),
            }
            html = await self._rest_get_text(
                self.SEARCH_URL, params, headers=headers, context=ctx
            )
            items = self._parse_results(html, label=label)
            if not items:
                break
            records.extend(
                RawRecord(source=self._source_name, query_label=label, payload=item)
                for item in items
            )
            if len(items) < _PAGE_SIZE:
                break

        return records[:max_results]

    async def fetch_query(
        self, query: QueryDescriptor, window: DateWindow
    ) -> QueryResult:
        start = time.monotonic()
        try:
            records = await self.search(
                query.term, window, query.max_results, label=query.label
            )
        except FetchError as e:
            return QueryResult(
                query=query, errors=[e], elapsed_seconds=time.monotonic() - start
            )
        logger.info("Query %s scraped %d results", query.label, len(records))
        return QueryResult(
            query=query, records=records, elapsed_seconds=time.monotonic() - start
        )

    # ------------------------------------------------------------------
    # HTML parsing
    # ------------------------------------------------------------------

    def _parse_results(
        self, html: str, *, label: str | None = None
    ) -> list[dict[str, Any]]:
        soup = BeautifulSoup(html, "html.parser")
        blocks = soup.select(".gs_r")
        if not blocks and any(marker in html for marker in _BLOCKED_MARKERS):
            raise FetchError(
                self._source_name, "Blocked by unusual-traffic page", query=label
            )

        items = []
        for block in blocks:
            item = self._parse_block(block)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _parse_block(block: Tag) -> dict[str, Any] | None:
        title_elem = block.select_one(".gs_rt")
        if title_elem is None:
            return None

        anchor = title_elem.find("a")
        title_text = (anchor or title_elem).get_text(" ", strip=True)
        title = _TITLE_TAG_RE.sub("", title_text).strip()
        link = anchor.get("href") if anchor else None

        authors: list[str] = []
        journal = ""
        byline = block.select_one(".gs_a")
        if byline is not None:
            parts = [p.strip() for p in byline.get_text(" ", strip=True).split(" - ")]
            authors = [
                a.strip(" …") for a in parts[0].split(",") if a.strip(" …")
            ]
            if len(parts) > 1:
                venue = [v.strip() for v in parts[1].split(",")]
                if venue and _YEAR_RE.match(venue[-1]):
                    venue = venue[:-1]
                journal = ", ".join(v for v in venue if v).strip(" …")

        snippet = block.select_one(".gs_rs")
        abstract = snippet.get_text(" ", strip=True) if snippet else ""

        citations = 0
        for a in block.select(".gs_fl a"):
            text = a.get_text(strip=True)
            if text.startswith("Cited by"):
                digits = re.search(r"\d+", text)
                citations = int(digits.group()) if digits else 0
                break

        return {
            "title": title,
            "authors": authors,
            "journal": journal,
            "abstract": abstract,
            "link": link,
            "citations": citations,
        }
