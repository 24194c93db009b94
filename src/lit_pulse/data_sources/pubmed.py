"""
PubMed E-utilities client.

Four methods:
  1. search         : esearch: PMIDs matching a query inside a date window
  2. fetch_details  : esummary: detail records for PMIDs, in batches
  3. fetch_abstracts: efetch: abstract text, MeSH terms and keywords
  4. fetch_query    : search + details + abstracts for one query
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from typing import Any

from lit_pulse.constants import (
    PUBMED_DETAIL_BATCH_SIZE,
    PUBMED_FETCH_URL,
    PUBMED_SEARCH_PAGE_SIZE,
    PUBMED_SEARCH_URL,
    PUBMED_SUMMARY_URL,
)
from lit_pulse.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    FetchError,
    QueryResult,
    RequestContext,
)
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord

logger = logging.getLogger("lit_pulse.data_sources.pubmed")


class PubMedClient(BaseClient):
    """Client for querying PubMed/NCBI APIs."""

    SEARCH_URL = PUBMED_SEARCH_URL
    SUMMARY_URL = PUBMED_SUMMARY_URL
    FETCH_URL = PUBMED_FETCH_URL

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        batch_size: int = PUBMED_DETAIL_BATCH_SIZE,
        fetch_abstracts: bool = True,
        api_key: str = "",
        tool: str = "lit-pulse",
        email: str = "",
        max_attempts: int | None = None,
    ) -> None:
        super().__init__(config, max_attempts=max_attempts)
        self.batch_size = batch_size
        self.include_abstracts = fetch_abstracts
        self.api_key = api_key
        self.tool = tool
        self.email = email

    @property
    def _source_name(self) -> str:
        return "pubmed"

    def _common_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"db": "pubmed", "tool": self.tool}
        if self.email:
            params["email"] = self.email
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    # ------------------------------------------------------------------
    # Public: search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        window: DateWindow,
        max_results: int = PUBMED_SEARCH_PAGE_SIZE,
        *,
        label: str | None = None,
    ) -> list[str]:
        """Search PubMed and return PMIDs, newest first, paging with retstart."""
        ctx = RequestContext(source=self._source_name, method="search", query=label)
        pmids: list[str] = []

        while len(pmids) < max_results:
            params = {
                **self._common_params(),
                "term": query,
                "retmode": "json",
                "sort": "date",
                "datetype": "pdat",
                "mindate": window.mindate,
                "maxdate": window.maxdate,
                "retstart": len(pmids),
                "retmax": min(PUBMED_SEARCH_PAGE_SIZE, max_results - len(pmids)),
            }
            data = await self._rest_get(self.SEARCH_URL, params, context=ctx)
            result = data.get("esearchresult") if isinstance(data, dict) else None
            if result is None:
                raise FetchError(
                    self._source_name, "Malformed esearch response", query=label
                )

            page: list[str] = result.get("idlist", [])
            pmids.extend(page)

            try:
                total = int(result.get("count", "0") or 0)
            except (TypeError, ValueError) as e:
                raise FetchError(
                    self._source_name, f"Malformed esearch count: {e}", query=label
                ) from e
            if not page or len(pmids) >= total:
                break

        return pmids[:max_results]

    # ------------------------------------------------------------------
    # Public: fetch_details
    # ------------------------------------------------------------------

    async def fetch_details(
        self, pmids: list[str], *, label: str = "adhoc"
    ) -> list[RawRecord]:
        """Resolve PMIDs to esummary detail records, ``batch_size`` at a time."""
        records: list[RawRecord] = []
        for batch in self._batches(pmids):
            records.extend(await self._fetch_summary_batch(batch, label))
        return records

    async def _fetch_summary_batch(
        self, batch: list[str], label: str
    ) -> list[RawRecord]:
        ctx = RequestContext(
            source=self._source_name, method="fetch_details", query=label
        )
        params = {
            **self._common_params(),
            "id": ",".join(batch),
            "retmode": "json",
        }
        data = await self._rest_get(self.SUMMARY_URL, params, context=ctx)
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise FetchError(
                self._source_name, "Malformed esummary response", query=label
            )

        uids = result.get("uids") or [k for k in result if k != "uids"]
        return [
            RawRecord(source=self._source_name, query_label=label, payload=result[uid])
            for uid in uids
            if uid in result
        ]

    # ------------------------------------------------------------------
    # Public: fetch_abstracts
    # ------------------------------------------------------------------

    async def fetch_abstracts(
        self, pmids: list[str], *, label: str | None = None
    ) -> dict[str, dict[str, Any]]:
        """Fetch abstract text, MeSH terms and keywords keyed by PMID."""
        ctx = RequestContext(
            source=self._source_name, method="fetch_abstracts", query=label
        )
        parsed: dict[str, dict[str, Any]] = {}
        for batch in self._batches(pmids):
            params = {
                **self._common_params(),
                "id": ",".join(batch),
                "retmode": "xml",
                "rettype": "abstract",
            }
            xml_text = await self._rest_get_text(self.FETCH_URL, params, context=ctx)
            parsed.update(self._parse_pubmed_xml(xml_text))
        return parsed

    def _parse_pubmed_xml(self, xml_text: str) -> dict[str, dict[str, Any]]:
        """Parse efetch XML into {pmid: {"abstract", "mesh", "keywords"}}."""
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise FetchError(self._source_name, f"Failed to parse XML: {e}")

        parsed: dict[str, dict[str, Any]] = {}
        for article_elem in root.findall(".//PubmedArticle"):
            pmid = self._xml_text(article_elem, ".//PMID")
            if not pmid:
                continue

            # Abstract - may have multiple labelled sections
            abstract_parts = []
            for abs_elem in article_elem.findall(".//AbstractText"):
                label = abs_elem.get("Label", "")
                text = "".join(abs_elem.itertext()).strip()
                if label and text:
                    abstract_parts.append(f"{label}: {text}")
                elif text:
                    abstract_parts.append(text)

            mesh_terms = [
                self._xml_text(mesh, "DescriptorName")
                for mesh in article_elem.findall(".//MeshHeading")
                if self._xml_text(mesh, "DescriptorName")
            ]
            keywords = [kw.text for kw in article_elem.findall(".//Keyword") if kw.text]

            parsed[pmid] = {
                "abstract": " ".join(abstract_parts) if abstract_parts else None,
                "mesh": mesh_terms,
                "keywords": keywords,
            }

        return parsed

    @staticmethod
    def _xml_text(elem: ET.Element, path: str) -> str | None:
        """Safely extract text from an XML element."""
        found = elem.find(path)
        return found.text if found is not None and found.text else None

    # ------------------------------------------------------------------
    # Public: fetch_query
    # ------------------------------------------------------------------

    async def fetch_query(
        self, query: QueryDescriptor, window: DateWindow
    ) -> QueryResult:
        """Search, then resolve details batch by batch.

        A failed batch is recorded and skipped; the other batches still
        contribute their records.
        """
        start = time.monotonic()
        try:
            pmids = await self.search(
                query.term, window, query.max_results, label=query.label
            )
        except FetchError as e:
            return QueryResult(
                query=query, errors=[e], elapsed_seconds=time.monotonic() - start
            )

        logger.info("Query %s matched %d PMIDs", query.label, len(pmids))

        records: list[RawRecord] = []
        errors: list[FetchError] = []
        for batch in self._batches(pmids):
            try:
                batch_records = await self._fetch_summary_batch(batch, query.label)
            except FetchError as e:
                errors.append(e)
                continue

            if self.include_abstracts and batch_records:
                try:
                    abstracts = await self.fetch_abstracts(batch, label=query.label)
                except FetchError as e:
                    logger.warning(
                        "Abstracts unavailable for %d PMIDs of %s: %s",
                        len(batch),
                        query.label,
                        e,
                    )
                    errors.append(e)
                else:
                    self._merge_abstracts(batch_records, abstracts)

            records.extend(batch_records)

        return QueryResult(
            query=query,
            records=records,
            errors=errors,
            elapsed_seconds=time.monotonic() - start,
        )

    @staticmethod
    def _merge_abstracts(
        records: list[RawRecord], abstracts: dict[str, dict[str, Any]]
    ) -> None:
        for record in records:
            if not isinstance(record.payload, dict):
                continue
            extra = abstracts.get(str(record.payload.get("uid", "")))
            if extra:
                record.payload.update(extra)

    def _batches(self, pmids: list[str]) -> list[list[str]]:
        return [
            pmids[i : i + self.batch_size] for i in range(0, len(pmids), self.batch_size)
        ]
