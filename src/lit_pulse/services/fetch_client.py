"""
Multi-query fetch orchestration.

Runs every query against its source client concurrently and joins the
results in query order. Query failures are collected, never raised, so one
dead upstream cannot sink the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from lit_pulse.config import Settings
from lit_pulse.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    FetchError,
    QueryResult,
)
from lit_pulse.data_sources.pubmed import PubMedClient
from lit_pulse.data_sources.scholar import ScholarClient
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord

logger = logging.getLogger(__name__)


@dataclass
class FetchReport:
    """Joined outcome of one multi-query fetch."""

    results: list[QueryResult] = field(default_factory=list)

    @property
    def records(self) -> list[RawRecord]:
        return [record for result in self.results for record in result.records]

    @property
    def errors(self) -> list[FetchError]:
        return [error for result in self.results for error in result.errors]

    @property
    def failed_queries(self) -> list[str]:
        return [r.query.label for r in self.results if not r.succeeded]

    @property
    def all_failed(self) -> bool:
        """True when no query succeeded and nothing at all was retrieved."""
        return (
            not any(r.succeeded for r in self.results) and not self.records
        )


class FetchClient:
    """Dispatches queries to per-source clients."""

    def __init__(self, clients: dict[str, BaseClient]):
        self.clients = clients

    @classmethod
    def from_settings(cls, settings: Settings) -> "FetchClient":
        config = ClientConfig.from_settings(settings)
        clients: dict[str, BaseClient] = {
            "pubmed": PubMedClient(
                config,
                batch_size=settings.detail_batch_size,
                fetch_abstracts=settings.fetch_abstracts,
                api_key=settings.ncbi_api_key,
                tool=settings.ncbi_tool,
                email=settings.ncbi_email,
            )
        }
        if settings.enable_scholar:
            clients["scholar"] = ScholarClient(config)
        return cls(clients)

    async def fetch(
        self, queries: list[QueryDescriptor], window: DateWindow
    ) -> FetchReport:
        """Fetch every query concurrently; the report keeps query order."""
        results = await asyncio.gather(
            *(self._fetch_one(query, window) for query in queries)
        )
        report = FetchReport(results=list(results))

        for result in report.results:
            if result.succeeded:
                logger.info(
                    "Query %s ok: %d records in %.1fs",
                    result.query.label,
                    len(result.records),
                    result.elapsed_seconds,
                )
            else:
                for error in result.errors:
                    logger.warning("Query %s failed: %s", result.query.label, error)
        return report

    async def _fetch_one(
        self, query: QueryDescriptor, window: DateWindow
    ) -> QueryResult:
        client = self.clients.get(query.source)
        if client is None:
            error = FetchError(
                query.source, "No client configured for source", query=query.label
            )
            return QueryResult(query=query, errors=[error])
        try:
            return await client.fetch_query(query, window)
        except Exception as e:
            logger.exception("Query %s raised unexpectedly", query.label)
            error = FetchError(
                query.source, f"Unexpected error: {e!r}", query=query.label
            )
            return QueryResult(query=query, errors=[error])

    async def close(self) -> None:
        for client in self.clients.values():
            await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()
