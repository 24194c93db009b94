"""Integration tests for PubMedClient against live E-utilities."""

import os
import unittest
from datetime import date, datetime, timezone

import pytest
from dotenv import load_dotenv

from lit_pulse.data_sources.pubmed import PubMedClient
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.services.normalizer import normalize_records

load_dotenv()

pytestmark = pytest.mark.integration


class TestPubMedClient(unittest.IsolatedAsyncioTestCase):
    """Integration tests for PubMedClient."""

    async def asyncSetUp(self):
        self.client = PubMedClient(api_key=os.getenv("LIT_PULSE_NCBI_API_KEY", ""))

    async def asyncTearDown(self):
        await self.client.close()

    async def test_fetch_details_single(self):
        """PMID 33567185 is the STEP 1 trial (NEJM 2021)."""
        records = await self.client.fetch_details(["33567185"])

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].payload["uid"], "33567185")

        (article,) = normalize_records(records, ingested_at=datetime.now(timezone.utc))
        self.assertEqual(article.id, "pubmed:33567185")
        self.assertIn("Semaglutide", article.title)
        self.assertEqual(article.publication_date.year, 2021)
        self.assertEqual(article.doi, "10.1056/NEJMoa2032183")

    async def test_fetch_abstracts(self):
        abstracts = await self.client.fetch_abstracts(["33567185"])

        self.assertIn("semaglutide", abstracts["33567185"]["abstract"].lower())
        self.assertIn("Body Mass Index", abstracts["33567185"]["mesh"])

    async def test_search_window(self):
        window = DateWindow(start=date(2023, 1, 1), end=date(2023, 1, 31))
        pmids = await self.client.search(
            '"Radiology"[Journal] AND "Deep Learning"[Mesh]', window, 5
        )

        self.assertLessEqual(len(pmids), 5)
        self.assertTrue(all(pmid.isdigit() for pmid in pmids))

    async def test_fetch_query(self):
        query = QueryDescriptor(
            label="live", term='"Radiology"[Journal] AND "Deep Learning"[Mesh]', max_results=3
        )
        window = DateWindow(start=date(2023, 1, 1), end=date(2023, 3, 31))

        result = await self.client.fetch_query(query, window)

        self.assertTrue(result.succeeded, result.errors)
        self.assertTrue(all(r.query_label == "live" for r in result.records))
