"""
Tests for the concurrent source aggregator.

Providers are small in-process fakes so that timeouts, failures and ordering
can be controlled exactly.
"""

import asyncio

import pytest

from genmatch.config import Config
from genmatch.errors import ProviderError
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.sources.aggregator import SourceAggregator
from genmatch.sources.base import SearchProvider
from genmatch.sources.chronicling_america import ChroniclingAmericaProvider
from genmatch.sources.familysearch import FamilySearchProvider
from genmatch.sources.placeholders import FindAGraveProvider, NewspaperArchivesProvider
from genmatch.sources.wikitree import WikiTreeProvider


def _record(record_id, source, name="William Smith", birth="1920", location="Boston", confidence=0.5):
    return CandidateRecord(
        id=record_id, source=source, name=name, birth=birth, location=location, confidence=confidence
    )


class FakeProvider(SearchProvider):
    def __init__(self, name, records=None, delay=0.0, error=None):
        super().__init__()
        self.source_name = name
        self.key = name.lower()
        self.records = records or []
        self.delay = delay
        self.error = error
        self.cancelled = False
        self.closed = False

    async def search(self, strategy, subject):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return list(self.records)

    async def get_details(self, record_id):
        return {"id": record_id, "source": self.source_name}

    async def close(self):
        self.closed = True


# =============================================================================
# Merging
# =============================================================================


class TestMerging:
    """Test dedup, ordering and per-provider bookkeeping."""

    @pytest.mark.asyncio
    async def test_duplicates_merged_first_provider_wins(self, william_smith):
        first = FakeProvider("Alpha", [_record("a1", "Alpha", confidence=0.6)])
        second = FakeProvider("Beta", [_record("b1", "Beta", confidence=0.9), _record("b2", "Beta", birth="1921")])

        result = await SourceAggregator([first, second]).search_all_sources(SearchStrategy(), william_smith)

        assert [r.id for r in result.records] == ["a1", "b2"]
        assert result.total_found == 2
        assert result.provider_counts == {"Alpha": 1, "Beta": 2}
        assert result.provider_errors == {}

    @pytest.mark.asyncio
    async def test_sorted_by_confidence(self, william_smith):
        provider = FakeProvider(
            "Alpha",
            [
                _record("low", "Alpha", birth="1901", confidence=0.2),
                _record("high", "Alpha", birth="1902", confidence=0.95),
                _record("mid", "Alpha", birth="1903", confidence=0.5),
            ],
        )

        result = await SourceAggregator([provider]).search_all_sources(SearchStrategy(), william_smith)

        assert [r.id for r in result.records] == ["high", "mid", "low"]

    @pytest.mark.asyncio
    async def test_no_providers(self, william_smith):
        result = await SourceAggregator([]).search_all_sources(SearchStrategy(), william_smith)

        assert result.records == []
        assert result.total_found == 0


# =============================================================================
# Failure isolation
# =============================================================================


class TestFailureIsolation:
    """Test that one provider's failure never affects another's records."""

    @pytest.mark.asyncio
    async def test_failing_provider_isolated(self, william_smith):
        good = FakeProvider("Good", [_record("g1", "Good")])
        bad = FakeProvider("Bad", error=ProviderError("Bad", "HTTP 503"))

        result = await SourceAggregator([bad, good]).search_all_sources(SearchStrategy(), william_smith)

        assert [r.id for r in result.records] == ["g1"]
        assert result.provider_counts["Bad"] == 0
        assert "HTTP 503" in result.provider_errors["Bad"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_isolated(self, william_smith):
        good = FakeProvider("Good", [_record("g1", "Good")])
        broken = FakeProvider("Broken", error=KeyError("entries"))

        result = await SourceAggregator([broken, good]).search_all_sources(SearchStrategy(), william_smith)

        assert result.total_found == 1
        assert result.provider_errors["Broken"].startswith("unexpected error")

    @pytest.mark.asyncio
    async def test_provider_timeout(self, william_smith):
        slow = FakeProvider("Slow", [_record("s1", "Slow")], delay=5)
        fast = FakeProvider("Fast", [_record("f1", "Fast", birth="1930")])

        aggregator = SourceAggregator([slow, fast], provider_timeout=0.05, overall_deadline=2)
        result = await aggregator.search_all_sources(SearchStrategy(), william_smith)

        assert [r.id for r in result.records] == ["f1"]
        assert "timed out" in result.provider_errors["Slow"]

    @pytest.mark.asyncio
    async def test_overall_deadline_cancels_pending(self, william_smith):
        slow = FakeProvider("Slow", [_record("s1", "Slow")], delay=5)
        fast = FakeProvider("Fast", [_record("f1", "Fast", birth="1930")])

        aggregator = SourceAggregator([slow, fast], provider_timeout=10, overall_deadline=0.05)
        result = await aggregator.search_all_sources(SearchStrategy(), william_smith)

        assert [r.id for r in result.records] == ["f1"]
        assert result.provider_errors["Slow"] == "cancelled at overall deadline"
        assert result.provider_counts["Slow"] == 0
        assert slow.cancelled


# =============================================================================
# Configuration and details
# =============================================================================


class TestAggregatorSetup:
    """Test provider construction and record details."""

    def test_from_config_default_sources(self):
        config = Config(_env_file=None)
        aggregator = SourceAggregator.from_config(config)

        types = [type(p) for p in aggregator.providers]
        assert types == [FamilySearchProvider, WikiTreeProvider, ChroniclingAmericaProvider]
        assert aggregator.provider_timeout == 30.0
        assert aggregator.overall_deadline == 60.0

    def test_from_config_toggles(self):
        config = Config(
            _env_file=None,
            source_familysearch=False,
            source_chronicling_america=False,
            enable_mock_sources=True,
            search_request_delay_ms=0,
        )
        aggregator = SourceAggregator.from_config(config)

        types = [type(p) for p in aggregator.providers]
        assert types == [WikiTreeProvider, FindAGraveProvider, NewspaperArchivesProvider]
        assert all(p.limits.request_delay_ms == 0 for p in aggregator.providers)

    @pytest.mark.asyncio
    async def test_get_record_details_by_source_or_key(self):
        aggregator = SourceAggregator([FakeProvider("Alpha")])

        assert await aggregator.get_record_details("X1", "Alpha") == {"id": "X1", "source": "Alpha"}
        assert await aggregator.get_record_details("X1", "alpha") == {"id": "X1", "source": "Alpha"}
        assert await aggregator.get_record_details("X1", "Gamma") is None

    @pytest.mark.asyncio
    async def test_close_closes_providers(self):
        providers = [FakeProvider("Alpha"), FakeProvider("Beta")]
        await SourceAggregator(providers).close()

        assert all(p.closed for p in providers)
