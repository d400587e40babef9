"""
Tests for external search providers.

HTTP traffic is served by httpx.MockTransport handlers, so these tests check
request construction and response parsing without touching the network.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from genmatch.errors import ProviderAuthError, ProviderError, ProviderTimeoutError
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import Recommendation, SearchStrategy
from genmatch.models.subject import Subject
from genmatch.services.confidence_scorer import ConfidenceScorer
from genmatch.sources.base import RequestBudget, SearchLimits, TokenCache, deduplicate, parse_year_range
from genmatch.sources.chronicling_america import ChroniclingAmericaProvider
from genmatch.sources.familysearch import FamilySearchProvider
from genmatch.sources.placeholders import FindAGraveProvider
from genmatch.sources.wikitree import WikiTreeProvider

FAST_LIMITS = SearchLimits(
    max_name_variations=1,
    max_location_variations=1,
    max_time_ranges=1,
    max_requests=5,
    request_delay_ms=0,
)

FS_PERSON = {
    "id": "LZX1-ABC",
    "names": [
        {
            "nameForms": [
                {
                    "parts": [
                        {"type": "http://gedcomx.org/Given", "value": "William"},
                        {"type": "http://gedcomx.org/Surname", "value": "Smith"},
                    ]
                }
            ]
        }
    ],
    "facts": [
        {
            "type": "http://gedcomx.org/Birth",
            "date": {"original": "15 March 1920"},
            "place": {"original": "Boston, Massachusetts"},
        },
        {
            "type": "http://gedcomx.org/Death",
            "date": {"original": "1985"},
            "place": {"original": "Quincy"},
        },
        {"type": "http://gedcomx.org/Occupation", "value": "Machinist"},
    ],
}

FS_SEARCH_BODY = {
    "entries": [
        {"content": {"gedcomx": {"persons": [FS_PERSON]}}},
        {"content": {"gedcomx": {"persons": []}}},
    ]
}


@pytest.fixture
def strategy():
    return SearchStrategy(
        name_variations=["William Smith", "Bill Smith"],
        location_variations=["Boston, Massachusetts"],
        time_range_queries=["1918-1922"],
    )


def _token_response():
    return httpx.Response(200, json={"access_token": "tok-123", "expires_in": 3600})


# =============================================================================
# Shared plumbing
# =============================================================================


class TestPlumbing:
    """Test budgets, token caching and helpers."""

    def test_request_budget(self):
        budget = RequestBudget(2)
        assert budget.take() and budget.take()
        assert not budget.take()
        assert budget.exhausted
        assert budget.used == 2

    def test_token_cache(self):
        tokens = TokenCache()
        assert tokens.get() is None

        tokens.store("abc", 3600)
        assert tokens.get() == "abc"

        tokens.invalidate()
        assert tokens.get() is None

    def test_token_inside_expiry_margin_is_stale(self):
        tokens = TokenCache()
        tokens.store("abc", 30)
        assert tokens.get() is None

    def test_parse_year_range(self):
        assert parse_year_range("1915-1925") == (1915, 1925)
        assert parse_year_range(" 1915 - 1925 ") == (1915, 1925)
        assert parse_year_range("1910s") is None
        assert parse_year_range(None) is None

    def test_deduplicate_first_wins(self, matching_candidate):
        duplicate = CandidateRecord(
            id="other",
            source="WikiTree",
            name=matching_candidate.name,
            birth=matching_candidate.birth,
            location=matching_candidate.location,
        )
        unique = deduplicate([matching_candidate, duplicate])
        assert unique == [matching_candidate]


# =============================================================================
# FamilySearch
# =============================================================================


class TestFamilySearch:
    """Test FamilySearch authentication, search and parsing."""

    def test_build_search_params_from_window(self, william_smith, strategy):
        params = FamilySearchProvider.build_search_params(
            "William Smith", william_smith, strategy, "Boston", "1915-1925"
        )

        assert params["givenName"] == "William"
        assert params["familyName"] == "Smith"
        assert params["birthYear"] == 1920
        assert params["birthYearRange"] == "5"
        assert params["birthPlace"] == "Boston"
        assert params["fatherGivenName"] == "Thomas"
        assert params["motherGivenName"] == "Mary"

    def test_build_search_params_without_window(self, william_smith):
        params = FamilySearchProvider.build_search_params("Smith", william_smith, SearchStrategy())

        assert "givenName" not in params
        assert params["birthYear"] == 1920
        assert params["birthYearRange"] == "10"
        assert params["birthPlace"] == "Boston, Massachusetts, USA"

    def test_parse_search_results(self):
        provider = FamilySearchProvider(limits=FAST_LIMITS)
        records = provider.parse_search_results(FS_SEARCH_BODY["entries"], "William Smith")

        assert len(records) == 1
        record = records[0]
        assert record.id == "LZX1-ABC"
        assert record.source == "FamilySearch"
        assert record.name == "William Smith"
        assert record.birth == "15 March 1920"
        assert record.death == "1985"
        assert record.location == "Boston, Massachusetts"
        assert record.url.endswith("/LZX1-ABC")
        assert record.additional_info == "Death: 1985 Quincy; Occupation: Machinist"
        assert record.confidence == pytest.approx(1.0)
        assert record.search_query == "William Smith"

    def test_initial_confidence_for_sparse_person(self):
        assert FamilySearchProvider.initial_confidence({"facts": []}) == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_search_authenticates_and_parses(self, william_smith, strategy):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                assert parse_qs(request.content.decode())["grant_type"] == ["client_credentials"]
                return _token_response()
            seen.append(request)
            assert request.headers["Authorization"] == "Bearer tok-123"
            return httpx.Response(200, json=FS_SEARCH_BODY)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider("id", "secret", client=client, limits=FAST_LIMITS)
            records = await provider.search(strategy, william_smith)

        assert [r.id for r in records] == ["LZX1-ABC"]
        assert len(seen) == 1
        assert seen[0].url.params["birthYear"] == "1920"
        assert seen[0].url.params["birthYearRange"] == "2"

    @pytest.mark.asyncio
    async def test_request_cap_is_respected(self, william_smith, strategy):
        searches = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                return _token_response()
            searches.append(request)
            return httpx.Response(204)

        limits = SearchLimits(max_name_variations=5, max_requests=1, request_delay_ms=0)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=limits)
            records = await provider.search(strategy, william_smith)

        assert records == []
        assert len(searches) == 1

    @pytest.mark.asyncio
    async def test_failed_authentication(self, william_smith, strategy):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_client"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=FAST_LIMITS)
            assert await provider.authenticate() is False
            with pytest.raises(ProviderAuthError):
                await provider.search(strategy, william_smith)

    @pytest.mark.asyncio
    async def test_rejected_token_is_invalidated(self, william_smith, strategy):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                return _token_response()
            return httpx.Response(401)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=FAST_LIMITS)
            with pytest.raises(ProviderAuthError):
                await provider.search(strategy, william_smith)

        assert provider.tokens.get() is None

    @pytest.mark.asyncio
    async def test_server_error_raises_provider_error(self, william_smith, strategy):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                return _token_response()
            return httpx.Response(503)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=FAST_LIMITS)
            with pytest.raises(ProviderError):
                await provider.search(strategy, william_smith)

    @pytest.mark.asyncio
    async def test_network_timeout(self, william_smith, strategy):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                return _token_response()
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=FAST_LIMITS)
            with pytest.raises(ProviderTimeoutError):
                await provider.search(strategy, william_smith)

    @pytest.mark.asyncio
    async def test_details_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/platform/oauth2/token":
                return _token_response()
            return httpx.Response(404)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = FamilySearchProvider(client=client, limits=FAST_LIMITS)
            assert await provider.get_details("NOPE-123") is None


# =============================================================================
# WikiTree
# =============================================================================


class TestWikiTree:
    """Test WikiTree search requests and result shapes."""

    def test_search_year_from_window(self, william_smith):
        strategy = SearchStrategy(time_range_queries=["1910-1930"])
        assert WikiTreeProvider.search_year(strategy, william_smith) == 1920

    def test_search_year_falls_back_to_subject(self, william_smith):
        assert WikiTreeProvider.search_year(SearchStrategy(), william_smith) == 1920

    def test_parse_results_dict_shape(self, william_smith):
        data = {"results": [{"Name": "Smith-1", "RealName": "Will Smith"}, {"LongName": "No Id"}]}
        records = WikiTreeProvider().parse_results(data, william_smith)

        assert [r.id for r in records] == ["Smith-1"]
        assert records[0].name == "Will Smith"
        assert records[0].birth == ""
        assert records[0].url == "https://www.wikitree.com/wiki/Smith-1"
        assert records[0].confidence == pytest.approx(0.6)

    def test_parse_results_unexpected_shape(self, william_smith):
        assert WikiTreeProvider().parse_results("nothing", william_smith) == []

    def test_profile_without_dates_keeps_them_missing(self, william_smith):
        records = WikiTreeProvider().parse_results([{"Name": "Smith-999"}], william_smith)

        assert records[0].name == "Smith-999"
        assert records[0].birth == ""
        assert records[0].location == ""

        scores = ConfidenceScorer().calculate_confidence(william_smith, records[0]).scores
        assert scores["date_match"] == pytest.approx(0.3)
        assert scores["location_match"] == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_search_posts_form_and_parses_matches(self, william_smith, strategy):
        forms = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append(parse_qs(request.content.decode()))
            body = [
                {
                    "matches": [
                        {
                            "Name": "Smith-1234",
                            "LongName": "William Thomas Smith",
                            "BirthDate": "1920-03-15",
                            "DeathDate": "1985-06-02",
                            "BirthLocation": "Boston, Massachusetts",
                        }
                    ]
                }
            ]
            return httpx.Response(200, content=json.dumps(body))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = WikiTreeProvider(client=client, limits=FAST_LIMITS)
            records = await provider.search(strategy, william_smith)

        assert forms[0]["action"] == ["search"]
        assert forms[0]["find"] == ["William Smith"]
        assert forms[0]["birth"] == ["1920"]
        assert len(records) == 1
        assert records[0].id == "Smith-1234"
        assert records[0].death == "1985-06-02"
        assert records[0].source == "WikiTree"

    @pytest.mark.asyncio
    async def test_malformed_json(self, william_smith, strategy):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>maintenance</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = WikiTreeProvider(client=client, limits=FAST_LIMITS)
            with pytest.raises(ProviderError, match="malformed JSON"):
                await provider.search(strategy, william_smith)


# =============================================================================
# Chronicling America and placeholder sources
# =============================================================================


class TestChroniclingAmerica:
    """Test newspaper page search."""

    def test_year_window_from_strategy(self, william_smith, strategy):
        assert ChroniclingAmericaProvider.year_window(strategy, william_smith) == (1918, 1922)

    def test_year_window_from_birth_is_clamped(self, william_smith):
        assert ChroniclingAmericaProvider.year_window(SearchStrategy(), william_smith) == (1915, 1960)

        late = Subject(id="I2", given_names="Ann", family_names="Lee", birth_date="1950")
        assert ChroniclingAmericaProvider.year_window(SearchStrategy(), late) == (1945, 1963)

    def test_year_window_default(self):
        nobody = Subject(id="I3", given_names="Ann", family_names="Lee")
        assert ChroniclingAmericaProvider.year_window(SearchStrategy(), nobody) == (1800, 1963)

    @pytest.mark.asyncio
    async def test_search_parses_items(self, william_smith, strategy):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "id": "/lccn/sn1/1921-01-04/ed-1/seq-3/",
                            "title": "The Boston Globe",
                            "date": "19210104",
                            "place_of_publication": ["Boston, Mass."],
                        },
                        {
                            "title": "Evening Star",
                            "date": "19220310",
                            "place_of_publication": "Washington, D.C.",
                        },
                    ]
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = ChroniclingAmericaProvider(client=client, limits=FAST_LIMITS)
            records = await provider.search(strategy, william_smith)

        assert requests[0].url.path == "/search/pages/results/"
        assert requests[0].url.params["proxtext"] == "William Smith"
        assert requests[0].url.params["date1"] == "1918"
        assert len(records) == 2
        assert records[0].location == "Boston, Mass."
        assert records[0].additional_info == "The Boston Globe (19210104)"
        assert records[1].id == "Evening Star_19220310_1"
        assert all(r.name == "William Smith" and r.confidence == 0.5 for r in records)
        assert all(r.birth == "" for r in records)
        assert records[1].location == "Washington, D.C."

    def test_page_without_place_is_scored_as_missing_data(self, william_smith):
        page = {"title": "The Sun", "date": "19200401", "id": "/lccn/sn2/1920-04-01/ed-1/seq-1/"}
        record = ChroniclingAmericaProvider().parse_items([page], william_smith)[0]

        assert record.birth == ""
        assert record.location == ""

        result = ConfidenceScorer().calculate_confidence(william_smith, record)
        assert result.scores["date_match"] == pytest.approx(0.3)
        assert result.scores["location_match"] == pytest.approx(0.4)
        assert result.recommendation != Recommendation.ACCEPT


class TestPlaceholderSources:
    @pytest.mark.asyncio
    async def test_find_a_grave_returns_nothing(self, william_smith, strategy):
        provider = FindAGraveProvider()
        assert await provider.search(strategy, william_smith) == []
        await provider.close()
