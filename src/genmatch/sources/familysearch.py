"""FamilySearch Family Tree search.

Authenticates with the client-credentials OAuth flow, then walks
name x location x time-window combinations against ``/platform/tree/search``,
serially, with a politeness delay and a hard request cap.
"""

from typing import Any

import httpx
from loguru import logger

from genmatch.errors import ProviderAuthError, ProviderError
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject
from genmatch.sources.base import (
    RequestBudget,
    SearchLimits,
    SearchProvider,
    TokenCache,
    deduplicate,
    parse_year_range,
)

AUTH_TIMEOUT_SECONDS = 10.0
DEFAULT_BIRTH_YEAR_RANGE = "10"
PERSON_URL = "https://www.familysearch.org/tree/person/details/{person_id}"
MAX_EXTRA_FACTS = 3


class FamilySearchProvider(SearchProvider):
    """Search provider for the FamilySearch Family Tree API."""

    source_name = "FamilySearch"
    key = "familysearch"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str = "https://api.familysearch.org",
        client: httpx.AsyncClient | None = None,
        limits: SearchLimits | None = None,
        timeout: float = 30.0,
    ):
        super().__init__(client=client, limits=limits, timeout=timeout)
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.tokens = TokenCache()

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(self) -> bool:
        """Fetch an access token unless a cached one is still valid."""
        if self.tokens.get():
            return True

        form = {"grant_type": "client_credentials"}
        if self.client_id:
            form["client_id"] = self.client_id
        if self.client_secret:
            form["client_secret"] = self.client_secret

        client = await self._get_client()
        try:
            response = await client.post(
                f"{self.base_url}/platform/oauth2/token",
                data=form,
                timeout=AUTH_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = self._json(response)
        except (httpx.HTTPError, ProviderError) as e:
            reason = "timeout" if isinstance(e, httpx.TimeoutException) else str(e)
            logger.warning(f"FamilySearch authentication failed: {reason}")
            return False

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            logger.warning("FamilySearch authentication returned no access token")
            return False

        self.tokens.store(token, data.get("expires_in"))
        logger.info("FamilySearch authentication successful")
        return True

    async def _headers(self) -> dict[str, str]:
        if not await self.authenticate():
            raise ProviderAuthError(self.source_name, "authentication failed")
        return {"Authorization": f"Bearer {self.tokens.get()}", "Accept": "application/json"}

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        headers = await self._headers()
        client = await self._get_client()
        budget = RequestBudget(self.limits.max_requests)

        names = strategy.name_variations[: self.limits.max_name_variations] or [subject.full_name]
        locations = strategy.location_variations[: self.limits.max_location_variations]
        if not locations:
            locations = [subject.birth_place] if subject.birth_place else [None]
        windows = strategy.time_range_queries[: self.limits.max_time_ranges] or [None]

        logger.info(f"Searching FamilySearch for {subject.full_name} (up to {budget.limit} requests)")
        results: list[CandidateRecord] = []

        for name in names:
            for location in locations:
                for window in windows:
                    if not budget.take():
                        break
                    params = self.build_search_params(name, subject, strategy, location, window)
                    try:
                        response = await client.get(
                            f"{self.base_url}/platform/tree/search",
                            headers=headers,
                            params=params,
                        )
                        if response.status_code == 401:
                            self.tokens.invalidate()
                            raise ProviderAuthError(self.source_name, "access token rejected")
                        response.raise_for_status()
                    except httpx.HTTPError as e:
                        raise self._http_error(e) from e

                    if response.status_code != 204:
                        data = self._json(response)
                        entries = data.get("entries") if isinstance(data, dict) else None
                        results.extend(self.parse_search_results(entries or [], name))

                    await self._pause()
                if budget.exhausted:
                    break
            if budget.exhausted:
                break

        unique = deduplicate(results)
        logger.info(f"FamilySearch found {len(unique)} potential matches in {budget.used} requests")
        return unique

    @staticmethod
    def build_search_params(
        name_query: str,
        subject: Subject,
        strategy: SearchStrategy,
        location: str | None = None,
        time_range: str | None = None,
    ) -> dict[str, Any]:
        """Query parameters for one tree search request."""
        params: dict[str, Any] = {}

        parts = name_query.split()
        if len(parts) >= 2:
            params["givenName"] = " ".join(parts[:-1])
            params["familyName"] = parts[-1]

        year_range = parse_year_range(time_range)
        if year_range:
            start, end = year_range
            params["birthYear"] = round((start + end) / 2)
            params["birthYearRange"] = str(-(-(end - start) // 2))
        elif subject.birth_year:
            params["birthYear"] = subject.birth_year
            params["birthYearRange"] = DEFAULT_BIRTH_YEAR_RANGE

        place = location or (strategy.location_variations[0] if strategy.location_variations else None)
        place = place or subject.birth_place
        if place:
            params["birthPlace"] = place

        if subject.father and subject.father.given_names:
            params["fatherGivenName"] = subject.father.given_names
            params["fatherFamilyName"] = subject.father.family_names
        if subject.mother and subject.mother.given_names:
            params["motherGivenName"] = subject.mother.given_names
            params["motherFamilyName"] = subject.mother.family_names

        return params

    def parse_search_results(self, entries: list[dict[str, Any]], search_query: str) -> list[CandidateRecord]:
        records = []
        for entry in entries:
            persons = ((entry.get("content") or {}).get("gedcomx") or {}).get("persons") or []
            if not persons or not persons[0].get("id"):
                continue
            person = persons[0]

            parts = []
            names = person.get("names") or []
            if names:
                forms = names[0].get("nameForms") or []
                if forms:
                    parts = forms[0].get("parts") or []
            given = next((p.get("value", "") for p in parts if p.get("type", "").endswith("Given")), "")
            family = next((p.get("value", "") for p in parts if p.get("type", "").endswith("Surname")
                           or p.get("type", "").endswith("Family")), "")

            birth = _fact(person, "Birth")
            death = _fact(person, "Death")

            records.append(CandidateRecord(
                id=str(person["id"]),
                source=self.source_name,
                name=f"{given} {family}".strip(),
                birth=_fact_date(birth),
                death=_fact_date(death),
                location=_fact_place(birth),
                url=PERSON_URL.format(person_id=person["id"]),
                additional_info=self.extract_additional_info(person),
                confidence=self.initial_confidence(person),
                search_query=search_query,
                raw_data=person,
            ))
        return records

    @staticmethod
    def extract_additional_info(person: dict[str, Any]) -> str:
        """Death details plus up to three other facts."""
        info = []
        death = _fact(person, "Death")
        if death:
            text = f"{_fact_date(death)} {_fact_place(death)}".strip()
            if text:
                info.append(f"Death: {text}")

        others = [f for f in person.get("facts") or [] if _fact_type(f) not in ("Birth", "Death")]
        for fact in others[:MAX_EXTRA_FACTS]:
            value = fact.get("value") or _fact_place(fact) or "Yes"
            info.append(f"{_fact_type(fact)}: {value}")

        return "; ".join(info)

    @staticmethod
    def initial_confidence(person: dict[str, Any]) -> float:
        confidence = 0.5
        birth = _fact(person, "Birth")
        if birth and birth.get("date"):
            confidence += 0.2
        if birth and birth.get("place"):
            confidence += 0.1
        if _fact(person, "Death"):
            confidence += 0.1
        if len(person.get("facts") or []) > 2:
            confidence += 0.1
        return min(confidence, 1.0)

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    async def get_details(self, record_id: str) -> dict[str, Any] | None:
        headers = await self._headers()
        client = await self._get_client()
        try:
            response = await client.get(f"{self.base_url}/platform/tree/persons/{record_id}", headers=headers)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._http_error(e) from e
        return self._json(response)


def _fact_type(fact: dict[str, Any]) -> str:
    """Fact type without the GEDCOM X URI prefix."""
    return (fact.get("type") or "").rsplit("/", 1)[-1]


def _fact(person: dict[str, Any], fact_type: str) -> dict[str, Any] | None:
    return next((f for f in person.get("facts") or [] if _fact_type(f) == fact_type), None)


def _fact_date(fact: dict[str, Any] | None) -> str:
    return ((fact or {}).get("date") or {}).get("original", "")


def _fact_place(fact: dict[str, Any] | None) -> str:
    return ((fact or {}).get("place") or {}).get("original", "")
