"""WikiTree collaborative family tree search."""

from typing import Any

import httpx
from loguru import logger

from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject
from genmatch.sources.base import SearchLimits, SearchProvider, deduplicate, parse_year_range

WIKITREE_TIMEOUT_SECONDS = 15.0
PROFILE_URL = "https://www.wikitree.com/wiki/{profile_id}"
MAX_RESULTS = 10
INITIAL_CONFIDENCE = 0.6


class WikiTreeProvider(SearchProvider):
    source_name = "WikiTree"
    key = "wikitree"

    def __init__(
        self,
        app_id: str = "GenMatch",
        base_url: str = "https://api.wikitree.com/api.php",
        client: httpx.AsyncClient | None = None,
        limits: SearchLimits | None = None,
        timeout: float = WIKITREE_TIMEOUT_SECONDS,
    ):
        super().__init__(client=client, limits=limits, timeout=timeout)
        self.app_id = app_id
        self.base_url = base_url

    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        """One form POST for the subject's full name, narrowed by birth year."""
        form: dict[str, Any] = {
            "action": "search",
            "find": subject.full_name,
            "appId": self.app_id,
            "max": MAX_RESULTS,
            "format": "json",
        }
        year = self.search_year(strategy, subject)
        if year:
            form["birth"] = year

        logger.info(f"Searching WikiTree for {subject.full_name}")
        client = await self._get_client()
        try:
            response = await client.post(self.base_url, data=form, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._http_error(e) from e

        records = deduplicate(self.parse_results(self._json(response), subject))
        logger.info(f"WikiTree found {len(records)} potential matches")
        return records

    @staticmethod
    def search_year(strategy: SearchStrategy, subject: Subject) -> int | None:
        """Midpoint of the first time range, else the subject's birth year."""
        for window in strategy.time_range_queries[:1]:
            year_range = parse_year_range(window)
            if year_range:
                return round(sum(year_range) / 2)
        return subject.birth_year

    def parse_results(self, data: Any, subject: Subject) -> list[CandidateRecord]:
        if isinstance(data, dict):
            items = data.get("results") or data.get("people") or []
        elif isinstance(data, list):
            items = data
            # api.php wraps search results as [{"matches": [...]}]
            if items and isinstance(items[0], dict) and "matches" in items[0]:
                items = items[0]["matches"] or []
        else:
            items = []

        records = []
        for item in items:
            if not isinstance(item, dict):
                continue
            profile_id = item.get("Name") or item.get("NameKey") or item.get("Id")
            if not profile_id:
                continue
            name = (
                item.get("LongName")
                or item.get("RealName")
                or item.get("DisplayName")
                or profile_id
            )
            records.append(CandidateRecord(
                id=str(profile_id),
                source=self.source_name,
                name=str(name),
                birth=str(item.get("BirthDate") or ""),
                death=str(item.get("DeathDate") or ""),
                location=str(item.get("BirthLocation") or ""),
                url=item.get("Url") or PROFILE_URL.format(profile_id=profile_id),
                additional_info="Collaborative family tree profile",
                confidence=INITIAL_CONFIDENCE,
                search_query=subject.full_name,
                raw_data=item,
            ))
        return records

    async def get_details(self, record_id: str) -> dict[str, Any] | None:
        client = await self._get_client()
        try:
            response = await client.post(
                self.base_url,
                data={"action": "getProfile", "key": record_id, "format": "json", "appId": self.app_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._http_error(e) from e

        data = self._json(response)
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else None
