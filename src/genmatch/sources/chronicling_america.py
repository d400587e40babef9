"""Library of Congress Chronicling America newspaper page search.

Hits are newspaper pages mentioning the name, not person records. They carry
the searched name and the place of publication only, with a low initial
confidence.
"""

from typing import Any

import httpx
from loguru import logger

from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject
from genmatch.sources.base import SearchLimits, SearchProvider, deduplicate, parse_year_range

CHRONAM_TIMEOUT_SECONDS = 10.0
MAX_ROWS = 10
INITIAL_CONFIDENCE = 0.5

# Digitized coverage of the collection
EARLIEST_YEAR = 1800
LATEST_YEAR = 1963
YEARS_BEFORE_BIRTH = 5
YEARS_AFTER_BIRTH = 40


class ChroniclingAmericaProvider(SearchProvider):
    source_name = "Chronicling America"
    key = "chronicling_america"

    def __init__(
        self,
        base_url: str = "https://chroniclingamerica.loc.gov",
        client: httpx.AsyncClient | None = None,
        limits: SearchLimits | None = None,
        timeout: float = CHRONAM_TIMEOUT_SECONDS,
    ):
        super().__init__(client=client, limits=limits, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def year_window(strategy: SearchStrategy, subject: Subject) -> tuple[int, int]:
        for window in strategy.time_range_queries[:1]:
            year_range = parse_year_range(window)
            if year_range:
                return year_range

        birth_year = subject.birth_year
        if birth_year:
            return (
                max(EARLIEST_YEAR, birth_year - YEARS_BEFORE_BIRTH),
                min(LATEST_YEAR, birth_year + YEARS_AFTER_BIRTH),
            )
        return EARLIEST_YEAR, LATEST_YEAR

    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        start, end = self.year_window(strategy, subject)
        params = {
            "format": "json",
            "proxtext": subject.full_name,
            "dateFilterType": "yearRange",
            "date1": start,
            "date2": end,
            "rows": MAX_ROWS,
            "page": 1,
        }

        logger.info(f"Searching Chronicling America for {subject.full_name} ({start}-{end})")
        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.base_url}/search/pages/results/",
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._http_error(e) from e

        data = self._json(response)
        items = (data.get("items") or data.get("results") or []) if isinstance(data, dict) else []
        records = deduplicate(self.parse_items(items, subject))
        logger.info(f"Chronicling America found {len(records)} newspaper pages")
        return records

    def parse_items(self, items: list[Any], subject: Subject) -> list[CandidateRecord]:
        records = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            title = item.get("title") or "Untitled"
            date = str(item.get("date") or "")
            page_id = item.get("id") or item.get("url") or f"{title}_{date}_{index}"
            place = item.get("place_of_publication")
            if isinstance(place, list):
                place = place[0] if place else None

            # Pages match on the name text only
            records.append(CandidateRecord(
                id=str(page_id),
                source=self.source_name,
                name=subject.full_name,
                birth="",
                location=str(place or ""),
                url=str(item.get("id") or item.get("url") or ""),
                additional_info=f"{title} ({date[:10]})",
                confidence=INITIAL_CONFIDENCE,
                search_query=subject.full_name,
                raw_data=item,
            ))
        return records
