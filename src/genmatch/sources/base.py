"""Search provider interface and shared request plumbing.

Every external source is a SearchProvider: it authenticates, runs a bounded
series of requests for a SearchStrategy, and converts whatever its API returns
into CandidateRecords. Nothing provider-specific leaves the provider except
``CandidateRecord.raw_data``.
"""

import asyncio
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from genmatch.config import Config
from genmatch.errors import ProviderError, ProviderTimeoutError
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject

YEAR_RANGE_PATTERN = re.compile(r"^\s*(\d{4})\s*-\s*(\d{4})\s*$")

# Tokens are treated as expired this many seconds early
TOKEN_EXPIRY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


@dataclass
class SearchLimits:
    """Caps on how much of a strategy one provider may try."""

    max_name_variations: int = 12
    max_location_variations: int = 3
    max_time_ranges: int = 3
    max_requests: int = 30
    request_delay_ms: int = 300

    @classmethod
    def from_config(cls, config: Config) -> "SearchLimits":
        return cls(
            max_name_variations=config.search_max_name_variations,
            max_location_variations=config.search_max_location_variations,
            max_time_ranges=config.search_max_time_ranges,
            max_requests=config.search_max_requests,
            request_delay_ms=config.search_request_delay_ms,
        )


class RequestBudget:
    """Counter shared by every request loop of one search call."""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit

    def take(self) -> bool:
        """Claim one request; False once the cap is reached."""
        if self.exhausted:
            return False
        self.used += 1
        return True


class TokenCache:
    """An access token held by one provider instance until it expires."""

    def __init__(self) -> None:
        self._token: str | None = None
        self._expires_at = 0.0

    def get(self) -> str | None:
        if self._token and time.monotonic() < self._expires_at - TOKEN_EXPIRY_MARGIN_SECONDS:
            return self._token
        self._token = None
        return None

    def store(self, token: str, expires_in: float | None = None) -> None:
        self._token = token
        self._expires_at = time.monotonic() + (expires_in or DEFAULT_TOKEN_LIFETIME_SECONDS)

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0


def parse_year_range(value: str | None) -> tuple[int, int] | None:
    """Parse "YYYY-YYYY" into (start, end)."""
    match = YEAR_RANGE_PATTERN.match(value or "")
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def deduplicate(records: list[CandidateRecord]) -> list[CandidateRecord]:
    """Drop records whose name/birth/location key was already seen; first wins."""
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.dedup_key in seen:
            continue
        seen.add(record.dedup_key)
        unique.append(record)
    return unique


class SearchProvider(ABC):
    """Abstract base class for external record sources."""

    #: Source label stamped on every CandidateRecord
    source_name: str = ""
    #: Key in Config.enabled_sources()
    key: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        limits: SearchLimits | None = None,
        timeout: float = 30.0,
    ):
        self._http_client = client
        self._owns_client = client is None
        self.limits = limits or SearchLimits()
        self.timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client and self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def authenticate(self) -> bool:
        """Exchange credentials for access; True when searches may proceed."""
        return True

    @abstractmethod
    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        """Run this provider's requests for a strategy.

        Raises:
            ProviderError: On network, authentication or response failure
        """
        pass

    async def get_details(self, record_id: str) -> dict[str, Any] | None:
        """Full record for an id; None when the source has no detail endpoint."""
        return None

    async def _pause(self) -> None:
        if self.limits.request_delay_ms:
            await asyncio.sleep(self.limits.request_delay_ms / 1000)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.source_name, f"malformed JSON response: {e}") from e

    def _http_error(self, error: httpx.HTTPError) -> ProviderError:
        logger.warning(f"{self.source_name} request failed: {error!r}")
        if isinstance(error, httpx.TimeoutException):
            return ProviderTimeoutError(self.source_name, "request timed out")
        return ProviderError(self.source_name, str(error) or error.__class__.__name__)
