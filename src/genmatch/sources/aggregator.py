"""Concurrent fan-out of one search strategy to every enabled provider."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from genmatch.config import Config, get_config
from genmatch.errors import ProviderError
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject
from genmatch.sources.base import SearchLimits, SearchProvider, deduplicate
from genmatch.sources.chronicling_america import ChroniclingAmericaProvider
from genmatch.sources.familysearch import FamilySearchProvider
from genmatch.sources.placeholders import FindAGraveProvider, NewspaperArchivesProvider
from genmatch.sources.wikitree import WikiTreeProvider


@dataclass
class AggregateResult:
    """Merged records plus per-provider bookkeeping for one search."""

    records: list[CandidateRecord] = field(default_factory=list)
    provider_counts: dict[str, int] = field(default_factory=dict)
    provider_errors: dict[str, str] = field(default_factory=dict)

    @property
    def total_found(self) -> int:
        return len(self.records)


class SourceAggregator:
    """Runs providers concurrently and merges what they return.

    A provider that raises, times out or is still running at the overall
    deadline contributes zero records; the others are unaffected.
    """

    def __init__(
        self,
        providers: list[SearchProvider],
        provider_timeout: float = 30.0,
        overall_deadline: float = 60.0,
    ):
        self.providers = providers
        self.provider_timeout = provider_timeout
        self.overall_deadline = overall_deadline

    @classmethod
    def from_config(cls, config: Config | None = None, client: httpx.AsyncClient | None = None) -> "SourceAggregator":
        """Build the enabled providers from configuration."""
        config = config or get_config()
        limits = SearchLimits.from_config(config)
        enabled = config.enabled_sources()

        builders = {
            "familysearch": lambda: FamilySearchProvider(
                client_id=config.familysearch_client_id,
                client_secret=config.familysearch_client_secret,
                base_url=config.familysearch_base_url,
                client=client,
                limits=limits,
                timeout=config.search_provider_timeout_seconds,
            ),
            "wikitree": lambda: WikiTreeProvider(
                app_id=config.wikitree_app_id,
                base_url=config.wikitree_base_url,
                client=client,
                limits=limits,
            ),
            "chronicling_america": lambda: ChroniclingAmericaProvider(
                base_url=config.chronicling_america_base_url,
                client=client,
                limits=limits,
            ),
            "findagrave": lambda: FindAGraveProvider(client=client, limits=limits),
            "newspapers": lambda: NewspaperArchivesProvider(client=client, limits=limits),
        }

        providers = [build() for key, build in builders.items() if enabled.get(key)]
        logger.debug(f"Enabled search providers: {[p.source_name for p in providers]}")
        return cls(
            providers,
            provider_timeout=config.search_provider_timeout_seconds,
            overall_deadline=config.search_overall_deadline_seconds,
        )

    async def search_all_sources(self, strategy: SearchStrategy, subject: Subject) -> AggregateResult:
        """Search every provider and merge the results.

        Records are merged in provider order, deduplicated on name, birth and
        location (first occurrence wins), then sorted by provider-assigned
        confidence, highest first.
        """
        result = AggregateResult()
        if not self.providers:
            logger.warning("No search providers enabled")
            return result

        tasks = {
            asyncio.create_task(self._run_provider(provider, strategy, subject)): provider
            for provider in self.providers
        }
        done, pending = await asyncio.wait(tasks.keys(), timeout=self.overall_deadline)

        for task in pending:
            provider = tasks[task]
            task.cancel()
            logger.warning(f"{provider.source_name} cancelled at overall deadline of {self.overall_deadline}s")
            result.provider_errors[provider.source_name] = "cancelled at overall deadline"
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        per_provider: dict[str, list[CandidateRecord]] = {}
        for task in done:
            provider = tasks[task]
            records, error = task.result()
            per_provider[provider.source_name] = records
            if error:
                result.provider_errors[provider.source_name] = error

        merged: list[CandidateRecord] = []
        for provider in self.providers:
            records = per_provider.get(provider.source_name, [])
            result.provider_counts[provider.source_name] = len(records)
            merged.extend(records)

        unique = deduplicate(merged)
        unique.sort(key=lambda r: r.confidence, reverse=True)
        result.records = unique

        logger.info(
            f"Aggregated {len(unique)} unique records from {len(self.providers)} providers "
            f"({len(merged) - len(unique)} duplicates, {len(result.provider_errors)} failures)"
        )
        return result

    async def _run_provider(
        self,
        provider: SearchProvider,
        strategy: SearchStrategy,
        subject: Subject,
    ) -> tuple[list[CandidateRecord], str | None]:
        try:
            records = await asyncio.wait_for(provider.search(strategy, subject), timeout=self.provider_timeout)
            return records, None
        except ProviderError as e:
            logger.warning(f"{provider.source_name} search failed: {e}")
            return [], str(e)
        except asyncio.TimeoutError:
            logger.warning(f"{provider.source_name} search timed out after {self.provider_timeout}s")
            return [], f"timed out after {self.provider_timeout}s"
        except Exception as e:
            logger.exception(f"Unexpected error from {provider.source_name}")
            return [], f"unexpected error: {e}"

    async def get_record_details(self, record_id: str, source: str) -> dict[str, Any] | None:
        """Full record from the provider that produced it; None if unsupported."""
        provider = next((p for p in self.providers if p.source_name == source or p.key == source), None)
        if provider is None:
            logger.warning(f"No enabled provider for source {source!r}")
            return None
        try:
            return await provider.get_details(record_id)
        except ProviderError as e:
            logger.warning(f"Could not fetch {source} record {record_id}: {e}")
            return None

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()
