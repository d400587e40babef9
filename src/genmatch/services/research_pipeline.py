"""End-to-end research flow for one subject.

subject -> search strategy -> concurrent provider search -> rejection filter
-> weighted scoring -> ranked, truncated candidate list.

A single candidate can then be sent through ``analyze()`` for the deeper
generative judgment, or dismissed through ``reject()``.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from genmatch.config import Config, get_config
from genmatch.database.rejection_ledger import DEFAULT_OWNER, RejectionLedger, get_rejection_ledger
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import (
    MatchAnalysis,
    ResearchSuggestion,
    ScoredCandidate,
    SearchOutcome,
    SearchStatus,
)
from genmatch.models.subject import Subject
from genmatch.services.confidence_scorer import ConfidenceScorer
from genmatch.services.match_analysis import MatchAnalysisOrchestrator
from genmatch.sources.aggregator import SourceAggregator
from genmatch.utils.dates import current_year, extract_year

# A subject born this many years ago is presumed dead
PRESUMED_DEAD_AGE = 125
MIN_MARRIAGE_AGE = 16

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


class ResearchPipeline:
    """Composes strategy generation, search, filtering and scoring."""

    def __init__(
        self,
        orchestrator: MatchAnalysisOrchestrator,
        aggregator: SourceAggregator,
        ledger: RejectionLedger,
        scorer: ConfidenceScorer | None = None,
        result_limit: int = 20,
        owner_id: str = DEFAULT_OWNER,
    ):
        self.orchestrator = orchestrator
        self.aggregator = aggregator
        self.ledger = ledger
        self.scorer = scorer or orchestrator.scorer
        self.result_limit = result_limit
        self.owner_id = owner_id

    @classmethod
    def from_config(cls, config: Config | None = None) -> "ResearchPipeline":
        config = config or get_config()
        return cls(
            orchestrator=MatchAnalysisOrchestrator.from_config(config),
            aggregator=SourceAggregator.from_config(config),
            ledger=get_rejection_ledger(),
            result_limit=config.search_result_limit,
        )

    async def search(self, subject: Subject) -> SearchOutcome:
        """Find, filter, score and rank candidate records for a subject.

        Raises:
            ConfigurationError: If the subject has no name
        """
        outcome = SearchOutcome(subject_id=subject.id)

        strategy = await asyncio.to_thread(self.orchestrator.generate_search_queries, subject)
        outcome.strategy = strategy

        aggregate = await self.aggregator.search_all_sources(strategy, subject)
        outcome.total_found = aggregate.total_found
        outcome.provider_counts = aggregate.provider_counts
        outcome.provider_errors = aggregate.provider_errors

        candidates = self.ledger.filter_candidates(subject.id, aggregate.records, self.owner_id)
        outcome.rejected_filtered = len(aggregate.records) - len(candidates)

        scored = [self.score(subject, candidate) for candidate in candidates]
        scored.sort(key=lambda s: s.confidence.overall_confidence, reverse=True)
        outcome.candidates = scored[: self.result_limit]

        outcome.status = SearchStatus.COMPLETED if outcome.candidates else SearchStatus.ZERO_RESULTS
        outcome.searched_at = datetime.now(timezone.utc).isoformat()

        logger.info(
            f"Search for {subject.full_name} ({subject.id}): {len(outcome.candidates)} ranked of "
            f"{outcome.total_found} found, {outcome.rejected_filtered} previously rejected"
        )
        return outcome

    def score(self, subject: Subject, candidate: CandidateRecord) -> ScoredCandidate:
        confidence = self.scorer.calculate_confidence(
            subject, candidate, {"search_query": candidate.search_query}
        )
        return ScoredCandidate(candidate=candidate, confidence=confidence)

    def analyze(self, subject: Subject, candidate: CandidateRecord) -> MatchAnalysis:
        return self.orchestrator.analyze_record_match(subject, candidate)

    async def get_record_details(self, record_id: str, source: str) -> dict[str, Any] | None:
        """Re-fetch the full record behind a candidate from the source that produced it."""
        return await self.aggregator.get_record_details(record_id, source)

    def reject(self, subject_id: str, candidate_id: str, reason: str | None = None) -> None:
        self.ledger.reject(subject_id, candidate_id, reason, owner_id=self.owner_id)

    async def close(self) -> None:
        await self.aggregator.close()

    # =========================================================================
    # RESEARCH SUGGESTIONS
    # =========================================================================

    @staticmethod
    def research_suggestions(subject: Subject) -> list[ResearchSuggestion]:
        """Next research steps for gaps in what is known about a subject."""
        suggestions = []

        if not subject.birth_date:
            suggestions.append(ResearchSuggestion(
                type="vital_record",
                priority="high",
                title="Find Birth Record",
                description="Search for birth certificate or baptismal record",
                search_targets=["Vital Records", "Church Records", "Census Records"],
            ))

        if not subject.death_date and _presumed_dead(subject):
            suggestions.append(ResearchSuggestion(
                type="vital_record",
                priority="high",
                title="Find Death Record",
                description="Search for death certificate or obituary",
                search_targets=["Death Records", "Obituaries", "Cemetery Records"],
            ))

        if not subject.birth_place:
            suggestions.append(ResearchSuggestion(
                type="location",
                priority="medium",
                title="Determine Birth Location",
                description="Use census records and family documents to find birth location",
                search_targets=["Census Records", "Immigration Records", "Marriage Records"],
            ))

        if subject.father is None:
            suggestions.append(ResearchSuggestion(
                type="family",
                priority="medium",
                title="Find Father's Identity",
                description="Search for marriage records, census records, or family documents",
                search_targets=["Marriage Records", "Census Records", "Family Trees"],
            ))

        if subject.mother is None:
            suggestions.append(ResearchSuggestion(
                type="family",
                priority="medium",
                title="Find Mother's Identity",
                description="Search for marriage records, census records, or birth records",
                search_targets=["Marriage Records", "Census Records", "Birth Records"],
            ))

        if not subject.spouses and not _likely_never_married(subject):
            suggestions.append(ResearchSuggestion(
                type="family",
                priority="medium",
                title="Find Marriage Information",
                description="Search for marriage records or spouse information",
                search_targets=["Marriage Records", "Census Records", "Obituaries"],
            ))

        suggestions.append(ResearchSuggestion(
            type="research",
            priority="low",
            title="Newspaper Research",
            description="Search newspaper archives for mentions, obituaries, or announcements",
            search_targets=["Newspaper Archives", "Local Historical Societies"],
        ))
        suggestions.append(ResearchSuggestion(
            type="research",
            priority="low",
            title="Military Records",
            description="Check for military service records if person lived during wartime",
            search_targets=["Military Records", "Pension Records", "Draft Registration"],
        ))

        return sorted(suggestions, key=lambda s: PRIORITY_ORDER[s.priority])


def _presumed_dead(subject: Subject) -> bool:
    birth_year = subject.birth_year
    return birth_year is not None and current_year() - birth_year > PRESUMED_DEAD_AGE


def _likely_never_married(subject: Subject) -> bool:
    """Died, or is still, younger than a plausible marriage age."""
    birth_year = subject.birth_year
    if birth_year is None:
        return False
    if current_year() - birth_year < MIN_MARRIAGE_AGE:
        return True
    death_year = extract_year(subject.death_date)
    return death_year is not None and death_year - birth_year < MIN_MARRIAGE_AGE
