"""Generative match analysis with deterministic fallback.

Each public call runs a short decision cascade:

1. Build a strict prompt for the call site.
2. Try each candidate model in order. A model's attempt succeeds only if its
   output parses to JSON and passes structural validation.
3. Stop at the first structurally valid result (``method="ai"``).
4. If every attempt fails, or no provider is configured, answer with the
   rule-based pipeline (NameMatcher + RecordValidator + ConfidenceScorer).

Cascade error policy:
    - 404/400 class (ModelNotFoundError), invalid JSON, failed validation or
      a network error: move on to the next model.
    - 401/403/429 class (AuthenticationError, RateLimitError): abandon the
      provider for the rest of this call.

The model that last answered is remembered on the instance and tried first
next time. It is dropped after MODEL_CACHE_TTL_SECONDS or as soon as it fails.
"""

import re
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

from genmatch.config import Config, get_config
from genmatch.config.constants import DEFAULT_RECORD_TYPES, LOCATION_SEARCH_ABBREVIATIONS, SURNAME_SEARCH_SUBSTITUTIONS
from genmatch.errors import ConfigurationError, GenerativeResponseError
from genmatch.llm.base import AuthenticationError, LLMError, LLMProvider, ModelNotFoundError, RateLimitError
from genmatch.llm.factory import get_default_provider
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import (
    AIAnalysis,
    AnalysisMethod,
    ConfidenceResult,
    FinalRecommendation,
    MatchAnalysis,
    Recommendation,
    SearchStrategy,
)
from genmatch.models.subject import Subject, split_name
from genmatch.services.confidence_scorer import ConfidenceScorer
from genmatch.services.name_matcher import NameMatcher
from genmatch.services.prompt_builder import PromptBuilder
from genmatch.services.response_parser import ResponseParser
from genmatch.validation.placeholder_detector import PlaceholderDetector
from genmatch.validation.record_validator import RecordValidator

T = TypeVar("T")

MODEL_CACHE_TTL_SECONDS = 3600

AI_STRATEGY_CONFIDENCE = 0.85
FALLBACK_STRATEGY_CONFIDENCE = 0.65

# Final recommendation blend (generative judgment vs. weighted confidence)
AI_WEIGHT = 0.6
CONFIDENCE_WEIGHT = 0.4

# Enhanced fallback blend (weighted confidence vs. candidate plausibility)
SCORE_WEIGHT = 0.8
PLAUSIBILITY_WEIGHT = 0.2

ACCEPT_THRESHOLD = 0.85
REVIEW_THRESHOLD = 0.60

UNKNOWN_VALUES = {"", "unknown", "n/a", "none"}


def _known(value: str | None) -> str | None:
    if value is None or value.strip().lower() in UNKNOWN_VALUES:
        return None
    return value


class MatchAnalysisOrchestrator:
    """Asks a generative provider for search strategies and match judgments."""

    def __init__(
        self,
        provider: LLMProvider | None = None,
        models: list[str] | None = None,
        name_matcher: NameMatcher | None = None,
        validator: RecordValidator | None = None,
        scorer: ConfidenceScorer | None = None,
        placeholder_detector: PlaceholderDetector | None = None,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            provider: Generative provider, or None for deterministic analysis only
            models: Candidate model ids in cascade order (default: provider.list_models())
            name_matcher: Shared NameMatcher (also used by the default scorer)
            validator: RecordValidator for the enhanced fallback
            scorer: ConfidenceScorer for fallbacks and final recommendations
            placeholder_detector: Denylist pre-pass for candidates
            prompt_builder: Prompt construction
            parser: Response parsing and validation
        """
        self.provider = provider
        self.models = models if models is not None else (provider.list_models() if provider else [])
        self.name_matcher = name_matcher or NameMatcher()
        self.validator = validator or RecordValidator()
        self.scorer = scorer or ConfidenceScorer(name_matcher=self.name_matcher)
        self.placeholder_detector = placeholder_detector or PlaceholderDetector()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()

        self._resolved_model: str | None = None
        self._resolved_at = 0.0

    @classmethod
    def from_config(cls, config: Config | None = None, **kwargs: Any) -> "MatchAnalysisOrchestrator":
        """Build an orchestrator with the configured provider and prompt settings."""
        config = config or get_config()
        provider = get_default_provider(config)
        prompt_builder = PromptBuilder(
            search_temperature=config.search_query_temperature,
            search_max_tokens=config.search_query_max_tokens,
            analysis_temperature=config.match_analysis_temperature,
            analysis_max_tokens=config.match_analysis_max_tokens,
        )
        return cls(
            provider=provider,
            models=config.model_candidates if provider else [],
            prompt_builder=prompt_builder,
            **kwargs,
        )

    # =========================================================================
    # SEARCH STRATEGY
    # =========================================================================

    def generate_search_queries(self, subject: Subject) -> SearchStrategy:
        """Produce search variations for a subject.

        Raises:
            ConfigurationError: If the subject has no name at all
        """
        if not subject.has_name:
            raise ConfigurationError(f"Cannot search for subject {subject.id} without a name")

        logger.info(f"Generating search queries for {subject.full_name} ({subject.id})")
        request = self.prompt_builder.build_search_request(subject)

        outcome = self._run_cascade(
            lambda model: self.parser.parse_search_strategy(self.provider.complete(request, model).text),
            purpose="search strategy",
        )
        if outcome is not None:
            response, model = outcome
            return SearchStrategy(
                name_variations=response.name_variations,
                location_variations=response.location_variations,
                time_range_queries=response.time_range_queries,
                contextual_searches=response.contextual_searches,
                record_type_targets=response.record_type_targets,
                confidence=AI_STRATEGY_CONFIDENCE,
                method=AnalysisMethod.AI,
                subject_id=subject.id,
                model=model,
            )

        logger.info("Using rule-based search query generation")
        return self.generate_fallback_queries(subject)

    def generate_fallback_queries(self, subject: Subject) -> SearchStrategy:
        return SearchStrategy(
            name_variations=self.name_variations(subject),
            location_variations=self.location_variations(subject.birth_place),
            time_range_queries=self.time_ranges(subject.birth_year),
            contextual_searches=self.contextual_searches(subject),
            record_type_targets=list(DEFAULT_RECORD_TYPES),
            confidence=FALLBACK_STRATEGY_CONFIDENCE,
            method=AnalysisMethod.FALLBACK,
            subject_id=subject.id,
        )

    def name_variations(self, subject: Subject) -> list[str]:
        """Full name, nickname forms, initial forms and surname respellings."""
        given, family = subject.given_names, subject.family_names
        variations = [subject.full_name]

        if given:
            first, *middle = given.split()
            for nickname in sorted(self.name_matcher.nickname_variants(first)):
                variations.append(" ".join([nickname.title(), *middle, family]).strip())
            variations.append(f"{first[0]} {family}".strip())
            variations.append(f"{first[0]}. {family}".strip())

        if family:
            for source, target in SURNAME_SEARCH_SUBSTITUTIONS:
                if source in family:
                    variations.append(f"{given} {family.replace(source, target, 1)}".strip())

        return list(dict.fromkeys(v for v in variations if v))

    @staticmethod
    def location_variations(place: str | None) -> list[str]:
        """Full place, town only, town and region, and abbreviation swaps."""
        if not place:
            return []

        variations = [place]
        parts = [p.strip() for p in place.split(",")]
        if len(parts) > 1:
            variations.append(parts[0])
            variations.append(", ".join(parts[:2]))

        for full, abbreviation in LOCATION_SEARCH_ABBREVIATIONS.items():
            if full in place:
                variations.append(place.replace(full, abbreviation))
            if re.search(rf"\b{re.escape(abbreviation)}\b", place):
                variations.append(re.sub(rf"\b{re.escape(abbreviation)}\b", full, place))

        return list(dict.fromkeys(variations))

    @staticmethod
    def time_ranges(year: int | None) -> list[str]:
        """Birth windows of +/-2, +/-5 and +/-10 years, plus the decade."""
        if year is None:
            return []
        decade = (year // 10) * 10
        return [
            f"{year - 2}-{year + 2}",
            f"{year - 5}-{year + 5}",
            f"{year - 10}-{year + 10}",
            f"{decade}-{decade + 9}",
        ]

    @staticmethod
    def contextual_searches(subject: Subject) -> list[str]:
        name = subject.full_name
        relation = {"M": "son of", "F": "daughter of"}.get((subject.sex or "").upper(), "child of")

        searches = []
        for parent in (subject.father, subject.mother):
            if parent and parent.full_name:
                searches.append(f"{name} {relation} {parent.full_name}")
        if subject.spouses and subject.spouses[0].full_name:
            searches.append(f"{name} married {subject.spouses[0].full_name}")
        if subject.birth_place:
            searches.append(f"{name} born {subject.birth_place}")
        return searches

    # =========================================================================
    # MATCH ANALYSIS
    # =========================================================================

    def analyze_record_match(
        self,
        subject: Subject,
        candidate: CandidateRecord,
        confidence: ConfidenceResult | None = None,
    ) -> MatchAnalysis:
        """Judge whether a candidate record is the subject.

        Args:
            subject: The known person
            candidate: Record to judge
            confidence: Weighted confidence already computed for this pair, if any

        Returns:
            MatchAnalysis with the judgment, the weighted confidence and the
            blended final recommendation
        """
        confidence = confidence or self.scorer.calculate_confidence(subject, candidate)
        judgment = self.judge_match(subject, candidate, confidence)
        final = self.determine_final_recommendation(judgment, confidence)

        logger.info(
            f"Match {subject.id} x {candidate.source}:{candidate.id}: "
            f"{final.action.value} ({final.score:.0%}, {judgment.method.value})"
        )

        return MatchAnalysis(
            ai=judgment,
            confidence=confidence,
            final_recommendation=final,
            subject_id=subject.id,
            candidate_id=candidate.id,
        )

    def judge_match(
        self,
        subject: Subject,
        candidate: CandidateRecord,
        confidence: ConfidenceResult | None = None,
    ) -> AIAnalysis:
        """Placeholder pre-pass, then the model cascade, then the rule-based fallback."""
        placeholders = self.placeholder_detector.find_patterns(candidate)
        if placeholders:
            return AIAnalysis(
                confidence=0.0,
                reasoning=f"Candidate contains placeholder or test data: {', '.join(placeholders)}",
                matching_factors=[],
                concerns=[f"Placeholder pattern '{p}'" for p in placeholders],
                recommendation=Recommendation.REJECT,
                method=AnalysisMethod.FALLBACK,
                placeholder_detected=True,
            )

        request = self.prompt_builder.build_analysis_request(subject, candidate)
        outcome = self._run_cascade(
            lambda model: self.parser.parse_match_analysis(self.provider.complete(request, model).text),
            purpose="match analysis",
        )
        if outcome is not None:
            response, model = outcome
            return AIAnalysis(
                confidence=response.confidence,
                reasoning=response.reasoning,
                matching_factors=response.matching_factors,
                concerns=response.concerns,
                recommendation=Recommendation(response.recommendation),
                method=AnalysisMethod.AI,
                model=model,
            )

        logger.info(f"Using rule-based match analysis for {candidate.source}:{candidate.id}")
        return self.fallback_analysis(subject, candidate, confidence)

    def fallback_analysis(
        self,
        subject: Subject,
        candidate: CandidateRecord,
        confidence: ConfidenceResult | None = None,
    ) -> AIAnalysis:
        """Rule-based judgment in the same shape as a model's.

        The weighted confidence is the base. When the candidate carries a
        usable birth or death year it is also validated as if it sat in the
        subject's family; that plausibility is blended in and the result is
        tagged ``enhanced_fallback``.
        """
        confidence = confidence or self.scorer.calculate_confidence(subject, candidate)
        name_result = self.name_matcher.match_full_names(subject, candidate.as_person_ref())
        base = confidence.overall_confidence

        matching_factors = list(confidence.matching_factors)
        concerns = list(confidence.concerns)

        candidate_given = candidate.as_person_ref().given_names.split()
        if subject.given_names and candidate_given and self.name_matcher.is_nickname_pair(
            subject.given_names.split()[0], candidate_given[0]
        ):
            matching_factors.append(
                f"Nickname match: {subject.given_names.split()[0]} / {candidate_given[0]}"
            )

        reasoning = (
            f"Rule-based analysis: name {name_result.overall_score:.0%}, "
            f"date {confidence.scores['date_match']:.0%}, "
            f"location {confidence.scores['location_match']:.0%}; "
            f"weighted confidence {base:.0%}"
        )

        candidate_subject = self._candidate_in_family(subject, candidate)
        if candidate_subject.birth_year is None and candidate_subject.death_year is None:
            score = base
            method = AnalysisMethod.FALLBACK
            recommendation = Recommendation.from_score(score, ACCEPT_THRESHOLD, REVIEW_THRESHOLD)
        else:
            validation = self.validator.validate_person_record(candidate_subject)
            score = SCORE_WEIGHT * base + PLAUSIBILITY_WEIGHT * validation.confidence
            method = AnalysisMethod.ENHANCED_FALLBACK
            concerns.extend(issue.message for issue in validation.errors)
            reasoning += f"; candidate plausibility {validation.confidence:.0%} ({validation.summary()})"

            recommendation = Recommendation.from_score(score, ACCEPT_THRESHOLD, REVIEW_THRESHOLD)
            if not validation.is_valid and recommendation == Recommendation.ACCEPT:
                recommendation = Recommendation.REVIEW

        if score < REVIEW_THRESHOLD and "Low overall match confidence" not in concerns:
            concerns.append("Low overall match confidence")

        return AIAnalysis(
            confidence=min(score, 1.0),
            reasoning=reasoning,
            matching_factors=matching_factors,
            concerns=concerns,
            recommendation=recommendation,
            method=method,
        )

    @staticmethod
    def determine_final_recommendation(ai: AIAnalysis, confidence: ConfidenceResult) -> FinalRecommendation:
        """Blend the judgment (60%) with the weighted confidence (40%)."""
        score = AI_WEIGHT * ai.confidence + CONFIDENCE_WEIGHT * confidence.overall_confidence
        action = Recommendation.from_score(score, ACCEPT_THRESHOLD, REVIEW_THRESHOLD)
        reasoning = (
            f"Combined AI analysis ({ai.confidence:.0%}) and "
            f"confidence scoring ({confidence.overall_confidence:.0%})"
        )
        if ai.placeholder_detected:
            action = Recommendation.REJECT
            reasoning += "; candidate contains placeholder data"
        return FinalRecommendation(score=score, action=action, reasoning=reasoning)

    # =========================================================================
    # CASCADE
    # =========================================================================

    def _model_order(self) -> list[str]:
        """Candidate models, with the cached resolved model first if still fresh."""
        if self._resolved_model and time.monotonic() - self._resolved_at > MODEL_CACHE_TTL_SECONDS:
            logger.debug(f"Resolved model {self._resolved_model} expired")
            self._resolved_model = None

        order = list(self.models)
        if self._resolved_model in order:
            order.remove(self._resolved_model)
            order.insert(0, self._resolved_model)
        return order

    def _run_cascade(self, call: Callable[[str], T], purpose: str) -> tuple[T, str] | None:
        """Evaluate one attempt per model in order; first valid result wins.

        Returns:
            (result, model) for the first success, or None when every attempt
            failed or the provider was abandoned
        """
        if self.provider is None:
            return None

        attempts = [(model, lambda m=model: call(m)) for model in self._model_order()]

        for model, attempt in attempts:
            try:
                result = attempt()
            except (AuthenticationError, RateLimitError) as e:
                logger.warning(f"Abandoning {self.provider.name} for {purpose}: {e}")
                self._invalidate(model)
                return None
            except (ModelNotFoundError, GenerativeResponseError, LLMError) as e:
                logger.warning(f"{self.provider.name}/{model} failed for {purpose}: {e}")
                self._invalidate(model)
                continue

            if self._resolved_model != model:
                logger.info(f"Resolved {self.provider.name} model: {model}")
            self._resolved_model = model
            self._resolved_at = time.monotonic()
            return result, model

        logger.warning(f"All {len(attempts)} model attempt(s) failed for {purpose}")
        return None

    def _invalidate(self, model: str) -> None:
        if self._resolved_model == model:
            self._resolved_model = None

    @staticmethod
    def _candidate_in_family(subject: Subject, candidate: CandidateRecord) -> Subject:
        """The candidate's own facts placed in the subject's family."""
        given, family = split_name(candidate.name)
        return Subject(
            id=candidate.id,
            given_names=given,
            family_names=family,
            sex=subject.sex,
            birth_date=_known(candidate.birth),
            birth_place=_known(candidate.location),
            death_date=_known(candidate.death),
            father=subject.father,
            mother=subject.mother,
            spouses=subject.spouses,
            children=subject.children,
        )
