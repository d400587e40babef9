"""Result types produced by matching, validation, scoring and search."""

import dataclasses
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from genmatch.models.candidate import CandidateRecord


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Recommendation(str, Enum):
    """What a reviewer should do with a candidate."""

    ACCEPT = "accept"
    REVIEW = "review"
    REJECT = "reject"

    @classmethod
    def from_score(cls, score: float, accept: float = 0.85, review: float = 0.60) -> "Recommendation":
        if score >= accept:
            return cls.ACCEPT
        if score >= review:
            return cls.REVIEW
        return cls.REJECT


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class AnalysisMethod(str, Enum):
    """How a search strategy or match judgment was produced."""

    AI = "ai"
    FALLBACK = "fallback"
    ENHANCED_FALLBACK = "enhanced_fallback"


class SearchStatus(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    COMPLETED = "completed"
    ZERO_RESULTS = "zero_results"


# =============================================================================
# NAME MATCHING
# =============================================================================


@dataclass
class NameMatchResult:
    """Outcome of comparing two people's full names."""

    overall_score: float
    given_name_score: float
    family_name_score: float
    maiden_name_score: float
    details: dict[str, bool] = field(default_factory=dict)


# =============================================================================
# VALIDATION
# =============================================================================


@dataclass
class ValidationIssue:
    """A single plausibility finding."""

    type: str
    severity: Severity
    message: str
    field: str = ""
    # the attribute above shadows dataclasses.field in this class body
    details: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclass
class QualityAssessment:
    score: float
    completeness: float
    factors: list[str] = field(default_factory=list)
    recommendation: str = ""


@dataclass
class ValidationResult:
    """Result of validating a person record against its family context.

    ``is_valid`` holds exactly when no entry in ``issues`` has error severity.
    """

    is_valid: bool = True
    validation_score: float = 1.0
    confidence: float = 1.0
    issues: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    recommendations: list[ValidationIssue] = field(default_factory=list)
    quality_assessment: QualityAssessment | None = None
    validated_at: str = field(default_factory=_now_iso)

    def __bool__(self) -> bool:
        return self.is_valid

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    def issue_types(self) -> set[str]:
        return {i.type for i in self.issues} | {w.type for w in self.warnings}

    def summary(self) -> str:
        """Get human-readable summary."""
        if self.is_valid and not self.issues and not self.warnings:
            return "Valid (no issues)"
        parts = []
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        other = len(self.issues) - len(self.errors)
        if other:
            parts.append(f"{other} issue warning(s)")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warning(s)")
        status = "Valid" if self.is_valid else "Invalid"
        return f"{status} ({', '.join(parts)})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# CONFIDENCE
# =============================================================================


@dataclass
class ConfidenceResult:
    """Weighted confidence that a candidate is the subject."""

    overall_confidence: float
    scores: dict[str, float]
    recommendation: Recommendation
    matching_factors: list[str] = field(default_factory=list)
    concerns: list[str] = field(default_factory=list)
    analysis: list[str] = field(default_factory=list)
    calculated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# GENERATIVE ANALYSIS
# =============================================================================


@dataclass
class SearchStrategy:
    """Search variations to fan out across providers."""

    name_variations: list[str] = field(default_factory=list)
    location_variations: list[str] = field(default_factory=list)
    time_range_queries: list[str] = field(default_factory=list)
    contextual_searches: list[str] = field(default_factory=list)
    record_type_targets: list[str] = field(default_factory=list)
    confidence: float = 0.65
    method: AnalysisMethod = AnalysisMethod.FALLBACK
    subject_id: str | None = None
    model: str | None = None
    generated_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AIAnalysis:
    """A match judgment, from a model or from the deterministic fallback."""

    confidence: float
    reasoning: str
    matching_factors: list[str]
    concerns: list[str]
    recommendation: Recommendation
    method: AnalysisMethod
    model: str | None = None
    placeholder_detected: bool = False
    analyzed_at: str = field(default_factory=_now_iso)


@dataclass
class FinalRecommendation:
    score: float
    action: Recommendation
    reasoning: str


@dataclass
class MatchAnalysis:
    """Combined model judgment and rule-based confidence for one candidate."""

    ai: AIAnalysis
    confidence: ConfidenceResult
    final_recommendation: FinalRecommendation
    subject_id: str | None = None
    candidate_id: str | None = None
    analyzed_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# SEARCH
# =============================================================================


@dataclass
class ScoredCandidate:
    candidate: CandidateRecord
    confidence: ConfidenceResult

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.candidate.to_dict(),
            "confidence": self.confidence.overall_confidence,
            "initial_confidence": self.candidate.confidence,
            "confidence_analysis": self.confidence.to_dict(),
        }


@dataclass
class SearchOutcome:
    """Ranked candidates plus what happened on the way.

    A fresh outcome is NOT_ATTEMPTED. A search that ran but kept nothing is
    ZERO_RESULTS, which is a normal outcome and not an error.
    """

    status: SearchStatus = SearchStatus.NOT_ATTEMPTED
    subject_id: str | None = None
    candidates: list[ScoredCandidate] = field(default_factory=list)
    total_found: int = 0
    rejected_filtered: int = 0
    provider_counts: dict[str, int] = field(default_factory=dict)
    provider_errors: dict[str, str] = field(default_factory=dict)
    strategy: SearchStrategy | None = None
    searched_at: str | None = None

    @property
    def sources(self) -> list[str]:
        return sorted({c.candidate.source for c in self.candidates})

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "subject_id": self.subject_id,
            "total_found": self.total_found,
            "rejected_filtered": self.rejected_filtered,
            "provider_counts": self.provider_counts,
            "provider_errors": self.provider_errors,
            "sources": self.sources,
            "searched_at": self.searched_at,
            "strategy": self.strategy.to_dict() if self.strategy else None,
            "candidates": [c.to_dict() for c in self.candidates],
        }


@dataclass
class ResearchSuggestion:
    type: str
    priority: str  # high, medium, low
    title: str
    description: str
    search_targets: list[str] = field(default_factory=list)
