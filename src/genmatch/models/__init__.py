"""Data models for subjects, candidate records and match results."""

from genmatch.models.candidate import CandidateRecord, candidate_from_dict
from genmatch.models.results import (
    AIAnalysis,
    AnalysisMethod,
    ConfidenceResult,
    FinalRecommendation,
    MatchAnalysis,
    NameMatchResult,
    QualityAssessment,
    Recommendation,
    ResearchSuggestion,
    ScoredCandidate,
    SearchOutcome,
    SearchStatus,
    SearchStrategy,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from genmatch.models.subject import (
    FamilyContext,
    PersonRef,
    SpouseRef,
    Subject,
    split_name,
    subject_from_dataset,
    subject_from_dict,
)

__all__ = [
    "AIAnalysis",
    "AnalysisMethod",
    "CandidateRecord",
    "ConfidenceResult",
    "FinalRecommendation",
    "MatchAnalysis",
    "NameMatchResult",
    "FamilyContext",
    "PersonRef",
    "QualityAssessment",
    "Recommendation",
    "ResearchSuggestion",
    "ScoredCandidate",
    "SearchOutcome",
    "SearchStatus",
    "SearchStrategy",
    "Severity",
    "SpouseRef",
    "Subject",
    "ValidationIssue",
    "ValidationResult",
    "candidate_from_dict",
    "split_name",
    "subject_from_dataset",
    "subject_from_dict",
]
