"""Weighted confidence scoring for candidate records.

Five independent factors are scored between 0.0 and 1.0 and combined with
fixed weights into one explainable number:

1. **Name** (35%): blend of Levenshtein ratio, Jaro similarity, Soundex
   equality, nickname-table hit and initials match.
2. **Date** (25%): step function over the birth-year difference.
3. **Location** (20%): exact match, else per-component comparison of the
   comma-separated place parts.
4. **Family context** (15%): partial credit for matching parent and spouse names.
5. **Record quality** (5%): source reliability plus a completeness bonus.

Missing dates and locations score a neutral value rather than zero: a sparse
record that agrees with the subject must still reach human review.
"""

from typing import Any

from loguru import logger
from rapidfuzz.distance import Jaro, Levenshtein

from genmatch.config.constants import (
    CANDIDATE_SOURCE_RELIABILITY,
    DEFAULT_SOURCE_RELIABILITY,
    LOCATION_VARIANTS,
)
from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import ConfidenceResult, Recommendation
from genmatch.models.subject import PersonRef, Subject
from genmatch.services.name_matcher import NameMatcher
from genmatch.utils.dates import extract_year
from genmatch.utils.phonetics import initials, soundex

# =============================================================================
# WEIGHT CONFIGURATION
# =============================================================================

CONFIDENCE_WEIGHTS = {
    "name_match": 0.35,
    "date_match": 0.25,
    "location_match": 0.20,
    "family_context": 0.15,
    "record_quality": 0.05,
}

assert abs(sum(CONFIDENCE_WEIGHTS.values()) - 1.0) < 0.001, "Confidence weights must sum to 1.0"

# Blend of name signals inside the name factor
NAME_SIGNAL_WEIGHTS = {
    "levenshtein": 0.3,
    "jaro": 0.3,
    "soundex": 0.2,
    "nickname": 0.15,
    "initials": 0.05,
}

assert abs(sum(NAME_SIGNAL_WEIGHTS.values()) - 1.0) < 0.001, "Name signal weights must sum to 1.0"

NICKNAME_HIT_SCORE = 0.9
INITIALS_HIT_SCORE = 0.6

ACCEPT_THRESHOLD = 0.85
REVIEW_THRESHOLD = 0.60

# =============================================================================
# FACTOR SCORING TABLES
# =============================================================================

# (maximum year difference, score), checked in order
DATE_SCORE_STEPS = [
    (0, 1.0),
    (1, 0.95),
    (2, 0.90),
    (3, 0.85),
    (5, 0.75),
    (10, 0.60),
    (15, 0.40),
    (20, 0.20),
]
DATE_SCORE_FLOOR = 0.1
NEUTRAL_DATE_SCORE = 0.3
NEUTRAL_LOCATION_SCORE = 0.4
NEUTRAL_FAMILY_SCORE = 0.5

LOCATION_VARIANT_CREDIT = 0.8
LOCATION_SUBSTRING_CREDIT = 0.6

FATHER_WEIGHT = 0.3
MOTHER_WEIGHT = 0.3
SPOUSE_WEIGHT = 0.4

DATE_BONUS = 0.1
LOCATION_BONUS = 0.1
ADDITIONAL_INFO_BONUS = 0.05


class ConfidenceScorer:
    """Combines per-factor scores into a weighted match confidence."""

    def __init__(
        self,
        name_matcher: NameMatcher | None = None,
        source_reliability: dict[str, float] | None = None,
        location_variants: dict[str, list[str]] | None = None,
    ):
        self.name_matcher = name_matcher or NameMatcher()
        self.source_reliability = (
            source_reliability if source_reliability is not None else CANDIDATE_SOURCE_RELIABILITY
        )
        self.location_variants = location_variants if location_variants is not None else LOCATION_VARIANTS

    def calculate_confidence(
        self,
        subject: Subject,
        candidate: CandidateRecord,
        search_context: dict[str, Any] | None = None,
    ) -> ConfidenceResult:
        """Score how likely a candidate record describes the subject.

        Args:
            subject: The known person
            candidate: Record proposed as a match
            search_context: Optional details of the search that produced the
                candidate (``search_query``); echoed into the analysis

        Returns:
            ConfidenceResult whose overall_confidence is exactly the weighted
            sum of its factor scores
        """
        scores = {
            "name_match": self.score_name_match(subject, candidate),
            "date_match": self.score_date_match(subject, candidate),
            "location_match": self.score_location_match(subject, candidate),
            "family_context": self.score_family_context(subject, candidate),
            "record_quality": self.score_record_quality(candidate),
        }

        overall = sum(score * CONFIDENCE_WEIGHTS[factor] for factor, score in scores.items())

        analysis = self._generate_analysis(scores, overall)
        query = (search_context or {}).get("search_query") or candidate.search_query
        if query:
            analysis.append(f"Found via search for '{query}'")

        logger.debug(
            f"Confidence for {candidate.source}:{candidate.id} vs {subject.id}: {overall:.0%}"
        )

        return ConfidenceResult(
            overall_confidence=overall,
            scores=scores,
            recommendation=Recommendation.from_score(overall, ACCEPT_THRESHOLD, REVIEW_THRESHOLD),
            matching_factors=self._matching_factors(scores),
            concerns=self._concerns(scores),
            analysis=analysis,
        )

    # =========================================================================
    # FACTOR SCORES
    # =========================================================================

    def score_name_match(self, subject: Subject | PersonRef, candidate: CandidateRecord) -> float:
        subject_name = subject.full_name.lower()
        candidate_name = (candidate.name or "").strip().lower()

        if not subject_name or not candidate_name:
            return 0.0
        if subject_name == candidate_name:
            return 1.0

        signals = {
            "levenshtein": Levenshtein.normalized_similarity(subject_name, candidate_name),
            "jaro": Jaro.similarity(subject_name, candidate_name),
            "soundex": 1.0 if soundex(subject_name) == soundex(candidate_name) else 0.0,
            "nickname": self._nickname_signal(subject.given_names, candidate_name),
            "initials": INITIALS_HIT_SCORE if initials(subject_name) == initials(candidate_name) else 0.0,
        }

        score = sum(value * NAME_SIGNAL_WEIGHTS[name] for name, value in signals.items())
        return min(score, 1.0)

    @staticmethod
    def score_date_match(subject: Subject | PersonRef, candidate: CandidateRecord) -> float:
        subject_year = extract_year(subject.birth_date)
        candidate_year = extract_year(candidate.birth)
        if subject_year is None or candidate_year is None:
            return NEUTRAL_DATE_SCORE

        difference = abs(subject_year - candidate_year)
        for max_difference, score in DATE_SCORE_STEPS:
            if difference <= max_difference:
                return score
        return DATE_SCORE_FLOOR

    def score_location_match(self, subject: Subject | PersonRef, candidate: CandidateRecord) -> float:
        subject_place = (subject.birth_place or "").strip().lower()
        candidate_place = (candidate.location or "").strip().lower()

        if not subject_place or not candidate_place:
            return NEUTRAL_LOCATION_SCORE
        if subject_place == candidate_place:
            return 1.0

        subject_parts = [p.strip() for p in subject_place.split(",")]
        candidate_parts = [p.strip() for p in candidate_place.split(",")]
        part_count = max(len(subject_parts), len(candidate_parts))

        score = 0.0
        for subject_part, candidate_part in zip(subject_parts, candidate_parts):
            if not subject_part or not candidate_part:
                continue
            if subject_part == candidate_part:
                score += 1.0 / part_count
            elif self.is_location_variant(subject_part, candidate_part):
                score += LOCATION_VARIANT_CREDIT / part_count
            elif subject_part in candidate_part or candidate_part in subject_part:
                score += LOCATION_SUBSTRING_CREDIT / part_count

        return min(score, 1.0)

    @staticmethod
    def score_family_context(subject: Subject, candidate: CandidateRecord) -> float:
        score = NEUTRAL_FAMILY_SCORE
        compared = False

        pairs = [
            (subject.father, candidate.father_name, FATHER_WEIGHT),
            (subject.mother, candidate.mother_name, MOTHER_WEIGHT),
            (subject.spouses[0] if subject.spouses else None, candidate.spouse_name, SPOUSE_WEIGHT),
        ]
        for relative, recorded_name, weight in pairs:
            if relative is None or not recorded_name:
                continue
            score += weight * _partial_name_match(relative.full_name, recorded_name)
            compared = True

        return min(score, 1.0) if compared else NEUTRAL_FAMILY_SCORE

    def score_record_quality(self, candidate: CandidateRecord) -> float:
        score = self.source_reliability.get(candidate.source, DEFAULT_SOURCE_RELIABILITY)

        if candidate.birth and candidate.birth != "Unknown":
            score += DATE_BONUS
        if candidate.location and candidate.location != "Unknown":
            score += LOCATION_BONUS
        if candidate.additional_info:
            score += ADDITIONAL_INFO_BONUS

        return min(score, 1.0)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def is_location_variant(self, place_a: str, place_b: str) -> bool:
        """True when one part is the full name and the other a known abbreviation."""
        a, b = place_a.lower(), place_b.lower()
        for full, abbreviations in self.location_variants.items():
            if (a == full and b in abbreviations) or (b == full and a in abbreviations):
                return True
        return False

    def _nickname_signal(self, given_names: str, candidate_name: str) -> float:
        if not given_names:
            return 0.0
        first_given = given_names.split()[0]
        for token in candidate_name.split():
            if self.name_matcher.is_nickname_pair(first_given, token):
                return NICKNAME_HIT_SCORE
        return 0.0

    @staticmethod
    def _matching_factors(scores: dict[str, float]) -> list[str]:
        factors = []
        if scores["name_match"] > 0.7:
            factors.append("Name similarity")
        if scores["date_match"] > 0.8:
            factors.append("Birth date match")
        if scores["location_match"] > 0.7:
            factors.append("Location match")
        if scores["family_context"] > 0.7:
            factors.append("Family context")
        if scores["record_quality"] > 0.8:
            factors.append("High quality source")
        return factors

    @staticmethod
    def _concerns(scores: dict[str, float]) -> list[str]:
        concerns = []
        if scores["name_match"] < 0.5:
            concerns.append("Name differs significantly")
        if scores["date_match"] < 0.4:
            concerns.append("Birth dates differ substantially")
        if scores["location_match"] < 0.4:
            concerns.append("Different birth locations")
        if scores["record_quality"] < 0.6:
            concerns.append("Lower quality source")
        return concerns

    @staticmethod
    def _generate_analysis(scores: dict[str, float], overall: float) -> list[str]:
        analysis = []

        name = scores["name_match"]
        if name > 0.9:
            analysis.append("Excellent name match")
        elif name > 0.7:
            analysis.append("Good name similarity")
        elif name > 0.5:
            analysis.append("Moderate name similarity")
        else:
            analysis.append("Poor name match")

        date = scores["date_match"]
        if date > 0.9:
            analysis.append("Excellent date match")
        elif date > 0.7:
            analysis.append("Good date proximity")
        elif date > 0.4:
            analysis.append("Moderate date difference")
        else:
            analysis.append("Significant date discrepancy")

        location = scores["location_match"]
        if location > 0.8:
            analysis.append("Strong location match")
        elif location > 0.6:
            analysis.append("Good location similarity")
        elif location > 0.4:
            analysis.append("Some location overlap")
        else:
            analysis.append("Different locations")

        if overall > ACCEPT_THRESHOLD:
            analysis.append("HIGH CONFIDENCE: Likely the same person")
        elif overall > REVIEW_THRESHOLD:
            analysis.append("MODERATE CONFIDENCE: Needs human review")
        else:
            analysis.append("LOW CONFIDENCE: Probably different person")

        return analysis


def _partial_name_match(name_a: str, name_b: str) -> float:
    if not name_a or not name_b:
        return 0.0
    return Levenshtein.normalized_similarity(name_a.lower(), name_b.lower())
