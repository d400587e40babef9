"""Biological and chronological plausibility checks for person records.

Every rule runs independently and appends findings; nothing here raises for
an implausible record. The result carries two lists:

- ``issues``: findings with severity ``error`` or ``warning``. Any error makes
  the record invalid.
- ``warnings``: softer observations (unusual but possible) that lower the
  score without affecting validity.

Scores:
    validation_score = 1.0 - 0.25 per error issue - 0.10 per warning issue
                           - 0.05 per warnings entry, floored at 0
    confidence       = 0.7 x validation_score + 0.3 x quality score
"""

from loguru import logger

from genmatch.config.constants import (
    EVIDENCE_RELIABILITY,
    HISTORICAL_CONTEXT_WINDOW_YEARS,
    HISTORICAL_EVENTS,
    PLACE_NAME_VALIDITY,
)
from genmatch.models.results import QualityAssessment, Severity, ValidationIssue, ValidationResult
from genmatch.models.subject import FamilyContext, PersonRef, Subject
from genmatch.utils.dates import current_year, date_precision, extract_year

# =============================================================================
# BIOLOGICAL LIMITS
# =============================================================================

MIN_PARENT_AGE = 12
MAX_PARENT_AGE = 60
MIN_MARRIAGE_AGE = 12
MAX_HUMAN_LIFESPAN = 122  # verified maximum
REASONABLE_LIFESPAN = 100
MAX_SPOUSE_AGE_GAP = 25
MIN_PLAUSIBLE_BIRTH_YEAR = 1000

# =============================================================================
# SCORE PENALTIES
# =============================================================================

ERROR_PENALTY = 0.25
WARNING_ISSUE_PENALTY = 0.10
WARNING_ENTRY_PENALTY = 0.05

VALIDATION_WEIGHT = 0.7
QUALITY_WEIGHT = 0.3

CORE_FIELDS = ("given_names", "family_names", "birth_date", "birth_place", "sex")
VALID_SEX_VALUES = {"M", "F", "U"}


class RecordValidator:
    """Checks a person record for plausibility and data quality."""

    def __init__(
        self,
        place_name_validity: dict[str, tuple[int, int, str]] | None = None,
        historical_events: dict[int, str] | None = None,
        evidence_reliability: dict[str, float] | None = None,
    ):
        self.place_name_validity = (
            place_name_validity if place_name_validity is not None else PLACE_NAME_VALIDITY
        )
        self.historical_events = historical_events if historical_events is not None else HISTORICAL_EVENTS
        self.evidence_reliability = (
            evidence_reliability if evidence_reliability is not None else EVIDENCE_RELIABILITY
        )

    def validate_person_record(
        self,
        person: Subject | PersonRef,
        family_context: FamilyContext | None = None,
    ) -> ValidationResult:
        """Validate a person record with its family context.

        Args:
            person: Subject or bare PersonRef to check
            family_context: Relatives to check against (default: the subject's own)

        Returns:
            ValidationResult with issues, warnings, quality and scores
        """
        if family_context is None:
            family_context = FamilyContext.of(person) if isinstance(person, Subject) else FamilyContext()

        result = ValidationResult()

        self._validate_core_data(person, result)
        self._validate_parent_ages(person, family_context, result)
        self._validate_spouses(person, family_context, result)
        self._validate_children(person, family_context, result)
        self._validate_timeline(person, family_context, result)
        self._validate_historical_context(person, result)
        self._assess_data_quality(person, result)
        self._calculate_final_scores(result)

        logger.debug(
            f"Validated {person.full_name or person.id}: {result.summary()} "
            f"(score {result.validation_score:.2f})"
        )
        return result

    # -------------------------------------------------------------------------
    # Core data
    # -------------------------------------------------------------------------

    def _validate_core_data(self, person: Subject | PersonRef, result: ValidationResult) -> None:
        if person.birth_date:
            reason = self._date_problem(person.birth_date, "birth")
            if reason:
                result.issues.append(ValidationIssue(
                    type="invalid_birth_date",
                    severity=Severity.ERROR,
                    message=reason,
                    field="birth_date",
                    details={"value": person.birth_date},
                ))

        if person.death_date:
            reason = self._date_problem(person.death_date, "death")
            if reason:
                result.issues.append(ValidationIssue(
                    type="invalid_death_date",
                    severity=Severity.ERROR,
                    message=reason,
                    field="death_date",
                    details={"value": person.death_date},
                ))
            if person.birth_date:
                self._validate_lifespan(person.birth_date, person.death_date, result)

        if not person.given_names and not person.family_names:
            result.issues.append(ValidationIssue(
                type="missing_name",
                severity=Severity.ERROR,
                message="Person must have at least given name or family name",
                field="name",
            ))

        if person.sex and person.sex.upper() not in VALID_SEX_VALUES:
            result.warnings.append(ValidationIssue(
                type="invalid_sex",
                severity=Severity.WARNING,
                message=f"Invalid sex value: {person.sex}. Expected M, F, or U",
                field="sex",
                details={"value": person.sex},
            ))

    @staticmethod
    def _date_problem(value: str, kind: str) -> str | None:
        year = extract_year(value)
        if year is None:
            return f"Invalid {kind} date format: {value}"
        if year > current_year():
            return f"{kind.capitalize()} date cannot be in the future: {year}"
        if kind == "birth" and year < MIN_PLAUSIBLE_BIRTH_YEAR:
            return f"Birth year {year} is historically implausible"
        return None

    @staticmethod
    def _validate_lifespan(birth_date: str, death_date: str, result: ValidationResult) -> None:
        birth_year, death_year = extract_year(birth_date), extract_year(death_date)
        if birth_year is None or death_year is None:
            return

        age = death_year - birth_year
        if age < 0:
            severity, message = Severity.ERROR, f"Death year ({death_year}) before birth year ({birth_year})"
        elif age > MAX_HUMAN_LIFESPAN:
            severity, message = (
                Severity.ERROR,
                f"Age {age} exceeds maximum human lifespan ({MAX_HUMAN_LIFESPAN})",
            )
        elif age > REASONABLE_LIFESPAN:
            severity, message = Severity.WARNING, f"Age {age} is unusually high but possible"
        else:
            return

        result.issues.append(ValidationIssue(
            type="invalid_lifespan",
            severity=severity,
            message=message,
            field="lifespan",
            details={"calculated_age": age},
        ))

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def _validate_parent_ages(
        self, person: Subject | PersonRef, family: FamilyContext, result: ValidationResult
    ) -> None:
        birth_year = extract_year(person.birth_date)
        if birth_year is None:
            return

        for role, parent in (("father", family.father), ("mother", family.mother)):
            parent_year = extract_year(parent.birth_date) if parent else None
            if parent_year is None:
                continue

            age = birth_year - parent_year
            if age < MIN_PARENT_AGE:
                result.issues.append(ValidationIssue(
                    type="parent_too_young",
                    severity=Severity.ERROR,
                    message=(
                        f"{role} would be {age} years old at child's birth "
                        f"(minimum: {MIN_PARENT_AGE})"
                    ),
                    field=f"{role}_age",
                    details={"parent_name": parent.full_name, "calculated_age": age},
                ))
            elif age > MAX_PARENT_AGE:
                result.warnings.append(ValidationIssue(
                    type="parent_very_old",
                    severity=Severity.WARNING,
                    message=f"{role} would be {age} years old at child's birth (unusual for the era)",
                    field=f"{role}_age",
                    details={"parent_name": parent.full_name, "calculated_age": age},
                ))

    def _validate_spouses(
        self, person: Subject | PersonRef, family: FamilyContext, result: ValidationResult
    ) -> None:
        birth_year = extract_year(person.birth_date)
        if birth_year is None:
            return

        for spouse in family.spouses:
            spouse_year = extract_year(spouse.birth_date)
            if spouse_year is None:
                continue

            gap = abs(birth_year - spouse_year)
            if gap > MAX_SPOUSE_AGE_GAP:
                result.warnings.append(ValidationIssue(
                    type="large_spouse_age_gap",
                    severity=Severity.WARNING,
                    message=f"Large age difference with spouse: {gap} years",
                    field="spouse_age",
                    details={"spouse_name": spouse.full_name, "age_difference": gap},
                ))

            marriage_year = extract_year(spouse.marriage_date)
            if marriage_year is None:
                continue

            person_age = marriage_year - birth_year
            spouse_age = marriage_year - spouse_year
            # Marriage before birth is reported by the timeline check
            if 0 <= person_age < MIN_MARRIAGE_AGE:
                result.issues.append(ValidationIssue(
                    type="marriage_too_young",
                    severity=Severity.ERROR,
                    message=f"Person married at age {person_age} (minimum: {MIN_MARRIAGE_AGE})",
                    field="marriage_age",
                    details={"calculated_age": person_age},
                ))
            if spouse_age < MIN_MARRIAGE_AGE:
                result.issues.append(ValidationIssue(
                    type="spouse_marriage_too_young",
                    severity=Severity.ERROR,
                    message=f"Spouse married at age {spouse_age} (minimum: {MIN_MARRIAGE_AGE})",
                    field="spouse_marriage_age",
                    details={"spouse_name": spouse.full_name, "calculated_age": spouse_age},
                ))

    def _validate_children(
        self, person: Subject | PersonRef, family: FamilyContext, result: ValidationResult
    ) -> None:
        birth_year = extract_year(person.birth_date)
        death_year = extract_year(person.death_date)

        for child in family.children:
            child_year = extract_year(child.birth_date)
            if child_year is None:
                continue

            if birth_year is not None:
                age = child_year - birth_year
                if age < MIN_PARENT_AGE:
                    result.issues.append(ValidationIssue(
                        type="child_parent_too_young",
                        severity=Severity.ERROR,
                        message=(
                            f"Person would be {age} years old at birth of {child.full_name or 'child'} "
                            f"(minimum: {MIN_PARENT_AGE})"
                        ),
                        field="child_age",
                        details={"child_name": child.full_name, "calculated_age": age},
                    ))
                elif age > MAX_PARENT_AGE:
                    result.warnings.append(ValidationIssue(
                        type="child_parent_very_old",
                        severity=Severity.WARNING,
                        message=f"Person would be {age} years old at birth of {child.full_name or 'child'}",
                        field="child_age",
                        details={"child_name": child.full_name, "calculated_age": age},
                    ))

            # A father may die before a posthumous child is born
            if death_year is not None and child_year > death_year + 1:
                result.issues.append(ValidationIssue(
                    type="child_born_after_death",
                    severity=Severity.ERROR,
                    message=f"{child.full_name or 'Child'} born {child_year}, after person's death in {death_year}",
                    field="timeline",
                    details={"child_name": child.full_name},
                ))

    # -------------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------------

    def _validate_timeline(
        self, person: Subject | PersonRef, family: FamilyContext, result: ValidationResult
    ) -> None:
        birth_year = extract_year(person.birth_date)
        death_year = extract_year(person.death_date)

        # Birth/death order is covered by the lifespan rule
        for index, spouse in enumerate(family.spouses, start=1):
            marriage_year = extract_year(spouse.marriage_date)
            if marriage_year is None:
                continue
            if death_year is not None and marriage_year > death_year:
                result.issues.append(ValidationIssue(
                    type="chronology_error",
                    severity=Severity.ERROR,
                    message=f"marriage_{index} ({marriage_year}) occurs after death ({death_year})",
                    field="timeline",
                    details={"events": [f"marriage_{index}", "death"]},
                ))
            if birth_year is not None and marriage_year < birth_year:
                result.issues.append(ValidationIssue(
                    type="marriage_before_birth",
                    severity=Severity.ERROR,
                    message=f"Marriage ({marriage_year}) occurs before birth ({birth_year})",
                    field="timeline",
                ))

        if birth_year is None:
            return

        for role, parent in (("father", family.father), ("mother", family.mother)):
            parent_death = extract_year(parent.death_date) if parent else None
            if parent_death is not None and parent_death < birth_year:
                result.issues.append(ValidationIssue(
                    type="parent_died_before_birth",
                    severity=Severity.ERROR,
                    message=f"{role} died in {parent_death}, but child was born in {birth_year}",
                    field="timeline",
                    details={"parent_name": parent.full_name},
                ))

    # -------------------------------------------------------------------------
    # Historical context
    # -------------------------------------------------------------------------

    def _validate_historical_context(self, person: Subject | PersonRef, result: ValidationResult) -> None:
        birth_year = extract_year(person.birth_date)
        if birth_year is None:
            return

        if person.birth_place:
            for part in person.birth_place.split(","):
                entry = self.place_name_validity.get(part.strip().lower())
                if not entry:
                    continue
                first, last, modern = entry
                if birth_year < first or birth_year > last:
                    result.warnings.append(ValidationIssue(
                        type="anachronistic_location",
                        severity=Severity.WARNING,
                        message=(
                            f"{part.strip()} not historically accurate for {birth_year}. "
                            f"Consider {modern}"
                        ),
                        field="birth_place",
                        details={"location": person.birth_place, "year": birth_year},
                    ))

        events = self.historical_context(birth_year)
        if events:
            result.recommendations.append(ValidationIssue(
                type="historical_context",
                severity=Severity.WARNING,
                message=f"Consider historical events: {', '.join(events)}",
                field="context",
                details={"events": events},
            ))

    def historical_context(self, year: int) -> list[str]:
        """Major events within a few years of the given year."""
        return [
            event for event_year, event in sorted(self.historical_events.items())
            if abs(event_year - year) <= HISTORICAL_CONTEXT_WINDOW_YEARS
        ]

    # -------------------------------------------------------------------------
    # Quality and scores
    # -------------------------------------------------------------------------

    def _assess_data_quality(self, person: Subject | PersonRef, result: ValidationResult) -> None:
        factors = []

        present = sum(1 for name in CORE_FIELDS if getattr(person, name))
        completeness = present / len(CORE_FIELDS)
        score = completeness
        factors.append(f"Completeness: {round(completeness * 100)}%")

        if person.birth_date:
            level, multiplier = date_precision(person.birth_date)
            score *= multiplier
            factors.append(f"Date precision: {level}")

        sources = person.sources if isinstance(person, Subject) else ()
        if sources:
            reliability = sum(
                self.evidence_reliability.get(s, self.evidence_reliability.get("unknown", 0.3))
                for s in sources
            ) / len(sources)
            score *= reliability
            factors.append(f"Source reliability: {self._reliability_level(reliability)}")

        if not result.issues and not result.warnings:
            factors.append("No validation issues")
        else:
            issue_factor = max(0.1, 1 - (len(result.issues) * 0.2 + len(result.warnings) * 0.1))
            score *= issue_factor
            factors.append(f"Issues detected: -{round((1 - issue_factor) * 100)}%")

        result.quality_assessment = QualityAssessment(
            score=score,
            completeness=completeness,
            factors=factors,
            recommendation=self._quality_recommendation(score),
        )

    @staticmethod
    def _calculate_final_scores(result: ValidationResult) -> None:
        score = 1.0
        for issue in result.issues:
            score -= ERROR_PENALTY if issue.severity == Severity.ERROR else WARNING_ISSUE_PENALTY
        score -= WARNING_ENTRY_PENALTY * len(result.warnings)

        result.validation_score = max(0.0, score)
        result.is_valid = not any(i.severity == Severity.ERROR for i in result.issues)

        quality = result.quality_assessment.score if result.quality_assessment else 0.5
        result.confidence = VALIDATION_WEIGHT * result.validation_score + QUALITY_WEIGHT * quality

    @staticmethod
    def _reliability_level(score: float) -> str:
        if score > 0.9:
            return "excellent"
        if score > 0.8:
            return "very_good"
        if score > 0.7:
            return "good"
        return "fair"

    @staticmethod
    def _quality_recommendation(score: float) -> str:
        if score >= 0.9:
            return "Excellent data quality"
        if score >= 0.8:
            return "Good data quality"
        if score >= 0.7:
            return "Fair data quality - consider additional research"
        if score >= 0.6:
            return "Poor data quality - significant gaps or issues"
        return "Very poor data quality - extensive verification needed"
