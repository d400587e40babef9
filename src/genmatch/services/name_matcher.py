"""Fuzzy name matching for genealogical records.

Names of the same person drift across records: nicknames (William/Bill),
immigration anglicization (Wilhelm/William), clerk spelling (Smith/Smyth) and
plain transcription noise. The matcher computes one score per heuristic and
keeps the **maximum**. A perfect nickname pair with a poor raw-string
similarity should still score high, which an average would prevent.

Full names are combined as ``0.6 x given + 0.4 x max(family, maiden)`` so
a woman recorded under her married name can still match her birth record.

Reference tables (nicknames, cultural variants, spelling variants) are
constructor arguments defaulting to ``genmatch.config.constants``.
"""

import re
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from genmatch.config.constants import (
    CULTURAL_VARIANTS,
    MAIDEN_NAME_INDICATORS,
    NICKNAMES,
    PHONETIC_SUBSTITUTIONS,
    SPELLING_VARIANTS,
)
from genmatch.models.results import NameMatchResult
from genmatch.models.subject import PersonRef, Subject
from genmatch.utils.phonetics import normalize_name, phonetic_variants, soundex

# =============================================================================
# SCORING CONSTANTS
# =============================================================================

NICKNAME_MATCH_SCORE = 0.9
CULTURAL_MATCH_SCORE = 0.9
SPELLING_MATCH_SCORE = 0.9
SOUNDEX_EXACT_SCORE = 0.85
SOUNDEX_PREFIX_SCORE = 0.7

GIVEN_NAME_WEIGHT = 0.6
FAMILY_NAME_WEIGHT = 0.4

assert abs(GIVEN_NAME_WEIGHT + FAMILY_NAME_WEIGHT - 1.0) < 0.001, "Name weights must sum to 1.0"

# Score above which a component counts as matched in NameMatchResult.details
COMPONENT_MATCH_THRESHOLD = 0.7
STRONG_MATCH_THRESHOLD = 0.8


@dataclass
class NameMatchOptions:
    """Which heuristics match_names may use.

    Attributes:
        use_phonetic: Include Soundex comparison (off by default; it is the
            loosest signal and inflates unrelated short surnames)
        strict: Direct string similarity only
        allow_nicknames: Include nickname table lookups
        allow_cultural: Include cultural/immigration variant lookups
        allow_spelling: Include spelling table and letter substitutions
    """

    use_phonetic: bool = False
    strict: bool = False
    allow_nicknames: bool = True
    allow_cultural: bool = True
    allow_spelling: bool = True


def _bidirectional(table: dict[str, list[str]]) -> dict[str, set[str]]:
    """Map every name in a formal -> variants table to its equivalents."""
    lookup: dict[str, set[str]] = {}
    for formal, variants in table.items():
        lookup.setdefault(formal, set()).update(v for v in variants if v != formal)
        for variant in variants:
            if variant != formal:
                lookup.setdefault(variant, set()).add(formal)
    return lookup


class NameMatcher:
    """Scores similarity between names and generates name variants."""

    def __init__(
        self,
        nicknames: dict[str, list[str]] | None = None,
        cultural_variants: dict[str, list[str]] | None = None,
        spelling_variants: dict[str, list[str]] | None = None,
        substitutions: list[tuple[str, str]] | None = None,
    ):
        self._nicknames = _bidirectional(nicknames if nicknames is not None else NICKNAMES)
        self._cultural = _bidirectional(
            cultural_variants if cultural_variants is not None else CULTURAL_VARIANTS
        )
        self._spelling = _bidirectional(
            spelling_variants if spelling_variants is not None else SPELLING_VARIANTS
        )
        self._substitutions = substitutions if substitutions is not None else PHONETIC_SUBSTITUTIONS

        indicators = "|".join(re.escape(i) for i in MAIDEN_NAME_INDICATORS)
        self._maiden_pattern = re.compile(rf"\b(?:{indicators})\s+([\w\s'-]+)", re.IGNORECASE)
        self._maiden_strip_pattern = re.compile(rf"\s*(?:\b(?:{indicators})\b.*|\(.*)$", re.IGNORECASE)
        self._parenthetical_pattern = re.compile(r"\(([^)]+)\)")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def match_names(
        self,
        name_a: str | None,
        name_b: str | None,
        options: NameMatchOptions | None = None,
    ) -> float:
        """Score two names (given or family) between 0.0 and 1.0.

        Args:
            name_a: First name string
            name_b: Second name string
            options: Heuristic switches (default: NameMatchOptions())

        Returns:
            Highest score across enabled heuristics; 0.0 if either is empty
        """
        options = options or NameMatchOptions()

        a = normalize_name(name_a)
        b = normalize_name(name_b)
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0

        scores = [self.direct_similarity(a, b)]

        if not options.strict:
            if options.allow_nicknames:
                scores.append(
                    self._variant_score(self.nickname_variants(a), self.nickname_variants(b),
                                        NICKNAME_MATCH_SCORE)
                )
            if options.allow_cultural:
                scores.append(
                    self._variant_score(self.cultural_variants(a), self.cultural_variants(b),
                                        CULTURAL_MATCH_SCORE)
                )
            if options.allow_spelling:
                scores.append(
                    self._variant_score(self.spelling_variants(a), self.spelling_variants(b),
                                        SPELLING_MATCH_SCORE)
                )
            if options.use_phonetic:
                scores.append(self.phonetic_score(a, b))

        return max(scores)

    def match_full_names(
        self,
        person_a: PersonRef | Subject,
        person_b: PersonRef | Subject,
        options: NameMatchOptions | None = None,
    ) -> NameMatchResult:
        """Compare given, family and maiden names of two people.

        Returns:
            NameMatchResult with the weighted overall score and per-part scores
        """
        given_score = self.match_names(person_a.given_names, person_b.given_names, options)
        family_score = self.match_names(
            self._family_core(person_a.family_names),
            self._family_core(person_b.family_names),
            options,
        )
        maiden_score = self.maiden_name_score(person_a, person_b, options)

        best_family = max(family_score, maiden_score)
        overall = GIVEN_NAME_WEIGHT * given_score + FAMILY_NAME_WEIGHT * best_family

        return NameMatchResult(
            overall_score=overall,
            given_name_score=given_score,
            family_name_score=family_score,
            maiden_name_score=maiden_score,
            details={
                "given_match": given_score > COMPONENT_MATCH_THRESHOLD,
                "family_match": best_family > COMPONENT_MATCH_THRESHOLD,
                "strong_match": overall > STRONG_MATCH_THRESHOLD,
            },
        )

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    @staticmethod
    def direct_similarity(a: str, b: str) -> float:
        """Levenshtein ratio: 1 - distance / longer length."""
        if a == b:
            return 1.0
        if not a or not b:
            return 0.0
        return Levenshtein.normalized_similarity(a, b)

    @staticmethod
    def phonetic_score(a: str, b: str) -> float:
        """0.85 for equal Soundex codes, 0.7 when the first three characters agree."""
        code_a, code_b = soundex(a), soundex(b)
        if code_a == code_b:
            return SOUNDEX_EXACT_SCORE
        if code_a[:3] == code_b[:3]:
            return SOUNDEX_PREFIX_SCORE
        return 0.0

    def is_nickname_pair(self, a: str, b: str) -> bool:
        """True when b is a known nickname or formal form of a (or vice versa)."""
        a, b = normalize_name(a), normalize_name(b)
        return a != b and b in self._nicknames.get(a, set())

    def maiden_name_score(
        self,
        person_a: PersonRef | Subject,
        person_b: PersonRef | Subject,
        options: NameMatchOptions | None = None,
    ) -> float:
        """Score either person's maiden name against the other's family name."""
        maiden_a = self.extract_maiden_name(person_a)
        maiden_b = self.extract_maiden_name(person_b)

        score = 0.0
        if maiden_a:
            score = max(score, self.match_names(maiden_a, self._family_core(person_b.family_names), options))
        if maiden_b:
            score = max(score, self.match_names(maiden_b, self._family_core(person_a.family_names), options))
        return score

    def extract_maiden_name(self, person: PersonRef | Subject) -> str | None:
        """Find a birth surname on a person record.

        Checks the explicit maiden_name field, then indicator words in the
        family name ("Smith née Jones", "Smith born Jones"), then a
        parenthetical ("Smith (Jones)").
        """
        if person.maiden_name:
            return person.maiden_name

        family = person.family_names or ""
        match = self._maiden_pattern.search(family)
        if match:
            return match.group(1).strip()

        match = self._parenthetical_pattern.search(family)
        if match:
            return match.group(1).strip()

        return None

    # -------------------------------------------------------------------------
    # Variant generation
    # -------------------------------------------------------------------------

    def nickname_variants(self, name: str) -> set[str]:
        return self._table_variants(name, self._nicknames)

    def cultural_variants(self, name: str) -> set[str]:
        return self._table_variants(name, self._cultural)

    def spelling_variants(self, name: str) -> set[str]:
        """Spelling-table variants plus letter-substitution spellings."""
        normalized = normalize_name(name)
        variants = self._table_variants(normalized, self._spelling)
        variants.update(phonetic_variants(normalized, self._substitutions))
        return {v for v in variants if v.strip()}

    def name_variants(self, name: str) -> set[str]:
        """Every variant the tables know for a name (the NameVariantSet).

        Recomputed on each call; nothing is cached between requests.
        """
        normalized = normalize_name(name)
        if not normalized:
            return set()
        return (
            self.nickname_variants(normalized)
            | self.cultural_variants(normalized)
            | self.spelling_variants(normalized)
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _table_variants(name: str, lookup: dict[str, set[str]]) -> set[str]:
        normalized = normalize_name(name)
        variants = {normalized}
        for word in normalized.split():
            variants.add(word)
            variants.update(lookup.get(word, set()))
        return variants

    def _variant_score(self, variants_a: set[str], variants_b: set[str], hit_score: float) -> float:
        """hit_score when the sets share a name, else the best pairwise ratio."""
        if variants_a & variants_b:
            return hit_score
        best = 0.0
        for a in variants_a:
            for b in variants_b:
                best = max(best, self.direct_similarity(a, b))
        return min(best, hit_score)

    def _family_core(self, family_names: str | None) -> str:
        """Family name without any maiden-name annotation."""
        return self._maiden_strip_pattern.sub("", family_names or "").strip()
