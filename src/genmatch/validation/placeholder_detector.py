"""Detection of demo and test data in candidate records.

Some sources (and our own disabled providers in development) return records
like "Mock Cemetery, Mock City". A record matching any denylist pattern in any
text field is never recommended, whatever a model thinks of it.
"""

from loguru import logger

from genmatch.config.constants import PLACEHOLDER_PATTERNS
from genmatch.models.candidate import CandidateRecord


class PlaceholderDetector:
    """Case-insensitive substring scan over a candidate's text fields."""

    def __init__(self, patterns: list[str] | None = None):
        source = patterns if patterns is not None else PLACEHOLDER_PATTERNS
        self.patterns = [p.lower() for p in source if p]

    def find_patterns(self, candidate: CandidateRecord) -> list[str]:
        """Return every denylist pattern present in the candidate."""
        text = " | ".join(v for v in candidate.field_values() if v).lower()
        return [p for p in self.patterns if p in text]

    def is_placeholder(self, candidate: CandidateRecord) -> bool:
        found = self.find_patterns(candidate)
        if found:
            logger.warning(f"Placeholder data in {candidate.source} record {candidate.id}: {found}")
        return bool(found)
