"""Genealogical date helpers.

Dates arrive as free text in many shapes ("1920-03-15", "15 MAR 1920",
"abt 1920", "1920s"). Matching only ever needs the year and a rough sense of
how precise the original was.
"""

import re
from datetime import date


class GenealogyDate:
    """Year extraction and precision classification for free-text dates."""

    # First free-standing 3- or 4-digit number is taken as the year
    YEAR_PATTERN = re.compile(r"(?<!\d)(\d{3,4})(?!\d)")

    _MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"

    APPROXIMATE_PATTERN = re.compile(
        r"\b(?:abt|about|circa|ca|c|est|estimated|approx|approximately|bef|before|aft|after)\b\.?",
        re.IGNORECASE,
    )
    EXACT_PATTERNS = [
        re.compile(r"\d{4}-\d{2}-\d{2}"),
        re.compile(rf"\b\d{{1,2}}\s+{_MONTH}\s+\d{{4}}\b", re.IGNORECASE),
        re.compile(rf"\b{_MONTH}\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    ]
    MONTH_YEAR_PATTERNS = [
        re.compile(r"\d{4}-\d{2}"),
        re.compile(rf"\b{_MONTH}\s+\d{{4}}\b", re.IGNORECASE),
    ]

    # Precision level -> quality multiplier
    PRECISION_SCORES = {
        "exact_date": 1.0,
        "month_year": 0.9,
        "year_only": 0.8,
        "approximate": 0.6,
        "imprecise": 0.4,
    }

    @classmethod
    def extract_year(cls, value: str | None) -> int | None:
        """Extract the year from a free-text date.

        Args:
            value: Date text (e.g., "15 MAR 1920", "1920-03-15", "abt 1920")

        Returns:
            Year as int, or None if no year is present

        Example:
            >>> GenealogyDate.extract_year("15 MAR 1920")
            1920
        """
        if not value:
            return None

        match = cls.YEAR_PATTERN.search(str(value))
        if not match:
            return None
        return int(match.group(1))

    @classmethod
    def precision(cls, value: str | None) -> tuple[str, float]:
        """Classify how precisely a date was recorded.

        Approximate markers are checked first, so "abt 1920" ranks below a
        bare "1920".

        Returns:
            Tuple of (precision level, quality multiplier)
        """
        if not value:
            return "imprecise", cls.PRECISION_SCORES["imprecise"]

        text = str(value).strip()

        if cls.APPROXIMATE_PATTERN.search(text):
            level = "approximate"
        elif any(p.search(text) for p in cls.EXACT_PATTERNS):
            level = "exact_date"
        elif any(p.search(text) for p in cls.MONTH_YEAR_PATTERNS):
            level = "month_year"
        elif cls.extract_year(text) is not None:
            level = "year_only"
        else:
            level = "imprecise"

        return level, cls.PRECISION_SCORES[level]


# Convenience functions
def extract_year(value: str | None) -> int | None:
    """Extract the year from a free-text date."""
    return GenealogyDate.extract_year(value)


def date_precision(value: str | None) -> tuple[str, float]:
    """Classify date precision, returning (level, multiplier)."""
    return GenealogyDate.precision(value)


def current_year() -> int:
    """Current calendar year."""
    return date.today().year
