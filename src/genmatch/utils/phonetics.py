"""Name normalization and phonetic coding."""

import re

from genmatch.config.constants import NAME_SUFFIXES, NAME_TITLES, PHONETIC_SUBSTITUTIONS

_TITLE_PATTERN = re.compile(rf"^(?:{'|'.join(NAME_TITLES)})\.?\s+", re.IGNORECASE)
_SUFFIX_PATTERN = re.compile(rf"\s+(?:{'|'.join(NAME_SUFFIXES)})\.?$", re.IGNORECASE)
_PUNCTUATION_PATTERN = re.compile(r"[^\w\s\-']")

SOUNDEX_CODES = {
    **dict.fromkeys("BFPV", "1"),
    **dict.fromkeys("CGJKQSXZ", "2"),
    **dict.fromkeys("DT", "3"),
    "L": "4",
    **dict.fromkeys("MN", "5"),
    "R": "6",
}


def normalize_name(name: str | None) -> str:
    """Normalize a name for comparison.

    - Converts to lowercase
    - Strips a leading title (Mr, Dr, Rev, ...) and trailing suffix (Jr, III, ...)
    - Removes punctuation except hyphens and apostrophes
    - Collapses whitespace
    """
    if not name:
        return ""

    normalized = name.lower().strip()
    normalized = _TITLE_PATTERN.sub("", normalized)
    normalized = _SUFFIX_PATTERN.sub("", normalized)
    normalized = _PUNCTUATION_PATTERN.sub("", normalized)
    return " ".join(normalized.split())


def soundex(name: str | None) -> str:
    """Four-character Soundex code.

    Letters outside A-Z are dropped before coding. Adjacent letters that share
    a code contribute it once.

    Example:
        >>> soundex("Robert")
        'R163'
    """
    letters = re.sub(r"[^A-Z]", "", (name or "").upper())
    if not letters:
        return "0000"

    code = letters[0]
    for char in letters[1:]:
        if len(code) >= 4:
            break
        digit = SOUNDEX_CODES.get(char)
        if digit and digit != code[-1]:
            code += digit

    return code.ljust(4, "0")


def phonetic_variants(
    name: str,
    substitutions: list[tuple[str, str]] | None = None,
) -> list[str]:
    """Spellings produced by applying each letter-group substitution.

    Args:
        name: Normalized name
        substitutions: (from, to) pairs (default: PHONETIC_SUBSTITUTIONS)

    Returns:
        One variant per substitution that applies, in table order
    """
    variants = []
    for source, target in substitutions or PHONETIC_SUBSTITUTIONS:
        if source in name:
            variants.append(name.replace(source, target))
    return variants


def initials(name: str) -> str:
    """Lowercase initials of each whitespace-separated word."""
    return "".join(word[0] for word in name.lower().split() if word)
