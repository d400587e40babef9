"""Normalized shape of a record returned by any search provider."""

from dataclasses import asdict, dataclass, field
from typing import Any

from genmatch.errors import ConfigurationError
from genmatch.models.subject import PersonRef, split_name


@dataclass
class CandidateRecord:
    """An externally discovered record proposed as a match for a subject.

    Every provider converts its own response into this shape; nothing
    provider-specific crosses into aggregation or scoring except ``raw_data``,
    which is kept opaque for later re-analysis.

    Attributes:
        id: Record identifier within its source
        source: Source name (e.g. "FamilySearch", "WikiTree")
        name: Display name as recorded
        birth: Birth date text
        death: Death date text
        location: Location text (usually birth place)
        url: Link to the record at its source
        additional_info: Free-text extra detail
        confidence: Provider-assigned initial confidence (0.0 to 1.0)
        father_name: Father's name when the source supplies it
        mother_name: Mother's name when the source supplies it
        spouse_name: Spouse's name when the source supplies it
        search_query: Name variation that produced this record
        raw_data: Untouched provider payload
    """

    id: str
    source: str
    name: str
    birth: str = ""
    death: str = ""
    location: str = ""
    url: str = ""
    additional_info: str = ""
    confidence: float = 0.5
    father_name: str = ""
    mother_name: str = ""
    spouse_name: str = ""
    search_query: str = ""
    raw_data: dict[str, Any] = field(default_factory=dict)

    @property
    def dedup_key(self) -> str:
        """Identity used to merge duplicates across providers."""
        return f"{self.name}_{self.birth}_{self.location}"

    def as_person_ref(self) -> PersonRef:
        """View this record's name and birth as a PersonRef for name matching."""
        given, family = split_name(self.name)
        return PersonRef(
            given_names=given,
            family_names=family,
            id=self.id,
            birth_date=self.birth or None,
            birth_place=self.location or None,
            death_date=self.death or None,
        )

    def field_values(self) -> list[str]:
        """All text fields, for placeholder scanning."""
        return [
            self.id, self.source, self.name, self.birth, self.death, self.location,
            self.url, self.additional_info, self.father_name, self.mother_name,
            self.spouse_name,
        ]

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        data = asdict(self)
        if not include_raw:
            data.pop("raw_data")
        return data


def candidate_from_dict(data: dict[str, Any]) -> CandidateRecord:
    """Build a CandidateRecord from a snake_case or camelCase dict.

    Raises:
        ConfigurationError: If id or name is missing
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Candidate record must be a JSON object")

    record_id = data.get("id") or data.get("record_id") or data.get("recordId")
    name = data.get("name")
    if not name and (data.get("givenName") or data.get("familyName")):
        name = f"{data.get('givenName', '')} {data.get('familyName', '')}".strip()
    if not record_id:
        raise ConfigurationError("Candidate record requires an id")
    if not name:
        raise ConfigurationError(f"Candidate record {record_id} has no name")

    def text(*keys: str) -> str:
        for key in keys:
            if data.get(key):
                return str(data[key])
        return ""

    try:
        confidence = float(data.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5

    return CandidateRecord(
        id=str(record_id),
        source=text("source") or "Unknown",
        name=str(name),
        birth=text("birth", "birth_date", "birthDate"),
        death=text("death", "death_date", "deathDate"),
        location=text("location", "birth_place", "birthPlace"),
        url=text("url"),
        additional_info=text("additional_info", "additionalInfo"),
        confidence=max(0.0, min(1.0, confidence)),
        father_name=text("father_name", "fatherName"),
        mother_name=text("mother_name", "motherName"),
        spouse_name=text("spouse_name", "spouseName"),
        search_query=text("search_query", "searchQuery"),
        raw_data=data.get("raw_data") or data.get("rawData") or {},
    )


__all__ = ["CandidateRecord", "candidate_from_dict", "split_name"]
