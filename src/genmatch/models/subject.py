"""The known person a match is sought for, and adapters that build one.

Callers hand the core a Subject. Anything shaped differently (camelCase JSON
from a genealogy export, a single ``name`` field, flat ``father``/``mother``
keys) is converted here, once, at the boundary.
"""

from dataclasses import dataclass, field
from typing import Any

from genmatch.errors import ConfigurationError
from genmatch.utils.dates import extract_year


@dataclass(frozen=True)
class PersonRef:
    """A relative of the subject (parent, spouse or child).

    Attributes:
        given_names: Given name(s), space-separated
        family_names: Family name(s) as recorded
        id: Identifier in the caller's dataset, if any
        maiden_name: Birth surname when it differs from family_names
        sex: "M", "F" or "U"
        birth_date: Free-text birth date
        birth_place: Free-text birth place
        death_date: Free-text death date
    """

    given_names: str = ""
    family_names: str = ""
    id: str | None = None
    maiden_name: str | None = None
    sex: str | None = None
    birth_date: str | None = None
    birth_place: str | None = None
    death_date: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.given_names} {self.family_names}".strip()


@dataclass(frozen=True)
class SpouseRef(PersonRef):
    """A spouse, with the marriage that links them to the subject."""

    marriage_date: str | None = None
    marriage_place: str | None = None


@dataclass(frozen=True)
class Subject:
    """The known person a candidate record is compared against.

    Immutable for the duration of a match operation. Family context
    (parents, spouses, children) travels with the subject.
    """

    id: str
    given_names: str = ""
    family_names: str = ""
    maiden_name: str | None = None
    sex: str | None = None
    birth_date: str | None = None
    birth_place: str | None = None
    death_date: str | None = None
    death_place: str | None = None
    father: PersonRef | None = None
    mother: PersonRef | None = None
    spouses: tuple[SpouseRef, ...] = ()
    children: tuple[PersonRef, ...] = ()
    sources: tuple[str, ...] = field(default=())  # evidence types, e.g. "census"

    @property
    def full_name(self) -> str:
        return f"{self.given_names} {self.family_names}".strip()

    @property
    def birth_year(self) -> int | None:
        return extract_year(self.birth_date)

    @property
    def death_year(self) -> int | None:
        return extract_year(self.death_date)

    @property
    def has_name(self) -> bool:
        return bool(self.given_names or self.family_names)

    def family_context(self) -> dict[str, Any]:
        """Names of close relatives, for search parameters and prompts."""
        return {
            "father": self.father.full_name if self.father else None,
            "mother": self.mother.full_name if self.mother else None,
            "spouses": [s.full_name for s in self.spouses],
            "children": [c.full_name for c in self.children],
        }


# =============================================================================
# ADAPTERS
# =============================================================================


def split_name(name: str) -> tuple[str, str]:
    """Split a single display name into (given, family).

    The last token is the family name; a single token is treated as a given
    name. Single-token family-only records are therefore misread as given
    names, which is a known limitation.
    """
    parts = (name or "").split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return " ".join(parts[:-1]), parts[-1]


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _names_from(data: dict[str, Any]) -> tuple[str, str]:
    given = _pick(data, "given_names", "givenNames", "given_name", "givenName") or ""
    family = _pick(data, "family_names", "familyNames", "family_name", "familyName", "surname") or ""
    if not given and not family and data.get("name"):
        given, family = split_name(str(data["name"]))
    return str(given).strip(), str(family).strip()


def _person_fields(data: dict[str, Any]) -> dict[str, Any]:
    given, family = _names_from(data)
    person_id = _pick(data, "id", "person_id", "personId")
    return {
        "given_names": given,
        "family_names": family,
        "id": str(person_id) if person_id is not None else None,
        "maiden_name": _pick(data, "maiden_name", "maidenName", "birth_name", "birthName"),
        "sex": _pick(data, "sex", "gender"),
        "birth_date": _pick(data, "birth_date", "birthDate"),
        "birth_place": _pick(data, "birth_place", "birthPlace"),
        "death_date": _pick(data, "death_date", "deathDate"),
    }


def person_ref_from_dict(data: dict[str, Any] | None) -> PersonRef | None:
    """Build a PersonRef from a dict, or None for missing/empty input."""
    if not data:
        return None
    return PersonRef(**_person_fields(data))


def spouse_ref_from_dict(data: dict[str, Any]) -> SpouseRef:
    """Build a SpouseRef from a dict carrying optional marriage fields."""
    return SpouseRef(
        **_person_fields(data),
        marriage_date=_pick(data, "marriage_date", "marriageDate"),
        marriage_place=_pick(data, "marriage_place", "marriagePlace"),
    )


def subject_from_dict(data: dict[str, Any]) -> Subject:
    """Build a Subject from a snake_case or camelCase dict.

    Accepts nested ``parents: {father, mother}`` or flat ``father``/``mother``,
    and ``spouses`` (list) or a single ``spouse``.

    Raises:
        ConfigurationError: If the dict carries no id or no name at all
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Subject must be a JSON object")

    fields = _person_fields(data)
    if not fields["id"]:
        raise ConfigurationError("Subject requires an id")
    if not fields["given_names"] and not fields["family_names"]:
        raise ConfigurationError(f"Subject {fields['id']} has no name")

    parents = data.get("parents") or {}
    father = person_ref_from_dict(parents.get("father") or data.get("father"))
    mother = person_ref_from_dict(parents.get("mother") or data.get("mother"))

    spouses_data = data.get("spouses")
    if spouses_data is None and data.get("spouse"):
        spouses_data = [data["spouse"]]

    sources = []
    for source in data.get("sources") or []:
        if isinstance(source, dict):
            sources.append(str(source.get("type") or "unknown"))
        else:
            sources.append(str(source))

    return Subject(
        id=fields["id"],
        given_names=fields["given_names"],
        family_names=fields["family_names"],
        maiden_name=fields["maiden_name"],
        sex=fields["sex"],
        birth_date=fields["birth_date"],
        birth_place=fields["birth_place"],
        death_date=fields["death_date"],
        death_place=_pick(data, "death_place", "deathPlace"),
        father=father,
        mother=mother,
        spouses=tuple(spouse_ref_from_dict(s) for s in spouses_data or [] if s),
        children=tuple(p for p in (person_ref_from_dict(c) for c in data.get("children") or []) if p),
        sources=tuple(sources),
    )


def subject_from_dataset(
    person_id: str,
    individuals: list[dict[str, Any]],
    families: list[dict[str, Any]],
) -> Subject:
    """Resolve a person and their relatives from parsed individuals/families.

    Families use ``husband``, ``wife`` and ``children`` (list of ids). The first
    family listing the person as a child supplies the parents.

    Raises:
        ConfigurationError: If person_id is not among the individuals
    """
    by_id = {str(ind.get("id")): ind for ind in individuals}
    person = by_id.get(str(person_id))
    if person is None:
        raise ConfigurationError(f"Person not found in dataset: {person_id}")

    data = dict(person)
    spouses = []
    children = []
    for family in families:
        husband, wife = family.get("husband"), family.get("wife")
        if person_id not in (husband, wife):
            continue
        spouse_id = wife if husband == person_id else husband
        if spouse_id and spouse_id in by_id:
            spouse = dict(by_id[spouse_id])
            spouse.setdefault("marriageDate", family.get("marriageDate") or family.get("marriage_date"))
            spouse.setdefault("marriagePlace", family.get("marriagePlace") or family.get("marriage_place"))
            spouses.append(spouse)
        children.extend(by_id[c] for c in family.get("children") or [] if c in by_id)

    for family in families:
        if person_id in (family.get("children") or []):
            data["father"] = by_id.get(family.get("husband"))
            data["mother"] = by_id.get(family.get("wife"))
            break

    data["spouses"] = spouses
    data["children"] = children
    data.pop("parents", None)
    return subject_from_dict(data)


@dataclass(frozen=True)
class FamilyContext:
    """Relatives a record is validated against."""

    father: PersonRef | None = None
    mother: PersonRef | None = None
    spouses: tuple[SpouseRef, ...] = ()
    children: tuple[PersonRef, ...] = ()

    @classmethod
    def of(cls, subject: Subject) -> "FamilyContext":
        return cls(
            father=subject.father,
            mother=subject.mother,
            spouses=subject.spouses,
            children=subject.children,
        )
