"""
Tests for subject and candidate adapters and prompt construction.
"""

import pytest

from genmatch.errors import ConfigurationError
from genmatch.models.candidate import candidate_from_dict
from genmatch.models.results import Severity, ValidationIssue
from genmatch.models.subject import FamilyContext, split_name, subject_from_dataset, subject_from_dict
from genmatch.services.prompt_builder import PromptBuilder

INDIVIDUALS = [
    {"id": "I1", "name": "William Smith", "sex": "M", "birthDate": "1920"},
    {"id": "I2", "name": "Thomas Smith", "birthDate": "1890"},
    {"id": "I3", "name": "Mary Kelly", "birthDate": "1893"},
    {"id": "I4", "name": "Helen Burke", "birthDate": "1922"},
    {"id": "I5", "name": "Ann Smith", "birthDate": "1948"},
]

FAMILIES = [
    {"husband": "I2", "wife": "I3", "children": ["I1"]},
    {"husband": "I1", "wife": "I4", "marriageDate": "1946", "children": ["I5"]},
]


class TestSubjectAdapters:
    """Test building subjects from differently shaped input."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("William Henry Smith", ("William Henry", "Smith")),
            ("Smith", ("Smith", "")),
            ("", ("", "")),
        ],
    )
    def test_split_name(self, name, expected):
        assert split_name(name) == expected

    def test_camel_case_with_nested_parents(self):
        subject = subject_from_dict(
            {
                "id": "P1",
                "givenNames": "Ann",
                "familyNames": "Lee",
                "birthDate": "1901",
                "parents": {"father": {"name": "John Lee"}, "mother": {"givenName": "Ruth", "surname": "Lee"}},
                "spouse": {"name": "Carl Berg", "marriageDate": "1925"},
                "sources": [{"type": "census"}, "baptism"],
            }
        )

        assert subject.full_name == "Ann Lee"
        assert subject.birth_year == 1901
        assert subject.father.full_name == "John Lee"
        assert subject.mother.full_name == "Ruth Lee"
        assert subject.spouses[0].marriage_date == "1925"
        assert subject.sources == ("census", "baptism")

    def test_missing_id(self):
        with pytest.raises(ConfigurationError, match="requires an id"):
            subject_from_dict({"name": "Ann Lee"})

    def test_missing_name(self):
        with pytest.raises(ConfigurationError, match="no name"):
            subject_from_dict({"id": "P1"})

    def test_dataset_resolves_relatives(self):
        subject = subject_from_dataset("I1", INDIVIDUALS, FAMILIES)

        assert subject.father.full_name == "Thomas Smith"
        assert subject.mother.full_name == "Mary Kelly"
        assert subject.spouses[0].full_name == "Helen Burke"
        assert subject.spouses[0].marriage_date == "1946"
        assert [c.full_name for c in subject.children] == ["Ann Smith"]

    def test_dataset_unknown_person(self):
        with pytest.raises(ConfigurationError, match="not found"):
            subject_from_dataset("I99", INDIVIDUALS, FAMILIES)

    def test_family_context(self, william_smith):
        context = FamilyContext.of(william_smith)

        assert context.father == william_smith.father
        assert william_smith.family_context()["spouses"] == ["Helen Smith"]


class TestCandidateAdapter:
    """Test building candidate records from dicts."""

    def test_camel_case_record(self):
        record = candidate_from_dict(
            {"recordId": "R1", "givenName": "Bill", "familyName": "Smith", "birthDate": "1920", "confidence": "7"}
        )

        assert record.id == "R1"
        assert record.name == "Bill Smith"
        assert record.birth == "1920"
        assert record.source == "Unknown"
        assert record.confidence == 1.0

    def test_bad_confidence_defaults(self):
        record = candidate_from_dict({"id": "R2", "name": "Ann Lee", "confidence": "high"})
        assert record.confidence == 0.5

    def test_missing_name(self):
        with pytest.raises(ConfigurationError, match="no name"):
            candidate_from_dict({"id": "R3"})

    def test_dedup_key(self, matching_candidate):
        assert matching_candidate.dedup_key == "William Smith_15 March 1920_Boston, Massachusetts, USA"

    def test_to_dict_omits_raw_data(self, matching_candidate):
        assert "raw_data" not in matching_candidate.to_dict()
        assert "raw_data" in matching_candidate.to_dict(include_raw=True)


class TestPromptBuilder:
    """Test the two generative prompts."""

    def test_search_request(self, william_smith):
        request = PromptBuilder(search_temperature=0.5).build_search_request(william_smith)

        assert "Name: William Smith" in request.user_prompt
        assert "Parents: Thomas Smith, Mary Smith" in request.user_prompt
        assert '"recordTypeTargets"' in request.user_prompt
        assert request.temperature == 0.5
        assert request.max_tokens == 1500
        assert "JSON" in request.system_prompt

    def test_analysis_request(self, william_smith, distant_candidate):
        request = PromptBuilder().build_analysis_request(william_smith, distant_candidate)

        assert "POTENTIAL MATCH (WikiTree)" in request.user_prompt
        assert "Name: Margaret Jones" in request.user_prompt
        assert "Death: Unknown" in request.user_prompt
        assert '"matchingFactors"' in request.user_prompt
        assert request.temperature == 0.3
        assert set(request.response_schema) == {
            "confidence", "reasoning", "matchingFactors", "concerns", "recommendation"
        }


class TestValidationIssue:
    def test_field_and_details_defaults(self):
        first = ValidationIssue(type="lifespan_long", severity=Severity.WARNING, message="Lived 105 years")
        second = ValidationIssue(
            type="future_birth", severity=Severity.ERROR, message="Born 2999", field="birth_date"
        )

        assert first.field == ""
        assert second.field == "birth_date"
        assert first.details == {} and first.details is not second.details
