"""
Tests for model response parsing.

Covers JSON extraction from prose and code fences, common-error repair,
and structural validation of both response contracts.
"""

import json

import pytest

from genmatch.errors import GenerativeResponseError
from genmatch.services.response_parser import ResponseParser

VALID_ANALYSIS = {
    "confidence": 0.82,
    "reasoning": "Same name, birth year and parents",
    "matchingFactors": ["Exact birth year", "Parents match"],
    "concerns": [],
    "recommendation": "accept",
}

VALID_STRATEGY = {
    "nameVariations": ["William Smith", "Bill Smith"],
    "locationVariations": ["Boston, Massachusetts"],
    "timeRangeQueries": ["1918-1922"],
    "contextualSearches": ["William Smith son of Thomas Smith"],
    "recordTypeTargets": ["census records"],
}


@pytest.fixture
def parser():
    return ResponseParser()


# =============================================================================
# JSON extraction
# =============================================================================


class TestJsonExtraction:
    """Test extraction of the outermost JSON object."""

    def test_bare_json(self, parser):
        assert parser.parse_json(json.dumps(VALID_ANALYSIS)) == VALID_ANALYSIS

    def test_json_in_code_fence(self, parser):
        text = f"Here is my analysis:\n```json\n{json.dumps(VALID_ANALYSIS)}\n```\nLet me know."
        assert parser.parse_json(text)["confidence"] == 0.82

    def test_json_surrounded_by_prose(self, parser):
        text = f"Sure! {json.dumps(VALID_ANALYSIS)} Hope this helps."
        assert parser.parse_json(text)["recommendation"] == "accept"

    def test_braces_inside_strings_ignored(self, parser):
        data = {**VALID_ANALYSIS, "reasoning": "Name {as recorded} matches"}
        text = f"{json.dumps(data)} trailing {{noise}}"
        assert parser.parse_json(text)["reasoning"] == "Name {as recorded} matches"

    def test_trailing_comma_repaired(self, parser):
        text = '{"confidence": 0.5, "concerns": ["a", "b",],}'
        assert parser.parse_json(text) == {"confidence": 0.5, "concerns": ["a", "b"]}

    def test_empty_response(self, parser):
        with pytest.raises(GenerativeResponseError, match="Empty"):
            parser.parse_json("   ")

    def test_no_object(self, parser):
        with pytest.raises(GenerativeResponseError, match="No JSON object"):
            parser.parse_json("I cannot help with that.")

    def test_invalid_json(self, parser):
        with pytest.raises(GenerativeResponseError, match="Invalid JSON"):
            parser.parse_json("{confidence: high, reasoning: ???}")


# =============================================================================
# Structural validation
# =============================================================================


class TestMatchAnalysisContract:
    """Test the match-analysis required fields."""

    def test_valid_response(self, parser):
        response = parser.parse_match_analysis(json.dumps(VALID_ANALYSIS))

        assert response.confidence == pytest.approx(0.82)
        assert response.matching_factors == ["Exact birth year", "Parents match"]
        assert response.recommendation == "accept"

    def test_percentage_confidence_normalized(self, parser):
        response = parser.parse_match_analysis(json.dumps({**VALID_ANALYSIS, "confidence": 85}))
        assert response.confidence == pytest.approx(0.85)

    def test_free_text_recommendation_normalized(self, parser):
        response = parser.parse_match_analysis(json.dumps({**VALID_ANALYSIS, "recommendation": "Needs REVIEW"}))
        assert response.recommendation == "review"

    @pytest.mark.parametrize("missing", ["confidence", "reasoning", "matchingFactors", "concerns", "recommendation"])
    def test_missing_field_rejected(self, parser, missing):
        data = {k: v for k, v in VALID_ANALYSIS.items() if k != missing}
        with pytest.raises(GenerativeResponseError, match="failed validation"):
            parser.parse_match_analysis(json.dumps(data))

    def test_string_confidence_rejected(self, parser):
        with pytest.raises(GenerativeResponseError):
            parser.parse_match_analysis(json.dumps({**VALID_ANALYSIS, "confidence": "0.8"}))

    def test_out_of_range_confidence_rejected(self, parser):
        with pytest.raises(GenerativeResponseError):
            parser.parse_match_analysis(json.dumps({**VALID_ANALYSIS, "confidence": 250}))

    def test_unknown_recommendation_rejected(self, parser):
        with pytest.raises(GenerativeResponseError):
            parser.parse_match_analysis(json.dumps({**VALID_ANALYSIS, "recommendation": "maybe"}))


class TestSearchStrategyContract:
    """Test the five required search-strategy arrays."""

    def test_valid_response(self, parser):
        response = parser.parse_search_strategy(json.dumps(VALID_STRATEGY))

        assert response.name_variations == ["William Smith", "Bill Smith"]
        assert response.time_range_queries == ["1918-1922"]

    def test_non_array_field_rejected(self, parser):
        data = {**VALID_STRATEGY, "nameVariations": "William Smith"}
        with pytest.raises(GenerativeResponseError):
            parser.parse_search_strategy(json.dumps(data))

    def test_missing_array_rejected(self, parser):
        data = {k: v for k, v in VALID_STRATEGY.items() if k != "recordTypeTargets"}
        with pytest.raises(GenerativeResponseError, match="recordTypeTargets"):
            parser.parse_search_strategy(json.dumps(data))
