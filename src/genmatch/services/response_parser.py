"""Parsing and structural validation of generative model responses.

Models are asked for a bare JSON object but often wrap it in prose or a
markdown code block. The parser extracts the outermost ``{...}`` span, repairs
common mistakes, and validates the result against a pydantic model for the
call site. Any failure raises GenerativeResponseError, which the analysis
cascade treats as "try the next model".
"""

import json
import re
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from genmatch.errors import GenerativeResponseError

# =============================================================================
# RESPONSE CONTRACTS
# =============================================================================


class SearchStrategyResponse(BaseModel):
    """Required shape of a search-strategy response: five string arrays."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name_variations: list[str] = Field(alias="nameVariations")
    location_variations: list[str] = Field(alias="locationVariations")
    time_range_queries: list[str] = Field(alias="timeRangeQueries")
    contextual_searches: list[str] = Field(alias="contextualSearches")
    record_type_targets: list[str] = Field(alias="recordTypeTargets")


class MatchAnalysisResponse(BaseModel):
    """Required shape of a match-analysis response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    confidence: float = Field(strict=True)
    reasoning: str
    matching_factors: list[str] = Field(alias="matchingFactors")
    concerns: list[str]
    recommendation: str

    @field_validator("confidence")
    @classmethod
    def normalize_confidence(cls, v: float) -> float:
        """Accept 0-1 or a 0-100 percentage."""
        if 1.0 < v <= 100.0:
            v = v / 100.0
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence out of range: {v}")
        return v

    @field_validator("recommendation")
    @classmethod
    def normalize_recommendation(cls, v: str) -> str:
        """Reduce free text like "Needs review" to accept/review/reject."""
        lowered = v.strip().lower()
        for action in ("reject", "review", "accept"):
            if action in lowered:
                return action
        raise ValueError(f"unrecognized recommendation: {v}")


SEARCH_STRATEGY_SCHEMA = {
    "nameVariations": "array of strings",
    "locationVariations": "array of strings",
    "timeRangeQueries": "array of strings",
    "contextualSearches": "array of strings",
    "recordTypeTargets": "array of strings",
}

MATCH_ANALYSIS_SCHEMA = {
    "confidence": "number between 0 and 1",
    "reasoning": "string",
    "matchingFactors": "array of strings",
    "concerns": "array of strings",
    "recommendation": "accept|review|reject",
}


# =============================================================================
# PARSER
# =============================================================================


class ResponseParser:
    """Parses model output into validated response objects."""

    def parse_search_strategy(self, response_text: str) -> SearchStrategyResponse:
        return self._validate(SearchStrategyResponse, self.parse_json(response_text))

    def parse_match_analysis(self, response_text: str) -> MatchAnalysisResponse:
        return self._validate(MatchAnalysisResponse, self.parse_json(response_text))

    def parse_json(self, response_text: str) -> dict[str, Any]:
        """Parse the outermost JSON object from a model response.

        Args:
            response_text: Raw response text from the model

        Returns:
            Parsed dictionary

        Raises:
            GenerativeResponseError: If no JSON object can be parsed
        """
        if not response_text or not response_text.strip():
            raise GenerativeResponseError("Empty response from model")

        json_str = self.extract_json(response_text)

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            fixed_json = self._fix_common_json_errors(json_str)
            try:
                data = json.loads(fixed_json)
            except json.JSONDecodeError:
                logger.debug(f"Unparsable model output: {json_str[:500]}...")
                raise GenerativeResponseError(f"Invalid JSON in response: {e}") from e

        if not isinstance(data, dict):
            raise GenerativeResponseError("Response JSON is not an object")
        return data

    def extract_json(self, text: str) -> str:
        """Extract the JSON object from text that may carry prose or code fences.

        Raises:
            GenerativeResponseError: If the text holds no object
        """
        text = text.strip()

        match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
        if match and match.group(1).strip().startswith("{"):
            text = match.group(1).strip()

        span = self._find_outermost_object(text)
        if span is None:
            raise GenerativeResponseError("No JSON object found in response")
        return span

    @staticmethod
    def _find_outermost_object(text: str) -> str | None:
        """Match braces from the first ``{``, ignoring braces inside strings."""
        start = text.find("{")
        if start == -1:
            return None

        depth = 0
        in_string = False
        escape_next = False

        for i in range(start, len(text)):
            char = text[i]

            if escape_next:
                escape_next = False
                continue
            if char == "\\":
                escape_next = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]

        # Unterminated: hand the tail to the JSON fixer
        return text[start:]

    @staticmethod
    def _fix_common_json_errors(json_str: str) -> str:
        # Trailing commas before } or ]
        fixed = re.sub(r",\s*([}\]])", r"\1", json_str)
        # Smart quotes
        fixed = fixed.replace("“", '"').replace("”", '"')
        # Control characters
        fixed = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", fixed)
        return fixed

    @staticmethod
    def _validate(model: type[BaseModel], data: dict[str, Any]):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise GenerativeResponseError(f"Response failed validation ({fields})") from e
