"""Prompt construction for search-strategy generation and match analysis.

Both prompts demand a bare JSON object with an enumerated field set; the same
field set is what ResponseParser validates against.
"""

import json

from genmatch.llm.base import GenerationRequest
from genmatch.models.candidate import CandidateRecord
from genmatch.models.subject import PersonRef, Subject
from genmatch.services.response_parser import MATCH_ANALYSIS_SCHEMA, SEARCH_STRATEGY_SCHEMA

SEARCH_SYSTEM_PROMPT = (
    "You are an expert genealogist specializing in record research and name variations. "
    "Always respond with valid JSON only."
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert genealogist. Analyze record matches carefully and respond with valid JSON only."
)


def _name(person: PersonRef | None) -> str:
    return person.full_name if person and person.full_name else "Unknown"


class PromptBuilder:
    """Builds GenerationRequests for the two generative call sites."""

    def __init__(
        self,
        search_temperature: float = 0.7,
        search_max_tokens: int = 1500,
        analysis_temperature: float = 0.3,
        analysis_max_tokens: int = 800,
    ):
        self.search_temperature = search_temperature
        self.search_max_tokens = search_max_tokens
        self.analysis_temperature = analysis_temperature
        self.analysis_max_tokens = analysis_max_tokens

    def build_search_request(self, subject: Subject) -> GenerationRequest:
        """Prompt for five arrays of search variations for the subject."""
        spouse = subject.spouses[0] if subject.spouses else None
        prompt = f"""You are a professional genealogist. Generate comprehensive search strategies for finding records about this person:

Person Details:
- Name: {subject.full_name}
- Birth Date: {subject.birth_date or 'Unknown'}
- Birth Place: {subject.birth_place or 'Unknown'}
- Sex: {subject.sex or 'Unknown'}
- Parents: {_name(subject.father)}, {_name(subject.mother)}
- Spouse: {_name(spouse)}

Generate a JSON object with exactly these fields:
1. "nameVariations": Array of 8-10 name spelling variations, nicknames, cultural variants
2. "locationVariations": Array of 5-7 location name variants (historical names, abbreviations, nearby places)
3. "timeRangeQueries": Array of 3-4 expanded date ranges written as "YYYY-YYYY"
4. "contextualSearches": Array of 5-6 searches combining family members, occupations, or life events
5. "recordTypeTargets": Array of 8-10 specific record types to search (census, vital records, immigration, etc.)

Focus on genealogically sound variations. Consider:
- Historical spelling changes
- Immigration name alterations
- Nickname patterns by era and culture
- Place name evolution over time

Return only valid JSON."""

        return GenerationRequest(
            system_prompt=SEARCH_SYSTEM_PROMPT,
            user_prompt=prompt,
            max_tokens=self.search_max_tokens,
            temperature=self.search_temperature,
            response_schema=SEARCH_STRATEGY_SCHEMA,
        )

    def build_analysis_request(self, subject: Subject, candidate: CandidateRecord) -> GenerationRequest:
        """Prompt for a structured same-person judgment."""
        spouse = subject.spouses[0] if subject.spouses else None
        prompt = f"""As a professional genealogist, analyze if these two records likely represent the same person:

PERSON 1 (Known):
- Name: {subject.full_name}
- Birth: {subject.birth_date or 'Unknown'} in {subject.birth_place or 'Unknown'}
- Death: {subject.death_date or 'Unknown'}
- Parents: {_name(subject.father)} & {_name(subject.mother)}
- Spouse: {_name(spouse)}

POTENTIAL MATCH ({candidate.source}):
- Name: {candidate.name}
- Birth: {candidate.birth or 'Unknown'}
- Death: {candidate.death or 'Unknown'}
- Location: {candidate.location or 'Unknown'}
- Additional Info: {candidate.additional_info or 'None'}

Provide analysis as a JSON object with these fields:
{json.dumps(MATCH_ANALYSIS_SCHEMA, indent=2)}

Consider:
- Name variations and cultural spellings
- Historical location changes
- Date recording variations
- Family context clues
- Record reliability by source type"""

        return GenerationRequest(
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            user_prompt=prompt,
            max_tokens=self.analysis_max_tokens,
            temperature=self.analysis_temperature,
            response_schema=MATCH_ANALYSIS_SCHEMA,
        )
