"""Sources with no public search API yet.

They are registered so configuration can toggle them, and return nothing.
"""

from loguru import logger

from genmatch.models.candidate import CandidateRecord
from genmatch.models.results import SearchStrategy
from genmatch.models.subject import Subject
from genmatch.sources.base import SearchProvider


class FindAGraveProvider(SearchProvider):
    source_name = "FindAGrave"
    key = "findagrave"

    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        logger.info(f"FindAGrave search for {subject.full_name} skipped: no API integration")
        return []


class NewspaperArchivesProvider(SearchProvider):
    source_name = "Newspaper Archives"
    key = "newspapers"

    async def search(self, strategy: SearchStrategy, subject: Subject) -> list[CandidateRecord]:
        logger.info(f"Newspaper archive search for {subject.full_name} skipped: no API integration")
        return []
