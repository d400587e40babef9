"""External record sources and their concurrent aggregation."""

from genmatch.sources.aggregator import AggregateResult, SourceAggregator
from genmatch.sources.base import RequestBudget, SearchLimits, SearchProvider, TokenCache
from genmatch.sources.chronicling_america import ChroniclingAmericaProvider
from genmatch.sources.familysearch import FamilySearchProvider
from genmatch.sources.placeholders import FindAGraveProvider, NewspaperArchivesProvider
from genmatch.sources.wikitree import WikiTreeProvider

__all__ = [
    "AggregateResult",
    "ChroniclingAmericaProvider",
    "FamilySearchProvider",
    "FindAGraveProvider",
    "NewspaperArchivesProvider",
    "RequestBudget",
    "SearchLimits",
    "SearchProvider",
    "SourceAggregator",
    "TokenCache",
    "WikiTreeProvider",
]
