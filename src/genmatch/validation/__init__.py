"""Plausibility checks for person records and candidate data."""

from genmatch.validation.placeholder_detector import PlaceholderDetector
from genmatch.validation.record_validator import RecordValidator

__all__ = ["PlaceholderDetector", "RecordValidator"]
