"""Configuration module for GenMatch."""

from genmatch.config.constants import (
    CULTURAL_VARIANTS,
    HISTORICAL_EVENTS,
    LOCATION_VARIANTS,
    NICKNAMES,
    PLACE_NAME_VALIDITY,
    PLACEHOLDER_PATTERNS,
    SPELLING_VARIANTS,
)
from genmatch.config.settings import Config, get_config, reset_config

__all__ = [
    "Config",
    "get_config",
    "reset_config",
    "CULTURAL_VARIANTS",
    "HISTORICAL_EVENTS",
    "LOCATION_VARIANTS",
    "NICKNAMES",
    "PLACE_NAME_VALIDITY",
    "PLACEHOLDER_PATTERNS",
    "SPELLING_VARIANTS",
]
