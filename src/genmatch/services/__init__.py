"""Matching, scoring and orchestration services."""
