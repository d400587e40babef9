"""Shared helpers for dates and name phonetics."""
