"""
GenMatch - Genealogy Record Matching

Decides whether externally discovered historical records refer to a known
person, and ranks candidate records for human review.
"""

__version__ = "0.1.0"
__author__ = "GenMatch Contributors"
