"""Persistence for reviewer decisions."""

from genmatch.database.rejection_ledger import RejectionLedger, get_rejection_ledger

__all__ = ["RejectionLedger", "get_rejection_ledger"]
