"""
Rejection ledger for human-dismissed subject/candidate pairs.

Persists rejections in a small SQLite database (~/.genmatch/rejections.db) so
candidates a reviewer already dismissed are filtered out of later searches.
Each owner keeps at most ``cap`` entries; the oldest are evicted first.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from genmatch.config import get_config
from genmatch.models.candidate import CandidateRecord

DEFAULT_OWNER = "default"
DEFAULT_LEDGER_CAP = 1000

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS rejections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    subject_id TEXT NOT NULL,
    candidate_id TEXT NOT NULL,
    reason TEXT,
    rejected_at TEXT NOT NULL,
    pair_hash TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_rejections_owner_pair
    ON rejections(owner_id, pair_hash);

CREATE INDEX IF NOT EXISTS idx_rejections_owner_subject
    ON rejections(owner_id, subject_id);
"""


def pair_hash(subject_id: str, candidate_id: str) -> str:
    """Identity of one subject/candidate combination."""
    return f"{candidate_id}_{subject_id}"


class RejectionLedger:
    """Repository for rejected subject/candidate pairs."""

    def __init__(self, db_path: str = "~/.genmatch/rejections.db", cap: int = DEFAULT_LEDGER_CAP):
        """Initialize ledger with database path.

        Args:
            db_path: Path to ledger database (default: ~/.genmatch/rejections.db)
            cap: Maximum entries kept per owner
        """
        self.db_path = Path(db_path).expanduser()
        self.cap = cap
        self._ensure_database_exists()

    def _ensure_database_exists(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        logger.debug(f"Rejection ledger ready: {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager.

        Yields:
            sqlite3.Connection: Database connection
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # =========================================================================
    # Write Operations
    # =========================================================================

    def reject(
        self,
        subject_id: str,
        candidate_id: str,
        reason: str | None = None,
        owner_id: str = DEFAULT_OWNER,
    ) -> None:
        """Record that a reviewer dismissed a candidate for a subject.

        Re-rejecting a pair replaces the earlier entry and moves it to the
        newest position. Entries beyond the cap are evicted oldest first.

        Args:
            subject_id: The known person's id
            candidate_id: The dismissed record's id
            reason: Optional free-text reason
            owner_id: Whose ledger the entry belongs to
        """
        key = pair_hash(subject_id, candidate_id)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM rejections WHERE owner_id = ? AND pair_hash = ?",
                (owner_id, key),
            )
            cursor.execute("""
                INSERT INTO rejections (
                    owner_id, subject_id, candidate_id, reason, rejected_at, pair_hash
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (owner_id, subject_id, candidate_id, reason, self._now_iso(), key))

            cursor.execute("""
                DELETE FROM rejections
                WHERE owner_id = ? AND id NOT IN (
                    SELECT id FROM rejections
                    WHERE owner_id = ?
                    ORDER BY id DESC
                    LIMIT ?
                )
            """, (owner_id, owner_id, self.cap))
            evicted = cursor.rowcount
            conn.commit()

        logger.info(f"Rejected candidate {candidate_id} for subject {subject_id}")
        if evicted > 0:
            logger.debug(f"Evicted {evicted} oldest rejections for owner {owner_id}")

    def unreject(self, subject_id: str, candidate_id: str, owner_id: str = DEFAULT_OWNER) -> bool:
        """Remove a rejection. Returns True if one existed."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM rejections WHERE owner_id = ? AND pair_hash = ?",
                (owner_id, pair_hash(subject_id, candidate_id)),
            )
            conn.commit()
            removed = cursor.rowcount > 0

        if removed:
            logger.info(f"Restored candidate {candidate_id} for subject {subject_id}")
        return removed

    # =========================================================================
    # Read Operations
    # =========================================================================

    def is_rejected(self, subject_id: str, candidate_id: str, owner_id: str = DEFAULT_OWNER) -> bool:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM rejections WHERE owner_id = ? AND pair_hash = ?",
                (owner_id, pair_hash(subject_id, candidate_id)),
            )
            return cursor.fetchone() is not None

    def rejected_ids(self, subject_id: str, owner_id: str = DEFAULT_OWNER) -> set[str]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT candidate_id FROM rejections WHERE owner_id = ? AND subject_id = ?",
                (owner_id, subject_id),
            )
            return {row["candidate_id"] for row in cursor.fetchall()}

    def list_rejections(
        self,
        owner_id: str = DEFAULT_OWNER,
        subject_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Rejections for an owner, newest first, optionally for one subject."""
        query = """
            SELECT subject_id, candidate_id, reason, rejected_at
            FROM rejections
            WHERE owner_id = ?
        """
        params: list[Any] = [owner_id]
        if subject_id is not None:
            query += " AND subject_id = ?"
            params.append(subject_id)
        query += " ORDER BY id DESC"

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def owners(self) -> list[str]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT DISTINCT owner_id FROM rejections ORDER BY owner_id")
            return [row["owner_id"] for row in cursor.fetchall()]

    def count(self, owner_id: str = DEFAULT_OWNER) -> int:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM rejections WHERE owner_id = ?", (owner_id,))
            return cursor.fetchone()[0]

    def filter_candidates(
        self,
        subject_id: str,
        candidates: list[CandidateRecord],
        owner_id: str = DEFAULT_OWNER,
    ) -> list[CandidateRecord]:
        """Drop candidates already rejected for this subject, preserving order."""
        rejected = self.rejected_ids(subject_id, owner_id)
        if not rejected:
            return list(candidates)
        kept = [c for c in candidates if c.id not in rejected]
        logger.debug(f"Filtered {len(candidates) - len(kept)} rejected candidates for subject {subject_id}")
        return kept


# Global ledger instance
_ledger: RejectionLedger | None = None


def get_rejection_ledger() -> RejectionLedger:
    """Get or create the global ledger at the configured path."""
    global _ledger
    if _ledger is None:
        config = get_config()
        _ledger = RejectionLedger(config.rejection_db_path, cap=config.rejection_ledger_cap)
    return _ledger
