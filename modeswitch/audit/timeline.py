"""
Audit Timeline — append-only SQLite store for rules-engine audit events.
Implements the AuditLog port, so it can be handed straight to a RulesEngine.
"""

from __future__ import annotations

import json
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .metrics import OverrideStats, compute_override_stats
from .port import AuditRecord


@dataclass
class AuditEntry:
    id: Optional[int]
    timestamp: float
    event_type: str
    mode: str
    switch_trigger: str
    confidence: str
    payload_json: str = "{}"

    def to_record(self) -> AuditRecord:
        return AuditRecord(
            event_type=self.event_type,
            payload=json.loads(self.payload_json),
            timestamp=self.timestamp,
        )


class AuditTimeline:
    """Thread-safe SQLite-backed audit store."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        # mode_switched carries "to", plan_rendered carries "mode"
        mode = payload.get("to", payload.get("mode", ""))
        self.append(AuditEntry(
            id=None,
            timestamp=time.time(),
            event_type=event_type,
            mode=str(mode or ""),
            switch_trigger=str(payload.get("trigger", "")),
            confidence=str(payload.get("confidence", "")),
            payload_json=json.dumps(payload, sort_keys=True, default=str),
        ))

    def append(self, entry: AuditEntry) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT INTO audit
                    (timestamp, event_type, mode, switch_trigger, confidence, payload_json)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp,
                    entry.event_type,
                    entry.mode,
                    entry.switch_trigger,
                    entry.confidence,
                    entry.payload_json,
                ),
            )
            return cur.lastrowid  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query(
        self,
        since: Optional[float] = None,
        until: Optional[float] = None,
        event_type: Optional[str] = None,
        limit: int = 500,
    ) -> List[AuditEntry]:
        """Newest first."""
        clauses = []
        params: list = []

        if since is not None:
            clauses.append("timestamp >= ?")
            params.append(since)
        if until is not None:
            clauses.append("timestamp <= ?")
            params.append(until)
        if event_type:
            clauses.append("event_type = ?")
            params.append(event_type)

        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
        params.append(limit)

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT id, timestamp, event_type, mode, switch_trigger, confidence, payload_json "
                f"FROM audit {where} ORDER BY timestamp DESC, id DESC LIMIT ?",
                params,
            ).fetchall()

        return [AuditEntry(*row) for row in rows]

    def get_override_stats(
        self,
        since: Optional[float] = None,
        until: Optional[float] = None,
    ) -> OverrideStats:
        entries = self.query(since=since, until=until, limit=50_000)
        return compute_override_stats(e.to_record() for e in reversed(entries))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audit (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp     REAL    NOT NULL,
                    event_type    TEXT    NOT NULL,
                    mode          TEXT    NOT NULL DEFAULT '',
                    switch_trigger TEXT    NOT NULL DEFAULT '',
                    confidence    TEXT    NOT NULL DEFAULT '',
                    payload_json  TEXT    NOT NULL DEFAULT '{}'
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_ts ON audit(timestamp)")

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()
