"""SQLite cache that persists scan results emitted by the engine."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from webmail_guard import constants
from webmail_guard.models import ScanResult, ScanSource, ScanStatistics, utc_now_iso
from webmail_guard.scanner import ScanListener

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS results (
    id TEXT PRIMARY KEY,
    sender TEXT,
    subject TEXT,
    body TEXT,
    timestamp TEXT,
    scan_source TEXT,
    score INTEGER,
    threats_json TEXT,
    scanned_at TEXT,
    degraded INTEGER
);

CREATE TABLE IF NOT EXISTS scan_stats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    completed_at TEXT,
    total INTEGER,
    safe INTEGER,
    suspected INTEGER,
    dangerous INTEGER,
    average_score INTEGER
);
"""


class ResultCache(ScanListener):
    """Persistent SQLite store for scan results.

    Register it as a listener on a ScanOrchestrator; the engine itself never
    reads from it.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or constants.CACHE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(_CREATE_TABLES_SQL)

    # --- listener hooks ---

    def on_result_added(self, result: ScanResult) -> None:
        self.save_result(result)

    def on_scan_completed(self, stats: ScanStatistics) -> None:
        self.save_stats(stats)

    # --- public API ---

    def save_result(self, result: ScanResult) -> None:
        record = result.record
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO results (id, sender, subject, body, timestamp, "
                "scan_source, score, threats_json, scanned_at, degraded) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.sender,
                    record.subject,
                    record.body,
                    record.timestamp,
                    record.source.value,
                    result.score,
                    json.dumps(result.threats),
                    result.scanned_at,
                    int(result.degraded),
                ),
            )

    def save_stats(self, stats: ScanStatistics) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO scan_stats (completed_at, total, safe, suspected, dangerous, average_score) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    utc_now_iso(),
                    stats.total,
                    stats.safe,
                    stats.suspected,
                    stats.dangerous,
                    stats.average_score,
                ),
            )

    def load_results(self) -> list[ScanResult]:
        """Return every cached result, lowest score first."""
        rows = self._conn.execute(
            "SELECT * FROM results ORDER BY score ASC, scanned_at ASC"
        ).fetchall()
        return [
            ScanResult.from_dict(
                {
                    "id": r["id"],
                    "sender": r["sender"],
                    "subject": r["subject"],
                    "body": r["body"],
                    "timestamp": r["timestamp"],
                    "scanSource": r["scan_source"] or ScanSource.LIST_VIEW.value,
                    "score": r["score"],
                    "threats": json.loads(r["threats_json"] or "[]"),
                    "scannedAt": r["scanned_at"],
                    "degraded": bool(r["degraded"]),
                }
            )
            for r in rows
        ]

    def load_latest_stats(self) -> ScanStatistics | None:
        row = self._conn.execute(
            "SELECT * FROM scan_stats ORDER BY id DESC LIMIT 1"
        ).fetchone()
        if row is None:
            return None
        return ScanStatistics(
            total=row["total"],
            safe=row["safe"],
            suspected=row["suspected"],
            dangerous=row["dangerous"],
            average_score=row["average_score"],
        )

    def clear(self) -> None:
        """Drop and recreate all tables."""
        self._conn.executescript(
            "DROP TABLE IF EXISTS results;"
            "DROP TABLE IF EXISTS scan_stats;"
        )
        self._create_tables()

    def get_info(self) -> dict:
        """Return cache statistics."""
        file_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        last_row = self._conn.execute(
            "SELECT completed_at FROM scan_stats ORDER BY id DESC LIMIT 1"
        ).fetchone()
        last_scan_date = last_row["completed_at"] if last_row else None

        result_count = self._conn.execute("SELECT COUNT(*) AS c FROM results").fetchone()["c"]
        degraded_count = self._conn.execute(
            "SELECT COUNT(*) AS c FROM results WHERE degraded = 1"
        ).fetchone()["c"]

        return {
            "db_file_size": file_size,
            "last_scan_date": last_scan_date,
            "result_count": result_count,
            "degraded_count": degraded_count,
        }

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> ResultCache:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
