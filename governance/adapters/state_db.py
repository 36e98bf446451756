from __future__ import annotations

"""
Governance SQLite state adapter
===============================

Purpose
-------
Persistence for governance rounds so their phase, applications, scores,
submissions and finalized winners stay queryable after the process that ran
them is gone.

Design notes
------------
- Single-writer, many-reader friendly via WAL.
- One row per round holding the full JSON snapshot from
  `GovernanceRound.dump()`, plus a few indexed columns for listing.
- Winners are also written to their own table so they can be queried without
  decoding snapshots.
- Schema versioned; all writes are transactional.

Example
-------
    db = GovernanceStateDB("file:gov.db?mode=rwc")
    db.save_round(rnd)
    again = db.load_round(rnd.round_id)
    for w in db.get_winners(rnd.round_id):
        print(w.rank, w.applicant, w.normalized_share)
"""

import contextlib
import json
import sqlite3
import threading
import time
from typing import Any, Dict, Iterator, List, Optional

from ..errors import GovernanceError, NotFound
from ..govtypes.winner import Winner
from ..lifecycle.phase import Clock
from ..round import GovernanceRound
from .payout import PayoutNotifier


class StateDBError(GovernanceError):
    """Base error for the governance state DB."""
    code = "GOV_STATE_DB"


class RoundNotFound(NotFound):
    code = "GOV_ROUND_NOT_FOUND"

    def __init__(self, *, round_id: str) -> None:
        super().__init__("round not found", details={"round_id": round_id})


def _now_s() -> int:
    return int(time.time())


def _to_json_blob(obj: Any) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True).encode("utf-8")


def _from_json_blob(blob: Optional[bytes]) -> Any:
    if not blob:
        return None
    return json.loads(bytes(blob).decode("utf-8"))


class GovernanceStateDB:
    """
    Tiny SQLite adapter for governance rounds.

    Thread-safe for simple concurrent access via an internal RLock.
    """

    SCHEMA_VERSION = 1

    def __init__(self, path: str) -> None:
        """
        Open or create the SQLite database.

        `path` may be a filesystem path, ":memory:", or a URI (e.g. "file:gov.db?mode=rwc").
        """
        uri = path.startswith("file:")
        self._db = sqlite3.connect(
            path,
            uri=uri,
            check_same_thread=False,
            isolation_level=None,  # autocommit; we manage transactions
        )
        self._db.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._apply_pragmas()
        with self.tx():
            self._migrate()

    # -- lifecycle -------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "GovernanceStateDB":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @contextlib.contextmanager
    def tx(self) -> Iterator[None]:
        with self._lock:
            self._db.execute("BEGIN IMMEDIATE")
            try:
                yield
            except BaseException:
                self._db.execute("ROLLBACK")
                raise
            self._db.execute("COMMIT")

    def _apply_pragmas(self) -> None:
        cur = self._db.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA synchronous=NORMAL")
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    # -- schema & migrations ---------------------------------------------------

    def _migrate(self) -> None:
        cur = self._db.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        cur.execute("SELECT value FROM meta WHERE key='schema_version'")
        row = cur.fetchone()
        if not row:
            cur.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?)",
                (str(self.SCHEMA_VERSION),),
            )
        elif int(row["value"]) != self.SCHEMA_VERSION:
            raise StateDBError(
                "unsupported schema version",
                details={"found": row["value"], "expected": self.SCHEMA_VERSION},
            )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS rounds (
                round_id    TEXT PRIMARY KEY,
                phase       TEXT NOT NULL,
                finalized   INTEGER NOT NULL DEFAULT 0,
                snapshot    BLOB NOT NULL,
                created_at  INTEGER NOT NULL,
                updated_at  INTEGER NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS winners (
                round_id    TEXT NOT NULL REFERENCES rounds(round_id) ON DELETE CASCADE,
                rank        INTEGER NOT NULL,
                app_index   INTEGER NOT NULL,
                applicant   TEXT NOT NULL,
                share_bps   INTEGER NOT NULL,
                raw_score   INTEGER NOT NULL,
                PRIMARY KEY (round_id, rank)
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_rounds_phase ON rounds(phase)")
        cur.close()

    # -- rounds ----------------------------------------------------------------

    def save_snapshot(self, snapshot: Dict[str, Any]) -> str:
        round_id = str(snapshot["config"]["round_id"])
        phase = str(snapshot.get("phase", "IDLE"))
        selection = snapshot.get("selection", {}) or {}
        finalized = 1 if selection.get("results_finalized") else 0
        now = _now_s()
        with self.tx():
            self._db.execute(
                """
                INSERT INTO rounds(round_id, phase, finalized, snapshot, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?)
                ON CONFLICT(round_id) DO UPDATE SET
                    phase=excluded.phase,
                    finalized=excluded.finalized,
                    snapshot=excluded.snapshot,
                    updated_at=excluded.updated_at
                """,
                (round_id, phase, finalized, _to_json_blob(snapshot), now, now),
            )
            self._db.execute("DELETE FROM winners WHERE round_id=?", (round_id,))
            for w in selection.get("winners", []):
                self._db.execute(
                    """
                    INSERT INTO winners(round_id, rank, app_index, applicant, share_bps, raw_score)
                    VALUES(?, ?, ?, ?, ?, ?)
                    """,
                    (round_id, int(w["rank"]), int(w["index"]), str(w["applicant"]),
                     int(w["normalized_share"]), int(w["raw_score"])),
                )
        return round_id

    def save_round(self, rnd: GovernanceRound) -> str:
        return self.save_snapshot(rnd.dump())

    def load_snapshot(self, round_id: str) -> Dict[str, Any]:
        with self._lock:
            row = self._db.execute("SELECT snapshot FROM rounds WHERE round_id=?", (round_id,)).fetchone()
        if row is None:
            raise RoundNotFound(round_id=round_id)
        return _from_json_blob(row["snapshot"])

    def load_round(
        self,
        round_id: str,
        *,
        payout: Optional[PayoutNotifier] = None,
        clock: Optional[Clock] = None,
    ) -> GovernanceRound:
        return GovernanceRound.load(self.load_snapshot(round_id), payout=payout, clock=clock)

    def list_rounds(self, *, finalized: Optional[bool] = None) -> List[Dict[str, Any]]:
        q = "SELECT round_id, phase, finalized, created_at, updated_at FROM rounds"
        args: List[Any] = []
        if finalized is not None:
            q += " WHERE finalized=?"
            args.append(1 if finalized else 0)
        q += " ORDER BY round_id"
        with self._lock:
            rows = self._db.execute(q, args).fetchall()
        return [
            {
                "round_id": r["round_id"],
                "phase": r["phase"],
                "finalized": bool(r["finalized"]),
                "created_at": r["created_at"],
                "updated_at": r["updated_at"],
            }
            for r in rows
        ]

    def get_winners(self, round_id: str) -> List[Winner]:
        with self._lock:
            exists = self._db.execute("SELECT 1 FROM rounds WHERE round_id=?", (round_id,)).fetchone()
            if exists is None:
                raise RoundNotFound(round_id=round_id)
            rows = self._db.execute(
                "SELECT * FROM winners WHERE round_id=? ORDER BY rank", (round_id,)
            ).fetchall()
        return [
            Winner(
                rank=r["rank"],
                index=r["app_index"],
                applicant=r["applicant"],
                normalized_share=r["share_bps"],
                raw_score=r["raw_score"],
            )
            for r in rows
        ]

    def delete_round(self, round_id: str) -> bool:
        with self.tx():
            cur = self._db.execute("DELETE FROM rounds WHERE round_id=?", (round_id,))
            return cur.rowcount > 0


__all__ = ["GovernanceStateDB", "StateDBError", "RoundNotFound"]
