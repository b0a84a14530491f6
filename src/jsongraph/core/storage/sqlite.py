"""
SQLite storage adapter.

Features:
- Schema versioning and migrations
- One transaction per saved document (nodes and edges replaced together)
- Recursive CTE for subtree queries without hydrating the document
- Corrupt rows are skipped on load instead of failing the workspace
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..types import GraphState
from .base import StorageAdapter
from .snapshot import dump_state, load_state

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStorage(StorageAdapter):
    """
    Persistent storage using a local SQLite file.

    Each document is a row in ``documents``; its nodes and edges live in
    child tables keyed by ``document_id`` and keep their insertion order
    through a ``seq`` column.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA synchronous=NORMAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema with versioning."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL,
                    description TEXT
                )
            """)

            current_version = self._get_schema_version_internal(conn)

            if current_version < SCHEMA_VERSION:
                self._migrate(conn, current_version)

    def _get_schema_version_internal(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT MAX(version) as v FROM schema_version").fetchone()
        return row["v"] if row and row["v"] else 0

    def _migrate(self, conn: sqlite3.Connection, from_version: int) -> None:
        """Run schema migrations."""

        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    document_id TEXT PRIMARY KEY,
                    display_name TEXT,
                    raw_document TEXT,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS nodes (
                    document_id TEXT NOT NULL
                        REFERENCES documents(document_id) ON DELETE CASCADE,
                    id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    parent_path TEXT,
                    payload TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    PRIMARY KEY (document_id, id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS edges (
                    document_id TEXT NOT NULL
                        REFERENCES documents(document_id) ON DELETE CASCADE,
                    id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    target TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    PRIMARY KEY (document_id, id)
                )
            """)

            conn.execute("""
                INSERT INTO schema_version (version, applied_at, description)
                VALUES (1, ?, 'Initial schema')
            """, (_now(),))

        if from_version < 2:
            conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_source ON edges(document_id, source)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_target ON edges(document_id, target)")
            conn.execute("""
                INSERT INTO schema_version (version, applied_at, description)
                VALUES (2, ?, 'Added edge endpoint indexes')
            """, (_now(),))

    def get_schema_version(self) -> int:
        with self._connection() as conn:
            return self._get_schema_version_internal(conn)

    def _write_state(self, conn: sqlite3.Connection, state: GraphState) -> None:
        entry = dump_state(state)
        conn.execute("DELETE FROM edges WHERE document_id = ?", (state.document_id,))
        conn.execute("DELETE FROM nodes WHERE document_id = ?", (state.document_id,))
        conn.execute("""
            INSERT OR REPLACE INTO documents (document_id, display_name, raw_document, updated_at)
            VALUES (?, ?, ?, ?)
        """, (
            state.document_id,
            state.display_name,
            json.dumps(entry["rawDocument"]),
            _now(),
        ))
        conn.executemany("""
            INSERT INTO nodes (document_id, id, kind, parent_path, payload, seq)
            VALUES (?, ?, ?, ?, ?, ?)
        """, [
            (state.document_id, n["id"], n["kind"], n["parentPath"], json.dumps(n["payload"]), seq)
            for seq, n in enumerate(entry["nodes"])
        ])
        conn.executemany("""
            INSERT INTO edges (document_id, id, source, target, seq)
            VALUES (?, ?, ?, ?, ?)
        """, [
            (state.document_id, e["id"], e["source"], e["target"], seq)
            for seq, e in enumerate(entry["edges"])
        ])

    def save_state(self, state: GraphState) -> None:
        with self._connection() as conn:
            self._write_state(conn, state)

    def save_states_batch(self, states: Iterable[GraphState]) -> int:
        """Persist multiple documents in a single transaction."""
        states = list(states)
        if not states:
            return 0
        with self._connection() as conn:
            for state in states:
                self._write_state(conn, state)
        return len(states)

    def _read_entry(self, conn: sqlite3.Connection, doc_row: sqlite3.Row) -> Dict[str, Any]:
        document_id = doc_row["document_id"]
        node_rows = conn.execute(
            "SELECT * FROM nodes WHERE document_id = ? ORDER BY seq", (document_id,)
        ).fetchall()
        edge_rows = conn.execute(
            "SELECT * FROM edges WHERE document_id = ? ORDER BY seq", (document_id,)
        ).fetchall()
        return {
            "documentId": document_id,
            "displayName": doc_row["display_name"],
            "rawDocument": json.loads(doc_row["raw_document"]) if doc_row["raw_document"] else None,
            "nodes": [
                {
                    "id": row["id"],
                    "kind": row["kind"],
                    "parentPath": row["parent_path"],
                    "payload": json.loads(row["payload"]),
                }
                for row in node_rows
            ],
            "edges": [
                {"id": row["id"], "source": row["source"], "target": row["target"]}
                for row in edge_rows
            ],
        }

    def _row_to_state(self, conn: sqlite3.Connection, doc_row: sqlite3.Row) -> Optional[GraphState]:
        try:
            return load_state(self._read_entry(conn, doc_row))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping corrupt document {doc_row['document_id']}: {e}")
            return None

    def load_state(self, document_id: str) -> Optional[GraphState]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
            return self._row_to_state(conn, row) if row else None

    def load_all_states(self) -> List[GraphState]:
        states = []
        with self._connection() as conn:
            for row in conn.execute("SELECT * FROM documents ORDER BY rowid").fetchall():
                state = self._row_to_state(conn, row)
                if state is not None:
                    states.append(state)
        return states

    def delete_state(self, document_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
            return cursor.rowcount > 0

    def query_descendants(self, document_id: str, node_id: str, max_depth: int = -1) -> List[str]:
        """Materialized descendants of a node, using a recursive CTE."""
        with self._connection() as conn:
            rows = conn.execute("""
                WITH RECURSIVE descendants AS (
                    SELECT target as id, 1 as depth
                    FROM edges WHERE document_id = ? AND source = ?
                    UNION
                    SELECT e.target, d.depth + 1
                    FROM edges e JOIN descendants d ON e.source = d.id
                    WHERE e.document_id = ? AND (? < 0 OR d.depth < ?)
                )
                SELECT DISTINCT id FROM descendants
            """, (document_id, node_id, document_id, max_depth, max_depth)).fetchall()
            return [row["id"] for row in rows]

    def get_stats(self) -> Dict[str, Any]:
        with self._connection() as conn:
            doc_count = conn.execute("SELECT COUNT(*) as c FROM documents").fetchone()["c"]
            node_count = conn.execute("SELECT COUNT(*) as c FROM nodes").fetchone()["c"]
            edge_count = conn.execute("SELECT COUNT(*) as c FROM edges").fetchone()["c"]
            kind_rows = conn.execute(
                "SELECT kind, COUNT(*) as c FROM nodes GROUP BY kind"
            ).fetchall()

            return {
                "schema_version": self._get_schema_version_internal(conn),
                "documents": doc_count,
                "total_nodes": node_count,
                "total_edges": edge_count,
                "nodes_by_kind": {row["kind"]: row["c"] for row in kind_rows},
                "db_size_bytes": self.db_path.stat().st_size if self.db_path.exists() else 0,
            }

    def clear(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM edges")
            conn.execute("DELETE FROM nodes")
            conn.execute("DELETE FROM documents")
