"""
SQLite graph store.

Stores the graph as a single JSON document in one row together with its
version. Writes use a compare-and-swap UPDATE on the version column inside a
transaction, so two writers cannot both succeed from the same snapshot.
"""

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..errors import StoreReadFailed, StoreWriteFailed, VersionConflict
from ..models import KnowledgeGraph
from .base import GraphStore

SNAPSHOT_KEY = "knowledge-graph"


def init_database(conn: sqlite3.Connection, enable_wal: bool = True) -> None:
    """
    Initialize the snapshot table.

    Args:
        conn: SQLite connection object
        enable_wal: Enable WAL mode for concurrent readers (default: True)
    """
    if enable_wal:
        conn.execute("PRAGMA journal_mode=WAL")

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS graph_snapshots (
            key TEXT PRIMARY KEY,
            version INTEGER NOT NULL,
            payload TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
    """)


class SQLiteGraphStore(GraphStore):
    """
    Snapshot store backed by a SQLite row.

    Supports ':memory:' for tests. One connection is held between open() and
    close(), serialized with a thread lock.
    """

    name = "sqlite"

    def __init__(self, db_path: Union[str, Path], key: str = SNAPSHOT_KEY, enable_wal: bool = True):
        super().__init__()
        self.db_path = Path(db_path) if str(db_path) != ':memory:' else ':memory:'
        self.key = key
        self.enable_wal = enable_wal
        self._conn: Optional[sqlite3.Connection] = None
        self._db_lock = threading.Lock()

    def open(self) -> None:
        if self._conn is not None:
            return
        if self.db_path != ':memory:':
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: transactions are managed explicitly below
        self._conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            isolation_level=None,
            timeout=30.0
        )
        init_database(self._conn, self.enable_wal and self.db_path != ':memory:')
        super().open()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        super().close()

    def _read(self) -> Optional[KnowledgeGraph]:
        with self._db_lock:
            try:
                row = self._conn.execute(
                    "SELECT version, payload FROM graph_snapshots WHERE key = ?", (self.key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreReadFailed(f"{self.db_path}: {e}") from e

        if row is None:
            return None
        version, payload = row
        try:
            graph = KnowledgeGraph.from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            raise StoreReadFailed(f"{self.db_path}: corrupt snapshot: {e}") from e
        graph.version = version
        return graph

    def _write(self, graph: KnowledgeGraph, expected_version: Optional[int]) -> int:
        payload = json.dumps({
            "nodes": [n.to_dict() for n in graph.nodes],
            "links": [link.to_dict() for link in graph.links],
        })
        now = datetime.now().isoformat()

        with self._db_lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
                row = self._conn.execute(
                    "SELECT version FROM graph_snapshots WHERE key = ?", (self.key,)
                ).fetchone()
                current = row[0] if row else 0

                if expected_version is not None and expected_version != current:
                    self._conn.execute("ROLLBACK")
                    raise VersionConflict(expected_version, current)

                version = current + 1
                if row is None:
                    self._conn.execute(
                        "INSERT INTO graph_snapshots (key, version, payload, updated_at) VALUES (?, ?, ?, ?)",
                        (self.key, version, payload, now)
                    )
                else:
                    self._conn.execute(
                        "UPDATE graph_snapshots SET version = ?, payload = ?, updated_at = ? "
                        "WHERE key = ? AND version = ?",
                        (version, payload, now, self.key, current)
                    )
                self._conn.execute("COMMIT")
                return version
            except sqlite3.Error as e:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise StoreWriteFailed(f"{self.db_path}: {e}") from e
