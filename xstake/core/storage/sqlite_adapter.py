import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from xstake.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for the ledger journal.

    Provides:
    1. Event log of every applied ledger operation
    2. Accounting snapshots (one per applied operation)
    3. Ledger metadata (symbol, service provider, addresses)
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            # Amounts are stored as TEXT: uint256 values overflow SQLite INTEGER.

            # 1. Event log
            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind TEXT NOT NULL,
                    caller BLOB NOT NULL,
                    amount TEXT NOT NULL,
                    shares TEXT NOT NULL,
                    block INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_kind ON events(kind);")

            # 2. Accounting snapshots
            conn.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    seq INTEGER PRIMARY KEY,
                    block INTEGER NOT NULL,
                    total_shares TEXT NOT NULL,
                    buffer_balance TEXT NOT NULL,
                    staked_balance TEXT NOT NULL,
                    holder_count INTEGER NOT NULL
                )
            """)

            # 3. Metadata
            conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    # =========================================================================
    # Journal
    # =========================================================================

    def append_event(
        self,
        kind: str,
        caller: bytes,
        amount: int,
        shares: int,
        block: int,
        snapshot: Tuple[int, int, int, int, int],
    ) -> int:
        """
        Atomically append an event and the snapshot taken after it.

        Args:
            kind: Event kind
            caller: Calling address
            amount: Underlying amount involved
            shares: Shares minted/burned/moved
            block: Block number
            snapshot: (block, total_shares, buffer, staked, holder_count)

        Returns:
            Sequence number of the event
        """
        with self.staged_event(kind, caller, amount, shares, block, snapshot) as seq:
            pass
        return seq

    @contextmanager
    def staged_event(
        self,
        kind: str,
        caller: bytes,
        amount: int,
        shares: int,
        block: int,
        snapshot: Tuple[int, int, int, int, int],
        meta: Optional[Dict[str, str]] = None,
    ) -> Iterator[int]:
        """
        Write an event, its snapshot and optional metadata in an open transaction.

        The rows are committed when the block exits normally and rolled
        back if it raises. A failing write raises before the block runs.

        Yields:
            Sequence number of the event
        """
        conn = self._get_conn()
        with conn:
            cursor = conn.execute(
                "INSERT INTO events (kind, caller, amount, shares, block) VALUES (?, ?, ?, ?, ?)",
                (kind, caller, str(amount), str(shares), block)
            )
            seq = cursor.lastrowid
            snap_block, total_shares, buffer_balance, staked_balance, holders = snapshot
            conn.execute(
                "INSERT INTO snapshots (seq, block, total_shares, buffer_balance, staked_balance, holder_count) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (seq, snap_block, str(total_shares), str(buffer_balance), str(staked_balance), holders)
            )
            for key, value in (meta or {}).items():
                conn.execute(
                    "INSERT OR REPLACE INTO ledger_meta (key, value) VALUES (?, ?)", (key, value)
                )
            yield seq

    def get_events(self, limit: Optional[int] = None) -> List[Tuple[Any, ...]]:
        """Get events ordered by sequence (oldest first)."""
        conn = self._get_conn()
        query = "SELECT seq, kind, caller, amount, shares, block FROM events ORDER BY seq ASC"
        if limit is not None:
            query = (
                "SELECT * FROM (SELECT seq, kind, caller, amount, shares, block FROM events "
                "ORDER BY seq DESC LIMIT ?) ORDER BY seq ASC"
            )
            cursor = conn.execute(query, (limit,))
        else:
            cursor = conn.execute(query)
        return [tuple(row) for row in cursor]

    def get_latest_snapshot(self) -> Optional[Tuple[Any, ...]]:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT block, total_shares, buffer_balance, staked_balance, holder_count "
            "FROM snapshots ORDER BY seq DESC LIMIT 1"
        )
        row = cursor.fetchone()
        return tuple(row) if row else None

    def count_events(self) -> int:
        conn = self._get_conn()
        cursor = conn.execute("SELECT COUNT(*) as cnt FROM events")
        return cursor.fetchone()['cnt']

    # =========================================================================
    # Metadata
    # =========================================================================

    def set_meta(self, key: str, value: str):
        conn = self._get_conn()
        with conn:
            conn.execute("INSERT OR REPLACE INTO ledger_meta (key, value) VALUES (?, ?)", (key, value))

    def get_meta(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM ledger_meta WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    def close(self):
        """Close the connection of the current thread."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
