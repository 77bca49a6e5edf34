import sqlite3
import threading
from pathlib import Path
from typing import Dict, List, Tuple

from crossauction.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for the auction ledger.

    Provides:
    1. Pools: one row per (period, asset) with the pool total.
    2. Positions: one row per (period, asset, user) with the user's deposit
       and the claimed / withdrawn flags.
    3. Auction state: stop flag and owner fee balances (key/value).

    Amounts are unbounded integers and are stored as decimal TEXT.
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
            conn.execute("""
                CREATE TABLE IF NOT EXISTS pools (
                    period_id INTEGER NOT NULL,
                    asset INTEGER NOT NULL,
                    total TEXT NOT NULL,
                    PRIMARY KEY (period_id, asset)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS positions (
                    period_id INTEGER NOT NULL,
                    asset INTEGER NOT NULL,
                    user TEXT NOT NULL,
                    deposit TEXT NOT NULL,
                    claimed INTEGER NOT NULL DEFAULT 0,
                    withdrawn INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (period_id, asset, user)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_positions_user ON positions(user);")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS auction_state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    # =========================================================================
    # Auction State
    # =========================================================================

    def get_all_state(self) -> Dict[str, str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT key, value FROM auction_state")
        return {row['key']: row['value'] for row in cursor}

    # =========================================================================
    # Ledger Operations
    # =========================================================================

    def get_all_pools(self) -> List[Tuple[int, int, int]]:
        """Get all (period_id, asset, total)."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT period_id, asset, total FROM pools ORDER BY period_id, asset")
        return [(row['period_id'], row['asset'], int(row['total'])) for row in cursor]

    def get_all_positions(self) -> List[Tuple[int, int, str, int, bool, bool]]:
        """Get all (period_id, asset, user, deposit, claimed, withdrawn)."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT period_id, asset, user, deposit, claimed, withdrawn FROM positions "
            "ORDER BY period_id, asset, user"
        )
        return [
            (row['period_id'], row['asset'], row['user'], int(row['deposit']),
             bool(row['claimed']), bool(row['withdrawn']))
            for row in cursor
        ]

    def persist_ledger_update(
        self,
        pools: List[Tuple[int, int, int]],
        positions: List[Tuple[int, int, str, int, bool, bool]],
        state: Dict[str, str],
    ):
        """
        Atomically write one operation's effects.

        Args:
            pools: (period_id, asset, total) rows to upsert
            positions: (period_id, asset, user, deposit, claimed, withdrawn)
                rows to upsert
            state: Auction state keys to upsert
        """
        conn = self._get_conn()
        with conn:
            for period_id, asset, total in pools:
                conn.execute(
                    "INSERT OR REPLACE INTO pools (period_id, asset, total) VALUES (?, ?, ?)",
                    (period_id, asset, str(total))
                )

            for period_id, asset, user, deposit, claimed, withdrawn in positions:
                conn.execute(
                    "INSERT OR REPLACE INTO positions "
                    "(period_id, asset, user, deposit, claimed, withdrawn) VALUES (?, ?, ?, ?, ?, ?)",
                    (period_id, asset, user, str(deposit), int(claimed), int(withdrawn))
                )

            for key, value in state.items():
                conn.execute(
                    "INSERT OR REPLACE INTO auction_state (key, value) VALUES (?, ?)",
                    (key, value)
                )

    def close(self):
        """Close this thread's connection."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
