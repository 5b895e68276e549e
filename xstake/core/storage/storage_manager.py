from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from xstake.core.staking.state import LedgerSnapshot
from xstake.core.storage.sqlite_adapter import SQLiteAdapter
from xstake.utils.logger import get_logger

logger = get_logger("storage.manager")


@dataclass
class JournalEntry:
    """One persisted ledger operation."""
    seq: int
    kind: str
    caller: bytes
    amount: int
    shares: int
    block: int


class StorageManager:
    """
    Manages the persistent journal of a staking ledger.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Event log of applied operations
    - Accounting snapshots
    - Metadata (symbol, addresses)
    """

    def __init__(self, data_dir: Path, db_name: str = "xstake.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Journal
    # =========================================================================

    def record(
        self,
        kind: str,
        caller: bytes,
        amount: int,
        shares: int,
        snapshot: LedgerSnapshot,
    ) -> int:
        """Persist an applied operation together with the resulting snapshot."""
        return self.adapter.append_event(
            kind, caller, amount, shares, snapshot.block, _snapshot_row(snapshot)
        )

    @contextmanager
    def journal(
        self,
        kind: str,
        caller: bytes,
        amount: int,
        shares: int,
        snapshot: LedgerSnapshot,
        meta: Optional[Dict[str, str]] = None,
    ) -> Iterator[int]:
        """
        Journal an operation around the code that applies it.

        The event is written before the block runs, so a storage failure
        surfaces before any ledger state changes. It is committed only if
        the block completes; an exception inside rolls it back.

        Args:
            snapshot: Accounting snapshot expected once the operation applies
            meta: Metadata to store in the same transaction
        """
        with self.adapter.staged_event(
            kind, caller, amount, shares, snapshot.block, _snapshot_row(snapshot), meta
        ) as seq:
            yield seq

    def load_history(self, limit: Optional[int] = None) -> List[JournalEntry]:
        """Load journalled events, oldest first (the last `limit` if given)."""
        return [
            JournalEntry(
                seq=seq,
                kind=kind,
                caller=caller,
                amount=int(amount),
                shares=int(shares),
                block=block,
            )
            for seq, kind, caller, amount, shares, block in self.adapter.get_events(limit)
        ]

    def latest_snapshot(self) -> Optional[LedgerSnapshot]:
        row = self.adapter.get_latest_snapshot()
        if row is None:
            return None
        block, total_shares, buffer_balance, staked_balance, holder_count = row
        return LedgerSnapshot(
            block=block,
            total_shares=int(total_shares),
            buffer_balance=int(buffer_balance),
            staked_balance=int(staked_balance),
            holder_count=holder_count,
        )

    def event_count(self) -> int:
        return self.adapter.count_events()

    # =========================================================================
    # Metadata
    # =========================================================================

    def save_meta(self, key: str, value: str):
        self.adapter.set_meta(key, value)

    def get_meta(self, key: str) -> Optional[str]:
        return self.adapter.get_meta(key)

    def close(self):
        self.adapter.close()


def _snapshot_row(snapshot: LedgerSnapshot) -> Tuple[int, int, int, int, int]:
    return (
        snapshot.block,
        snapshot.total_shares,
        snapshot.buffer_balance,
        snapshot.staked_balance,
        snapshot.holder_count,
    )
