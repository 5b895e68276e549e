"""
Ledger State - the single mutable state object of a staking ledger.

Conceptual Background:
---------------------
The pool's value lives in two places:

1. **Buffer**: underlying tokens held by the ledger itself, available
   for redemptions.
2. **Staked**: underlying tokens delegated to a service provider. The
   delegation manager is the source of truth; the ledger mirrors it and
   only changes the mirror on deposit, reward intake and unstake.

Shares are a claim on `buffer + staked`. `total_shares` always equals the
sum of holder balances.

Cooldowns:
---------
A cooldown entry moves through NONE -> COOLING -> READY -> SETTLED.
COOLING -> READY is not stored: it is derived from the current block.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Optional

from xstake.crypto import ZERO_ADDRESS


class CooldownStatus(IntEnum):
    """Lifecycle of a cooldown scope."""
    NONE = 0        # Never requested
    COOLING = 1     # Waiting out the lock-up
    READY = 2       # Lock-up elapsed, unstake() allowed
    SETTLED = 3     # Unstaked into the buffer


class EventKind(str, Enum):
    """Journalled ledger operations."""
    INITIALIZE = "initialize"
    MINT = "mint"
    BURN = "burn"
    TRANSFER = "transfer"
    CLAIM = "claim"
    COOLDOWN = "cooldown"
    UNSTAKE = "unstake"


@dataclass
class CooldownEntry:
    """
    A pending (or settled) unstake request.

    Attributes:
        amount: Underlying value being undelegated
        requested_at: Block of the cooldown request
        unlock_at: Block from which unstake() is allowed
        settled_at: Block of the unstake, None while pending
    """
    amount: int
    requested_at: int
    unlock_at: int
    settled_at: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.settled_at is None

    def status(self, current_block: int) -> CooldownStatus:
        if not self.is_pending:
            return CooldownStatus.SETTLED
        if current_block >= self.unlock_at:
            return CooldownStatus.READY
        return CooldownStatus.COOLING

    def blocks_remaining(self, current_block: int) -> int:
        return max(0, self.unlock_at - current_block)


@dataclass
class LedgerState:
    """
    Accounting state of one staking ledger.

    Attributes:
        total_shares: Sum of all holder share balances
        share_balances: Holder address -> shares
        buffer_balance: Liquid underlying held by the ledger
        staked_balance: Underlying delegated to the service provider
        cooldown_entries: Scope address -> latest cooldown entry
        symbol: Share token symbol
        service_provider: Provider receiving the delegation
        initialized: Whether initialize() has run
    """
    total_shares: int = 0
    share_balances: Dict[bytes, int] = field(default_factory=dict)
    buffer_balance: int = 0
    staked_balance: int = 0
    cooldown_entries: Dict[bytes, CooldownEntry] = field(default_factory=dict)
    symbol: str = ""
    service_provider: bytes = ZERO_ADDRESS
    initialized: bool = False

    @property
    def total_underlying(self) -> int:
        """Pool value backing all shares."""
        return self.buffer_balance + self.staked_balance

    @property
    def holder_count(self) -> int:
        return len(self.share_balances)

    def shares_of(self, holder: bytes) -> int:
        return self.share_balances.get(holder, 0)

    def pending_cooldown(self, scope: bytes) -> Optional[CooldownEntry]:
        entry = self.cooldown_entries.get(scope)
        if entry is not None and entry.is_pending:
            return entry
        return None

    def check_invariants(self) -> bool:
        """Shares reconcile and no balance is negative."""
        return (
            self.total_shares == sum(self.share_balances.values())
            and all(v > 0 for v in self.share_balances.values())
            and self.buffer_balance >= 0
            and self.staked_balance >= 0
        )


@dataclass
class LedgerSnapshot:
    """
    Snapshot of ledger accounting at a specific block.

    Used for the persisted journal and for status reporting.
    """
    block: int
    total_shares: int
    buffer_balance: int
    staked_balance: int
    holder_count: int

    @property
    def total_underlying(self) -> int:
        return self.buffer_balance + self.staked_balance
