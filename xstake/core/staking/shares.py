"""
Share Accounting - how many shares a deposit is worth.

Exchange rate:
-------------
- First deposit: shares = amount * initial_supply_multiplier
- Afterwards:    shares = amount * total_shares // total_underlying

The rate is read before the deposit is added to the pool. Integer
division truncates, so any rounding loss stays in the pool and accrues
to existing holders.

Redemption is the inverse: underlying = shares * total_underlying // total_shares.
"""

from xstake.core.config import StakingConfig, TOKEN_UNIT
from xstake.core.staking.errors import InsufficientDeposit, InsufficientShares
from xstake.core.staking.state import LedgerState
from xstake.crypto import short_address
from xstake.utils.logger import get_logger

logger = get_logger("shares")


class ShareAccounting:
    """
    Mints, burns and moves holder shares over a LedgerState.

    Computation methods are pure; credit/debit/move are the only
    mutators and are called by the ledger once external effects succeeded.
    """

    def __init__(self, state: LedgerState, config: StakingConfig):
        self.state = state
        self.config = config

    # =========================================================================
    # Queries
    # =========================================================================

    def balance_of(self, holder: bytes) -> int:
        return self.state.shares_of(holder)

    def total_supply(self) -> int:
        return self.state.total_shares

    def price_per_share(self) -> int:
        """
        Underlying value of `initial_supply_multiplier` shares, in 1e18 units.

        Equals TOKEN_UNIT before any deposit and grows as rewards accrue.
        """
        if self.state.total_shares == 0:
            return TOKEN_UNIT
        return (
            self.state.total_underlying
            * self.config.initial_supply_multiplier
            * TOKEN_UNIT
            // self.state.total_shares
        )

    # =========================================================================
    # Mint Computation
    # =========================================================================

    def check_deposit(self, amount: int) -> None:
        """
        Enforce the minimum deposit.

        The minimum guards the pool's delegated position: until the pool
        has at least `min_delegate_amount` staked, each deposit must be
        at least that large on its own.
        """
        if amount <= 0:
            raise InsufficientDeposit(f"Deposit must be positive, got {amount}")

        minimum = self.config.min_delegate_amount
        if self.state.staked_balance < minimum and amount < minimum:
            raise InsufficientDeposit(f"Must send >= minDelegateAmount: {amount} < {minimum}")

    def compute_mint_shares(self, amount: int) -> int:
        """
        Shares minted for `amount` at the current exchange rate.

        Must be called before the deposit is routed into the pool.
        """
        if self.state.total_shares == 0:
            return amount * self.config.initial_supply_multiplier

        # Shares outstanding with no backing value cannot be priced
        if self.state.total_underlying == 0:
            raise InsufficientDeposit("Pool has shares but no underlying value")

        shares = amount * self.state.total_shares // self.state.total_underlying
        if shares == 0:
            raise InsufficientDeposit(f"Deposit of {amount} is worth zero shares")
        return shares

    def compute_redemption(self, shares: int) -> int:
        """Underlying value owed for burning `shares`."""
        if self.state.total_shares == 0:
            return 0
        return shares * self.state.total_underlying // self.state.total_shares

    # =========================================================================
    # Mutation
    # =========================================================================

    def credit(self, holder: bytes, shares: int) -> None:
        """Mint shares to a holder."""
        self.state.share_balances[holder] = self.state.shares_of(holder) + shares
        self.state.total_shares += shares
        logger.debug(f"Minted {shares} shares to {short_address(holder)}")

    def require_shares(self, holder: bytes, shares: int) -> None:
        held = self.state.shares_of(holder)
        if shares <= 0:
            raise InsufficientShares(f"Share amount must be positive, got {shares}")
        if held < shares:
            raise InsufficientShares(f"{short_address(holder)} holds {held} < {shares} shares")

    def debit(self, holder: bytes, shares: int) -> None:
        """Burn shares from a holder."""
        self.require_shares(holder, shares)
        self._reduce(holder, shares)
        self.state.total_shares -= shares
        logger.debug(f"Burned {shares} shares from {short_address(holder)}")

    def move(self, sender: bytes, recipient: bytes, shares: int) -> None:
        """Transfer shares between holders; total supply is unchanged."""
        self.require_shares(sender, shares)
        self._reduce(sender, shares)
        self.state.share_balances[recipient] = self.state.shares_of(recipient) + shares

    def _reduce(self, holder: bytes, shares: int) -> None:
        remaining = self.state.shares_of(holder) - shares
        if remaining == 0:
            del self.state.share_balances[holder]
        else:
            self.state.share_balances[holder] = remaining
