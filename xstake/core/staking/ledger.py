"""
Staking Ledger - liquid staking of an underlying token.

Conceptual Background:
---------------------
Depositors hand underlying tokens to the ledger and receive shares. The
ledger keeps a small liquid buffer and delegates the rest to a service
provider. Rewards claimed from the claims manager are restaked, raising
the value of every share. The administrator moves stake back into the
buffer through a cooldown followed, after the delegation lock-up, by an
unstake.

Operation Processing:
--------------------
Every operation follows the same shape:
1. Check initialization, authorization and inputs (no side effects)
2. Stage the journal entry with the snapshot the operation will produce
3. Perform external calls (token, delegation manager, claims manager)
4. Apply the local state change and commit the journal entry

A failure in steps 1 to 3 leaves the ledger untouched and rolls back the
staged entry. Where an external side effect already happened (the token
pull of a deposit whose delegation is refused), it is compensated before
the error propagates.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from xstake.core.config import StakingConfig
from xstake.core.external.clock import BlockClock
from xstake.core.external.errors import ExternalAuthorityError
from xstake.core.staking.cooldown import CooldownManager
from xstake.core.staking.errors import (
    AlreadyInitialized,
    DepositFailed,
    InsufficientDeposit,
    InsufficientShares,
    InsufficientStake,
    NotInitialized,
    Unauthorized,
)
from xstake.core.staking.partition import BalancePartition
from xstake.core.staking.rewards import RewardIntake
from xstake.core.staking.shares import ShareAccounting
from xstake.core.staking.state import (
    CooldownEntry,
    CooldownStatus,
    EventKind,
    LedgerSnapshot,
    LedgerState,
)
from xstake.crypto import bytes_to_hex, contract_address, short_address
from xstake.utils.logger import get_logger
from xstake.utils.validation import validate_address, validate_amount, validate_symbol

logger = get_logger("ledger")


class StakingLedger:
    """
    Liquid staking ledger.

    Owns one LedgerState and the four components operating on it.

    Attributes:
        owner: Administrator address (claim, cooldown, unstake)
        address: Ledger address (holds the buffer, delegates the stake)
        clock: Block clock
        config: Staking configuration
        state: Accounting state
    """

    def __init__(
        self,
        owner: bytes,
        clock: BlockClock,
        config: Optional[StakingConfig] = None,
        storage_manager=None,
        address: Optional[bytes] = None,
    ):
        """
        Create an uninitialized ledger.

        Args:
            owner: Administrator address
            clock: Block clock shared with the external authorities
            config: Staking configuration (defaults if None)
            storage_manager: Journal persistence. None = in-memory only.
            address: Ledger address (derived if None)
        """
        valid, err = validate_address(owner, "owner")
        if not valid:
            raise ValueError(err)

        self.owner = owner
        self.clock = clock
        self.config = config or StakingConfig()
        self.storage_manager = storage_manager
        self.address = address or contract_address("staking-ledger")

        self.state = LedgerState()
        self.shares = ShareAccounting(self.state, self.config)

        # Bound by initialize()
        self.token = None
        self.delegation_manager = None
        self.partition: Optional[BalancePartition] = None
        self.rewards: Optional[RewardIntake] = None
        self.cooldowns: Optional[CooldownManager] = None

    # =========================================================================
    # Initialization
    # =========================================================================

    def initialize(
        self,
        caller: bytes,
        underlying_token,
        service_provider: bytes,
        delegation_manager,
        symbol: str,
    ) -> None:
        """
        Bind the external collaborators. One time only.

        The claims manager is discovered through the delegation manager.

        Raises:
            AlreadyInitialized: called a second time
            Unauthorized: caller is not the owner
            ValueError: invalid symbol or service provider
        """
        if self.state.initialized:
            raise AlreadyInitialized("Ledger already initialized")
        self._require_owner(caller, "initialize")

        valid, err = validate_symbol(symbol)
        if not valid:
            raise ValueError(err)
        valid, err = validate_address(service_provider, "service_provider")
        if not valid:
            raise ValueError(err)

        claims_manager = getattr(delegation_manager, "claims_manager", None)
        if claims_manager is None:
            raise ValueError("Delegation manager has no claims manager")

        meta = {
            "symbol": symbol,
            "ledger_address": bytes_to_hex(self.address),
            "service_provider": bytes_to_hex(service_provider),
        }
        with self._journal(EventKind.INITIALIZE, caller, 0, 0, self.snapshot(), meta):
            self.token = underlying_token
            self.delegation_manager = delegation_manager
            self.partition = BalancePartition(self.state, self.config, delegation_manager, self.address)
            self.rewards = RewardIntake(self.partition, claims_manager, self.address)
            self.cooldowns = CooldownManager(
                self.state, self.partition, self.clock, delegation_manager, self.address
            )

            self.state.symbol = symbol
            self.state.service_provider = service_provider
            self.state.initialized = True

        logger.info(
            f"Ledger {symbol} initialized: provider={short_address(service_provider)}, "
            f"buffer target 1/{self.config.buffer_target_divisor}"
        )

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def symbol(self) -> str:
        return self.state.symbol

    def balance_of(self, holder: bytes) -> int:
        return self.shares.balance_of(holder)

    def total_supply(self) -> int:
        return self.shares.total_supply()

    def get_staked_balance(self) -> int:
        return self.state.staked_balance

    def get_buffer_balance(self) -> int:
        return self.state.buffer_balance

    def get_nav(self) -> int:
        """Net asset value: buffer + staked."""
        return self.state.total_underlying

    def price_per_share(self) -> int:
        return self.shares.price_per_share()

    def claimable_rewards(self) -> int:
        self._require_initialized()
        return self.rewards.claimable()

    def cooldown_status(self, scope: Optional[bytes] = None) -> CooldownStatus:
        self._require_initialized()
        return self.cooldowns.status(scope or self.owner)

    def get_cooldown(self, scope: Optional[bytes] = None) -> Optional[CooldownEntry]:
        self._require_initialized()
        return self.cooldowns.get_entry(scope or self.owner)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            block=self.clock.now(),
            total_shares=self.state.total_shares,
            buffer_balance=self.state.buffer_balance,
            staked_balance=self.state.staked_balance,
            holder_count=self.state.holder_count,
        )

    # =========================================================================
    # Share Operations
    # =========================================================================

    def mint_with_token(self, caller: bytes, amount: int) -> int:
        """
        Deposit underlying tokens and receive shares.

        The caller must have approved the ledger address for `amount`.

        Returns:
            Shares minted

        Raises:
            InsufficientDeposit: below minimum or worth zero shares
            DepositFailed: token pull or delegation failed
        """
        self._require_initialized()
        valid, err = validate_amount(amount)
        if not valid:
            raise InsufficientDeposit(err)

        self.shares.check_deposit(amount)
        # Exchange rate snapshot before the deposit enters the pool
        minted = self.shares.compute_mint_shares(amount)
        to_buffer, to_stake = self.partition.split(amount)

        expected = self._projected(
            buffer_delta=to_buffer,
            staked_delta=to_stake,
            shares_delta=minted,
            holders_delta=0 if self.shares.balance_of(caller) else 1,
        )
        with self._journal(EventKind.MINT, caller, amount, minted, expected):
            try:
                self.token.transfer_from(self.address, caller, self.address, amount)
            except ExternalAuthorityError as e:
                raise DepositFailed(f"Token transfer failed: {e}") from e

            try:
                self.partition.route(amount)
            except ExternalAuthorityError as e:
                self.token.transfer(self.address, caller, amount)
                raise DepositFailed(f"Delegation failed, deposit refunded: {e}") from e

            self.shares.credit(caller, minted)

        logger.info(
            f"Mint: {short_address(caller)} deposited {amount} for {minted} shares "
            f"(buffer +{to_buffer}, staked +{to_stake})"
        )
        return minted

    def burn(self, caller: bytes, shares: int) -> int:
        """
        Redeem shares for underlying paid from the buffer.

        Returns:
            Underlying amount paid out

        Raises:
            InsufficientShares: caller lacks the shares or they are worth zero
            InsufficientBuffer: buffer cannot cover the payout
        """
        self._require_initialized()
        valid, err = validate_amount(shares, "shares")
        if not valid:
            raise InsufficientShares(err)
        self.shares.require_shares(caller, shares)

        payout = self.shares.compute_redemption(shares)
        if payout == 0:
            raise InsufficientShares(f"Burning {shares} shares would pay out nothing")
        self.partition.require_buffer(payout)

        expected = self._projected(
            buffer_delta=-payout,
            shares_delta=-shares,
            holders_delta=-1 if shares == self.shares.balance_of(caller) else 0,
        )
        with self._journal(EventKind.BURN, caller, payout, shares, expected):
            self.token.transfer(self.address, caller, payout)
            self.partition.release_buffer(payout)
            self.shares.debit(caller, shares)

        logger.info(f"Burn: {short_address(caller)} redeemed {shares} shares for {payout}")
        return payout

    def transfer(self, caller: bytes, recipient: bytes, shares: int) -> None:
        """Move shares to another holder."""
        self._require_initialized()
        valid, err = validate_address(recipient, "recipient")
        if not valid:
            raise ValueError(err)
        valid, err = validate_amount(shares, "shares")
        if not valid:
            raise InsufficientShares(err)
        self.shares.require_shares(caller, shares)

        holders_delta = 0
        if recipient != caller:
            if not self.shares.balance_of(recipient):
                holders_delta += 1
            if shares == self.shares.balance_of(caller):
                holders_delta -= 1

        expected = self._projected(holders_delta=holders_delta)
        with self._journal(EventKind.TRANSFER, caller, 0, shares, expected):
            self.shares.move(caller, recipient, shares)

        logger.debug(f"Transfer: {shares} shares {short_address(caller)} -> {short_address(recipient)}")

    # =========================================================================
    # Administrator Operations
    # =========================================================================

    def claim_rewards(self, caller: bytes) -> int:
        """
        Claim rewards into the staked balance. Never mints shares.

        Returns:
            Amount claimed (0 when nothing was claimable)

        Raises:
            Unauthorized: caller is not the owner
            ClaimFailed: claims manager reported an error
        """
        self._require_initialized()
        self._require_owner(caller, "claim_rewards")

        claimable = self.rewards.claimable()
        if claimable == 0:
            return 0

        expected = self._projected(staked_delta=claimable)
        with self._journal(EventKind.CLAIM, caller, claimable, 0, expected):
            claimed = self.rewards.claim()

        logger.info(f"Claimed {claimed} rewards, staked balance now {self.state.staked_balance}")
        return claimed

    def cooldown(self, caller: bytes, amount: int) -> CooldownEntry:
        """
        Start undelegating `amount` of the staked balance.

        Raises:
            Unauthorized: caller is not the owner
            InsufficientStake: amount is not a positive integer within the staked balance
            CooldownAlreadyPending: a cooldown awaits unstake()
        """
        self._require_initialized()
        self._require_owner(caller, "cooldown")
        valid, err = validate_amount(amount)
        if not valid:
            raise InsufficientStake(err)

        with self._journal(EventKind.COOLDOWN, caller, amount, 0, self.snapshot()):
            entry = self.cooldowns.request(caller, amount)

        logger.info(f"Cooldown: {amount} undelegating, unlocks at block {entry.unlock_at}")
        return entry

    def unstake(self, caller: bytes) -> int:
        """
        Pull a matured cooldown back into the buffer.

        Returns:
            Amount moved from staked to buffer

        Raises:
            Unauthorized: caller is not the owner
            NoCooldownPending: cooldown() was not called
            CooldownNotElapsed: lock-up still running
            UnstakeFailed: delegation manager refused or released a different amount
        """
        self._require_initialized()
        self._require_owner(caller, "unstake")

        entry = self.cooldowns.require_ready(caller)
        amount = entry.amount

        expected = self._projected(buffer_delta=amount, staked_delta=-amount)
        with self._journal(EventKind.UNSTAKE, caller, amount, 0, expected):
            self.cooldowns.settle(caller)

        logger.info(
            f"Unstake: {amount} moved to buffer "
            f"(buffer={self.state.buffer_balance}, staked={self.state.staked_balance})"
        )
        return amount

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_initialized(self) -> None:
        if not self.state.initialized:
            raise NotInitialized("Ledger not initialized")

    def _require_owner(self, caller: bytes, operation: str) -> None:
        if caller != self.owner:
            logger.warning(f"Rejected {operation} from non-owner {short_address(caller)}")
            raise Unauthorized(f"{operation} is restricted to the owner")

    def _projected(
        self,
        buffer_delta: int = 0,
        staked_delta: int = 0,
        shares_delta: int = 0,
        holders_delta: int = 0,
    ) -> LedgerSnapshot:
        """Snapshot the ledger will have once a pending operation applies."""
        return LedgerSnapshot(
            block=self.clock.now(),
            total_shares=self.state.total_shares + shares_delta,
            buffer_balance=self.state.buffer_balance + buffer_delta,
            staked_balance=self.state.staked_balance + staked_delta,
            holder_count=self.state.holder_count + holders_delta,
        )

    @contextmanager
    def _journal(
        self,
        kind: EventKind,
        caller: bytes,
        amount: int,
        shares: int,
        expected: LedgerSnapshot,
        meta: Optional[Dict[str, str]] = None,
    ) -> Iterator[None]:
        """
        Wrap the state-changing part of an operation in a journal entry.

        The entry is staged before the block runs and committed after it,
        so a journal failure leaves the ledger untouched and a failed
        operation leaves no entry. Without storage this is a no-op.
        """
        if not self.storage_manager:
            yield
            return

        with self.storage_manager.journal(kind.value, caller, amount, shares, expected, meta):
            yield
            if self.snapshot() != expected:
                logger.error(
                    f"{kind.value} journalled {expected} but ledger is at {self.snapshot()}"
                )

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"StakingLedger(symbol={self.state.symbol or '-'}, shares={self.state.total_shares}, "
            f"buffer={self.state.buffer_balance}, staked={self.state.staked_balance})"
        )

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "symbol": self.state.symbol,
            "block": self.clock.now(),
            "total_shares": self.state.total_shares,
            "holders": self.state.holder_count,
            "buffer_balance": self.state.buffer_balance,
            "staked_balance": self.state.staked_balance,
            "nav": self.state.total_underlying,
            "price_per_share": self.shares.price_per_share(),
            "total_claimed": self.rewards.total_claimed if self.rewards else 0,
            "cooldown": self.cooldown_status().name if self.state.initialized else CooldownStatus.NONE.name,
        }
