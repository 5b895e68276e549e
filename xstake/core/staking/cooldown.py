"""
Cooldown / Unstake - two-phase withdrawal of delegated value.

State machine per scope:

    NONE/SETTLED --cooldown()--> COOLING --(lock-up elapses)--> READY --unstake()--> SETTLED

COOLING -> READY is evaluated lazily from the clock inside unstake();
there is no background task. A cooldown cannot be cancelled, and only one
can be pending per scope: a second request is rejected rather than
overwriting the first, because the delegation manager also accepts only
one pending undelegation per delegator.
"""

from typing import Optional

from xstake.core.external.clock import BlockClock
from xstake.core.external.errors import ExternalAuthorityError
from xstake.core.staking.errors import (
    CooldownAlreadyPending,
    CooldownNotElapsed,
    InsufficientStake,
    NoCooldownPending,
    UnstakeFailed,
)
from xstake.core.staking.partition import BalancePartition
from xstake.core.staking.state import CooldownEntry, CooldownStatus, LedgerState
from xstake.utils.logger import get_logger

logger = get_logger("cooldown")


class CooldownManager:
    """
    Sequences undelegation requests and their settlement.

    Args:
        state: Ledger state holding the cooldown entries
        partition: Balance partition receiving unstaked value
        clock: Block clock used for the Cooling -> Ready predicate
        delegation_manager: Authority enforcing the lock-up
        delegator: Address the ledger delegates from
    """

    def __init__(
        self,
        state: LedgerState,
        partition: BalancePartition,
        clock: BlockClock,
        delegation_manager,
        delegator: bytes,
    ):
        self.state = state
        self.partition = partition
        self.clock = clock
        self.delegation_manager = delegation_manager
        self.delegator = delegator

    # =========================================================================
    # Queries
    # =========================================================================

    def get_entry(self, scope: bytes) -> Optional[CooldownEntry]:
        return self.state.cooldown_entries.get(scope)

    def status(self, scope: bytes) -> CooldownStatus:
        entry = self.get_entry(scope)
        if entry is None:
            return CooldownStatus.NONE
        return entry.status(self.clock.now())

    # =========================================================================
    # Transitions
    # =========================================================================

    def request(self, scope: bytes, amount: int) -> CooldownEntry:
        """
        NONE/SETTLED -> COOLING.

        Raises:
            CooldownAlreadyPending: scope already has a pending entry
            InsufficientStake: amount is not within the staked balance
            UnstakeFailed: delegation manager refused the request
        """
        if self.state.pending_cooldown(scope) is not None:
            raise CooldownAlreadyPending("A cooldown is already pending; unstake it first")

        if amount <= 0:
            raise InsufficientStake(f"Cooldown amount must be positive, got {amount}")

        if amount > self.state.staked_balance:
            raise InsufficientStake(
                f"Cooldown amount exceeds staked balance: {amount} > {self.state.staked_balance}"
            )

        try:
            unlock_at = self.delegation_manager.request_undelegate_stake(
                self.delegator, self.state.service_provider, amount
            )
        except ExternalAuthorityError as e:
            raise UnstakeFailed(f"Undelegation request refused: {e}") from e

        entry = CooldownEntry(
            amount=amount,
            requested_at=self.clock.now(),
            unlock_at=unlock_at,
        )
        self.state.cooldown_entries[scope] = entry

        logger.debug(f"Cooldown of {amount} requested, unlocks at block {unlock_at}")
        return entry

    def require_ready(self, scope: bytes) -> CooldownEntry:
        """
        Return the pending entry of `scope` if its lock-up has elapsed.

        Raises:
            NoCooldownPending: no pending entry for scope
            CooldownNotElapsed: lock-up has not expired yet
        """
        entry = self.state.pending_cooldown(scope)
        if entry is None:
            raise NoCooldownPending("No cooldown pending")

        now = self.clock.now()
        if entry.status(now) != CooldownStatus.READY:
            raise CooldownNotElapsed(
                f"Cooldown not elapsed: {entry.blocks_remaining(now)} blocks remaining "
                f"(unlocks at block {entry.unlock_at})"
            )
        return entry

    def settle(self, scope: bytes) -> int:
        """
        READY -> SETTLED: pull the undelegated amount into the buffer.

        The delegation manager must release exactly the cooldown amount;
        its pending request and the delegated stake are checked before
        the withdrawal.

        Returns:
            Amount moved from staked to buffer

        Raises:
            NoCooldownPending: no pending entry for scope
            CooldownNotElapsed: lock-up has not expired yet
            UnstakeFailed: delegation manager refused the withdrawal or
                would release a different amount
        """
        entry = self.require_ready(scope)

        request = self.delegation_manager.get_pending_undelegate_request(self.delegator)
        if request is None or request.amount != entry.amount:
            pending = request.amount if request else 0
            raise UnstakeFailed(
                f"Delegation manager holds an undelegation of {pending}, cooldown recorded {entry.amount}"
            )
        delegated = self.delegation_manager.get_total_delegator_stake(self.delegator)
        if delegated < entry.amount:
            raise UnstakeFailed(
                f"Delegated stake {delegated} cannot cover the cooldown of {entry.amount}"
            )

        try:
            withdrawn = self.delegation_manager.undelegate_stake(self.delegator)
        except ExternalAuthorityError as e:
            raise UnstakeFailed(f"Undelegation withdrawal refused: {e}") from e

        if withdrawn != entry.amount:
            logger.error(f"Delegation manager released {withdrawn}, cooldown recorded {entry.amount}")
            raise UnstakeFailed(
                f"Delegation manager released {withdrawn} instead of {entry.amount}"
            )

        self.partition.move_staked_to_buffer(withdrawn)
        entry.settled_at = self.clock.now()

        return withdrawn
