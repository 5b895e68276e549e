"""
Balance Partition - the split between liquid buffer and delegated stake.

Each deposit keeps `amount // buffer_target_divisor` in the buffer and
delegates the rest. This is a deposit-time policy only: the existing
pool is never rebalanced, so the buffer ratio drifts with rewards,
redemptions and unstakes.
"""

from typing import Tuple

from xstake.core.config import StakingConfig
from xstake.core.staking.errors import InsufficientBuffer
from xstake.core.staking.state import LedgerState
from xstake.utils.logger import get_logger

logger = get_logger("partition")


class BalancePartition:
    """
    Routes deposits and keeps the local buffer/staked mirror.

    Args:
        state: Ledger state to mutate
        config: Staking configuration (buffer divisor)
        delegation_manager: Authority receiving delegated stake
        delegator: Address the ledger delegates from
    """

    def __init__(
        self,
        state: LedgerState,
        config: StakingConfig,
        delegation_manager,
        delegator: bytes,
    ):
        self.state = state
        self.config = config
        self.delegation_manager = delegation_manager
        self.delegator = delegator

    def get_buffer_balance(self) -> int:
        return self.state.buffer_balance

    def get_staked_balance(self) -> int:
        return self.state.staked_balance

    def split(self, amount: int) -> Tuple[int, int]:
        """
        Compute (to_buffer, to_stake) for a deposit.

        to_buffer + to_stake == amount always holds.
        """
        to_buffer = amount // self.config.buffer_target_divisor
        return to_buffer, amount - to_buffer

    def route(self, amount: int) -> Tuple[int, int]:
        """
        Place freshly deposited value.

        Delegates the staked part first; the local mirror is updated only
        if the delegation manager accepted it.

        Raises:
            ExternalAuthorityError: delegation was refused (state unchanged)
        """
        to_buffer, to_stake = self.split(amount)

        if to_stake > 0:
            self.delegation_manager.delegate_stake(
                self.delegator, self.state.service_provider, to_stake
            )

        self.state.buffer_balance += to_buffer
        self.state.staked_balance += to_stake

        logger.debug(f"Routed {amount}: buffer +{to_buffer}, staked +{to_stake}")
        return to_buffer, to_stake

    def require_buffer(self, amount: int) -> None:
        if amount > self.state.buffer_balance:
            raise InsufficientBuffer(
                f"Buffer holds {self.state.buffer_balance} < {amount} requested"
            )

    def release_buffer(self, amount: int) -> None:
        """Take value out of the buffer for a redemption."""
        self.require_buffer(amount)
        self.state.buffer_balance -= amount

    def add_rewards(self, amount: int) -> None:
        """Claimed rewards are restaked, so they grow the staked side."""
        self.state.staked_balance += amount

    def move_staked_to_buffer(self, amount: int) -> None:
        """Unstaked value lands in the buffer; pool value is conserved."""
        self.state.staked_balance -= amount
        self.state.buffer_balance += amount

    def buffer_ratio(self) -> float:
        """Current buffer share of pool value (0.0-1.0)."""
        total = self.state.total_underlying
        if total == 0:
            return 0.0
        return self.state.buffer_balance / total
