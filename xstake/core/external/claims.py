"""
Mock Claims Manager - Funding rounds and reward claims.

A new funding round can only start once `funding_round_block_diff`
blocks have passed since the last funded block. Starting a round makes a
reward proportional to current delegated stake claimable by every
delegator. Claimed rewards are minted to the delegation manager and
credited to the delegator's stake there.
"""

from typing import Dict

from xstake.core.external.clock import BlockClock
from xstake.core.external.errors import ClaimsError
from xstake.core.external.token import MockToken
from xstake.crypto import contract_address, short_address
from xstake.utils.logger import get_logger

logger = get_logger("claims")

BPS_DENOMINATOR = 10_000


class MockClaimsManager:
    """
    Simulated reward authority.

    Attributes:
        last_funded_block: Block at which the last round was initiated
        funding_round_block_diff: Minimum blocks between rounds
        round_reward_bps: Reward per round in basis points of stake
        claimable: Delegator -> unclaimed reward
        halted: When set, claims are refused with ClaimsError
    """

    def __init__(
        self,
        token: MockToken,
        clock: BlockClock,
        funding_round_block_diff: int = 46523,
        round_reward_bps: int = 50,
    ):
        self.token = token
        self.clock = clock
        self.funding_round_block_diff = funding_round_block_diff
        self.round_reward_bps = round_reward_bps
        self.address = contract_address("claims-manager")

        self.last_funded_block = clock.now()
        self.current_round = 0
        self.claimable: Dict[bytes, int] = {}
        self.total_claimed = 0
        self.halted = False

        self.delegation_manager = None

    def bind_delegation_manager(self, delegation_manager) -> None:
        self.delegation_manager = delegation_manager

    # =========================================================================
    # Rounds
    # =========================================================================

    def get_last_funded_block(self) -> int:
        return self.last_funded_block

    def get_funding_round_block_diff(self) -> int:
        return self.funding_round_block_diff

    def next_round_block(self) -> int:
        """First block at which `initiate_round` succeeds."""
        return self.last_funded_block + self.funding_round_block_diff

    def can_initiate_round(self) -> bool:
        return self.clock.now() >= self.next_round_block()

    def initiate_round(self) -> int:
        """
        Start a funding round.

        Returns:
            Total reward made claimable in this round
        """
        if not self.can_initiate_round():
            raise ClaimsError(
                f"Required block difference not met: block {self.clock.now()} < {self.next_round_block()}"
            )
        if self.delegation_manager is None:
            raise ClaimsError("No delegation manager bound")

        funded = 0
        for delegator, stake in self.delegation_manager.delegator_stake.items():
            reward = stake * self.round_reward_bps // BPS_DENOMINATOR
            if reward > 0:
                self.claimable[delegator] = self.claimable.get(delegator, 0) + reward
                funded += reward

        self.last_funded_block = self.clock.now()
        self.current_round += 1

        logger.info(f"Funding round {self.current_round} initiated at block {self.last_funded_block}: {funded} claimable")
        return funded

    # =========================================================================
    # Claims
    # =========================================================================

    def claimable_amount(self, delegator: bytes) -> int:
        return self.claimable.get(delegator, 0)

    def process_claim(self, delegator: bytes) -> int:
        """
        Claim pending rewards; they are restaked for the delegator.

        Returns:
            Amount claimed (0 if nothing was pending)
        """
        if self.halted:
            raise ClaimsError("Claims are halted")

        amount = self.claimable.pop(delegator, 0)
        if amount == 0:
            return 0

        self.token.mint(self.delegation_manager.address, amount)
        self.delegation_manager.credit_rewards(delegator, amount)
        self.total_claimed += amount

        logger.debug(f"{short_address(delegator)} claimed {amount}")
        return amount
