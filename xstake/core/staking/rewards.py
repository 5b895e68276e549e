"""
Reward Intake - pulls claimable rewards into the staked balance.

Rewards are restaked by the claims manager, so a claim grows the staked
side of the pool without minting shares: every existing share becomes
worth more.
"""

from xstake.core.external.errors import ExternalAuthorityError
from xstake.core.staking.errors import ClaimFailed
from xstake.core.staking.partition import BalancePartition
from xstake.utils.logger import get_logger

logger = get_logger("rewards")


class RewardIntake:
    """Claims rewards for the ledger's delegated position."""

    def __init__(
        self,
        partition: BalancePartition,
        claims_manager,
        delegator: bytes,
    ):
        self.partition = partition
        self.claims_manager = claims_manager
        self.delegator = delegator
        self.total_claimed = 0

    def claimable(self) -> int:
        """Rewards currently waiting for the ledger."""
        return self.claims_manager.claimable_amount(self.delegator)

    def claim(self) -> int:
        """
        Claim pending rewards.

        Returns:
            Amount added to the staked balance (0 if nothing was claimable)

        Raises:
            ClaimFailed: the claims manager reported an error
        """
        try:
            if self.claimable() == 0:
                logger.debug("Nothing claimable")
                return 0
            amount = self.claims_manager.process_claim(self.delegator)
        except ExternalAuthorityError as e:
            raise ClaimFailed(f"Reward claim failed: {e}") from e

        if amount > 0:
            self.partition.add_rewards(amount)
            self.total_claimed += amount

        return amount
