"""
Simulated network - wires the external authorities together.

The token, claims manager and delegation manager share one block clock,
and their timing parameters come from the staking configuration.
"""

from dataclasses import dataclass
from typing import Optional

from xstake.core.config import StakingConfig
from xstake.core.external.claims import MockClaimsManager
from xstake.core.external.clock import BlockClock
from xstake.core.external.delegation import MockDelegationManager
from xstake.core.external.token import MockToken


@dataclass
class SimulatedNetwork:
    """The external collaborators of one staking ledger."""
    clock: BlockClock
    token: MockToken
    claims_manager: MockClaimsManager
    delegation_manager: MockDelegationManager

    def mine_to_next_round(self) -> int:
        """Mine until the next funding round can be initiated."""
        return self.clock.mine_until(self.claims_manager.next_round_block())

    def fund_round(self) -> int:
        """Mine to the next round and initiate it."""
        self.mine_to_next_round()
        return self.claims_manager.initiate_round()


def create_network(
    config: Optional[StakingConfig] = None,
    start_block: int = 0,
    token_symbol: str = "AUDIO",
) -> SimulatedNetwork:
    """
    Build a simulated network.

    Args:
        config: Supplies lock-up, round spacing and reward rate
        start_block: Initial block number
        token_symbol: Underlying token symbol

    Returns:
        SimulatedNetwork with all authorities bound
    """
    config = config or StakingConfig()
    clock = BlockClock(start_block)
    token = MockToken(symbol=token_symbol)
    claims = MockClaimsManager(
        token,
        clock,
        funding_round_block_diff=config.funding_round_block_diff,
        round_reward_bps=config.round_reward_bps,
    )
    delegation = MockDelegationManager(
        token,
        clock,
        claims_manager=claims,
        undelegate_lockup_duration=config.undelegate_lockup_blocks,
    )
    return SimulatedNetwork(
        clock=clock,
        token=token,
        claims_manager=claims,
        delegation_manager=delegation,
    )
