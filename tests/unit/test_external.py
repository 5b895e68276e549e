"""
Unit tests for the simulated external authorities.

Tests cover:
1. Block clock
2. Token transfers and allowances
3. Delegation and the undelegation lock-up
4. Funding rounds and claims
"""

import pytest

from xstake.core.config import StakingConfig
from xstake.core.external import (
    BlockClock,
    MockToken,
    ClaimsError,
    DelegationError,
    TokenError,
    create_network,
)


DELEGATOR = b"\x01" * 20
PROVIDER = b"\x02" * 20
OTHER = b"\x03" * 20


@pytest.fixture
def network():
    config = StakingConfig(
        undelegate_lockup_blocks=100,
        funding_round_block_diff=30,
        round_reward_bps=200,
    )
    network = create_network(config, start_block=5)
    network.token.mint(DELEGATOR, 1_000)
    return network


class TestBlockClock:
    """Tests for the block clock."""

    def test_mine(self):
        clock = BlockClock()
        assert clock.now() == 0
        assert clock.mine(10) == 10
        assert clock.now() == 10

    def test_mine_until(self):
        clock = BlockClock(start_block=7)
        clock.mine_until(20)
        assert clock.now() == 20

        # Never moves backwards
        clock.mine_until(3)
        assert clock.now() == 20

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            BlockClock().mine(-1)
        with pytest.raises(ValueError):
            BlockClock(start_block=-1)


class TestMockToken:
    """Tests for the underlying token."""

    def test_mint_and_transfer(self):
        token = MockToken()
        token.mint(DELEGATOR, 100)
        token.transfer(DELEGATOR, OTHER, 40)

        assert token.balance_of(DELEGATOR) == 60
        assert token.balance_of(OTHER) == 40
        assert token.total_supply == 100

    def test_transfer_exceeds_balance(self):
        token = MockToken()
        token.mint(DELEGATOR, 10)

        with pytest.raises(TokenError, match="exceeds balance"):
            token.transfer(DELEGATOR, OTHER, 11)

    def test_transfer_from_consumes_allowance(self):
        token = MockToken()
        token.mint(DELEGATOR, 100)
        token.approve(DELEGATOR, OTHER, 50)

        token.transfer_from(OTHER, DELEGATOR, OTHER, 30)

        assert token.allowance(DELEGATOR, OTHER) == 20
        assert token.balance_of(OTHER) == 30

    def test_transfer_from_without_allowance(self):
        token = MockToken()
        token.mint(DELEGATOR, 100)

        with pytest.raises(TokenError, match="allowance"):
            token.transfer_from(OTHER, DELEGATOR, OTHER, 1)

        assert token.balance_of(DELEGATOR) == 100


class TestDelegationManager:
    """Tests for delegation and undelegation."""

    def test_delegate(self, network):
        dm = network.delegation_manager
        total = dm.delegate_stake(DELEGATOR, PROVIDER, 300)

        assert total == 300
        assert dm.provider_stake[PROVIDER] == 300
        assert network.token.balance_of(dm.address) == 300

    def test_delegate_other_provider_rejected(self, network):
        dm = network.delegation_manager
        dm.delegate_stake(DELEGATOR, PROVIDER, 300)

        with pytest.raises(DelegationError, match="different service provider"):
            dm.delegate_stake(DELEGATOR, OTHER, 10)

    def test_undelegate_lockup(self, network):
        dm = network.delegation_manager
        dm.delegate_stake(DELEGATOR, PROVIDER, 300)

        unlock = dm.request_undelegate_stake(DELEGATOR, PROVIDER, 100)
        assert unlock == 5 + 100

        network.clock.mine(99)
        with pytest.raises(DelegationError, match="Lockup must be expired"):
            dm.undelegate_stake(DELEGATOR)

        network.clock.mine(1)
        assert dm.undelegate_stake(DELEGATOR) == 100
        assert dm.get_total_delegator_stake(DELEGATOR) == 200
        assert network.token.balance_of(DELEGATOR) == 800

    def test_single_pending_request(self, network):
        dm = network.delegation_manager
        dm.delegate_stake(DELEGATOR, PROVIDER, 300)
        dm.request_undelegate_stake(DELEGATOR, PROVIDER, 100)

        with pytest.raises(DelegationError, match="No pending lockup expected"):
            dm.request_undelegate_stake(DELEGATOR, PROVIDER, 100)

    def test_undelegate_more_than_stake(self, network):
        dm = network.delegation_manager
        dm.delegate_stake(DELEGATOR, PROVIDER, 300)

        with pytest.raises(DelegationError):
            dm.request_undelegate_stake(DELEGATOR, PROVIDER, 301)

    def test_undelegate_without_request(self, network):
        with pytest.raises(DelegationError, match="Pending lockup expected"):
            network.delegation_manager.undelegate_stake(DELEGATOR)


class TestClaimsManager:
    """Tests for funding rounds and claims."""

    def test_round_requires_block_diff(self, network):
        cm = network.claims_manager
        assert cm.get_last_funded_block() == 5
        assert cm.get_funding_round_block_diff() == 30

        network.clock.mine(29)
        with pytest.raises(ClaimsError, match="block difference"):
            cm.initiate_round()

        network.clock.mine(1)
        cm.initiate_round()
        assert cm.get_last_funded_block() == 35
        assert cm.current_round == 1

    def test_round_funds_delegators(self, network):
        network.delegation_manager.delegate_stake(DELEGATOR, PROVIDER, 500)

        funded = network.fund_round()

        assert funded == 10
        assert network.claims_manager.claimable_amount(DELEGATOR) == 10

    def test_claim_restakes(self, network):
        dm = network.delegation_manager
        dm.delegate_stake(DELEGATOR, PROVIDER, 500)
        network.fund_round()

        claimed = network.claims_manager.process_claim(DELEGATOR)

        assert claimed == 10
        assert dm.get_total_delegator_stake(DELEGATOR) == 510
        assert network.token.balance_of(dm.address) == 510
        assert network.claims_manager.claimable_amount(DELEGATOR) == 0

    def test_claim_nothing(self, network):
        assert network.claims_manager.process_claim(DELEGATOR) == 0

    def test_halted_claims(self, network):
        network.delegation_manager.delegate_stake(DELEGATOR, PROVIDER, 500)
        network.fund_round()
        network.claims_manager.halted = True

        with pytest.raises(ClaimsError):
            network.claims_manager.process_claim(DELEGATOR)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
