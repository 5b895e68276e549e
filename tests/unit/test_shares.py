"""
Unit tests for share accounting.

Tests cover:
1. First-deposit exchange rate
2. Proportional minting and truncation
3. Minimum deposit rule
4. Credit, debit and transfer bookkeeping
5. Redemption value and price per share
"""

import pytest

from xstake.core.config import StakingConfig, TOKEN_UNIT
from xstake.core.staking import (
    LedgerState,
    ShareAccounting,
    InsufficientDeposit,
    InsufficientShares,
)


ALICE = b"\xaa" * 20
BOB = b"\xbb" * 20


@pytest.fixture
def config():
    return StakingConfig(
        initial_supply_multiplier=100,
        buffer_target_divisor=20,
        min_delegate_amount=100,
    )


@pytest.fixture
def state():
    return LedgerState()


@pytest.fixture
def shares(state, config):
    return ShareAccounting(state, config)


def seed(state: LedgerState, holder: bytes, total_shares: int, buffer: int, staked: int):
    """Put the state in a given pool position with a single holder."""
    state.share_balances[holder] = total_shares
    state.total_shares = total_shares
    state.buffer_balance = buffer
    state.staked_balance = staked


class TestMintComputation:
    """Tests for the exchange rate."""

    def test_first_deposit_uses_multiplier(self, shares):
        """First deposit mints amount * INITIAL_SUPPLY_MULTIPLIER."""
        assert shares.compute_mint_shares(110) == 11000

    def test_subsequent_deposit_is_proportional(self, shares, state):
        """Second depositor gets floor(amount * S / V)."""
        seed(state, ALICE, 11000, buffer=5, staked=105)

        assert shares.compute_mint_shares(10) == 1000

    def test_truncation_favors_pool(self, shares, state):
        """Rounding loss is never credited to the depositor."""
        seed(state, ALICE, 1000, buffer=1, staked=2)

        # 1 * 1000 / 3 = 333.33...
        assert shares.compute_mint_shares(1) == 333

    def test_rewards_reduce_shares_per_unit(self, shares, state):
        """After the pool appreciates, a unit buys fewer shares."""
        seed(state, ALICE, 11000, buffer=5, staked=105 + 110)

        assert shares.compute_mint_shares(10) == 500

    def test_zero_share_deposit_rejected(self, shares, state):
        """A deposit worth less than one share is refused."""
        seed(state, ALICE, 1, buffer=0, staked=1000)

        with pytest.raises(InsufficientDeposit, match="zero shares"):
            shares.compute_mint_shares(10)

    def test_shares_without_value_rejected(self, shares, state):
        """Shares outstanding with no backing cannot be priced."""
        seed(state, ALICE, 1000, buffer=0, staked=0)

        with pytest.raises(InsufficientDeposit):
            shares.compute_mint_shares(10)


class TestMinimumDeposit:
    """Tests for the minimum delegation rule."""

    def test_first_deposit_below_minimum(self, shares):
        with pytest.raises(InsufficientDeposit, match="minDelegateAmount"):
            shares.check_deposit(99)

    def test_first_deposit_at_minimum(self, shares):
        shares.check_deposit(100)

    def test_small_deposit_once_position_established(self, shares, state):
        """Once the pool's stake meets the minimum, small deposits pass."""
        seed(state, ALICE, 11000, buffer=5, staked=105)

        shares.check_deposit(1)

    def test_non_positive_deposit(self, shares, state):
        seed(state, ALICE, 11000, buffer=5, staked=105)

        with pytest.raises(InsufficientDeposit):
            shares.check_deposit(0)


class TestBookkeeping:
    """Tests for credit, debit and move."""

    def test_credit_updates_totals(self, shares, state):
        shares.credit(ALICE, 11000)
        shares.credit(BOB, 1000)
        shares.credit(ALICE, 5)

        assert shares.balance_of(ALICE) == 11005
        assert shares.balance_of(BOB) == 1000
        assert shares.total_supply() == 12005
        assert state.check_invariants()

    def test_debit_removes_empty_holder(self, shares, state):
        shares.credit(ALICE, 100)
        shares.debit(ALICE, 100)

        assert ALICE not in state.share_balances
        assert shares.total_supply() == 0

    def test_debit_more_than_held(self, shares):
        shares.credit(ALICE, 100)

        with pytest.raises(InsufficientShares):
            shares.debit(ALICE, 101)

        assert shares.balance_of(ALICE) == 100

    def test_move_conserves_supply(self, shares, state):
        shares.credit(ALICE, 100)
        shares.move(ALICE, BOB, 40)

        assert shares.balance_of(ALICE) == 60
        assert shares.balance_of(BOB) == 40
        assert shares.total_supply() == 100
        assert state.check_invariants()

    def test_move_non_positive(self, shares):
        shares.credit(ALICE, 100)

        with pytest.raises(InsufficientShares, match="positive"):
            shares.move(ALICE, BOB, 0)


class TestRedemption:
    """Tests for redemption value and price per share."""

    def test_redemption_proportional(self, shares, state):
        seed(state, ALICE, 12000, buffer=6, staked=114)

        assert shares.compute_redemption(1000) == 10

    def test_redemption_truncates(self, shares, state):
        seed(state, ALICE, 3, buffer=0, staked=10)

        assert shares.compute_redemption(1) == 3

    def test_price_per_share_initial(self, shares):
        assert shares.price_per_share() == TOKEN_UNIT

    def test_price_per_share_after_rewards(self, shares, state):
        seed(state, ALICE, 11000, buffer=5, staked=105)
        assert shares.price_per_share() == TOKEN_UNIT

        state.staked_balance += 11
        assert shares.price_per_share() == TOKEN_UNIT * 11 // 10


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
