"""
Integration tests for journalling ledger operations to SQLite.

Verifies that:
1. Every applied operation is journalled with its snapshot
2. Rejected operations leave no trace
3. A fresh StorageManager reads back what an earlier one wrote
"""

import sqlite3

import pytest

from xstake.core.config import StakingConfig
from xstake.core.external import create_network, DelegationError
from xstake.core.staking import (
    StakingLedger,
    ClaimFailed,
    DepositFailed,
    InsufficientDeposit,
    InsufficientShares,
)
from xstake.core.storage import StorageManager


OWNER = b"\xaa" * 20
ALICE = b"\x01" * 20
BOB = b"\x02" * 20
PROVIDER = b"\x0f" * 20


@pytest.fixture
def config():
    return StakingConfig(
        min_delegate_amount=100,
        undelegate_lockup_blocks=50,
        funding_round_block_diff=10,
        round_reward_bps=1_000,
    )


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "ledger"


@pytest.fixture
def setup(config, data_dir):
    network = create_network(config)
    storage = StorageManager(data_dir)
    ledger = StakingLedger(OWNER, network.clock, config=config, storage_manager=storage)
    ledger.initialize(OWNER, network.token, PROVIDER, network.delegation_manager, "XAUDIO")

    for holder in (ALICE, BOB):
        network.token.mint(holder, 10_000)
        network.token.approve(holder, ledger.address, 10_000)

    yield network, ledger, storage
    storage.close()


def test_operations_are_journalled(setup):
    network, ledger, storage = setup

    ledger.mint_with_token(ALICE, 110)
    ledger.mint_with_token(BOB, 10)
    ledger.transfer(ALICE, BOB, 100)
    network.fund_round()
    ledger.claim_rewards(OWNER)

    history = storage.load_history()
    assert [e.kind for e in history] == ["initialize", "mint", "mint", "transfer", "claim"]
    assert history[1].amount == 110
    assert history[1].shares == 11_000
    assert history[1].caller == ALICE
    assert history[-1].amount == 11  # 10% of 115 staked


def test_latest_snapshot_matches_ledger(setup):
    network, ledger, storage = setup

    ledger.mint_with_token(ALICE, 110)
    ledger.cooldown(OWNER, 20)
    network.clock.mine(50)
    ledger.unstake(OWNER)

    assert storage.latest_snapshot() == ledger.snapshot()


def test_rejected_operations_not_journalled(setup):
    _, ledger, storage = setup

    with pytest.raises(InsufficientDeposit):
        ledger.mint_with_token(ALICE, 10)
    with pytest.raises(InsufficientShares):
        ledger.burn(BOB, 1)

    assert storage.event_count() == 1  # initialize only


def test_empty_claim_not_journalled(setup):
    _, ledger, storage = setup
    ledger.mint_with_token(ALICE, 110)

    assert ledger.claim_rewards(OWNER) == 0
    assert storage.event_count() == 2


def test_snapshot_matches_after_every_operation(setup):
    network, ledger, storage = setup

    steps = [
        lambda: ledger.mint_with_token(ALICE, 110),
        lambda: ledger.mint_with_token(BOB, 10),
        lambda: ledger.transfer(BOB, ALICE, 1_000),  # bob leaves
        lambda: ledger.transfer(ALICE, BOB, 300),    # bob returns
        lambda: ledger.burn(BOB, 300),               # and leaves again
        lambda: (network.fund_round(), ledger.claim_rewards(OWNER)),
        lambda: ledger.cooldown(OWNER, 20),
        lambda: (network.clock.mine(50), ledger.unstake(OWNER)),
    ]
    for step in steps:
        step()
        assert storage.latest_snapshot() == ledger.snapshot()

    assert storage.event_count() == 1 + len(steps)


def _drop_events(storage):
    conn = storage.adapter._get_conn()
    conn.execute("DROP TABLE events")
    conn.commit()


def test_journal_failure_leaves_mint_unapplied(setup):
    network, ledger, storage = setup
    _drop_events(storage)

    with pytest.raises(sqlite3.OperationalError):
        ledger.mint_with_token(ALICE, 110)

    assert network.token.balance_of(ALICE) == 10_000
    assert ledger.balance_of(ALICE) == 0
    assert ledger.total_supply() == 0
    assert ledger.get_staked_balance() == 0
    assert ledger.get_buffer_balance() == 0
    assert network.delegation_manager.get_total_delegator_stake(ledger.address) == 0


def test_journal_failure_leaves_admin_operations_unapplied(setup):
    network, ledger, storage = setup
    ledger.mint_with_token(ALICE, 110)
    network.fund_round()
    before = ledger.snapshot()
    _drop_events(storage)

    with pytest.raises(sqlite3.OperationalError):
        ledger.claim_rewards(OWNER)
    with pytest.raises(sqlite3.OperationalError):
        ledger.cooldown(OWNER, 20)
    with pytest.raises(sqlite3.OperationalError):
        ledger.transfer(ALICE, BOB, 100)
    with pytest.raises(sqlite3.OperationalError):
        ledger.burn(ALICE, 100)

    assert ledger.snapshot() == before
    assert ledger.claimable_rewards() == 10
    assert ledger.get_cooldown() is None
    assert ledger.balance_of(ALICE) == 11_000


def test_failed_delegation_rolls_back_entry(setup, monkeypatch):
    network, ledger, storage = setup

    def refuse(*args):
        raise DelegationError("provider not accepting stake")

    monkeypatch.setattr(network.delegation_manager, "delegate_stake", refuse)

    with pytest.raises(DepositFailed):
        ledger.mint_with_token(ALICE, 110)

    assert storage.event_count() == 1
    assert storage.latest_snapshot() == ledger.snapshot()
    assert network.token.balance_of(ALICE) == 10_000


def test_failed_claim_rolls_back_entry(setup):
    network, ledger, storage = setup
    ledger.mint_with_token(ALICE, 110)
    network.fund_round()
    network.claims_manager.halted = True

    with pytest.raises(ClaimFailed):
        ledger.claim_rewards(OWNER)

    assert [e.kind for e in storage.load_history()] == ["initialize", "mint"]


def test_metadata_saved(setup):
    _, ledger, storage = setup

    assert storage.get_meta("symbol") == "XAUDIO"
    assert storage.get_meta("service_provider") == "0x" + PROVIDER.hex()


def test_journal_survives_reopen(setup, data_dir):
    _, ledger, storage = setup
    ledger.mint_with_token(ALICE, 110)
    ledger.burn(ALICE, 100)
    expected = ledger.snapshot()

    reopened = StorageManager(data_dir)
    try:
        assert reopened.event_count() == 3
        assert reopened.latest_snapshot() == expected
        assert reopened.get_meta("symbol") == "XAUDIO"
    finally:
        reopened.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
