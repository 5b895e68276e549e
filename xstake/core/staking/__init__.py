"""Staking ledger: share accounting, balance partition, rewards, cooldowns"""
from xstake.core.staking.errors import (
    StakingError,
    AlreadyInitialized,
    NotInitialized,
    Unauthorized,
    InsufficientDeposit,
    DepositFailed,
    InsufficientShares,
    InsufficientBuffer,
    InsufficientStake,
    CooldownAlreadyPending,
    NoCooldownPending,
    CooldownNotElapsed,
    ClaimFailed,
    UnstakeFailed,
)
from xstake.core.staking.state import (
    LedgerState,
    LedgerSnapshot,
    CooldownEntry,
    CooldownStatus,
    EventKind,
)
from xstake.core.staking.shares import ShareAccounting
from xstake.core.staking.partition import BalancePartition
from xstake.core.staking.rewards import RewardIntake
from xstake.core.staking.cooldown import CooldownManager
from xstake.core.staking.ledger import StakingLedger

__all__ = [
    "StakingError",
    "AlreadyInitialized",
    "NotInitialized",
    "Unauthorized",
    "InsufficientDeposit",
    "DepositFailed",
    "InsufficientShares",
    "InsufficientBuffer",
    "InsufficientStake",
    "CooldownAlreadyPending",
    "NoCooldownPending",
    "CooldownNotElapsed",
    "ClaimFailed",
    "UnstakeFailed",
    "LedgerState",
    "LedgerSnapshot",
    "CooldownEntry",
    "CooldownStatus",
    "EventKind",
    "ShareAccounting",
    "BalancePartition",
    "RewardIntake",
    "CooldownManager",
    "StakingLedger",
]
