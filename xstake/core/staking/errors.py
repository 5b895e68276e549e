"""
Staking ledger errors.

Every ledger operation either applies fully or raises one of these with
no state change. Callers tell timing problems (CooldownNotElapsed) apart
from bad input (InsufficientDeposit) and authorization failures
(Unauthorized) by class.
"""


class StakingError(Exception):
    """Base class for rejected ledger operations."""


class AlreadyInitialized(StakingError):
    """initialize() called a second time."""


class NotInitialized(StakingError):
    """Operation attempted before initialize()."""


class Unauthorized(StakingError):
    """Non-administrator called a privileged operation."""


class InsufficientDeposit(StakingError):
    """Deposit below the minimum delegation amount or worth zero shares."""


class DepositFailed(StakingError):
    """Token pull or delegation failed during a deposit."""


class InsufficientShares(StakingError):
    """Holder does not own the shares being burned or transferred."""


class InsufficientBuffer(StakingError):
    """Liquid buffer cannot cover a redemption."""


class InsufficientStake(StakingError):
    """Cooldown amount exceeds the staked balance."""


class CooldownAlreadyPending(StakingError):
    """A cooldown is already waiting to be unstaked."""


class NoCooldownPending(StakingError):
    """unstake() without a prior cooldown()."""


class CooldownNotElapsed(StakingError):
    """unstake() before the undelegation lock-up expired."""


class ClaimFailed(StakingError):
    """Reward authority reported an error while claiming."""


class UnstakeFailed(StakingError):
    """Delegation authority refused to release a matured cooldown."""
