"""Simulated external authorities consumed by the staking ledger"""
from xstake.core.external.errors import (
    ExternalAuthorityError,
    TokenError,
    DelegationError,
    ClaimsError,
)
from xstake.core.external.clock import BlockClock
from xstake.core.external.token import MockToken
from xstake.core.external.delegation import (
    MockDelegationManager,
    PendingUndelegation,
    DEFAULT_UNDELEGATE_LOCKUP,
)
from xstake.core.external.claims import MockClaimsManager
from xstake.core.external.network import SimulatedNetwork, create_network

__all__ = [
    "ExternalAuthorityError",
    "TokenError",
    "DelegationError",
    "ClaimsError",
    "BlockClock",
    "MockToken",
    "MockDelegationManager",
    "PendingUndelegation",
    "DEFAULT_UNDELEGATE_LOCKUP",
    "MockClaimsManager",
    "SimulatedNetwork",
    "create_network",
]
