"""
Mock Delegation Manager - Holds delegated stake for service providers.

Mirrors the delegation authority the ledger depends on:
- delegate_stake pulls tokens from the delegator into the manager
- request_undelegate_stake starts a fixed lock-up (one request at a time)
- undelegate_stake releases the locked amount once the lock-up elapsed
- Rewards processed by the claims manager are credited to delegators
"""

from dataclasses import dataclass
from typing import Dict, Optional

from xstake.core.external.clock import BlockClock
from xstake.core.external.errors import DelegationError, TokenError
from xstake.core.external.token import MockToken
from xstake.crypto import contract_address, short_address
from xstake.utils.logger import get_logger

logger = get_logger("delegation")

# Observed lock-up of the reference network, in blocks
DEFAULT_UNDELEGATE_LOCKUP = 46523


@dataclass
class PendingUndelegation:
    """An undelegation request waiting out the lock-up."""
    service_provider: bytes
    amount: int
    lockup_expiry_block: int


class MockDelegationManager:
    """
    Simulated delegation authority.

    Attributes:
        address: Manager contract address (custodian of delegated tokens)
        delegator_stake: Delegator -> total delegated amount
        provider_stake: Service provider -> total delegated to it
        pending: Delegator -> pending undelegation
    """

    def __init__(
        self,
        token: MockToken,
        clock: BlockClock,
        claims_manager=None,
        undelegate_lockup_duration: int = DEFAULT_UNDELEGATE_LOCKUP,
    ):
        self.token = token
        self.clock = clock
        self.undelegate_lockup_duration = undelegate_lockup_duration
        self.address = contract_address("delegate-manager")

        self.delegator_stake: Dict[bytes, int] = {}
        self.provider_stake: Dict[bytes, int] = {}
        self.delegator_provider: Dict[bytes, bytes] = {}
        self.pending: Dict[bytes, PendingUndelegation] = {}

        self.claims_manager = claims_manager
        if claims_manager is not None:
            claims_manager.bind_delegation_manager(self)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_total_delegator_stake(self, delegator: bytes) -> int:
        return self.delegator_stake.get(delegator, 0)

    def get_pending_undelegate_request(self, delegator: bytes) -> Optional[PendingUndelegation]:
        return self.pending.get(delegator)

    # =========================================================================
    # Delegation
    # =========================================================================

    def delegate_stake(self, delegator: bytes, service_provider: bytes, amount: int) -> int:
        """
        Delegate `amount` of the delegator's tokens to a service provider.

        Returns:
            Delegator's new total stake
        """
        if amount <= 0:
            raise DelegationError(f"Delegation amount must be positive, got {amount}")

        bound = self.delegator_provider.get(delegator)
        if bound is not None and bound != service_provider:
            raise DelegationError("Delegator already bound to a different service provider")

        try:
            self.token.transfer(delegator, self.address, amount)
        except TokenError as e:
            raise DelegationError(f"Stake transfer failed: {e}") from e

        self.delegator_provider[delegator] = service_provider
        self.delegator_stake[delegator] = self.get_total_delegator_stake(delegator) + amount
        self.provider_stake[service_provider] = self.provider_stake.get(service_provider, 0) + amount

        logger.debug(f"{short_address(delegator)} delegated {amount} to {short_address(service_provider)}")
        return self.delegator_stake[delegator]

    def request_undelegate_stake(self, delegator: bytes, service_provider: bytes, amount: int) -> int:
        """
        Start the undelegation lock-up for `amount`.

        Returns:
            Block at which the amount becomes withdrawable
        """
        if delegator in self.pending:
            raise DelegationError("No pending lockup expected")

        if amount <= 0:
            raise DelegationError(f"Undelegation amount must be positive, got {amount}")

        if self.delegator_provider.get(delegator) != service_provider:
            raise DelegationError("Delegator is not delegated to this service provider")

        stake = self.get_total_delegator_stake(delegator)
        if amount > stake:
            raise DelegationError(f"Cannot undelegate more than delegated: {amount} > {stake}")

        expiry = self.clock.now() + self.undelegate_lockup_duration
        self.pending[delegator] = PendingUndelegation(
            service_provider=service_provider,
            amount=amount,
            lockup_expiry_block=expiry,
        )

        logger.debug(f"{short_address(delegator)} requested undelegation of {amount}, unlocks at {expiry}")
        return expiry

    def undelegate_stake(self, delegator: bytes) -> int:
        """
        Release a pending undelegation back to the delegator.

        Returns:
            Amount transferred back
        """
        request = self.pending.get(delegator)
        if request is None:
            raise DelegationError("Pending lockup expected")

        if self.clock.now() < request.lockup_expiry_block:
            raise DelegationError(
                f"Lockup must be expired: block {self.clock.now()} < {request.lockup_expiry_block}"
            )

        # Rewards may have changed the stake since the request; never release more than held
        amount = min(request.amount, self.get_total_delegator_stake(delegator))

        self.token.transfer(self.address, delegator, amount)
        self.delegator_stake[delegator] -= amount
        self.provider_stake[request.service_provider] -= amount
        del self.pending[delegator]

        logger.debug(f"{short_address(delegator)} undelegated {amount}")
        return amount

    # =========================================================================
    # Rewards
    # =========================================================================

    def credit_rewards(self, delegator: bytes, amount: int) -> None:
        """Add claimed rewards to a delegator's stake."""
        service_provider = self.delegator_provider.get(delegator)
        if service_provider is None:
            raise DelegationError("Cannot credit rewards to an unknown delegator")

        self.delegator_stake[delegator] += amount
        self.provider_stake[service_provider] += amount

    def stats(self) -> dict:
        """Get delegation statistics."""
        return {
            "delegators": len(self.delegator_stake),
            "total_delegated": sum(self.delegator_stake.values()),
            "pending_undelegations": len(self.pending),
            "lockup_duration": self.undelegate_lockup_duration,
        }
