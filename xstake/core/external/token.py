"""
Mock Token - In-memory ERC20-style underlying token.

Balances and allowances are keyed by 20-byte addresses. There is no
msg.sender, so every mutating call names its caller explicitly.
"""

from typing import Dict, Tuple

from xstake.core.external.errors import TokenError
from xstake.crypto import contract_address, short_address
from xstake.utils.logger import get_logger

logger = get_logger("token")


class MockToken:
    """
    Simulated fungible token with approve/transferFrom semantics.

    Attributes:
        address: Token contract address
        balances: Address -> balance
        allowances: (owner, spender) -> remaining allowance
    """

    def __init__(self, symbol: str = "AUDIO", decimals: int = 18):
        self.symbol = symbol
        self.decimals = decimals
        self.address = contract_address(f"token:{symbol}")

        self.balances: Dict[bytes, int] = {}
        self.allowances: Dict[Tuple[bytes, bytes], int] = {}
        self.total_supply: int = 0

    def balance_of(self, account: bytes) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, to: bytes, amount: int) -> None:
        """Create new tokens (faucet / reward issuance)."""
        if amount <= 0:
            raise TokenError(f"Mint amount must be positive, got {amount}")
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def approve(self, owner: bytes, spender: bytes, amount: int) -> bool:
        if amount < 0:
            raise TokenError(f"Allowance cannot be negative: {amount}")
        self.allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: bytes, recipient: bytes, amount: int) -> bool:
        """Move `amount` from sender to recipient."""
        if amount < 0:
            raise TokenError(f"Transfer amount cannot be negative: {amount}")

        balance = self.balance_of(sender)
        if balance < amount:
            raise TokenError(
                f"Transfer amount exceeds balance: {short_address(sender)} has {balance} < {amount}"
            )

        self.balances[sender] = balance - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer_from(
        self,
        spender: bytes,
        owner: bytes,
        recipient: bytes,
        amount: int,
    ) -> bool:
        """Move `amount` from owner to recipient using spender's allowance."""
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TokenError(f"Transfer amount exceeds allowance: {allowed} < {amount}")

        self.transfer(owner, recipient, amount)
        self.allowances[(owner, spender)] = allowed - amount
        return True

    def __repr__(self) -> str:
        return f"MockToken(symbol={self.symbol}, supply={self.total_supply})"
