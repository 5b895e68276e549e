"""
Block clock - controllable source of the current block number.

Stands in for block mining on a live network: time only moves when
`mine` is called, so lock-ups and funding rounds are deterministic.
"""

from xstake.utils.logger import get_logger

logger = get_logger("clock")


class BlockClock:
    """Monotonic block counter."""

    def __init__(self, start_block: int = 0):
        if start_block < 0:
            raise ValueError(f"start_block must be >= 0, got {start_block}")
        self._block = start_block

    def now(self) -> int:
        """Current block number."""
        return self._block

    def mine(self, blocks: int = 1) -> int:
        """
        Advance the clock.

        Args:
            blocks: Number of blocks to mine

        Returns:
            New block number
        """
        if blocks < 0:
            raise ValueError(f"Cannot mine a negative number of blocks: {blocks}")
        self._block += blocks
        logger.debug(f"Mined {blocks} blocks, now at {self._block}")
        return self._block

    def mine_until(self, block: int) -> int:
        """Advance to `block` if it is in the future."""
        if block > self._block:
            self.mine(block - self._block)
        return self._block

    def __repr__(self) -> str:
        return f"BlockClock(block={self._block})"
