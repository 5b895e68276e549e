"""
xstake - Liquid staking ledger.

Wraps an underlying token into a derivative share token:
- Proportional share accounting on deposit and redemption
- Buffer / staked balance partition
- Reward intake from an external claims authority
- Cooldown and unstake against a delegation lock-up
"""
