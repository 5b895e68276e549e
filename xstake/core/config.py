"""
Staking configuration parameters for xstake.

Defines the exchange-rate, buffer and minimum-deposit constants of the
ledger plus the timing parameters of the simulated network.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field

# One whole token in base units (18 decimals)
TOKEN_UNIT = 10**18

ENV_PREFIX = "XSTAKE_"


class StakingConfig(BaseModel):
    """Ledger-wide configuration parameters"""

    model_config = ConfigDict(frozen=True)

    # Share accounting
    initial_supply_multiplier: int = Field(default=100, gt=0)  # Shares per unit on first deposit
    min_delegate_amount: int = Field(default=100 * TOKEN_UNIT, ge=0)  # Minimum delegated position

    # Balance partition
    buffer_target_divisor: int = Field(default=20, ge=1)  # 1/20 = 5% kept liquid

    # Delegation / rewards (simulated network)
    undelegate_lockup_blocks: int = Field(default=46523, ge=0)  # Blocks between request and withdrawal
    funding_round_block_diff: int = Field(default=46523, ge=0)  # Blocks between funding rounds
    round_reward_bps: int = Field(default=50, ge=0, le=10_000)  # Reward per round, basis points of stake

    # Paths
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    @property
    def buffer_target_percent(self) -> float:
        """Target buffer share of new deposits, in percent."""
        return 100.0 / self.buffer_target_divisor

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)


def _env_overrides(environ: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """Pick XSTAKE_* variables and map them to config field names."""
    overrides = {}
    for key, value in environ.items():
        if value is None or not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX):].lower()
        if field_name in StakingConfig.model_fields:
            overrides[field_name] = value
    return overrides


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = ".env",
) -> StakingConfig:
    """
    Load configuration from defaults, a JSON file and the environment.

    Precedence (lowest to highest): defaults, JSON file, .env file,
    process environment.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional dotenv file with XSTAKE_* variables

    Returns:
        StakingConfig instance

    Raises:
        pydantic.ValidationError: if a value is out of range
    """
    values: Dict[str, Any] = {}

    if config_path:
        values.update(json.loads(Path(config_path).read_text()))

    if env_file and Path(env_file).exists():
        values.update(_env_overrides(dotenv_values(env_file)))

    values.update(_env_overrides(dict(os.environ)))

    return StakingConfig(**values)
