"""
Logging for xstake.

All loggers hang off the ``xstake`` namespace, one child per subsystem:

    xstake.ledger        mints, burns, transfers, administrator operations
    xstake.shares        exchange-rate arithmetic
    xstake.partition     buffer / staked routing
    xstake.rewards       reward claims
    xstake.cooldown      undelegation requests and settlement
    xstake.storage.*     journal persistence
    xstake.token, xstake.delegation, xstake.claims
                         simulated authorities

Console output goes to stderr through colorlog, so command output on
stdout (``xstake config`` prints JSON) stays machine readable. With a
log directory, usually ``StakingConfig.log_dir``, a plain-text copy is
appended to ``<log_dir>/xstake.log``.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "xstake"
LOG_FILE_NAME = "xstake.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-7s%(reset)s %(name)-18s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


class XStakeLogger:
    """Configures the ``xstake`` logger tree once per process (or on demand)."""

    _configured = False
    log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[Union[str, Path]] = None,
        force: bool = False,
    ) -> logging.Logger:
        """
        Install the console handler and, with `log_dir`, the file handler.

        Args:
            level: Level for the whole ``xstake`` tree
            log_dir: Directory receiving xstake.log. None = console only.
            force: Replace handlers installed by an earlier call

        Returns:
            The ``xstake`` root logger
        """
        root = logging.getLogger(ROOT_LOGGER)
        if cls._configured and not force:
            return root

        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        root.setLevel(level)
        # The tree has its own handlers; keep records away from the global root
        root.propagate = False

        console = colorlog.StreamHandler(sys.stderr)
        console.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
        )
        root.addHandler(console)

        cls.log_file = None
        if log_dir is not None:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            cls.log_file = log_path / LOG_FILE_NAME
            file_handler = logging.FileHandler(cls.log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root.addHandler(file_handler)

        cls._configured = True
        return root

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._configured:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Logger for an xstake subsystem, e.g. ``get_logger("ledger")``."""
    return XStakeLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    force: bool = False,
) -> logging.Logger:
    """Configure xstake logging; see XStakeLogger.setup."""
    return XStakeLogger.setup(level=level, log_dir=log_dir, force=force)
