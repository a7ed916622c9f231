"""
Monitor configuration management.

This module handles loading and accessing configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/monsi.ini) - for static deployments
    3. Example config (config/monsi.example.ini) - fallback for development,
       read only when config/monsi.ini is missing
    4. Built-in defaults (lowest priority) - mainnet game parameters

Configuration is loaded once at module import time and cached. The MonitorConfig
dataclass provides typed access to all settings.

Usage:
    from monsi.config import config

    print(config.game.blocks_per_round)
    print(config.ledger.absolute_path)

Environment Variable Mapping:
    MONSI_BLOCKS_PER_ROUND     -> game.blocks_per_round
    MONSI_COMMIT_PHASE_BLOCKS  -> game.commit_phase_blocks
    MONSI_REVEAL_PHASE_BLOCKS  -> game.reveal_phase_blocks
    MONSI_LEDGER_PATH          -> ledger.path
    MONSI_NETWORK              -> ledger.network
    MONSI_START_BLOCK          -> ledger.start_block
    MONSI_HOST                 -> server.host
    MONSI_PORT                 -> server.port
    MONSI_LOG_LEVEL            -> logging.level
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from monsi.errors import ConfigError

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "monsi.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "monsi.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class GameSettings:
    """
    Round geometry of the incentives game.

    The defaults are the mainnet values: a round is 152 blocks, of which the
    first quarter is the commit phase, the second quarter the reveal phase and
    the remaining half the claim phase.
    """

    blocks_per_round: int = 152
    commit_phase_blocks: int = 38
    reveal_phase_blocks: int = 38

    @property
    def claim_phase_blocks(self) -> int:
        """Blocks left in a round after the commit and reveal phases."""
        return self.blocks_per_round - self.commit_phase_blocks - self.reveal_phase_blocks

    def validate(self) -> None:
        """
        Check that the round geometry is usable.

        Raises:
            ConfigError: If any value is not a positive integer, or the commit
                and reveal phases do not leave room for a claim phase.
        """
        for name in ("blocks_per_round", "commit_phase_blocks", "reveal_phase_blocks"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"game.{name} must be a positive integer, got {value!r}")
        if self.commit_phase_blocks + self.reveal_phase_blocks >= self.blocks_per_round:
            raise ConfigError(
                "game.commit_phase_blocks + game.reveal_phase_blocks must be less than "
                f"game.blocks_per_round ({self.commit_phase_blocks} + "
                f"{self.reveal_phase_blocks} >= {self.blocks_per_round})"
            )


@dataclass
class LedgerSettings:
    """Event log storage configuration."""

    path: str = "data/eventlog"
    network: str = "mainnet"
    # Block in which the mainnet staking contract was created
    start_block: int = 25527075

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the event log directory."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class ServerSettings:
    """Query API server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "simple"


@dataclass
class MonitorConfig:
    """
    Complete monitor configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton, or build one directly in tests.
    """

    game: GameSettings = field(default_factory=GameSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _load_from_ini(parser: configparser.ConfigParser, cfg: MonitorConfig) -> None:
    """Load configuration from parsed INI file into MonitorConfig."""
    if parser.has_section("game"):
        for option in ("blocks_per_round", "commit_phase_blocks", "reveal_phase_blocks"):
            if parser.has_option("game", option):
                setattr(cfg.game, option, parser.getint("game", option))

    if parser.has_section("ledger"):
        if parser.has_option("ledger", "path"):
            cfg.ledger.path = parser.get("ledger", "path")
        if parser.has_option("ledger", "network"):
            cfg.ledger.network = parser.get("ledger", "network")
        if parser.has_option("ledger", "start_block"):
            cfg.ledger.start_block = parser.getint("ledger", "start_block")

    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: MonitorConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_bpr := os.getenv("MONSI_BLOCKS_PER_ROUND"):
        cfg.game.blocks_per_round = int(env_bpr)
    if env_commit := os.getenv("MONSI_COMMIT_PHASE_BLOCKS"):
        cfg.game.commit_phase_blocks = int(env_commit)
    if env_reveal := os.getenv("MONSI_REVEAL_PHASE_BLOCKS"):
        cfg.game.reveal_phase_blocks = int(env_reveal)

    if env_path := os.getenv("MONSI_LEDGER_PATH"):
        cfg.ledger.path = env_path
    if env_network := os.getenv("MONSI_NETWORK"):
        cfg.ledger.network = env_network
    if env_start := os.getenv("MONSI_START_BLOCK"):
        cfg.ledger.start_block = int(env_start)

    if env_host := os.getenv("MONSI_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("MONSI_PORT"):
        cfg.server.port = int(env_port)

    if env_log := os.getenv("MONSI_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> MonitorConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/monsi.ini
        3. config/monsi.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        MonitorConfig: Fully populated configuration object.
    """
    cfg = MonitorConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "MonitorConfig":
    """
    Reload configuration from disk and environment.

    This rebinds the module-level `config` singleton. Code that reads
    ``monsi.config.config`` at call time (the CLI and the event log path)
    sees the new values; a name imported with ``from monsi.config import
    config`` keeps the old object. Engines that were already constructed keep
    the settings they were built with.

    Returns:
        MonitorConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


def get_config_status() -> dict:
    """Get configuration source information for the health endpoint."""
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file": CONFIG_FILE.name,
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "network": config.ledger.network,
        "blocks_per_round": config.game.blocks_per_round,
    }
