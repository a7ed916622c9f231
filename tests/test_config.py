"""Tests for monsi.config loading, environment overrides and validation."""

import configparser
import textwrap

import pytest

import monsi.config as config_module
from monsi.config import (
    PROJECT_ROOT,
    GameSettings,
    LedgerSettings,
    MonitorConfig,
    _load_from_ini,
    get_config_status,
    load_config,
    reload_config,
)
from monsi.errors import ConfigError
from monsi.ledger.writer import ledger_path


@pytest.mark.unit
def test_defaults():
    cfg = MonitorConfig()

    assert cfg.game.blocks_per_round == 152
    assert cfg.game.commit_phase_blocks == 38
    assert cfg.game.reveal_phase_blocks == 38
    assert cfg.ledger.network == "mainnet"
    assert cfg.ledger.start_block == 25527075
    assert cfg.server.port == 8000
    assert cfg.logging.level == "INFO"


@pytest.mark.unit
def test_load_from_ini():
    parser = configparser.ConfigParser()
    parser.read_string(
        textwrap.dedent(
            """
        [game]
        blocks_per_round = 100
        commit_phase_blocks = 25
        reveal_phase_blocks = 25

        [ledger]
        path = /var/lib/monsi
        network = testnet
        start_block = 42

        [server]
        host = 0.0.0.0
        port = 9000

        [logging]
        level = debug
        format = detailed
        """
        )
    )
    cfg = MonitorConfig()

    _load_from_ini(parser, cfg)

    assert cfg.game == GameSettings(100, 25, 25)
    assert cfg.ledger.path == "/var/lib/monsi"
    assert cfg.ledger.network == "testnet"
    assert cfg.ledger.start_block == 42
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 9000
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "detailed"


@pytest.mark.unit
def test_ini_ignores_unknown_log_format():
    parser = configparser.ConfigParser()
    parser.read_string("[logging]\nformat = fancy\n")
    cfg = MonitorConfig()

    _load_from_ini(parser, cfg)

    assert cfg.logging.format == "simple"


@pytest.mark.unit
def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MONSI_BLOCKS_PER_ROUND", "100")
    monkeypatch.setenv("MONSI_COMMIT_PHASE_BLOCKS", "25")
    monkeypatch.setenv("MONSI_REVEAL_PHASE_BLOCKS", "20")
    monkeypatch.setenv("MONSI_LEDGER_PATH", "/tmp/eventlog")
    monkeypatch.setenv("MONSI_NETWORK", "testnet")
    monkeypatch.setenv("MONSI_START_BLOCK", "7")
    monkeypatch.setenv("MONSI_HOST", "0.0.0.0")
    monkeypatch.setenv("MONSI_PORT", "8123")
    monkeypatch.setenv("MONSI_LOG_LEVEL", "warning")

    cfg = load_config()

    assert cfg.game.blocks_per_round == 100
    assert cfg.game.commit_phase_blocks == 25
    assert cfg.game.reveal_phase_blocks == 20
    assert cfg.game.claim_phase_blocks == 55
    assert cfg.ledger.path == "/tmp/eventlog"
    assert cfg.ledger.network == "testnet"
    assert cfg.ledger.start_block == 7
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 8123
    assert cfg.logging.level == "WARNING"


@pytest.mark.unit
def test_reload_config_replaces_singleton(monkeypatch):
    monkeypatch.setattr(config_module, "config", config_module.config)
    monkeypatch.setenv("MONSI_NETWORK", "reloadnet")

    cfg = reload_config()

    assert cfg.ledger.network == "reloadnet"
    assert config_module.config is cfg


@pytest.mark.unit
def test_ledger_absolute_path():
    assert LedgerSettings(path="data/eventlog").absolute_path == PROJECT_ROOT / "data/eventlog"
    assert str(LedgerSettings(path="/srv/eventlog").absolute_path) == "/srv/eventlog"


@pytest.mark.unit
def test_game_settings_validate():
    GameSettings().validate()
    GameSettings(100, 25, 74).validate()

    with pytest.raises(ConfigError, match="must be less than"):
        GameSettings(100, 25, 75).validate()
    with pytest.raises(ConfigError, match="positive integer"):
        GameSettings(100, 0, 25).validate()


@pytest.mark.unit
def test_get_config_status():
    status = get_config_status()

    assert set(status) == {
        "config_file_exists",
        "config_file",
        "using_example",
        "network",
        "blocks_per_round",
    }
    assert status["config_file"] == "monsi.ini"
    assert status["network"] == config_module.config.ledger.network


@pytest.mark.unit
def test_reload_config_reaches_event_log_path(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "config", config_module.config)
    monkeypatch.setenv("MONSI_LEDGER_PATH", str(tmp_path))

    reload_config()

    assert ledger_path("testnet") == tmp_path / "testnet.jsonl"
