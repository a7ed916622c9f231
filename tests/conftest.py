"""
Shared pytest fixtures for the monsi test suite.

This module provides fixtures that are automatically available to all test files:
- Game settings with the small 100/25/25 round geometry used in examples
- A fresh GameEngine per test (explicit context, closed on teardown)
- A populated engine with one claimed round and one open round
- Event log redirection into a temporary directory
- FastAPI TestClient instances bound to an engine
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import monsi.ledger.writer as _writer
from monsi.api.server import create_app
from monsi.config import GameSettings
from monsi.core.bus import DiagnosticBus
from monsi.core.game import GameEngine
from monsi.core.types import (
    BlockDetails,
    BlockTick,
    Claimed,
    Committed,
    GameEvent,
    Reveal,
    Revealed,
    StakeFreeze,
    StakeSlash,
    StakeUpdated,
)
from tests.constants import (
    ANCHOR_1,
    BZZ,
    HASH_H,
    OVERLAY_A,
    OVERLAY_B,
    OVERLAY_C,
    OWNER_A,
    OWNER_B,
    OWNER_C,
)

# ============================================================================
# GAME FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> GameSettings:
    """Round geometry of 100 blocks: commit 0-24, reveal 25-49, claim 50-99."""
    return GameSettings(blocks_per_round=100, commit_phase_blocks=25, reveal_phase_blocks=25)


@pytest.fixture
def bus() -> DiagnosticBus:
    return DiagnosticBus()


@pytest.fixture
def engine(settings: GameSettings) -> Generator[GameEngine, None, None]:
    """
    Fresh engine for one test.

    Yields:
        GameEngine with an empty ledger and no round observed yet

    Cleanup:
        Closes the engine, detaching every bus subscriber
    """
    game = GameEngine(settings)
    yield game
    game.close()


def sample_events() -> list[GameEvent]:
    """
    A short recorded game over two rounds.

    Round 0: A, B and C commit and reveal the same hash, A wins and the claim
    freezes C and slashes B. Round 1 is opened by a block tick and left open.
    """
    winner = Reveal(overlay=OVERLAY_A, owner=OWNER_A, hash=HASH_H, depth=3)
    return [
        BlockTick(BlockDetails(2, 1700000000), ANCHOR_1),
        StakeUpdated(OVERLAY_A, OWNER_A, 10 * BZZ, BlockDetails(3)),
        StakeUpdated(OVERLAY_B, OWNER_B, 10 * BZZ, BlockDetails(3)),
        Committed(OVERLAY_A, OWNER_A, BlockDetails(5)),
        Committed(OVERLAY_B, OWNER_B, BlockDetails(6)),
        Committed(OVERLAY_C, OWNER_C, BlockDetails(7)),
        Revealed(OVERLAY_A, OWNER_A, HASH_H, 3, BlockDetails(30)),
        Revealed(OVERLAY_B, OWNER_B, HASH_H, 3, BlockDetails(31)),
        Revealed(OVERLAY_C, OWNER_C, HASH_H, 3, BlockDetails(31)),
        Claimed(
            winner=winner,
            owner=OWNER_A,
            amount=2 * BZZ,
            block=BlockDetails(60),
            freezes=(StakeFreeze(OVERLAY_C, 152),),
            slashes=(StakeSlash(OVERLAY_B, 4 * BZZ),),
        ),
        BlockTick(BlockDetails(101), None),
    ]


@pytest.fixture
def events() -> list[GameEvent]:
    return sample_events()


@pytest.fixture
def populated_engine(engine: GameEngine, events: list[GameEvent]) -> GameEngine:
    """Engine after replaying :func:`sample_events`, with OVERLAY_A highlighted."""
    engine.highlight_overlay(OVERLAY_A)
    engine.replay(events)
    return engine


# ============================================================================
# EVENT LOG FIXTURES
# ============================================================================


@pytest.fixture
def ledger_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect event log reads and writes to a temporary directory.

    Monkeypatches ``monsi.ledger.writer._LEDGER_ROOT`` so that no test ever
    touches the real ``data/eventlog/`` directory.
    """
    root = tmp_path / "eventlog"
    monkeypatch.setattr(_writer, "_LEDGER_ROOT", root)
    return root


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def test_client(populated_engine: GameEngine) -> TestClient:
    """TestClient bound to the populated engine."""
    return TestClient(create_app(populated_engine))


@pytest.fixture
def empty_client(engine: GameEngine) -> TestClient:
    """TestClient bound to an engine that has seen no events."""
    return TestClient(create_app(engine))
