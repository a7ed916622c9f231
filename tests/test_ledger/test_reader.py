"""Unit tests for reading the event log back (monsi/ledger/reader.py).

Covers file-order replay, the ``from_block`` filter, per-line verification,
the resumption checkpoint, and the end-to-end property that replaying the
log through a fresh engine equals applying the events directly.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from monsi.core.game import GameEngine
from monsi.core.types import BlockDetails, Claimed, Committed, Reveal, StakeFreeze
from monsi.ledger import (
    LedgerReadError,
    append_event,
    last_block,
    read_events,
    resume_block,
)
from tests.constants import BZZ, HASH_H, OVERLAY_A, OVERLAY_B, OWNER_A, OWNER_B


@pytest.fixture(autouse=True)
def _redirect(ledger_root: Path) -> Path:
    return ledger_root


def _write(events) -> None:
    for event in events:
        append_event("testnet", event)


class TestReadEvents:
    def test_missing_log_yields_nothing(self) -> None:
        assert list(read_events("testnet")) == []

    def test_events_returned_in_file_order(self, events) -> None:
        _write(events)

        assert list(read_events("testnet")) == events

    def test_from_block_skips_earlier_events(self) -> None:
        _write(
            [
                Committed(OVERLAY_A, OWNER_A, BlockDetails(5)),
                Committed(OVERLAY_B, OWNER_B, BlockDetails(105)),
            ]
        )

        replayed = list(read_events("testnet", from_block=100))

        assert replayed == [Committed(OVERLAY_B, OWNER_B, BlockDetails(105))]

    def test_blank_lines_ignored(self, ledger_root: Path) -> None:
        _write([Committed(OVERLAY_A, OWNER_A, BlockDetails(5))])
        with (ledger_root / "testnet.jsonl").open("a", encoding="utf-8") as fh:
            fh.write("\n\n")

        assert len(list(read_events("testnet"))) == 1

    def test_tampered_line_raises(self, ledger_root: Path) -> None:
        _write(
            [
                Committed(OVERLAY_A, OWNER_A, BlockDetails(5)),
                Committed(OVERLAY_B, OWNER_B, BlockDetails(6)),
            ]
        )
        path = ledger_root / "testnet.jsonl"
        lines = path.read_text(encoding="utf-8").splitlines()
        envelope = json.loads(lines[1])
        envelope["data"]["overlay"] = OVERLAY_A
        lines[1] = json.dumps(envelope, sort_keys=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        reader = read_events("testnet")
        assert next(reader) == Committed(OVERLAY_A, OWNER_A, BlockDetails(5))
        with pytest.raises(LedgerReadError) as exc_info:
            next(reader)

        assert exc_info.value.line_no == 2
        assert "testnet.jsonl:2" in str(exc_info.value)


class TestCheckpoint:
    def test_empty_log_resumes_from_start(self) -> None:
        assert last_block("testnet") is None
        assert resume_block("testnet", 25527075) == 25527075

    def test_resume_after_last_block(self, events) -> None:
        _write(events)

        assert last_block("testnet") == 101
        assert resume_block("testnet", 0) == 102

    def test_resume_after_long_claim_line(self) -> None:
        winner = Reveal(OVERLAY_A, OWNER_A, HASH_H, 3)
        freezes = tuple(StakeFreeze(f"0x{i:064x}", 152) for i in range(200))
        _write(
            [
                Committed(OVERLAY_A, OWNER_A, BlockDetails(5)),
                Claimed(winner, OWNER_A, 2 * BZZ, BlockDetails(60), freezes=freezes),
            ]
        )

        assert last_block("testnet") == 60
        assert resume_block("testnet", 0) == 61

    def test_corrupt_tail_raises(self, ledger_root: Path) -> None:
        ledger_root.mkdir(parents=True)
        (ledger_root / "testnet.jsonl").write_text("garbage\n")

        with pytest.raises(LedgerReadError):
            resume_block("testnet", 0)


@pytest.mark.integration
class TestReplayFromLog:
    def test_log_replay_matches_direct_application(self, settings, events) -> None:
        _write(events)

        direct = GameEngine(settings)
        direct.replay(events)
        restored = GameEngine(settings)
        restored.replay(read_events("testnet"))

        assert restored.snapshot() == direct.snapshot()
        assert restored.bus.get_event_log() == direct.bus.get_event_log()
