"""
Tests for the player ledger (monsi/core/player.py).

Tests cover:
- Player creation and account learning
- Commit, reveal and claim bookkeeping
- Freeze marker handling on commit
- Stake replacement and saturating slashes
- Sorted iteration of the ledger
"""

import pytest

from monsi.core.events import Events
from monsi.core.player import Player, PlayerLedger, RevealRecord
from monsi.core.types import BlockDetails
from tests.constants import BZZ, HASH_H, OVERLAY_A, OVERLAY_B, OVERLAY_C, OWNER_A, OWNER_B


@pytest.fixture
def ledger(bus) -> PlayerLedger:
    return PlayerLedger(bus)


# ============================================================================
# LEDGER TESTS
# ============================================================================


class TestPlayerLedger:
    @pytest.mark.unit
    def test_get_or_create_creates_once(self, ledger, bus):
        first = ledger.get_or_create(OVERLAY_A, OWNER_A, BlockDetails(5))
        second = ledger.get_or_create(OVERLAY_A)

        assert first is second
        assert len(ledger) == 1
        assert OVERLAY_A in ledger
        created = bus.get_event_log(event_type=Events.PLAYER_CREATED)
        assert len(created) == 1
        assert created[0].detail == {"overlay": OVERLAY_A, "account": OWNER_A}
        assert created[0].meta.block_no == 5

    @pytest.mark.unit
    def test_account_learned_later(self, ledger, bus):
        ledger.get_or_create(OVERLAY_A)
        player = ledger.get_or_create(OVERLAY_A, OWNER_A)

        assert player.account == OWNER_A
        assert len(bus.get_event_log(event_type=Events.PLAYER_ACCOUNT_LEARNED)) == 1

    @pytest.mark.unit
    def test_account_never_overwritten(self, ledger):
        ledger.get_or_create(OVERLAY_A, OWNER_A)
        player = ledger.get_or_create(OVERLAY_A, OWNER_B)

        assert player.account == OWNER_A
        assert player.set_account(OWNER_B) is False

    @pytest.mark.unit
    def test_iteration_sorted_by_overlay(self, ledger):
        for overlay in (OVERLAY_C, OVERLAY_A, OVERLAY_B):
            ledger.get_or_create(overlay)

        assert ledger.overlays() == [OVERLAY_A, OVERLAY_B, OVERLAY_C]
        assert [p.overlay for p in ledger] == [OVERLAY_A, OVERLAY_B, OVERLAY_C]

    @pytest.mark.unit
    def test_reset_activity(self, ledger):
        a = ledger.get_or_create(OVERLAY_A)
        b = ledger.get_or_create(OVERLAY_B)
        a.commit(BlockDetails(5))
        b.commit(BlockDetails(6))

        ledger.reset_activity()

        assert not a.is_playing
        assert not b.is_playing

    @pytest.mark.unit
    def test_get_unknown_returns_none(self, ledger):
        assert ledger.get(OVERLAY_A) is None
        assert OVERLAY_A not in ledger


# ============================================================================
# GAME ACTION TESTS
# ============================================================================


class TestPlayerActions:
    @pytest.mark.unit
    def test_commit(self):
        player = Player(overlay=OVERLAY_A, account=OWNER_A)
        player.commit(BlockDetails(5))

        assert player.play_count == 1
        assert player.is_playing
        assert player.last_action == "commit"
        assert player.last_block == BlockDetails(5)

    @pytest.mark.unit
    def test_reveal_records_round(self):
        player = Player(overlay=OVERLAY_A)
        player.reveal(BlockDetails(30), 0, HASH_H, 3)

        assert player.reveals == {0: RevealRecord(hash=HASH_H, depth=3)}
        assert player.last_action == "reveal"

    @pytest.mark.unit
    def test_claim_accumulates(self):
        player = Player(overlay=OVERLAY_A)
        player.claim(BlockDetails(60), 2 * BZZ)
        player.claim(BlockDetails(160), 3 * BZZ)

        assert player.amount == 5 * BZZ
        assert player.win_count == 2

    @pytest.mark.unit
    def test_not_playing(self):
        player = Player(overlay=OVERLAY_A)
        player.commit(BlockDetails(5))
        player.not_playing()

        assert not player.is_playing
        assert player.play_count == 1


class TestFreeze:
    @pytest.mark.unit
    def test_freeze_sets_thaw_block(self, bus):
        player = Player(overlay=OVERLAY_A, _bus=bus)
        player.freeze(BlockDetails(60), 212)

        assert player.is_frozen
        assert player.frozen_thaw_block == 212
        assert player.freeze_count == 1
        (frozen,) = bus.get_event_log(event_type=Events.PLAYER_FROZEN)
        assert frozen.detail["elapsed"] == 152

    @pytest.mark.unit
    def test_commit_after_thaw_clears_marker(self, bus):
        player = Player(overlay=OVERLAY_A, _bus=bus)
        player.freeze(BlockDetails(60), 212)
        player.commit(BlockDetails(212))

        assert not player.is_frozen
        assert bus.get_event_log(event_type=Events.PLAYER_COMMITTED_WHILE_FROZEN) == []

    @pytest.mark.unit
    def test_commit_while_frozen_keeps_marker(self, bus):
        player = Player(overlay=OVERLAY_A, _bus=bus)
        player.freeze(BlockDetails(60), 212)
        player.commit(BlockDetails(105))

        assert player.frozen_thaw_block == 212
        assert player.play_count == 1
        (anomaly,) = bus.get_event_log(event_type=Events.PLAYER_COMMITTED_WHILE_FROZEN)
        assert anomaly.detail == {"overlay": OVERLAY_A, "thaw_block": 212}
        assert anomaly.meta.block_no == 105


class TestStake:
    @pytest.mark.unit
    def test_first_stake_event(self):
        player = Player(overlay=OVERLAY_A)
        assert player.stake is None

        player.update_stake(BlockDetails(3), 60)

        assert player.stake == 60
        assert player.stake_change_count == 1

    @pytest.mark.unit
    def test_update_replaces_and_keeps_winnings(self):
        player = Player(overlay=OVERLAY_A)
        player.claim(BlockDetails(60), 7)
        player.update_stake(BlockDetails(61), 60)
        player.update_stake(BlockDetails(62), 80)

        assert player.stake == 80
        assert player.amount == 7
        assert player.stake_change_count == 2

    @pytest.mark.unit
    def test_slash_within_stake(self):
        player = Player(overlay=OVERLAY_A, stake=60)
        player.slash(BlockDetails(70), 25)

        assert player.stake == 35
        assert player.stake_slashed == 25
        assert player.slash_count == 1
        assert player.last_action == "slash"

    @pytest.mark.unit
    def test_slash_saturates_at_zero(self, bus):
        """Slashing more than the stake removes exactly the prior stake."""
        player = Player(overlay=OVERLAY_A, stake=60, _bus=bus)
        player.slash(BlockDetails(70), 100)

        assert player.stake == 0
        assert player.stake_slashed == 60
        (slashed,) = bus.get_event_log(event_type=Events.PLAYER_SLASHED)
        assert slashed.detail["requested"] == 100
        assert slashed.detail["removed"] == 60

    @pytest.mark.unit
    def test_slash_without_stake(self):
        player = Player(overlay=OVERLAY_A)
        player.slash(BlockDetails(70), 100)

        assert player.stake == 0
        assert player.stake_slashed == 0
        assert player.stake_change_count == 1


class TestToDict:
    @pytest.mark.unit
    def test_plain_data(self):
        player = Player(overlay=OVERLAY_A, account=OWNER_A)
        player.reveal(BlockDetails(130), 1, HASH_H, 4)
        player.reveal(BlockDetails(30), 0, HASH_H, 3)

        data = player.to_dict()

        assert data["overlay"] == OVERLAY_A
        assert data["last_block_no"] == 30
        assert list(data["reveals"]) == [0, 1]
        assert data["reveals"][1] == {"hash": HASH_H, "depth": 4}
