"""Game engine: applies decoded chain events to the player and round ledgers.

:class:`GameEngine` is an explicit context object.  Create one per monitoring
run (or per test), feed it events in non-decreasing block order, read it
through the query methods, and ``close()`` it when done.  It holds no durable
state: restarting from a checkpoint means replaying the event log through a
fresh engine, which reproduces the ledgers exactly.

Event application sequence (``commit``, ``reveal``, ``claim``,
``stake_updated``, ``stake_slashed``):

1. Check block order and move the round cursor exactly as ``new_block``
   would (without an anchor), creating the event's round if needed.
2. Apply the player mutation.
3. Apply the round counter or tally update.
4. Emit ``highlight:activity`` when the overlay is locally tracked.

Round transition (``new_block`` and step 1 above):
    When the block's round differs from the cursor, every participant of the
    closing round is marked not playing and, if the round saw no claim, it is
    marked unclaimed.  The cursor then moves and the new round is created.

Locking:
    One ``threading.RLock`` guards every mutation and ``snapshot()``, so an
    API thread can read consistent state while a writer replays events.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from monsi.config import GameSettings
from monsi.core.bus import DiagnosticBus
from monsi.core.events import Events
from monsi.core.phase import Phase, PhaseCalculator, PhaseWindow
from monsi.core.player import Player, PlayerLedger
from monsi.core.round import Round, RoundLedger
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
    StakeSlashed,
    StakeUpdated,
)
from monsi.errors import BlockOrderError

logger = logging.getLogger(__name__)


class GameEngine:
    """Owns both ledgers, the round cursor and the highlighted identities.

    Args:
        settings: Round geometry. Validated on construction
                  (raises :exc:`~monsi.errors.ConfigError`).
        bus: Diagnostic bus to emit on. A fresh one is created if omitted.
    """

    def __init__(self, settings: GameSettings, bus: DiagnosticBus | None = None) -> None:
        self.phases = PhaseCalculator(settings)
        self.bus = bus if bus is not None else DiagnosticBus()
        self._players = PlayerLedger(self.bus)
        self._rounds = RoundLedger(self._players, self.bus)
        self._current_round_id: int | None = None
        self._last_block: BlockDetails | None = None
        self._my_overlays: set[str] = set()
        self._my_accounts: set[str] = set()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Detach every diagnostic subscriber. The ledgers stay readable."""
        self.bus.clear_handlers()

    def __enter__(self) -> GameEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Highlighting
    # ------------------------------------------------------------------

    def highlight_overlay(self, overlay: str) -> None:
        """Track an overlay locally and make it visible before any activity."""
        with self._lock:
            if overlay in self._my_overlays:
                return
            self._my_overlays.add(overlay)
            player = self._players.get_or_create(overlay)
            if player.account:
                self._my_accounts.add(player.account)
            self.bus.emit(Events.HIGHLIGHT_ADDED, {"overlay": overlay}, source="engine")

    def is_my_overlay(self, overlay: str) -> bool:
        return overlay in self._my_overlays

    def is_my_account(self, account: str) -> bool:
        return account in self._my_accounts

    def highlighted_overlays(self) -> list[str]:
        return sorted(self._my_overlays)

    def highlighted_accounts(self) -> list[str]:
        return sorted(self._my_accounts)

    # ------------------------------------------------------------------
    # Game logic
    # ------------------------------------------------------------------

    def new_block(self, block: BlockDetails, anchor: str | None = None) -> PhaseWindow:
        """Advance the round cursor to ``block`` and record the round anchor.

        The anchor is only taken during the commit and reveal phases; by the
        claim phase the chain has already moved on to the next round's seed.
        """
        with self._lock:
            round_ = self._enter(block)
            round_.last_block = block
            window = self.phases.window(block.block_no)
            if window.phase in (Phase.COMMIT, Phase.REVEAL):
                round_.set_anchor(anchor)
            return window

    def commit(self, overlay: str, owner: str, block: BlockDetails) -> None:
        with self._lock:
            round_ = self._enter(block)
            self._get_or_create_player(overlay, owner, block).commit(block)
            round_.record_commit(overlay, block)
            self._highlight_activity(overlay, "commit", block)

    def reveal(
        self, overlay: str, owner: str, hash: str, depth: int, block: BlockDetails
    ) -> None:
        with self._lock:
            round_ = self._enter(block)
            self._get_or_create_player(overlay, owner, block).reveal(
                block, round_.id, hash, depth
            )
            round_.record_reveal(overlay, hash, depth, self.is_my_overlay(overlay), block)
            self._highlight_activity(overlay, "reveal", block)

    def claim(
        self,
        winner: Reveal,
        owner: str,
        amount: int,
        block: BlockDetails,
        freezes: Iterable[StakeFreeze] = (),
        slashes: Iterable[StakeSlash] = (),
    ) -> bool:
        """Apply a claim. Returns False if the round rejected it."""
        with self._lock:
            round_ = self._enter(block)
            if round_.accepts_claim():
                self._get_or_create_player(winner.overlay, owner, block).claim(block, amount)
            accepted = self._rounds.record_claim(
                round_,
                winner.overlay,
                winner.hash,
                winner.depth,
                amount,
                block,
                freezes=freezes,
                slashes=slashes,
            )
            if accepted:
                self._highlight_activity(winner.overlay, "claim", block)
            return accepted

    def stake_updated(self, overlay: str, owner: str, amount: int, block: BlockDetails) -> None:
        with self._lock:
            self._enter(block)
            self._get_or_create_player(overlay, owner, block).update_stake(block, amount)
            self._highlight_activity(overlay, "stake", block)

    def stake_slashed(self, overlay: str, amount: int, block: BlockDetails) -> None:
        with self._lock:
            self._enter(block)
            self._get_or_create_player(overlay, None, block).slash(block, amount)
            self._highlight_activity(overlay, "slash", block)

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def apply(self, event: GameEvent) -> None:
        """Apply one decoded chain event.

        Raises:
            BlockOrderError: If the event's block precedes one already applied.
            TypeError: If ``event`` is not one of the game event types.
        """
        if isinstance(event, BlockTick):
            self.new_block(event.block, event.anchor)
        elif isinstance(event, Committed):
            self.commit(event.overlay, event.owner, event.block)
        elif isinstance(event, Revealed):
            self.reveal(event.overlay, event.owner, event.hash, event.depth, event.block)
        elif isinstance(event, Claimed):
            self.claim(
                event.winner,
                event.owner,
                event.amount,
                event.block,
                freezes=event.freezes,
                slashes=event.slashes,
            )
        elif isinstance(event, StakeUpdated):
            self.stake_updated(event.overlay, event.owner, event.amount, event.block)
        elif isinstance(event, StakeSlashed):
            self.stake_slashed(event.overlay, event.amount, event.block)
        else:
            raise TypeError(f"Unsupported game event: {type(event).__name__}")

    def replay(self, events: Iterable[GameEvent]) -> int:
        """Apply events in order. Returns how many were applied."""
        count = 0
        for event in events:
            self.apply(event)
            count += 1
        logger.debug("Replayed %d events, cursor at round %s", count, self._current_round_id)
        return count

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def player_count(self) -> int:
        return len(self._players)

    @property
    def round_count(self) -> int:
        return len(self._rounds)

    @property
    def current_round_id(self) -> int | None:
        return self._current_round_id

    @property
    def last_block(self) -> BlockDetails | None:
        return self._last_block

    def current_round(self) -> Round | None:
        if self._current_round_id is None:
            return None
        return self._rounds.get(self._current_round_id)

    def get_player(self, overlay: str) -> Player | None:
        return self._players.get(overlay)

    def get_round(self, round_id: int) -> Round | None:
        return self._rounds.get(round_id)

    def players(self) -> Iterator[Player]:
        """All players in overlay order."""
        return self._players.players()

    def overlays(self) -> list[str]:
        return self._players.overlays()

    def rounds(self) -> Iterator[Round]:
        """All rounds in id order."""
        return self._rounds.rounds()

    def player_view(self, overlay: str) -> dict[str, Any] | None:
        """Plain-data copy of one player, taken under the lock."""
        with self._lock:
            player = self._players.get(overlay)
            return player.to_dict() if player is not None else None

    def round_view(self, round_id: int) -> dict[str, Any] | None:
        """Plain-data copy of one round, taken under the lock."""
        with self._lock:
            round_ = self._rounds.get(round_id)
            return round_.to_dict() if round_ is not None else None

    def snapshot(self) -> dict[str, Any]:
        """Plain-data copy of the whole engine state, taken under the lock."""
        with self._lock:
            return {
                "current_round_id": self._current_round_id,
                "last_block_no": self._last_block.block_no if self._last_block else None,
                "highlighted_overlays": self.highlighted_overlays(),
                "highlighted_accounts": self.highlighted_accounts(),
                "players": [p.to_dict() for p in self._players.players()],
                "rounds": [r.to_dict() for r in self._rounds.rounds()],
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter(self, block: BlockDetails) -> Round:
        """Check ordering, move the cursor to the block's round, return it."""
        if self._last_block is not None and block.block_no < self._last_block.block_no:
            raise BlockOrderError(block.block_no, self._last_block.block_no)

        round_id = self.phases.round_of(block.block_no)
        if round_id != self._current_round_id:
            if self._current_round_id is not None:
                self._close_round(self._current_round_id, round_id, block)
            self._current_round_id = round_id

        round_ = self._rounds.get_or_create(round_id, block)
        self._last_block = block
        return round_

    def _close_round(self, round_id: int, next_round_id: int, block: BlockDetails) -> None:
        closing = self._rounds.get(round_id)
        if closing is None:
            logger.error("Previous round %s not found", round_id)
            return

        for overlay in closing.players:
            player = self._players.get(overlay)
            if player is not None:
                player.not_playing()

        if closing.claim is None and not closing.unclaimed:
            if self._last_block is not None:
                closing.last_block = self._last_block
            closing.unclaimed = True
            self.bus.emit(
                Events.ROUND_UNCLAIMED,
                {"round_id": round_id, "next_round_id": next_round_id},
                source="engine",
                block_no=block.block_no,
            )

    def _get_or_create_player(
        self, overlay: str, account: str | None, block: BlockDetails
    ) -> Player:
        player = self._players.get_or_create(overlay, account, block)
        if player.account and overlay in self._my_overlays:
            self._my_accounts.add(player.account)
        return player

    def _highlight_activity(self, overlay: str, action: str, block: BlockDetails) -> None:
        if overlay not in self._my_overlays:
            return
        self.bus.emit(
            Events.HIGHLIGHT_ACTIVITY,
            {
                "overlay": overlay,
                "action": action,
                "round": self.phases.round_string(block.block_no),
            },
            source="engine",
            block_no=block.block_no,
        )
