"""Player ledger: per-overlay state of every node seen in the game.

A :class:`Player` is created the first time an event references its overlay
and is never deleted.  All mutation goes through the methods below; each one
records the block and action for audit display and emits a diagnostic on the
engine's bus.

Amounts are PLUR integers.  ``stake`` stays ``None`` until the first stake
event, so "never staked" and "staked zero" remain distinguishable.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from monsi.core.bus import DiagnosticBus
from monsi.core.events import Events
from monsi.core.types import BlockDetails


@dataclass(frozen=True)
class RevealRecord:
    hash: str
    depth: int


@dataclass(eq=False)
class Player:
    """State of one storage node.

    Attributes:
        overlay: Node overlay address, the ledger key.
        account: Owner account, learned once and never overwritten.
        amount: Cumulative amount won through claims.
        stake: Current stake snapshot, ``None`` until the first stake event.
        stake_slashed: Cumulative amount actually removed by slashing.
        stake_change_count: Number of stake updates and slashes.
        is_playing: Whether the node has committed or revealed this round.
        last_block: Block of the last event that touched this player.
        last_action: Tag of that event (``"commit"``, ``"slash"``, ...).
        reveals: Reveal made in each round, keyed by round id.
        frozen_thaw_block: Block at which the current freeze ends, if frozen.
    """

    overlay: str
    account: str | None = None
    last_block: BlockDetails | None = None
    amount: int = 0
    stake: int | None = None
    stake_slashed: int = 0
    stake_change_count: int = 0
    is_playing: bool = False
    last_action: str | None = None
    play_count: int = 0
    win_count: int = 0
    frozen_thaw_block: int | None = None
    freeze_count: int = 0
    slash_count: int = 0
    reveals: dict[int, RevealRecord] = field(default_factory=dict)
    _bus: DiagnosticBus | None = field(default=None, repr=False)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_account(self, account: str) -> bool:
        """Learn the owner account. Returns False if one is already known."""
        if self.account is not None:
            return False
        self.account = account
        self._emit(Events.PLAYER_ACCOUNT_LEARNED, {"account": account}, self.last_block)
        return True

    def not_playing(self) -> None:
        self.is_playing = False

    def commit(self, block: BlockDetails) -> None:
        self._touch(block, "commit")
        self.is_playing = True
        self.play_count += 1

        if self.frozen_thaw_block is not None:
            if self.frozen_thaw_block <= block.block_no:
                self.frozen_thaw_block = None
            else:
                self._emit(
                    Events.PLAYER_COMMITTED_WHILE_FROZEN,
                    {"thaw_block": self.frozen_thaw_block},
                    block,
                )

        self._emit(Events.PLAYER_COMMITTED, {"play_count": self.play_count}, block)

    def reveal(self, block: BlockDetails, round_id: int, hash: str, depth: int) -> None:
        self._touch(block, "reveal")
        self.is_playing = True
        self.reveals[round_id] = RevealRecord(hash=hash, depth=depth)
        self._emit(
            Events.PLAYER_REVEALED, {"round_id": round_id, "hash": hash, "depth": depth}, block
        )

    def claim(self, block: BlockDetails, amount: int) -> None:
        """Credit a won pot."""
        self._touch(block, "claim")
        self.is_playing = True
        self.amount += amount
        self.win_count += 1
        self._emit(
            Events.PLAYER_CLAIMED,
            {"amount": amount, "total": self.amount, "win_count": self.win_count},
            block,
        )

    def freeze(self, block: BlockDetails, thaw_block: int) -> None:
        self._touch(block, "freeze")
        self.frozen_thaw_block = thaw_block
        self.freeze_count += 1
        self._emit(
            Events.PLAYER_FROZEN,
            {
                "thaw_block": thaw_block,
                "elapsed": thaw_block - block.block_no,
                "freeze_count": self.freeze_count,
            },
            block,
        )

    def update_stake(self, block: BlockDetails, amount: int) -> None:
        """Replace the stake snapshot. Winnings are not affected."""
        self._touch(block, "stake")
        self.stake = amount
        self.stake_change_count += 1
        self._emit(
            Events.PLAYER_STAKE_UPDATED,
            {"stake": amount, "stake_change_count": self.stake_change_count},
            block,
        )

    def slash(self, block: BlockDetails, amount: int) -> None:
        """Remove up to ``amount`` from the stake, saturating at zero."""
        self._touch(block, "slash")
        current = self.stake or 0
        removed = min(current, amount)
        self.stake = current - removed
        self.stake_slashed += removed
        self.slash_count += 1
        self.stake_change_count += 1
        self._emit(
            Events.PLAYER_SLASHED,
            {
                "requested": amount,
                "removed": removed,
                "stake": self.stake,
                "stake_slashed": self.stake_slashed,
                "stake_change_count": self.stake_change_count,
            },
            block,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def is_frozen(self) -> bool:
        return self.frozen_thaw_block is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.overlay,
            "account": self.account,
            "amount": self.amount,
            "stake": self.stake,
            "stake_slashed": self.stake_slashed,
            "stake_change_count": self.stake_change_count,
            "is_playing": self.is_playing,
            "last_block_no": self.last_block.block_no if self.last_block else None,
            "last_action": self.last_action,
            "play_count": self.play_count,
            "win_count": self.win_count,
            "frozen_thaw_block": self.frozen_thaw_block,
            "freeze_count": self.freeze_count,
            "slash_count": self.slash_count,
            "reveals": {
                round_id: {"hash": r.hash, "depth": r.depth}
                for round_id, r in sorted(self.reveals.items())
            },
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _touch(self, block: BlockDetails, action: str) -> None:
        self.last_block = block
        self.last_action = action

    def _emit(self, event_type: str, detail: dict, block: BlockDetails | None) -> None:
        if self._bus is None:
            return
        self._bus.emit(
            event_type,
            {"overlay": self.overlay, **detail},
            source="players",
            block_no=block.block_no if block else None,
        )


class PlayerLedger:
    """Keyed store of :class:`Player` objects.

    Backed by a plain dict; iteration sorts by overlay so exports and
    renderings are stable regardless of arrival order.
    """

    def __init__(self, bus: DiagnosticBus | None = None) -> None:
        self._players: dict[str, Player] = {}
        self._bus = bus

    def get_or_create(
        self,
        overlay: str,
        account: str | None = None,
        block: BlockDetails | None = None,
    ) -> Player:
        """Return the player for ``overlay``, creating it if needed.

        A supplied ``account`` is learned if the player has none yet; an
        existing account is never overwritten.
        """
        player = self._players.get(overlay)
        if player is None:
            player = Player(overlay=overlay, account=account, last_block=block, _bus=self._bus)
            self._players[overlay] = player
            if self._bus is not None:
                self._bus.emit(
                    Events.PLAYER_CREATED,
                    {"overlay": overlay, "account": account},
                    source="players",
                    block_no=block.block_no if block else None,
                )
        elif account and player.account is None:
            player.set_account(account)
        return player

    def get(self, overlay: str) -> Player | None:
        return self._players.get(overlay)

    def reset_activity(self) -> None:
        """Mark every known player as not playing."""
        for player in self._players.values():
            player.not_playing()

    def overlays(self) -> list[str]:
        return sorted(self._players)

    def players(self) -> Iterator[Player]:
        for overlay in self.overlays():
            yield self._players[overlay]

    def __contains__(self, overlay: object) -> bool:
        return overlay in self._players

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return self.players()
