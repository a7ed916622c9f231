"""Round ledger: per-round participation, reveal tally and claim outcome.

Rounds are keyed by ``block_no // blocks_per_round`` and created lazily the
first time an event lands in them.  A round refers to players only by overlay
key; player state is reached through the :class:`PlayerLedger` it was built
with.

Anomaly policy
--------------
- Anchor: the first non-empty anchor is kept; a different later value emits
  ``round:anchor_conflict``.
- Reveal depth: a known hash revealed with a different depth leaves the tally
  entry untouched and emits ``round:depth_mismatch``.
- Claim: a second claim for the same round, or a claim for a round already
  closed as unclaimed, is rejected with a diagnostic and changes nothing.
- Freeze/slash of an overlay the ledger has never seen emits
  ``claim:unknown_overlay`` and is skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from monsi.core.bus import DiagnosticBus
from monsi.core.events import Events
from monsi.core.player import PlayerLedger
from monsi.core.types import BlockDetails, StakeFreeze, StakeSlash


@dataclass
class RoundHash:
    """Tally entry for one revealed hash."""

    depth: int
    count: int = 1
    highlight: bool = False


@dataclass(frozen=True)
class Claim:
    overlay: str
    truth: str
    depth: int
    amount: int


@dataclass(eq=False)
class Round:
    """State of one round.

    Attributes:
        id: Round id.
        last_block: Block of the last event applied to this round.
        players: Overlays that committed, in commit order.
        hashes: Reveal tally, keyed by hash.
        claim: Claim result, once the winner has claimed.
        unclaimed: Set when the engine moved past the round without a claim.
    """

    id: int
    last_block: BlockDetails
    commits: int = 0
    reveals: int = 0
    freezes: int = 0
    slashes: int = 0
    players: list[str] = field(default_factory=list)
    hashes: dict[str, RoundHash] = field(default_factory=dict)
    claim: Claim | None = None
    unclaimed: bool = False
    _anchor: str | None = None
    _bus: DiagnosticBus | None = field(default=None, repr=False)

    @property
    def anchor(self) -> str | None:
        return self._anchor

    @property
    def is_claimed(self) -> bool:
        return self.claim is not None

    def accepts_claim(self) -> bool:
        """True while the round has neither a claim nor an unclaimed mark."""
        return self.claim is None and not self.unclaimed

    def set_anchor(self, anchor: str | None) -> bool:
        """Record the round anchor. Returns True if the stored anchor changed."""
        if not anchor:
            return False
        if self._anchor is None:
            self._anchor = anchor
            self._emit(Events.ROUND_ANCHOR_SET, {"anchor": anchor})
            return True
        if self._anchor != anchor:
            self._emit(Events.ROUND_ANCHOR_CONFLICT, {"anchor": self._anchor, "rejected": anchor})
        return False

    def record_commit(self, overlay: str, block: BlockDetails) -> None:
        self.last_block = block
        self.commits += 1
        self.players.append(overlay)

    def record_reveal(
        self,
        overlay: str,
        hash: str,
        depth: int,
        highlighted: bool,
        block: BlockDetails,
    ) -> bool:
        """Count a reveal into the hash tally.

        Returns False when the hash is known with a different depth; the tally
        is left untouched in that case.
        """
        self.last_block = block
        self.reveals += 1

        entry = self.hashes.get(hash)
        if entry is None:
            self.hashes[hash] = RoundHash(depth=depth, count=1, highlight=highlighted)
            self._emit(Events.ROUND_HASH_ADDED, {"overlay": overlay, "hash": hash, "depth": depth})
            return True

        if entry.depth != depth:
            self._emit(
                Events.ROUND_DEPTH_MISMATCH,
                {"overlay": overlay, "hash": hash, "depth": entry.depth, "revealed_depth": depth},
            )
            return False

        entry.count += 1
        entry.highlight = entry.highlight or highlighted
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "anchor": self._anchor,
            "last_block_no": self.last_block.block_no,
            "commits": self.commits,
            "reveals": self.reveals,
            "freezes": self.freezes,
            "slashes": self.slashes,
            "players": list(self.players),
            "hashes": {
                h: {"depth": e.depth, "count": e.count, "highlight": e.highlight}
                for h, e in self.hashes.items()
            },
            "claim": (
                {
                    "overlay": self.claim.overlay,
                    "truth": self.claim.truth,
                    "depth": self.claim.depth,
                    "amount": self.claim.amount,
                }
                if self.claim
                else None
            ),
            "unclaimed": self.unclaimed,
        }

    def _emit(self, event_type: str, detail: dict) -> None:
        if self._bus is None:
            return
        self._bus.emit(
            event_type,
            {"round_id": self.id, **detail},
            source="rounds",
            block_no=self.last_block.block_no,
        )


class RoundLedger:
    """Keyed store of :class:`Round` objects, iterated in ascending id order."""

    def __init__(self, players: PlayerLedger, bus: DiagnosticBus | None = None) -> None:
        self._rounds: dict[int, Round] = {}
        self._players = players
        self._bus = bus

    def get_or_create(self, round_id: int, block: BlockDetails) -> Round:
        """Return the round, creating it if needed.

        Creating a round resets every known player's active flag: nobody has
        played a round that did not exist a moment ago.
        """
        round_ = self._rounds.get(round_id)
        if round_ is None:
            self._players.reset_activity()
            round_ = Round(id=round_id, last_block=block, _bus=self._bus)
            self._rounds[round_id] = round_
            round_._emit(Events.ROUND_STARTED, {})
        return round_

    def record_claim(
        self,
        round_: Round,
        winner_overlay: str,
        truth_hash: str,
        depth: int,
        amount: int,
        block: BlockDetails,
        freezes: Iterable[StakeFreeze] = (),
        slashes: Iterable[StakeSlash] = (),
    ) -> bool:
        """Set the round's claim and fan freezes and slashes out to players.

        Returns False, changing nothing, if the round already has a claim or
        was already closed as unclaimed.
        """
        round_.last_block = block
        if round_.claim is not None:
            round_._emit(
                Events.ROUND_ALREADY_CLAIMED,
                {"overlay": winner_overlay, "claimed_by": round_.claim.overlay, "amount": amount},
            )
            return False
        if round_.unclaimed:
            round_._emit(Events.ROUND_LATE_CLAIM, {"overlay": winner_overlay, "amount": amount})
            return False

        freezes = tuple(freezes)
        slashes = tuple(slashes)

        for freeze in freezes:
            player = self._players.get(freeze.overlay)
            if player is None:
                round_._emit(
                    Events.CLAIM_UNKNOWN_OVERLAY, {"overlay": freeze.overlay, "action": "freeze"}
                )
                continue
            player.freeze(block, block.block_no + freeze.num_blocks)

        for slash in slashes:
            player = self._players.get(slash.overlay)
            if player is None:
                round_._emit(
                    Events.CLAIM_UNKNOWN_OVERLAY, {"overlay": slash.overlay, "action": "slash"}
                )
                continue
            player.slash(block, slash.amount)

        round_.claim = Claim(overlay=winner_overlay, truth=truth_hash, depth=depth, amount=amount)
        round_.freezes = len(freezes)
        round_.slashes = len(slashes)
        round_._emit(
            Events.ROUND_CLAIMED,
            {"overlay": winner_overlay, "truth": truth_hash, "depth": depth, "amount": amount},
        )
        return True

    def get(self, round_id: int) -> Round | None:
        return self._rounds.get(round_id)

    def ids(self) -> list[int]:
        return sorted(self._rounds)

    def rounds(self) -> Iterator[Round]:
        for round_id in self.ids():
            yield self._rounds[round_id]

    def __contains__(self, round_id: object) -> bool:
        return round_id in self._rounds

    def __len__(self) -> int:
        return len(self._rounds)

    def __iter__(self) -> Iterator[Round]:
        return self.rounds()
