"""Decoded chain events consumed by the game engine.

These frozen dataclasses are the engine's whole input vocabulary.  They are
produced upstream (chain synchronizer or the JSONL event log) and arrive in
non-decreasing block order.  Amounts are integers in PLUR, the smallest unit
of the staking token (1 BZZ = 10**16 PLUR).

Overlays, accounts, hashes and anchors are carried as ``0x``-prefixed hex
strings.  Upstream is responsible for normalising them to lowercase so that
ledger keys compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BlockDetails:
    """Block number and timestamp of the block an event was mined in."""

    block_no: int
    block_timestamp: int = 0


@dataclass(frozen=True)
class BlockTick:
    """A new block was observed, with the round anchor current at that block."""

    block: BlockDetails
    anchor: str | None = None


@dataclass(frozen=True)
class Committed:
    overlay: str
    owner: str
    block: BlockDetails


@dataclass(frozen=True)
class Revealed:
    overlay: str
    owner: str
    hash: str
    depth: int
    block: BlockDetails


@dataclass(frozen=True)
class Reveal:
    """The winning reveal as reported by the claim transaction."""

    overlay: str
    owner: str
    hash: str
    depth: int
    stake: int = 0
    stake_density: int = 0


@dataclass(frozen=True)
class StakeFreeze:
    overlay: str
    num_blocks: int


@dataclass(frozen=True)
class StakeSlash:
    overlay: str
    amount: int


@dataclass(frozen=True)
class Claimed:
    """The round's winner claimed the pot; freezes and slashes were applied."""

    winner: Reveal
    owner: str
    amount: int
    block: BlockDetails
    freezes: tuple[StakeFreeze, ...] = field(default_factory=tuple)
    slashes: tuple[StakeSlash, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StakeUpdated:
    """A node's stake was (re)deposited; ``amount`` is the new absolute stake."""

    overlay: str
    owner: str
    amount: int
    block: BlockDetails


@dataclass(frozen=True)
class StakeSlashed:
    overlay: str
    amount: int
    block: BlockDetails


#: Every event type :meth:`monsi.core.game.GameEngine.apply` accepts.
GameEvent = BlockTick | Committed | Revealed | Claimed | StakeUpdated | StakeSlashed
