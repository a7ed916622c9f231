"""Conversion between game events and their JSON payloads.

Each event is stored as an ``event_type`` string plus a ``data`` dict.
Amounts are written as decimal strings: PLUR values routinely exceed the
53-bit integers most JSON consumers can represent exactly.

Event type namespace
--------------------
::

    block           BlockTick
    committed       Committed
    revealed        Revealed
    claimed         Claimed
    stake_updated   StakeUpdated
    stake_slashed   StakeSlashed
"""

from __future__ import annotations

from typing import Any

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

EVENT_TYPES: frozenset[str] = frozenset(
    {"block", "committed", "revealed", "claimed", "stake_updated", "stake_slashed"}
)


def _block(block: BlockDetails) -> dict[str, int]:
    return {"block_no": block.block_no, "block_timestamp": block.block_timestamp}


def _unblock(data: dict[str, Any]) -> BlockDetails:
    return BlockDetails(
        block_no=int(data["block_no"]), block_timestamp=int(data.get("block_timestamp", 0))
    )


def encode_event(event: GameEvent) -> tuple[str, int, dict[str, Any]]:
    """Return ``(event_type, block_no, data)`` for a game event.

    Raises:
        TypeError: If ``event`` is not a game event.
    """
    if isinstance(event, BlockTick):
        return "block", event.block.block_no, {**_block(event.block), "anchor": event.anchor}
    if isinstance(event, Committed):
        data = {"overlay": event.overlay, "owner": event.owner, **_block(event.block)}
        return "committed", event.block.block_no, data
    if isinstance(event, Revealed):
        data = {
            "overlay": event.overlay,
            "owner": event.owner,
            "hash": event.hash,
            "depth": event.depth,
            **_block(event.block),
        }
        return "revealed", event.block.block_no, data
    if isinstance(event, Claimed):
        data = {
            "winner": {
                "overlay": event.winner.overlay,
                "owner": event.winner.owner,
                "hash": event.winner.hash,
                "depth": event.winner.depth,
                "stake": str(event.winner.stake),
                "stake_density": str(event.winner.stake_density),
            },
            "owner": event.owner,
            "amount": str(event.amount),
            "freezes": [{"overlay": f.overlay, "num_blocks": f.num_blocks} for f in event.freezes],
            "slashes": [{"overlay": s.overlay, "amount": str(s.amount)} for s in event.slashes],
            **_block(event.block),
        }
        return "claimed", event.block.block_no, data
    if isinstance(event, StakeUpdated):
        data = {
            "overlay": event.overlay,
            "owner": event.owner,
            "amount": str(event.amount),
            **_block(event.block),
        }
        return "stake_updated", event.block.block_no, data
    if isinstance(event, StakeSlashed):
        data = {"overlay": event.overlay, "amount": str(event.amount), **_block(event.block)}
        return "stake_slashed", event.block.block_no, data
    raise TypeError(f"Cannot encode {type(event).__name__} as a game event")


def decode_event(event_type: str, data: dict[str, Any]) -> GameEvent:
    """Rebuild a game event from its stored payload.

    Raises:
        ValueError: On an unknown event type or a malformed payload.
    """
    try:
        block = _unblock(data)
        if event_type == "block":
            return BlockTick(block=block, anchor=data.get("anchor"))
        if event_type == "committed":
            return Committed(overlay=data["overlay"], owner=data["owner"], block=block)
        if event_type == "revealed":
            return Revealed(
                overlay=data["overlay"],
                owner=data["owner"],
                hash=data["hash"],
                depth=int(data["depth"]),
                block=block,
            )
        if event_type == "claimed":
            winner = data["winner"]
            return Claimed(
                winner=Reveal(
                    overlay=winner["overlay"],
                    owner=winner["owner"],
                    hash=winner["hash"],
                    depth=int(winner["depth"]),
                    stake=int(winner.get("stake", 0)),
                    stake_density=int(winner.get("stake_density", 0)),
                ),
                owner=data["owner"],
                amount=int(data["amount"]),
                block=block,
                freezes=tuple(
                    StakeFreeze(overlay=f["overlay"], num_blocks=int(f["num_blocks"]))
                    for f in data.get("freezes", [])
                ),
                slashes=tuple(
                    StakeSlash(overlay=s["overlay"], amount=int(s["amount"]))
                    for s in data.get("slashes", [])
                ),
            )
        if event_type == "stake_updated":
            return StakeUpdated(
                overlay=data["overlay"],
                owner=data["owner"],
                amount=int(data["amount"]),
                block=block,
            )
        if event_type == "stake_slashed":
            return StakeSlashed(overlay=data["overlay"], amount=int(data["amount"]), block=block)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Malformed {event_type!r} payload: {exc}") from exc
    raise ValueError(f"Unknown event type {event_type!r}")
