"""
Diagnostic Event Type Constants

This module defines every diagnostic type the game engine emits on its bus.
Using constants instead of string literals gives a single source of truth for
the names the renderer and tests subscribe to.

=============================================================================
NAMING CONVENTION
=============================================================================

Diagnostics use "domain:action" format in PAST TENSE:

    Good: "player:slashed", "round:unclaimed", "round:anchor_conflict"
    Bad:  "slash_player", "round:unclaim"

The past tense emphasizes that diagnostics record FACTS about what the engine
did with an event, not requests for something to happen.

=============================================================================
SEVERITY
=============================================================================

ANOMALIES are data problems in the event stream.  They never raise; the
ledgers keep their last consistent state and the renderer logs them at
WARNING.  Everything else is a routine state change.

=============================================================================
USAGE
=============================================================================

    from monsi.core.events import Events

    engine.bus.on(Events.ROUND_UNCLAIMED, lambda d: print(d.detail["round_id"]))

=============================================================================
"""


class Events:
    """All diagnostic types emitted by the engine, organized by domain."""

    # =========================================================================
    # PLAYER EVENTS
    # =========================================================================

    PLAYER_CREATED = "player:created"
    PLAYER_ACCOUNT_LEARNED = "player:account_learned"
    PLAYER_COMMITTED = "player:committed"

    PLAYER_COMMITTED_WHILE_FROZEN = "player:committed_while_frozen"
    """
    A player committed before its freeze thawed. The thaw marker is kept.

    Detail: {
        "overlay": str,
        "thaw_block": int
    }
    """

    PLAYER_REVEALED = "player:revealed"
    PLAYER_CLAIMED = "player:claimed"

    PLAYER_FROZEN = "player:frozen"
    """
    Detail: {
        "overlay": str,
        "thaw_block": int,
        "elapsed": int,     # blocks until thaw, for display only
        "freeze_count": int
    }
    """

    PLAYER_STAKE_UPDATED = "player:stake_updated"

    PLAYER_SLASHED = "player:slashed"
    """
    Detail: {
        "overlay": str,
        "requested": int,   # amount named by the slash event
        "removed": int,     # amount actually taken, min(stake, requested)
        "stake": int,       # stake after the slash
        "stake_slashed": int
    }
    """

    # =========================================================================
    # ROUND EVENTS
    # =========================================================================

    ROUND_STARTED = "round:started"

    ROUND_UNCLAIMED = "round:unclaimed"
    """
    The engine moved past a round that never saw a claim.

    Detail: {
        "round_id": int,
        "next_round_id": int
    }
    """

    ROUND_ANCHOR_SET = "round:anchor_set"

    ROUND_ANCHOR_CONFLICT = "round:anchor_conflict"
    """
    A different anchor was offered for a round that already has one.
    The first anchor is kept.

    Detail: {
        "round_id": int,
        "anchor": str,      # the kept value
        "rejected": str
    }
    """

    ROUND_HASH_ADDED = "round:hash_added"

    ROUND_DEPTH_MISMATCH = "round:depth_mismatch"
    """
    A reveal named a known hash with a different depth. The tally is untouched.

    Detail: {
        "round_id": int,
        "overlay": str,
        "hash": str,
        "depth": int,       # depth already on the tally entry
        "revealed_depth": int
    }
    """

    ROUND_CLAIMED = "round:claimed"
    ROUND_ALREADY_CLAIMED = "round:already_claimed"
    ROUND_LATE_CLAIM = "round:late_claim"

    # =========================================================================
    # CLAIM FAN-OUT EVENTS
    # =========================================================================

    CLAIM_UNKNOWN_OVERLAY = "claim:unknown_overlay"
    """
    A claim froze or slashed an overlay the ledger has never seen.

    Detail: {
        "round_id": int,
        "overlay": str,
        "action": str       # "freeze" or "slash"
    }
    """

    # =========================================================================
    # HIGHLIGHT EVENTS
    # =========================================================================

    HIGHLIGHT_ADDED = "highlight:added"
    HIGHLIGHT_ACTIVITY = "highlight:activity"


#: Diagnostics that report a problem in the event stream.
ANOMALIES: frozenset[str] = frozenset(
    {
        Events.PLAYER_COMMITTED_WHILE_FROZEN,
        Events.ROUND_ANCHOR_CONFLICT,
        Events.ROUND_DEPTH_MISMATCH,
        Events.ROUND_ALREADY_CLAIMED,
        Events.ROUND_LATE_CLAIM,
        Events.CLAIM_UNKNOWN_OVERLAY,
    }
)


def get_all_event_types() -> list[str]:
    """Return every diagnostic type defined on :class:`Events`, sorted."""
    return sorted(
        [
            value
            for name, value in vars(Events).items()
            if isinstance(value, str) and not name.startswith("_")
        ]
    )


def is_valid_event_type(event_type: str) -> bool:
    return event_type in get_all_event_types()


def is_anomaly(event_type: str) -> bool:
    return event_type in ANOMALIES
