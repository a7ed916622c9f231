"""Presentation of engine state and diagnostics.

The core only emits structured diagnostics; this module is the adapter that
turns them into log lines, plus the display formatters shared by the CLI
summaries and the log renderer.

Usage::

    engine = GameEngine(config.game)
    renderer = DiagnosticLogger(engine.bus)
    engine.replay(events)
    renderer.detach()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from monsi.core.bus import ANY, Diagnostic, DiagnosticBus
from monsi.core.events import Events, is_anomaly
from monsi.core.game import GameEngine

logger = logging.getLogger(__name__)

#: 1 BZZ = 10**16 PLUR
BZZ_DECIMALS = 16


# =============================================================================
# FORMATTERS
# =============================================================================


def _strip0x(value: str) -> str:
    return value[2:] if value.lower().startswith("0x") else value


def left_id(value: str, length: int = 16) -> str:
    """Leftmost ``length`` hex digits, without the ``0x`` prefix."""
    return _strip0x(value)[:length]


def short_id(value: str, length: int = 16) -> str:
    """Head and tail of an id joined by an ellipsis, ``length`` digits total."""
    digits = _strip0x(value)
    if len(digits) <= length:
        return digits
    half = max(length // 2, 1)
    return f"{digits[:half]}...{digits[-half:]}"


def fmt_overlay(overlay: str, length: int = 12) -> str:
    return f"0x{left_id(overlay, length)}"


def fmt_account(account: str | None, length: int = 10) -> str:
    if not account:
        return "-"
    return f"0x{short_id(account, length)}"


def fmt_anchor(anchor: str | None) -> str:
    if not anchor:
        return "-"
    return f"0x{left_id(anchor, 8)}"


def whole_bzz(amount: int | None) -> Decimal:
    """PLUR amount as an exact BZZ decimal."""
    return Decimal(amount or 0).scaleb(-BZZ_DECIMALS)


def short_bzz(amount: int | None, places: int = 4) -> str:
    if amount is None:
        return "-"
    return f"{whole_bzz(amount):.{places}f}"


# =============================================================================
# DIAGNOSTIC LOGGER
# =============================================================================

_TEMPLATES: dict[str, Callable[[dict], str]] = {
    Events.PLAYER_CREATED: lambda d: f"{fmt_overlay(d['overlay'])} first seen",
    Events.PLAYER_ACCOUNT_LEARNED: lambda d: (
        f"{fmt_overlay(d['overlay'])} owned by {fmt_account(d['account'])}"
    ),
    Events.PLAYER_COMMITTED: lambda d: (
        f"{fmt_overlay(d['overlay'])} commit (plays {d['play_count']})"
    ),
    Events.PLAYER_COMMITTED_WHILE_FROZEN: lambda d: (
        f"{fmt_overlay(d['overlay'])} committed while frozen until {d['thaw_block']}"
    ),
    Events.PLAYER_REVEALED: lambda d: (
        f"{fmt_overlay(d['overlay'])} reveal {d['depth']} {short_id(d['hash'])}"
    ),
    Events.PLAYER_CLAIMED: lambda d: (
        f"{fmt_overlay(d['overlay'])} won {short_bzz(d['amount'])} "
        f"total {short_bzz(d['total'])} ({d['win_count']} wins)"
    ),
    Events.PLAYER_FROZEN: lambda d: (
        f"{fmt_overlay(d['overlay'])} Frozen for {d['elapsed']} blocks until {d['thaw_block']}"
    ),
    Events.PLAYER_STAKE_UPDATED: lambda d: (
        f"{fmt_overlay(d['overlay'])} Stake Updated now {short_bzz(d['stake'])}"
        f"({d['stake_change_count']})"
    ),
    Events.PLAYER_SLASHED: lambda d: (
        f"{fmt_overlay(d['overlay'])} Slashed {short_bzz(d['requested'])} "
        f"now {short_bzz(d['stake'])} -{short_bzz(d['stake_slashed'])}"
    ),
    Events.ROUND_STARTED: lambda d: f"round {d['round_id']} start",
    Events.ROUND_UNCLAIMED: lambda d: f"round {d['round_id']} not claimed",
    Events.ROUND_ANCHOR_SET: lambda d: f"round {d['round_id']} anchor {fmt_anchor(d['anchor'])}",
    Events.ROUND_ANCHOR_CONFLICT: lambda d: (
        f"round {d['round_id']} anchor change from {fmt_anchor(d['anchor'])} "
        f"to {fmt_anchor(d['rejected'])} ignored"
    ),
    Events.ROUND_HASH_ADDED: lambda d: (
        f"round {d['round_id']} new hash {short_id(d['hash'])} depth {d['depth']}"
    ),
    Events.ROUND_DEPTH_MISMATCH: lambda d: (
        f"round {d['round_id']} reveal: hash {short_id(d['hash'])} has different depth "
        f"{d['depth']} != {d['revealed_depth']}"
    ),
    Events.ROUND_CLAIMED: lambda d: (
        f"round {d['round_id']} claimed by {fmt_overlay(d['overlay'])} "
        f"depth {d['depth']} {short_bzz(d['amount'])}"
    ),
    Events.ROUND_ALREADY_CLAIMED: lambda d: (
        f"round {d['round_id']} already claimed by {fmt_overlay(d['claimed_by'])}, "
        f"ignoring claim by {fmt_overlay(d['overlay'])}"
    ),
    Events.ROUND_LATE_CLAIM: lambda d: (
        f"round {d['round_id']} closed unclaimed, ignoring claim by {fmt_overlay(d['overlay'])}"
    ),
    Events.CLAIM_UNKNOWN_OVERLAY: lambda d: (
        f"round {d['round_id']} {d['action']} of unknown overlay {fmt_overlay(d['overlay'])}"
    ),
    Events.HIGHLIGHT_ADDED: lambda d: f"highlighting {fmt_overlay(d['overlay'])}",
    Events.HIGHLIGHT_ACTIVITY: lambda d: (
        f"{d['round']} Player {left_id(d['overlay'])} {d['action']}"
    ),
}


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render one diagnostic as a single line, prefixed with its block."""
    text = f"{diagnostic.type} {diagnostic.detail}"
    template = _TEMPLATES.get(diagnostic.type)
    if template is not None:
        try:
            text = template(diagnostic.detail)
        except KeyError:
            # Detail emitted by a newer engine than this renderer
            pass
    meta = diagnostic.meta
    if meta is not None and meta.block_no is not None:
        return f"@{meta.block_no} {text}"
    return text


def diagnostic_level(diagnostic: Diagnostic) -> int:
    if is_anomaly(diagnostic.type):
        return logging.WARNING
    if diagnostic.type.startswith("highlight:") or diagnostic.type == Events.ROUND_UNCLAIMED:
        return logging.INFO
    return logging.DEBUG


class DiagnosticLogger:
    """Subscribes to every diagnostic on a bus and writes it to a logger."""

    def __init__(self, bus: DiagnosticBus, log: logging.Logger | None = None) -> None:
        self._log = log if log is not None else logger
        self._unsubscribe = bus.on(ANY, self.handle)

    def handle(self, diagnostic: Diagnostic) -> None:
        level = diagnostic_level(diagnostic)
        if self._log.isEnabledFor(level):
            self._log.log(level, format_diagnostic(diagnostic))

    def detach(self) -> None:
        self._unsubscribe()


# =============================================================================
# SUMMARY ROWS
# =============================================================================


def player_rows(engine: GameEngine) -> list[tuple[str, ...]]:
    """One display row per player, highlighted players marked with ``*``."""
    rows = []
    for p in engine.players():
        rows.append(
            (
                ("*" if engine.is_my_overlay(p.overlay) else " ") + fmt_overlay(p.overlay),
                fmt_account(p.account),
                str(p.play_count),
                str(p.win_count),
                short_bzz(p.amount),
                short_bzz(p.stake),
                short_bzz(p.stake_slashed),
                str(p.freeze_count),
                str(p.slash_count),
                p.last_action or "-",
            )
        )
    return rows


PLAYER_HEADER = (
    "overlay", "account", "plays", "wins", "won", "stake", "slashed", "frz", "sls", "last"
)


def round_rows(engine: GameEngine) -> list[tuple[str, ...]]:
    rows = []
    for r in engine.rounds():
        if r.claim is not None:
            outcome = f"{fmt_overlay(r.claim.overlay)} {short_bzz(r.claim.amount)}"
        elif r.unclaimed:
            outcome = "unclaimed"
        else:
            outcome = "open"
        rows.append(
            (
                str(r.id),
                fmt_anchor(r.anchor),
                str(r.commits),
                str(r.reveals),
                str(len(r.hashes)),
                str(r.freezes),
                str(r.slashes),
                outcome,
            )
        )
    return rows


ROUND_HEADER = ("round", "anchor", "commits", "reveals", "hashes", "frz", "sls", "outcome")


def format_table(header: tuple[str, ...], rows: list[tuple[str, ...]]) -> str:
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row, strict=False)]
    lines = ["  ".join(h.ljust(w) for h, w in zip(header, widths, strict=False))]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths, strict=False)))
    return "\n".join(lines)
