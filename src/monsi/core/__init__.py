"""Game-state engine: phase arithmetic, player and round ledgers, engine.

The core performs no I/O.  It consumes decoded events from
:mod:`monsi.core.types` and reports through its :class:`DiagnosticBus`.
"""

from monsi.core.bus import Diagnostic, DiagnosticBus
from monsi.core.events import Events
from monsi.core.game import GameEngine
from monsi.core.phase import Phase, PhaseCalculator, PhaseWindow
from monsi.core.player import Player, PlayerLedger, RevealRecord
from monsi.core.round import Claim, Round, RoundHash, RoundLedger

__all__ = [
    "Claim",
    "Diagnostic",
    "DiagnosticBus",
    "Events",
    "GameEngine",
    "Phase",
    "PhaseCalculator",
    "PhaseWindow",
    "Player",
    "PlayerLedger",
    "RevealRecord",
    "Round",
    "RoundHash",
    "RoundLedger",
]
