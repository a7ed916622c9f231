"""Round and phase arithmetic.

A round is a fixed window of ``blocks_per_round`` consecutive blocks.  Within
a round the first ``commit_phase_blocks`` blocks are the commit phase, the next
``reveal_phase_blocks`` the reveal phase and the remainder the claim phase.

The configured phase lengths are the only boundary formula used anywhere in
monsi; round transitions in the engine go through this module as well.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from monsi.config import GameSettings


class Phase(str, Enum):
    COMMIT = "commit"
    REVEAL = "reveal"
    CLAIM = "claim"


@dataclass(frozen=True)
class PhaseWindow:
    """Where a block sits inside its round.

    Attributes:
        round_id: Round the block belongs to.
        phase: Phase the block belongs to.
        offset: Position of the block inside the round (0-based).
        length: Number of blocks in the current phase.
        elapsed: Blocks of the current phase seen so far, counting this one.
        left_in_round: Blocks remaining in the round after this one.
    """

    round_id: int
    phase: Phase
    offset: int
    length: int
    elapsed: int
    left_in_round: int


class PhaseCalculator:
    """Pure functions of a block number and the round geometry."""

    def __init__(self, settings: GameSettings) -> None:
        settings.validate()
        self.settings = settings

    def round_of(self, block_no: int) -> int:
        return block_no // self.settings.blocks_per_round

    def offset_of(self, block_no: int) -> int:
        return block_no % self.settings.blocks_per_round

    def phase_of(self, block_no: int) -> Phase:
        offset = self.offset_of(block_no)
        if offset < self.settings.commit_phase_blocks:
            return Phase.COMMIT
        if offset < self.settings.commit_phase_blocks + self.settings.reveal_phase_blocks:
            return Phase.REVEAL
        return Phase.CLAIM

    def round_string(self, block_no: int) -> str:
        """Format a block as ``round(offset)``, e.g. ``"12(37)"``."""
        return f"{self.round_of(block_no)}({self.offset_of(block_no)})"

    def window(self, block_no: int) -> PhaseWindow:
        s = self.settings
        offset = self.offset_of(block_no)
        phase = self.phase_of(block_no)
        if phase is Phase.COMMIT:
            length, start = s.commit_phase_blocks, 0
        elif phase is Phase.REVEAL:
            length, start = s.reveal_phase_blocks, s.commit_phase_blocks
        else:
            length, start = s.claim_phase_blocks, s.commit_phase_blocks + s.reveal_phase_blocks
        return PhaseWindow(
            round_id=self.round_of(block_no),
            phase=phase,
            offset=offset,
            length=length,
            elapsed=offset - start + 1,
            left_in_round=s.blocks_per_round - offset - 1,
        )
