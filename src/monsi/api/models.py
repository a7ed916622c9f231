"""
Pydantic response models for the read-only query API.

Amounts (PLUR) are serialized as decimal strings: they routinely exceed the
integer range JavaScript clients can represent exactly.

Every model has a ``from_view`` constructor taking the plain dicts produced
by :meth:`monsi.core.game.GameEngine.snapshot` and friends, so the API never
touches live ledger objects outside the engine lock.
"""

from typing import Any

from pydantic import BaseModel

from monsi.core.phase import PhaseWindow


def _amount(value: int | None) -> str | None:
    return None if value is None else str(value)


# ============================================================================
# PLAYER MODELS
# ============================================================================


class RevealModel(BaseModel):
    hash: str
    depth: int


class PlayerResponse(BaseModel):
    """
    Full state of one player.

    Attributes:
        overlay: Node overlay address
        account: Owner account, if learned
        amount: Cumulative winnings (PLUR, decimal string)
        stake: Current stake (PLUR), None until the first stake event
        stake_slashed: Cumulative amount removed by slashing (PLUR)
        highlighted: Whether the overlay is tracked locally
        reveals: Reveal per round id
    """

    overlay: str
    account: str | None
    amount: str
    stake: str | None
    stake_slashed: str
    stake_change_count: int
    is_playing: bool
    last_block_no: int | None
    last_action: str | None
    play_count: int
    win_count: int
    frozen_thaw_block: int | None
    freeze_count: int
    slash_count: int
    highlighted: bool = False
    reveals: dict[int, RevealModel] = {}

    @classmethod
    def from_view(cls, view: dict[str, Any], highlighted: bool = False) -> "PlayerResponse":
        return cls(
            **{
                **view,
                "amount": str(view["amount"]),
                "stake": _amount(view["stake"]),
                "stake_slashed": str(view["stake_slashed"]),
            },
            highlighted=highlighted,
        )


class PlayerListResponse(BaseModel):
    count: int
    players: list[PlayerResponse]


# ============================================================================
# ROUND MODELS
# ============================================================================


class RoundHashModel(BaseModel):
    depth: int
    count: int
    highlight: bool


class ClaimModel(BaseModel):
    overlay: str
    truth: str
    depth: int
    amount: str


class RoundResponse(BaseModel):
    """
    Full state of one round.

    Attributes:
        id: Round id (block // blocks_per_round)
        anchor: Round anchor, once seen
        players: Overlays that committed, in commit order
        hashes: Reveal tally keyed by hash
        claim: Claim result, if the round was claimed
        unclaimed: True if the round closed without a claim
    """

    id: int
    anchor: str | None
    last_block_no: int
    commits: int
    reveals: int
    freezes: int
    slashes: int
    players: list[str]
    hashes: dict[str, RoundHashModel]
    claim: ClaimModel | None
    unclaimed: bool

    @classmethod
    def from_view(cls, view: dict[str, Any]) -> "RoundResponse":
        claim = view["claim"]
        if claim is not None:
            claim = {**claim, "amount": str(claim["amount"])}
        return cls(**{**view, "claim": claim})


class RoundListResponse(BaseModel):
    count: int
    current_round_id: int | None
    rounds: list[RoundResponse]


# ============================================================================
# STATUS MODELS
# ============================================================================


class ConfigStatusModel(BaseModel):
    config_file_exists: bool
    config_file: str
    using_example: bool
    network: str
    blocks_per_round: int


class HealthResponse(BaseModel):
    status: str
    players: int
    rounds: int
    current_round_id: int | None
    last_block_no: int | None
    config: ConfigStatusModel


class PhaseResponse(BaseModel):
    block_no: int
    round_id: int
    round_string: str
    phase: str
    offset: int
    length: int
    elapsed: int
    left_in_round: int

    @classmethod
    def from_window(
        cls, block_no: int, window: PhaseWindow, round_string: str
    ) -> "PhaseResponse":
        return cls(
            block_no=block_no,
            round_id=window.round_id,
            round_string=round_string,
            phase=window.phase.value,
            offset=window.offset,
            length=window.length,
            elapsed=window.elapsed,
            left_in_round=window.left_in_round,
        )
