"""Round and phase query endpoints."""

from fastapi import APIRouter, HTTPException

from monsi.api.models import PhaseResponse, RoundListResponse, RoundResponse
from monsi.core.game import GameEngine


def router(engine: GameEngine) -> APIRouter:
    """Build the rounds router with access to the game engine."""
    api = APIRouter(tags=["rounds"])

    @api.get("/rounds", response_model=RoundListResponse)
    async def list_rounds(limit: int | None = None):
        """List rounds in id order; ``limit`` keeps only the most recent ones."""
        snapshot = engine.snapshot()
        views = snapshot["rounds"]
        if limit is not None:
            if limit < 1:
                raise HTTPException(status_code=400, detail="limit must be positive")
            views = views[-limit:]
        return RoundListResponse(
            count=len(views),
            current_round_id=snapshot["current_round_id"],
            rounds=[RoundResponse.from_view(view) for view in views],
        )

    @api.get("/rounds/current", response_model=RoundResponse)
    async def current_round():
        round_id = engine.current_round_id
        view = engine.round_view(round_id) if round_id is not None else None
        if view is None:
            raise HTTPException(status_code=404, detail="No round observed yet")
        return RoundResponse.from_view(view)

    @api.get("/rounds/{round_id}", response_model=RoundResponse)
    async def get_round(round_id: int):
        view = engine.round_view(round_id)
        if view is None:
            raise HTTPException(status_code=404, detail=f"Round {round_id} not found")
        return RoundResponse.from_view(view)

    @api.get("/phase/{block_no}", response_model=PhaseResponse)
    async def phase(block_no: int):
        """Round and phase of an arbitrary block under the engine's geometry."""
        if block_no < 0:
            raise HTTPException(status_code=400, detail="block_no must not be negative")
        window = engine.phases.window(block_no)
        return PhaseResponse.from_window(
            block_no, window, engine.phases.round_string(block_no)
        )

    return api
