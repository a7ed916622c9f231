"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and the
``/health`` endpoint (liveness check with ledger sizes, round cursor and
configuration source).
"""

from fastapi import APIRouter

from monsi import __version__
from monsi.api.models import ConfigStatusModel, HealthResponse
from monsi.config import get_config_status
from monsi.core.game import GameEngine


def router(engine: GameEngine) -> APIRouter:
    api = APIRouter()

    @api.get("/")
    async def root():
        """Root endpoint showing API identity and current version."""
        return {"message": "monsi query API", "version": __version__}

    @api.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        last_block = engine.last_block
        return HealthResponse(
            status="ok",
            players=engine.player_count,
            rounds=engine.round_count,
            current_round_id=engine.current_round_id,
            last_block_no=last_block.block_no if last_block else None,
            config=ConfigStatusModel(**get_config_status()),
        )

    return api
