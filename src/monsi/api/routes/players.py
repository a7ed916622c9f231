"""Player query endpoints."""

from fastapi import APIRouter, HTTPException

from monsi.api.models import PlayerListResponse, PlayerResponse
from monsi.core.game import GameEngine


def router(engine: GameEngine) -> APIRouter:
    """Build the players router with access to the game engine."""
    api = APIRouter(prefix="/players", tags=["players"])

    @api.get("", response_model=PlayerListResponse)
    async def list_players(highlighted: bool = False):
        """
        List every player in overlay order.

        With ``highlighted=true`` only locally tracked overlays are returned.
        """
        snapshot = engine.snapshot()
        tracked = set(snapshot["highlighted_overlays"])
        players = [
            PlayerResponse.from_view(view, highlighted=view["overlay"] in tracked)
            for view in snapshot["players"]
            if not highlighted or view["overlay"] in tracked
        ]
        return PlayerListResponse(count=len(players), players=players)

    @api.get("/{overlay}", response_model=PlayerResponse)
    async def get_player(overlay: str):
        """Get one player by overlay (case-insensitive, ``0x`` optional)."""
        key = overlay.lower()
        if not key.startswith("0x"):
            key = f"0x{key}"
        view = engine.player_view(key)
        if view is None:
            raise HTTPException(status_code=404, detail=f"Player {overlay} not found")
        return PlayerResponse.from_view(view, highlighted=engine.is_my_overlay(key))

    return api
