"""
FastAPI query server.

Exposes the game engine's read-only query surface over HTTP.  The app is
built around an engine instance supplied by the caller (normally the CLI's
``serve`` command after replaying the event log); there is no module-level
engine.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from monsi import __version__
from monsi.api.routes import health, players, rounds
from monsi.core.game import GameEngine

logger = logging.getLogger(__name__)


def create_app(engine: GameEngine) -> FastAPI:
    """Build the query API for ``engine``."""
    app = FastAPI(title="monsi", version=__version__)

    # Read-only GET API; dashboards may be served from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(health.router(engine))
    app.include_router(players.router(engine))
    app.include_router(rounds.router(engine))
    return app


def start_server(engine: GameEngine, host: str, port: int) -> None:
    """Serve the query API with uvicorn until interrupted."""
    import uvicorn

    logger.info("Serving query API on http://%s:%d", host, port)
    uvicorn.run(create_app(engine), host=host, port=port)
