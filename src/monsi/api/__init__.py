"""Read-only HTTP query API over the game engine."""

from monsi.api.server import create_app

__all__ = ["create_app"]
