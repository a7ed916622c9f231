"""monsi: monitor for the storage incentives game.

Observes the commit/reveal/claim game played by storage nodes and keeps an
in-memory ledger of per-player and per-round outcomes for auditing.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("monsi")
except PackageNotFoundError:
    __version__ = "0.3.0"
