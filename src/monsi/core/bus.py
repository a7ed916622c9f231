"""
Diagnostic Bus

Every state change and every data anomaly the game engine encounters is
emitted here as a structured :class:`Diagnostic`.  The engine never formats
log lines; presentation subscribes to the bus (see :mod:`monsi.render`).

=============================================================================
PRINCIPLES
=============================================================================

1. THE BUS RECORDS FACTS
   - Diagnostics describe what the engine DID with an event (past tense)
   - The bus does not decide outcomes, it records them

2. DIAGNOSTICS ARE IMMUTABLE
   - Once emitted, a diagnostic cannot be changed
   - Handlers receive diagnostics, they cannot modify them

3. EMIT IS SYNCHRONOUS
   - Creation, log commit and handler calls happen before emit() returns
   - Sequence numbers enforce a global order

4. REPLAY EMITS THE SAME DIAGNOSTICS
   - Metadata carries the block number, never a wall-clock time
   - Replaying an event log through a fresh engine reproduces the
     bus log exactly

5. ONE BUS PER ENGINE
   - Each GameEngine owns its bus; there is no module-level instance

=============================================================================
USAGE
=============================================================================

    from monsi.core.bus import DiagnosticBus

    bus = DiagnosticBus()
    unsubscribe = bus.on("round:unclaimed", lambda d: print(d.detail))
    bus.emit("round:unclaimed", {"round_id": 7}, source="rounds", block_no=1216)
    unsubscribe()

=============================================================================
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# A handler takes a diagnostic and returns nothing
DiagnosticHandler = Callable[["Diagnostic"], None]

# An unsubscribe function takes no args and returns nothing
Unsubscribe = Callable[[], None]

#: Subscribe with this type to receive every diagnostic.
ANY = "*"


# =============================================================================
# DIAGNOSTIC METADATA
# =============================================================================


@dataclass(frozen=True)
class DiagnosticMetadata:
    """
    Metadata attached to every diagnostic.

    Attributes:
        source: Name of the component that emitted it.
                Examples: "players", "rounds", "engine"
        sequence: Monotonically increasing integer. The only reliable way to
                  order diagnostics.
        block_no: Block of the event that caused the diagnostic, or None when
                  it was not caused by a chain event (e.g. highlighting).
    """

    source: str
    sequence: int
    block_no: int | None = None


# =============================================================================
# DIAGNOSTIC
# =============================================================================


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic on the bus.

    Attributes:
        type: The diagnostic type string, "domain:action" format.
              Examples: "player:slashed", "round:depth_mismatch"
        detail: The payload. Treat as immutable even though Python doesn't
                enforce this on dict contents.
        _meta: Diagnostic metadata (source, sequence, block).
    """

    type: str
    detail: dict = field(default_factory=dict)
    _meta: DiagnosticMetadata | None = field(default=None)

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        if self._meta:
            return (
                f"Diagnostic(type='{self.type}', "
                f"source='{self._meta.source}', "
                f"seq={self._meta.sequence})"
            )
        return f"Diagnostic(type='{self.type}')"

    @property
    def meta(self) -> DiagnosticMetadata | None:
        return self._meta


# =============================================================================
# DIAGNOSTIC BUS
# =============================================================================


class DiagnosticBus:
    """
    Synchronous, ordered diagnostic bus owned by one game engine.

    Thread Safety:
    - Not thread-safe on its own. The engine emits only while holding its
      write lock, so handlers run on the writer thread.

    Key Methods:
    - emit(): Record a diagnostic (synchronous, returns committed diagnostic)
    - on(): Subscribe to a type, or ANY (returns unsubscribe function)
    - once(): Subscribe for a single diagnostic only
    - get_event_log(): Retrieve diagnostic history
    """

    def __init__(self, maxlen: int = 10000) -> None:
        # Maps type -> handlers, in registration order
        self._handlers: dict[str, list[DiagnosticHandler]] = {}

        # Bounded log prevents unbounded memory growth on long replays
        self._event_log: deque[Diagnostic] = deque(maxlen=maxlen)

        self._sequence: int = 0

        # When True, logs all emit/subscribe/unsubscribe operations
        self.debug: bool = False

    # =========================================================================
    # EMIT
    # =========================================================================

    def emit(
        self,
        event_type: str,
        detail: dict[str, Any] | None = None,
        source: str = "engine",
        block_no: int | None = None,
    ) -> Diagnostic:
        """
        Emit a diagnostic.

        When this returns the diagnostic has a sequence number, is in the log
        and every subscribed handler has been called.

        Args:
            event_type: The diagnostic type (see monsi.core.events.Events)
            detail: The payload. Optional, defaults to empty dict.
            source: Which component is emitting. Defaults to "engine".
            block_no: Block of the chain event being applied, if any.

        Returns:
            The committed Diagnostic.
        """
        self._sequence += 1
        diagnostic = Diagnostic(
            type=event_type,
            detail=detail if detail is not None else {},
            _meta=DiagnosticMetadata(source=source, sequence=self._sequence, block_no=block_no),
        )

        self._event_log.append(diagnostic)

        if self.debug:
            logger.debug(f"EMIT [{self._sequence}]: {event_type} from {source}")

        self._notify_handlers(diagnostic)
        return diagnostic

    def _notify_handlers(self, diagnostic: Diagnostic) -> None:
        """
        Call handlers for this type, then wildcard handlers.

        Errors are logged but don't affect other handlers or the engine;
        the diagnostic is committed regardless.
        """
        handlers = list(self._handlers.get(diagnostic.type, ()))
        handlers.extend(self._handlers.get(ANY, ()))
        for handler in handlers:
            try:
                handler(diagnostic)
            except Exception as e:
                logger.error(f"Handler error for '{diagnostic.type}': {e}", exc_info=True)

    # =========================================================================
    # SUBSCRIBE
    # =========================================================================

    def on(self, event_type: str, handler: DiagnosticHandler) -> Unsubscribe:
        """
        Subscribe to a diagnostic type.

        Handlers are called in registration order (FIFO). Pass ``ANY`` to
        receive every diagnostic.

        Returns:
            An unsubscribe function. Call it to stop receiving diagnostics.
        """
        self._handlers.setdefault(event_type, []).append(handler)

        if self.debug:
            count = len(self._handlers[event_type])
            logger.debug(f"SUBSCRIBE: '{event_type}' (total handlers: {count})")

        def unsubscribe() -> None:
            """Remove this handler from the subscription list."""
            try:
                self._handlers.get(event_type, []).remove(handler)
                if self.debug:
                    logger.debug(f"UNSUBSCRIBE: '{event_type}'")
            except ValueError:
                # Handler already removed
                pass

        return unsubscribe

    def once(self, event_type: str, handler: DiagnosticHandler) -> Unsubscribe:
        """Subscribe for a single diagnostic only."""
        unsub: Unsubscribe | None = None

        def one_time_wrapper(diagnostic: Diagnostic) -> None:
            try:
                handler(diagnostic)
            finally:
                if unsub is not None:
                    unsub()

        unsub = self.on(event_type, one_time_wrapper)
        return unsub

    def clear_handlers(self) -> None:
        self._handlers.clear()

    # =========================================================================
    # EVENT LOG ACCESS
    # =========================================================================

    def get_event_log(
        self, limit: int | None = None, event_type: str | None = None
    ) -> list[Diagnostic]:
        """
        Get diagnostics from the log, oldest first.

        Args:
            limit: Maximum number to return (from the end). None means all.
            event_type: Only return diagnostics of this type.
        """
        diagnostics = list(self._event_log)
        if event_type is not None:
            diagnostics = [d for d in diagnostics if d.type == event_type]
        if limit is not None:
            return diagnostics[-limit:]
        return diagnostics

    def get_sequence(self) -> int:
        """Total number of diagnostics ever emitted by this bus."""
        return self._sequence

    def get_handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, ()))

    def clear_event_log(self) -> None:
        self._event_log.clear()
        if self.debug:
            logger.debug("Event log cleared")
