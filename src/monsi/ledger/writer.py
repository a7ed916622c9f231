"""JSONL event log writer.

Overview
--------
The event log is the record of decoded chain events the monitor has seen.
The in-memory ledgers of :mod:`monsi.core` are derived from it: after a
restart, replaying the log through a fresh engine rebuilds them exactly, and
the highest recorded block is the checkpoint to resume the chain sync from.

Storage
-------
Each network's events are stored in a single JSONL file::

    <ledger.path>/<network>.jsonl

Events are appended in block order.  The directory and file are created
automatically on the first write.

Envelope format
---------------
Every line is a self-contained JSON object:

.. code-block:: json

    {
      "event_id":       "a3f91c9e2d4b5e6f...",
      "recorded_at":    "2026-02-27T14:23:01.452345+00:00",
      "network":        "mainnet",
      "event_type":     "revealed",
      "schema_version": "1.0",
      "block_no":       25527431,
      "data":           { ... see monsi.ledger.codec ... },
      "_checksum":      "sha256:b94f3e..."
    }

``_checksum`` is computed over the JSON-serialized envelope body (all fields
except ``_checksum`` itself, serialized with ``sort_keys=True``).

Concurrency
-----------
``fcntl.flock(LOCK_EX)`` is acquired before every append and released after
``flush()``.  POSIX only.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

import monsi.config as config_module
from monsi.core.types import GameEvent
from monsi.errors import MonsiError
from monsi.ledger.codec import encode_event

logger = logging.getLogger(__name__)

# Increment when the envelope format changes in a backwards-incompatible way.
SCHEMA_VERSION = "1.0"

# Tests monkeypatch this to redirect the event log into a temporary directory.
# When unset, ``ledger.path`` is read from the current config on every call.
_LEDGER_ROOT: Path | None = None

# Read size when scanning backwards for the last event. A claim line grows with
# its freezes and slashes, so the tail read keeps going until a full line is in.
_TAIL_CHUNK_BYTES = 16_384


class LedgerWriteError(MonsiError):
    """Raised when an append fails due to a filesystem or encoding error."""


@dataclass(frozen=True)
class LedgerVerifyResult:
    """Result of :func:`verify_event_log`.

    Attributes:
        status: ``"ok"``, ``"empty"`` or ``"corrupt"``.
        last_event_id: ``event_id`` of the last event when status is ``"ok"``.
        last_block_no: ``block_no`` of the last event when status is ``"ok"``.
        error_detail: Reason for a ``"corrupt"`` status.
    """

    status: Literal["ok", "empty", "corrupt"]
    last_event_id: str | None
    last_block_no: int | None
    error_detail: str | None


def append_event(network: str, event: GameEvent, *, root: Path | None = None) -> str:
    """Append one game event to the network's event log.

    Args:
        network: Network name, used as the file stem. Must be non-empty.
        event: The decoded game event.
        root: Directory holding the logs. Defaults to ``ledger.path``.

    Returns:
        The ``event_id`` of the written event (UUID4 hex).

    Raises:
        ValueError: If ``network`` is empty.
        TypeError: If ``event`` is not a game event.
        LedgerWriteError: If the filesystem write fails.
    """
    if not network or not network.strip():
        raise ValueError("append_event: network must be a non-empty string.")

    event_type, block_no, data = encode_event(event)
    event_id = uuid.uuid4().hex

    envelope_body: dict = {
        "event_id": event_id,
        "recorded_at": datetime.now(UTC).isoformat(),
        "network": network,
        "event_type": event_type,
        "schema_version": SCHEMA_VERSION,
        "block_no": block_no,
        "data": data,
    }
    envelope = {**envelope_body, "_checksum": f"sha256:{compute_checksum(envelope_body)}"}

    line = json.dumps(envelope, ensure_ascii=False, sort_keys=True)
    path = ledger_path(network, root)

    try:
        _append_line_locked(path, line)
    except OSError as exc:
        raise LedgerWriteError(
            f"Failed to write event {event_id!r} to event log for network "
            f"{network!r} at {path}: {exc}"
        ) from exc

    logger.debug("ledger: appended %r at block %d to %s", event_type, block_no, path.name)
    return event_id


def verify_event_log(network: str, *, root: Path | None = None) -> LedgerVerifyResult:
    """Verify the integrity of the most recent event in a network's log.

    Only the last non-empty line is inspected; :func:`monsi.ledger.reader.read_events`
    verifies every line while replaying.
    """
    path = ledger_path(network, root)
    if not path.exists():
        return LedgerVerifyResult("empty", None, None, None)

    last_line = _read_last_nonempty_line(path)
    if last_line is None:
        return LedgerVerifyResult("empty", None, None, None)

    error = check_envelope_line(last_line)
    if error is not None:
        return LedgerVerifyResult("corrupt", None, None, error)

    envelope = json.loads(last_line)
    return LedgerVerifyResult("ok", envelope["event_id"], envelope["block_no"], None)


# ── Shared helpers ────────────────────────────────────────────────────────────


def ledger_path(network: str, root: Path | None = None) -> Path:
    if root is None:
        root = _LEDGER_ROOT
    if root is None:
        root = config_module.config.ledger.absolute_path
    return root / f"{network}.jsonl"


def compute_checksum(payload: dict) -> str:
    """SHA-256 hex digest of the canonical JSON serialisation of ``payload``."""
    canonical = json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def check_envelope_line(line: str) -> str | None:
    """Return a description of what is wrong with an envelope line, or None."""
    try:
        envelope = json.loads(line)
    except json.JSONDecodeError as exc:
        return f"Line is not valid JSON: {exc}"

    if not isinstance(envelope, dict):
        return "Line deserialised to a non-dict type."

    recorded = envelope.get("_checksum")
    if not isinstance(recorded, str):
        return "Line is missing or has a non-string '_checksum' field."

    body = {k: v for k, v in envelope.items() if k != "_checksum"}
    expected = f"sha256:{compute_checksum(body)}"
    if recorded != expected:
        return f"Checksum mismatch. Recorded: {recorded!r}. Expected: {expected!r}."

    if not isinstance(envelope.get("event_id"), str) or not envelope["event_id"]:
        return "Line is missing a valid 'event_id' string."
    if not isinstance(envelope.get("block_no"), int):
        return "Line is missing an integer 'block_no'."
    return None


def _append_line_locked(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fcntl.flock(fh, fcntl.LOCK_EX)
        try:
            fh.write(line + "\n")
            fh.flush()
        finally:
            fcntl.flock(fh, fcntl.LOCK_UN)


def _read_last_nonempty_line(path: Path) -> str | None:
    """Return the last non-empty line from a file without reading it fully.

    Chunks are read backwards from the end until the tail holds a newline
    before its last non-blank byte, or the start of the file is reached.
    """
    try:
        with path.open("rb") as fh:
            fh.seek(0, 2)
            pos = fh.tell()
            tail = b""
            while pos > 0:
                step = min(_TAIL_CHUNK_BYTES, pos)
                pos -= step
                fh.seek(pos)
                tail = fh.read(step) + tail
                if b"\n" in tail.rstrip():
                    break
    except OSError:
        return None

    content = tail.rstrip()
    if not content:
        return None
    return content.rsplit(b"\n", 1)[-1].decode("utf-8", errors="replace").strip()
