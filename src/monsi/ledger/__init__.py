"""Ledger package: append-only JSONL log of decoded chain events.

The log is what makes the in-memory game state recoverable.  The core keeps
no durable state; on restart the log is replayed through a fresh engine and
its last block is the checkpoint the chain sync resumes from.

Public surface
--------------
- :func:`append_event`: append one game event to a network's log.
- :func:`read_events`: yield a network's events, verifying every line.
- :func:`verify_event_log`: check integrity of the last event in a log.
- :func:`last_block` / :func:`resume_block`: the resumption checkpoint.
- :exc:`LedgerWriteError`, :exc:`LedgerReadError`.

Usage example
-------------
::

    from monsi.ledger import append_event, read_events

    append_event("mainnet", Committed(overlay, owner, BlockDetails(25527431)))
    engine.replay(read_events("mainnet"))
"""

from monsi.ledger.codec import decode_event, encode_event
from monsi.ledger.reader import LedgerReadError, last_block, read_events, resume_block
from monsi.ledger.writer import (
    LedgerVerifyResult,
    LedgerWriteError,
    append_event,
    verify_event_log,
)

__all__ = [
    "LedgerReadError",
    "LedgerVerifyResult",
    "LedgerWriteError",
    "append_event",
    "decode_event",
    "encode_event",
    "last_block",
    "read_events",
    "resume_block",
    "verify_event_log",
]
