"""Reading the JSONL event log back for replay and resumption."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

from monsi.core.types import GameEvent
from monsi.errors import MonsiError
from monsi.ledger.codec import decode_event
from monsi.ledger.writer import check_envelope_line, ledger_path, verify_event_log

logger = logging.getLogger(__name__)


class LedgerReadError(MonsiError):
    """Raised when a stored line fails verification or cannot be decoded.

    Attributes:
        line_no: 1-based line number of the offending line.
    """

    def __init__(self, path: Path, line_no: int, detail: str) -> None:
        self.path = path
        self.line_no = line_no
        super().__init__(f"{path.name}:{line_no}: {detail}")


def read_events(
    network: str, *, from_block: int | None = None, root: Path | None = None
) -> Iterator[GameEvent]:
    """Yield the network's recorded events in file order.

    Every line's checksum is verified before it is decoded.  A missing file
    yields nothing.

    Args:
        network: Network whose log to read.
        from_block: Skip events mined before this block.
        root: Directory holding the logs. Defaults to ``ledger.path``.

    Raises:
        LedgerReadError: On the first corrupt or undecodable line.
    """
    path = ledger_path(network, root)
    if not path.exists():
        return

    with path.open(encoding="utf-8") as fh:
        for line_no, raw in enumerate(fh, start=1):
            line = raw.strip()
            if not line:
                continue
            error = check_envelope_line(line)
            if error is not None:
                raise LedgerReadError(path, line_no, error)
            envelope = json.loads(line)
            if from_block is not None and envelope["block_no"] < from_block:
                continue
            try:
                yield decode_event(envelope["event_type"], envelope["data"])
            except ValueError as exc:
                raise LedgerReadError(path, line_no, str(exc)) from exc


def last_block(network: str, *, root: Path | None = None) -> int | None:
    """Highest block recorded in the log, or None if the log is empty.

    Raises:
        LedgerReadError: If the last line is corrupt.
    """
    result = verify_event_log(network, root=root)
    if result.status == "corrupt":
        raise LedgerReadError(ledger_path(network, root), 0, result.error_detail or "corrupt")
    return result.last_block_no


def resume_block(network: str, default_start: int, *, root: Path | None = None) -> int:
    """Block the chain sync should resume from: one past the last recorded block.

    A block counts as done once any of its events is recorded, so the
    synchronizer must append all of a block's events before it stops.  If it
    stops partway through a block, the rest of that block is not fetched again.
    """
    last = last_block(network, root=root)
    if last is None:
        logger.info("No blocks recorded for %s, starting from %d", network, default_start)
        return default_start
    logger.info("Resuming %s from block %d", network, last + 1)
    return last + 1
