"""Exception hierarchy for monsi.

Data anomalies in the event stream (hash/depth mismatches, anchor conflicts,
duplicate claims) are never raised; they are emitted as diagnostics on the
engine's bus.  The exceptions here cover contract violations and outer I/O.
"""


class MonsiError(Exception):
    """Base class for all monsi errors."""


class ConfigError(MonsiError):
    """Raised when the game configuration is missing or inconsistent."""


class BlockOrderError(MonsiError):
    """Raised when an event's block number is lower than one already applied.

    Attributes:
        block_no: The offending block number.
        last_block_no: The highest block number the engine has seen.
    """

    def __init__(self, block_no: int, last_block_no: int) -> None:
        self.block_no = block_no
        self.last_block_no = last_block_no
        super().__init__(
            f"Block {block_no} delivered after block {last_block_no}; "
            "events must arrive in non-decreasing block order"
        )
