"""
Command-line interface for monsi.

Provides commands for inspecting the storage incentives game:
- phase: Show the round and phase of a block
- replay: Rebuild game state from the event log and print summaries
- verify: Check integrity of the event log
- checkpoint: Print the block the chain sync should resume from
- serve: Rebuild game state and serve the read-only query API

Usage:
    monsi phase 25527431
    monsi replay [--network NAME] [--from-block N] [--overlay OVERLAY ...] [--rounds N]
    monsi verify [--network NAME]
    monsi checkpoint [--network NAME]
    monsi serve [--host HOST] [--port PORT] [--overlay OVERLAY ...]

Environment Variables:
    MONSI_NETWORK: Event log to read (default: mainnet)
    MONSI_LEDGER_PATH: Directory holding event logs (default: data/eventlog)
    MONSI_HOST / MONSI_PORT: Query API bind address (default: 127.0.0.1:8000)
    MONSI_LOG_LEVEL: Log level (default: INFO)
"""

import argparse
import logging
import re
import sys

import monsi.config as config_module

_OVERLAY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")

_LOG_FORMATS = {
    "simple": "%(message)s",
    "detailed": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
}


def parse_overlay(value: str) -> str:
    """
    Validate an overlay argument and normalise it to lowercase ``0x`` form.

    Raises:
        argparse.ArgumentTypeError: If the value is not 32 bytes of hex.
    """
    if not _OVERLAY_RE.match(value):
        raise argparse.ArgumentTypeError(f"Not a valid overlay: {value!r}")
    digits = value[2:] if value.lower().startswith("0x") else value
    return f"0x{digits.lower()}"


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1, got {number}")
    return number


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or config_module.config.logging.level).upper(),
        format=_LOG_FORMATS.get(config_module.config.logging.format, _LOG_FORMATS["simple"]),
    )


def build_engine(args: argparse.Namespace):
    """Create an engine, attach the log renderer and replay the event log.

    Returns:
        Tuple of (engine, number of events applied).
    """
    from monsi.core.game import GameEngine
    from monsi.ledger import read_events
    from monsi.render import DiagnosticLogger

    engine = GameEngine(config_module.config.game)
    DiagnosticLogger(engine.bus)
    for overlay in getattr(args, "overlays", None) or []:
        engine.highlight_overlay(overlay)

    network = getattr(args, "network", None) or config_module.config.ledger.network
    applied = engine.replay(read_events(network, from_block=getattr(args, "from_block", None)))
    return engine, applied


def cmd_phase(args: argparse.Namespace) -> int:
    """Print the round and phase of a block."""
    from monsi.core.phase import PhaseCalculator
    from monsi.errors import ConfigError

    try:
        phases = PhaseCalculator(config_module.config.game)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    window = phases.window(args.block)
    print(f"Block {args.block}: round {phases.round_string(args.block)}")
    print(f"Phase:  {window.phase.value} ({window.elapsed}/{window.length})")
    print(f"Left in round: {window.left_in_round} blocks")
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    """
    Replay the event log and print player and round summaries.

    Returns:
        0 on success, 1 if the log is corrupt or the configuration invalid
    """
    from monsi.errors import MonsiError
    from monsi.render import (
        PLAYER_HEADER,
        ROUND_HEADER,
        format_table,
        player_rows,
        round_rows,
    )

    try:
        engine, applied = build_engine(args)
    except MonsiError as e:
        print(f"Error replaying event log: {e}", file=sys.stderr)
        return 1

    with engine:
        print(f"Applied {applied} events: {engine.player_count} players, "
              f"{engine.round_count} rounds")
        if engine.round_count:
            print()
            print(format_table(ROUND_HEADER, round_rows(engine)[-args.rounds:]))
        if engine.player_count:
            print()
            print(format_table(PLAYER_HEADER, player_rows(engine)))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify the last event of the log. Returns 1 if it is corrupt."""
    from monsi.ledger import verify_event_log

    network = args.network or config_module.config.ledger.network
    result = verify_event_log(network)
    if result.status == "corrupt":
        print(f"Event log for {network} is corrupt: {result.error_detail}", file=sys.stderr)
        return 1
    if result.status == "empty":
        print(f"Event log for {network} is empty.")
        return 0
    print(f"Event log for {network} OK, last block {result.last_block_no}")
    return 0


def cmd_checkpoint(args: argparse.Namespace) -> int:
    """Print the block to resume the chain sync from."""
    from monsi.ledger import LedgerReadError, resume_block

    network = args.network or config_module.config.ledger.network
    try:
        print(resume_block(network, config_module.config.ledger.start_block))
    except LedgerReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Replay the event log, then serve the query API until interrupted."""
    from monsi.api.server import start_server
    from monsi.errors import MonsiError

    try:
        engine, applied = build_engine(args)
    except MonsiError as e:
        print(f"Error replaying event log: {e}", file=sys.stderr)
        return 1

    print(f"Applied {applied} events, serving {engine.player_count} players")
    host = args.host or config_module.config.server.host
    port = args.port or config_module.config.server.port
    try:
        start_server(engine, host, port)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        engine.close()
    return 0


def _add_log_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--network",
        "-n",
        type=str,
        help=(
            f"Event log to read (default: {config_module.config.ledger.network}, "
            "or MONSI_NETWORK)"
        ),
    )
    parser.add_argument(
        "--overlay",
        "-o",
        dest="overlays",
        action="append",
        type=parse_overlay,
        metavar="OVERLAY",
        help="Overlay address to highlight (repeatable)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="monsi",
        description="Monitor Storage Incentives - replay and inspect the incentives game",
    )
    parser.add_argument("--log-level", type=str, help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    phase_parser = subparsers.add_parser("phase", help="Show the round and phase of a block")
    phase_parser.add_argument("block", type=int, help="Block number")
    phase_parser.set_defaults(func=cmd_phase)

    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay the event log and print summaries",
        description="Rebuild game state from the event log through a fresh engine.",
    )
    _add_log_args(replay_parser)
    replay_parser.add_argument(
        "--from-block", type=int, help="Skip events mined before this block"
    )
    replay_parser.add_argument(
        "--rounds",
        type=positive_int,
        default=10,
        help="Number of recent rounds to print (default: 10)",
    )
    replay_parser.set_defaults(func=cmd_replay)

    verify_parser = subparsers.add_parser("verify", help="Check integrity of the event log")
    verify_parser.add_argument("--network", "-n", type=str)
    verify_parser.set_defaults(func=cmd_verify)

    checkpoint_parser = subparsers.add_parser(
        "checkpoint", help="Print the block to resume the chain sync from"
    )
    checkpoint_parser.add_argument("--network", "-n", type=str)
    checkpoint_parser.set_defaults(func=cmd_checkpoint)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Replay the event log and serve the query API",
    )
    _add_log_args(serve_parser)
    serve_parser.add_argument("--host", type=str, help="Host to bind (default: 127.0.0.1)")
    serve_parser.add_argument("--port", "-p", type=int, help="Port to bind (default: 8000)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
