#!/usr/bin/env python3
"""
Parity - differential testing CLI

This is the main entry point for the parity command.
"""
import logging
from typing import Optional, Sequence

from .modules.cli_parser import create_main_parser, normalize_command_aliases

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the Parity CLI."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    args = normalize_command_aliases(args)
    configure_logging(args.verbose)

    from parity.commands import (
        handle_run,
        handle_replay,
        handle_minimize,
        handle_failures_command,
        handle_config_command,
        handle_browse,
    )

    handlers = {
        'run': handle_run,
        'replay': handle_replay,
        'minimize': handle_minimize,
        'failures': handle_failures_command,
        'config': handle_config_command,
        'browse': handle_browse,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return handler(args)
    except KeyboardInterrupt:
        logging.getLogger(__name__).warning("Interrupted")
        return 130
