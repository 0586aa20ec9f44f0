"""
CLI argument parsing for Parity.
"""
import argparse
import importlib
from typing import Iterable, Optional, Sequence

from .utils import _filter_suppressed_help, Colors, styled_print, print_subheader
from .. import __version__


class StyledArgumentParser(argparse.ArgumentParser):
    """Custom ArgumentParser that provides styled help output."""

    def __init__(self, *args, show_banner=False, **kwargs):
        """Initialize with optional banner flag."""
        super().__init__(*args, **kwargs)
        self.show_banner = show_banner

    def print_help(self, file=None):
        """Override print_help to use our styled formatter."""
        # Only show banner for main parser
        if self.show_banner:
            import pyfiglet

            ascii_art = pyfiglet.figlet_format("PARITY", font="slant")
            for line in ascii_art.split('\n'):
                if line.strip():
                    styled_print(line, Colors.BRIGHT_CYAN, Colors.BOLD, 0)
            print()

        lines = _filter_suppressed_help(self.format_help()).split('\n')

        if self.show_banner:
            print_subheader("COMMAND OPTIONS")

        for line in lines:
            if not line.strip():
                continue
            elif line.startswith('usage:'):
                styled_print(line, Colors.BRIGHT_YELLOW, Colors.BOLD, 0)
            elif line.startswith('options:') or line.startswith('positional arguments:'):
                styled_print(line, Colors.BRIGHT_CYAN, Colors.BOLD, 0)
            elif line.startswith('  -'):
                styled_print(line, Colors.BRIGHT_YELLOW, None, 0)
            elif line.startswith('    '):
                styled_print(line, Colors.BRIGHT_WHITE, None, 0)
            else:
                styled_print(line, Colors.BRIGHT_GREEN, None, 0)

        if self.show_banner:
            print()
            styled_print(f" parity v{__version__} ", Colors.BRIGHT_MAGENTA, None, 0)


_COMMAND_SPECS = (
    ("run", "parity.commands.run", "add_run_parser"),
    ("replay", "parity.commands.failures", "add_replay_parser"),
    ("minimize", "parity.commands.failures", "add_minimize_parser"),
    ("failures", "parity.commands.failures", "add_failures_parser"),
    ("config", "parity.commands.config", "add_config_parser"),
    ("browse", "parity.commands.browse", "add_browse_parser"),
)

COMMAND_NAMES = tuple(spec[0] for spec in _COMMAND_SPECS)


def _register_command_parsers(
    subparsers: argparse._SubParsersAction,
    commands_to_load: Optional[Iterable[str]],
) -> None:
    commands = set(commands_to_load) if commands_to_load is not None else None

    for command, module_path, func_name in _COMMAND_SPECS:
        if commands is not None and command not in commands:
            continue
        module = importlib.import_module(module_path)
        getattr(module, func_name)(subparsers)


def create_main_parser(
    *,
    commands_to_load: Optional[Sequence[str]] = None,
    show_banner: bool = True,
) -> argparse.ArgumentParser:
    """Create the main argument parser for Parity."""
    parser = StyledArgumentParser(
        prog="parity",
        description="Parity - differential testing for a source-to-source translator\n\n"
                    "Runs generated programs through a reference runtime and a\n"
                    "translate-then-run pipeline, records every divergence and\n"
                    "shrinks it to a minimal reproduction.",
        formatter_class=argparse.RawTextHelpFormatter,
        show_banner=show_banner,
        allow_abbrev=False
    )
    parser.add_argument('--version', action='version',
                        version=f'parity {__version__}',
                        help='Show version information')
    parser.add_argument('-c', '--config', default=None,
                        help='Path to config.toml (default: $PARITY_HOME/config.toml)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    _register_command_parsers(subparsers, commands_to_load)
    return parser


def normalize_command_aliases(args: argparse.Namespace) -> argparse.Namespace:
    """Normalize command aliases to main command names."""
    command_alias_map = {
        'r': 'run',
        'rp': 'replay',
        'm': 'minimize',
        'f': 'failures',
        'cfg': 'config',
        'b': 'browse',
    }
    args.command = command_alias_map.get(args.command, args.command)

    if args.command == 'failures' and getattr(args, 'failures_subcommand', None):
        args.failures_subcommand = {'ls': 'list', 'sh': 'show'}.get(
            args.failures_subcommand, args.failures_subcommand
        )
    return args
