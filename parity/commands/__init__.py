"""
Commands package for Parity CLI commands.
"""

from .run import add_run_parser, handle_run
from .failures import (
    add_replay_parser,
    add_minimize_parser,
    add_failures_parser,
    handle_replay,
    handle_minimize,
    handle_failures_command,
)
from .config import add_config_parser, handle_config_command
from .browse import add_browse_parser, handle_browse

__all__ = [
    'add_run_parser',
    'handle_run',
    'add_replay_parser',
    'add_minimize_parser',
    'add_failures_parser',
    'handle_replay',
    'handle_minimize',
    'handle_failures_command',
    'add_config_parser',
    'handle_config_command',
    'add_browse_parser',
    'handle_browse',
]
