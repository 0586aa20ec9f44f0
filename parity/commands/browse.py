"""`parity browse`: textual failure browser."""

from parity.config import InvalidSettingError
from parity.modules.utils import print_error
from .common import load_config, open_store


def handle_browse(args) -> int:
    try:
        config = load_config(args)
    except InvalidSettingError as e:
        print_error(f"Invalid configuration: {e}")
        return 2

    from parity.tui.app import FailureBrowserApp

    FailureBrowserApp(open_store(config, args.output)).run()
    return 0


def add_browse_parser(subparsers):
    browse_parser = subparsers.add_parser(
        "browse",
        aliases=["b"],
        help="Browse stored failures in a terminal UI"
    )
    browse_parser.add_argument(
        "--output",
        default=None,
        help="Failure directory (default: campaign.output_dir)"
    )
    return browse_parser
