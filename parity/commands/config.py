"""Configuration commands: `parity config show|init`."""

from pathlib import Path

import toml

from parity.config import GlobalConfig, InvalidSettingError, get_config_path
from parity.modules.utils import print_error, print_info, print_success, print_warning
from .common import load_config


def _config_path(args) -> Path:
    return Path(args.config) if getattr(args, "config", None) else get_config_path()


def handle_config_show(args) -> int:
    """Print the effective configuration as TOML."""
    path = _config_path(args)
    try:
        config = load_config(args)
    except InvalidSettingError as e:
        print_error(f"Invalid configuration in {path}: {e}")
        return 2

    source = str(path) if path.exists() else f"{path} (not found, showing defaults)"
    print_info(f"# {source}")
    print(toml.dumps(config.to_dict()))
    return 0


def handle_config_init(args) -> int:
    """Write a default configuration file."""
    path = _config_path(args)
    if path.exists() and not args.force:
        print_warning(f"{path} already exists (use --force to overwrite)")
        return 1
    if not GlobalConfig().save(path):
        print_error(f"Could not write {path}")
        return 2
    print_success(f"Wrote default configuration to {path}")
    return 0


def handle_config_command(args) -> int:
    subcommand = getattr(args, "config_subcommand", None)

    if subcommand == "show":
        return handle_config_show(args)
    elif subcommand == "init":
        return handle_config_init(args)
    else:
        print_error("No config subcommand specified")
        print("Available subcommands: show, init")
        return 1


def add_config_parser(subparsers):
    config_parser = subparsers.add_parser(
        "config",
        aliases=["cfg"],
        help="Show or initialize configuration"
    )
    config_subparsers = config_parser.add_subparsers(
        dest="config_subcommand",
        help="Config subcommands"
    )
    config_subparsers.add_parser("show", help="Print the effective configuration")
    init_parser = config_subparsers.add_parser("init", help="Write a default config.toml")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file"
    )
    return config_parser
