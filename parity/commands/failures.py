"""Stored-failure commands: `parity replay`, `parity minimize`, `parity failures`."""

from parity.campaign import StoreError, format_failure_log, minimization_summary
from parity.config import InvalidSettingError
from parity.modules.utils import (
    Colors,
    print_error,
    print_info,
    print_side_by_side,
    print_subheader,
    print_success,
    print_warning,
    styled_print,
)
from .common import load_config, open_harness, open_store


def _load_record(args):
    """Return (config, store, record) or print the problem and return None."""
    try:
        config = load_config(args)
    except InvalidSettingError as e:
        print_error(f"Invalid configuration: {e}")
        return None
    store = open_store(config, getattr(args, "output", None))
    try:
        record = store.load(args.failure_id)
    except StoreError as e:
        print_error(str(e))
        return None
    return config, store, record


def handle_replay(args) -> int:
    """Re-run a stored failure.

    Returns:
        Exit code (0 still reproduces, 1 no longer reproduces, 2 error)
    """
    loaded = _load_record(args)
    if loaded is None:
        return 2
    config, store, record = loaded

    source = record.source
    if args.minimized:
        if record.minimized_source is None:
            print_error(f"{record.id} has no minimized program")
            return 2
        source = record.minimized_source

    with open_harness(config) as harness:
        verdict = harness.detector.compare(source)
        reproduces = harness.minimizer.policy.matches(record.verdict, verdict)

    print_info(f"Recorded: {record.verdict.kind.value} ({record.verdict.describe()})")
    print_info(f"Replayed: {verdict.kind.value} ({verdict.describe()})")
    if verdict.reference_output is not None and verdict.candidate_output is not None:
        print_side_by_side("Reference", list(verdict.reference_output),
                           "Candidate", list(verdict.candidate_output))
    if reproduces:
        print_warning(f"{record.id} still reproduces ({harness.minimizer.policy.value} policy)")
        return 0
    print_success(f"{record.id} no longer reproduces")
    return 1


def handle_minimize(args) -> int:
    """Minimize a stored failure and save fail_<seed>.min.py."""
    loaded = _load_record(args)
    if loaded is None:
        return 2
    config, store, record = loaded
    if args.max_passes is not None:
        if args.max_passes < 1:
            print_error("--max-passes must be at least 1")
            return 2
        config.minimizer.max_passes = args.max_passes

    with open_harness(config) as harness:
        minimizer = harness.minimizer
        if not minimizer.can_minimize(record.verdict):
            print_warning(f"{record.id} has verdict {record.verdict.kind.value}, which is not minimized")
            return 1
        print_info(f"Minimizing {record.id} ({record.verdict.describe()})...")
        result = minimizer.minimize_record(record)

    if not result.reproduced:
        print_warning(f"{record.id} no longer reproduces; nothing to minimize")
        return 1

    path = store.save_minimized(record, result.minimized, minimization_summary(result))
    state = "converged" if result.converged else "stopped at pass cap"
    print_success(
        f"Removable units {result.units_before} -> {result.units_after} "
        f"({result.accepted} removals, {result.trials} trials, {result.passes} passes, {state})"
    )
    print_info(f"Saved to {path}")
    return 0


def handle_failures_list(args) -> int:
    try:
        config = load_config(args)
    except InvalidSettingError as e:
        print_error(f"Invalid configuration: {e}")
        return 2
    store = open_store(config, args.output)
    records = store.list()
    if not records:
        print_info(f"No failures in {store.output_dir}")
        return 0

    styled_print(f"{'ID':<18} {'VERDICT':<22} {'MIN':<4} TIMESTAMP", Colors.BRIGHT_CYAN, Colors.BOLD)
    for record in records:
        minimized = "yes" if record.minimized_source is not None else "-"
        print(f"{record.id:<18} {record.verdict.kind.value:<22} {minimized:<4} {record.timestamp}")
    print()
    print_info(f"{len(records)} failure(s) in {store.output_dir}")
    return 0


def handle_failures_show(args) -> int:
    loaded = _load_record(args)
    if loaded is None:
        return 2
    _, store, record = loaded

    print_subheader(record.id)
    print(format_failure_log(record))
    print_subheader("Program")
    print(record.source.text)
    if record.minimized_source is not None:
        print_subheader("Minimized program")
        print(record.minimized_source.text)
    if record.artifact is not None:
        print_info(f"Translated artifact: {store.path(record.id, '.js')}")
    return 0


def handle_failures_command(args) -> int:
    subcommand = getattr(args, "failures_subcommand", None)

    if subcommand == "list":
        return handle_failures_list(args)
    elif subcommand == "show":
        return handle_failures_show(args)
    else:
        print_error("No failures subcommand specified")
        print("Available subcommands: list, show")
        return 1


def _add_output_argument(parser):
    parser.add_argument(
        "--output",
        default=None,
        help="Failure directory (default: campaign.output_dir)"
    )


def add_replay_parser(subparsers):
    replay_parser = subparsers.add_parser(
        "replay",
        aliases=["rp"],
        help="Re-run a stored failure and report whether it still reproduces"
    )
    replay_parser.add_argument("failure_id", help="Failure ID (fail_<seed>) or seed")
    replay_parser.add_argument(
        "--minimized",
        action="store_true",
        help="Replay the minimized program instead of the original"
    )
    _add_output_argument(replay_parser)
    return replay_parser


def add_minimize_parser(subparsers):
    minimize_parser = subparsers.add_parser(
        "minimize",
        aliases=["m"],
        help="Minimize a stored failure"
    )
    minimize_parser.add_argument("failure_id", help="Failure ID (fail_<seed>) or seed")
    minimize_parser.add_argument(
        "--max-passes",
        type=int,
        default=None,
        help="Outer pass cap (default: minimizer.max_passes, 50)"
    )
    _add_output_argument(minimize_parser)
    return minimize_parser


def add_failures_parser(subparsers):
    """Add failures command parser.

    Args:
        subparsers: Subparsers from main argument parser
    """
    failures_parser = subparsers.add_parser(
        "failures",
        aliases=["f"],
        help="Inspect stored failures"
    )
    failures_subparsers = failures_parser.add_subparsers(
        dest="failures_subcommand",
        help="Failures subcommands"
    )

    list_parser = failures_subparsers.add_parser("list", aliases=["ls"], help="List stored failures")
    _add_output_argument(list_parser)

    show_parser = failures_subparsers.add_parser("show", aliases=["sh"], help="Show one failure")
    show_parser.add_argument("failure_id", help="Failure ID (fail_<seed>) or seed")
    _add_output_argument(show_parser)

    return failures_parser
