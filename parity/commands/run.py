"""Campaign command: `parity run`."""

import logging

from parity.campaign import CampaignRunner, GeneratorError
from parity.config import InvalidSettingError
from parity.modules.utils import (
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from .common import build_generator, load_config, open_harness, open_store

logger = logging.getLogger(__name__)


def add_run_parser(subparsers):
    """Add run command parser.

    Args:
        subparsers: Subparsers from main argument parser
    """
    run_parser = subparsers.add_parser(
        "run",
        aliases=["r"],
        help="Run a differential testing campaign"
    )
    run_parser.add_argument(
        "--minutes",
        type=float,
        default=None,
        help="Duration to run in minutes (default: campaign.minutes, 1)"
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Master seed; drawn at random when omitted"
    )
    run_parser.add_argument(
        "--output",
        default=None,
        help="Output directory for failures (default: campaign.output_dir, failures)"
    )
    run_parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Stop after N iterations even if time remains"
    )
    run_parser.add_argument(
        "--no-minimize",
        action="store_true",
        help="Persist failures without minimizing them"
    )
    return run_parser


def handle_run(args) -> int:
    """Run a campaign until the deadline.

    Returns:
        Exit code (0 when the campaign ran to completion, whatever it found)
    """
    try:
        config = load_config(args)
    except InvalidSettingError as e:
        print_error(f"Invalid configuration: {e}")
        return 2

    campaign = config.campaign
    minutes = args.minutes if args.minutes is not None else campaign.minutes
    if minutes <= 0:
        print_error("--minutes must be positive")
        return 2
    master_seed = args.seed if args.seed is not None else campaign.master_seed
    max_iterations = args.max_iterations if args.max_iterations is not None else campaign.max_iterations
    minimize = campaign.minimize and not args.no_minimize

    try:
        generator = build_generator(config)
    except GeneratorError as e:
        print_error(f"Cannot create program generator: {e}")
        return 2

    store = open_store(config, args.output)
    store.output_dir.mkdir(parents=True, exist_ok=True)

    with open_harness(config) as harness:
        runner = CampaignRunner(
            harness.detector,
            generator,
            store,
            minimizer=harness.minimizer,
            minutes=minutes,
            master_seed=master_seed,
            max_iterations=max_iterations,
            minimize=minimize,
        )
        print_info(f"Output directory: {store.output_dir.resolve()}")
        report = runner.run()

    print_header("CAMPAIGN FINISHED")
    print_info(f"Master seed: {report.master_seed}")
    print_info(f"Started: {report.started_at}  Finished: {report.finished_at}")
    if report.failures:
        print_warning(f"{report.summary()} ({report.minimized} minimized, {report.errors} errors)")
        for record_id in report.failure_ids:
            print_warning(f"  {store.path(record_id, '.py')}", 2)
    else:
        print_success(report.summary())
    return 0
