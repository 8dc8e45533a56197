import argparse
import logging
import sys

from generator import RunConfig, run
from ttp import ConstraintViolation, TTPError

logger = logging.getLogger(__name__)


def init_logger(log_file, enable):
    """Send INFO messages to the console and append them to `log_file`.

    Does nothing when logging is disabled.
    """
    if not enable:
        return
    formatter = logging.Formatter("[%(asctime)s][%(levelname)s] %(message)s", datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stdout), logging.FileHandler(log_file, mode="a")]
    root = logging.getLogger()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.INFO)


def build_parser():
    parser = argparse.ArgumentParser(prog="ttpgen", description="Generates TTP schedules with the circle method.")
    parser.add_argument("--input", type=str, required=True, help="Path to the RobinX XML instance file")
    parser.add_argument("--output-solutions", type=str, default="solutions_output",
                        help="Directory to save generated solutions")
    parser.add_argument("--output-permutations", type=str, default="perms_output",
                        help="Directory to save generated permutations")
    parser.add_argument("--permutations", type=int, default=10, help="Number of random permutations to generate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--save", action="store_true", help="Save permutations and solutions to disk")
    parser.add_argument("--log", action="store_true", help="Enable logging to console and log file")
    parser.add_argument("--log-file", type=str, default="log.txt", help="Log file used with --log")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes building schedules")
    parser.add_argument("--verify", action="store_true", help="Validate every schedule after construction")
    parser.add_argument("--histogram", type=str, default=None, help="Write distance histogram counts to this CSV")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    return parser


def config_from_args(args):
    return RunConfig(
        instance_path=args.input,
        solutions_dir=args.output_solutions,
        permutations_dir=args.output_permutations,
        count=args.permutations,
        seed=args.seed,
        save=args.save,
        log=args.log,
        log_file=args.log_file,
        workers=args.workers,
        verify=args.verify,
        histogram_path=args.histogram,
        progress=not args.no_progress,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    init_logger(config.log_file, config.log)
    logger.info("Logger initialized")

    try:
        run(config)
    except ConstraintViolation:
        raise
    except TTPError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("Framework execution completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
