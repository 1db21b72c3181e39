import argparse
import logging
import sys
import uuid

from redis import Redis

from branchcov.constants import DEFAULT_REDIS_URL
from branchcov.errors import CoverageContractError, HookConfigError, TraceError
from branchcov.hooks import load_hook_config, missing_branch_hooks
from branchcov.recorder import CoverageRecorder
from branchcov.redis_table import RedisCoverageTable
from branchcov.replay import replay_trace

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def check_hook_config(path: str) -> bool:
    try:
        selections = load_hook_config(path)
    except (OSError, HookConfigError) as e:
        logger.error(f"Failed to load hook config {path}: {e}")
        return False

    if not selections:
        logger.error(f"Hook config {path} selects no hooks")
        return False

    ok = True
    for selection in selections:
        missing = missing_branch_hooks(selection)
        if missing:
            logger.error(
                f"Hook config {path} line {selection.line} ({selection.output_dir}) is missing branch hooks: "
                f"{', '.join(missing)}"
            )
            ok = False
    return ok


def run(args: argparse.Namespace) -> int:
    if args.hooks and not check_hook_config(args.hooks):
        return 1

    table = None
    # A caller-supplied run id may be shared with other workers, which own its teardown
    owns_run = False
    if args.redis_url:
        owns_run = args.run_id is None
        run_id = args.run_id or uuid.uuid4().hex
        table = RedisCoverageTable(Redis.from_url(args.redis_url), run_id)
        logger.info(f"Using shared coverage table for run {run_id}")

    recorder = CoverageRecorder(table)
    try:
        for trace in args.traces:
            logger.info(f"Replaying {trace}")
            with open(trace, "rb") as f:
                replay_trace(f, recorder, strict=args.strict)
        recorder.results(sys.stdout)
    except (OSError, TraceError, CoverageContractError) as e:
        logger.error(f"Replay failed: {e}")
        return 1
    finally:
        if owns_run:
            table.discard()
    return 0


def main(argv: list[str] | None = None) -> int:
    prsr = argparse.ArgumentParser("branchcov-replay", description="Replay branch hook traces and print coverage")
    prsr.add_argument("traces", nargs="+", help="JSON-lines trace files of branch hook calls")
    prsr.add_argument("--hooks", help="Hook-selection config to check for branch hooks")
    prsr.add_argument("--strict", action="store_true", default=False, help="Fail on the first bad event")
    prsr.add_argument(
        "--redis-url",
        nargs="?",
        const=DEFAULT_REDIS_URL,
        default=None,
        help=f"Share the coverage table through Redis (default {DEFAULT_REDIS_URL})",
    )
    prsr.add_argument(
        "--run-id",
        help="Join a shared run; its table is left for the run owner to discard (random and discarded at exit if omitted)",
    )
    prsr.add_argument("--log-level", default="WARNING", type=str.upper, choices=LOG_LEVELS)
    args = prsr.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
