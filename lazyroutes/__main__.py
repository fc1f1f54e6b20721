import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .core.config import load_config
from .core.errors import MigrationError
from .core.migration import run_migration

load_dotenv()

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Per-node resolution chatter is only useful when debugging the checker
    if log_level.upper() != "DEBUG":
        logging.getLogger("lazyroutes.core.program").setLevel(logging.WARNING)


def main(argv=None) -> int:
    """Main entry point for the standalone routes migration."""
    parser = argparse.ArgumentParser(
        description="Convert Angular routes using standalone components to lazy loading"
    )
    parser.add_argument(
        "--root",
        type=str,
        default=os.getcwd(),
        help="Project root (default: current directory)"
    )
    parser.add_argument(
        "--path",
        type=str,
        default=".",
        help="Directory, relative to the root, whose files are migrated"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (default: lazyroutes.yaml in the project root)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print a diff instead of writing files"
    )
    parser.add_argument(
        "--include-tests",
        action="store_true",
        help="Also migrate *.spec.ts / *.test.ts files"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LAZYROUTES_LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            project_root=Path(args.root),
        )
        if args.include_tests:
            config.include_tests = True
        report = run_migration(args.root, args.path, config=config, dry_run=args.dry_run)
    except MigrationError as e:
        logger.error(str(e))
        return 1

    if args.dry_run:
        for diff in report.diffs.values():
            sys.stdout.write(diff)
        return 0

    logger.info("Automated migration step has finished!")
    logger.info("IMPORTANT! Please verify manually that your application builds and behaves as expected.")
    logger.info("See https://angular.dev/reference/migrations/standalone-routes for more information.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
