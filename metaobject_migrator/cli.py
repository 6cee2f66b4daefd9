"""Command line interface for the metaobject migrator."""

import argparse
import logging
import sys

from dotenv import load_dotenv

from .models.config import ConfigurationError, MigrationConfig
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)

COMMAND_PHASES = {
    "extract": ["extract"],
    "sort": ["sort"],
    "definitions": ["definitions"],
    "metaobjects": ["metaobjects"],
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per phase."""
    parser = argparse.ArgumentParser(
        description="Metaobject Migrator - Copy metaobject definitions and metaobjects between Shopify stores"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--env-file", help="Path to a .env file with store credentials")
    common.add_argument("--snapshot-dir", help="Directory holding store snapshots")
    common.add_argument("--store-name", help="Snapshot name (defaults to the source store subdomain)")
    common.add_argument("--output-dir", help="Directory for migration reports")
    common.add_argument("--dry-run", action="store_true", help="Log mutations without sending them")
    common.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("extract", parents=[common], help="Snapshot the source store")
    subparsers.add_parser("sort", parents=[common], help="Write the definition dependency order")
    subparsers.add_parser("definitions", parents=[common], help="Create definitions in the destination")
    subparsers.add_parser("metaobjects", parents=[common], help="Upsert metaobjects in the destination")

    run_parser = subparsers.add_parser("run", parents=[common], help="Run every phase in order")
    run_parser.add_argument("--skip-extract", action="store_true", help="Reuse the existing snapshot")

    return parser


def load_config(args) -> MigrationConfig:
    """Load credentials from the environment, applying command line overrides."""
    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    return MigrationConfig.from_env(
        snapshot_dir=args.snapshot_dir,
        store_name=args.store_name,
        output_dir=args.output_dir,
        dry_run=args.dry_run or None,
    )


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = load_config(args)
        logger.info(f"Using snapshot '{config.snapshot_store_name}' in {config.snapshot_dir}")
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(2)

    try:
        orchestrator = MigrationOrchestrator(config)
        if args.command == "run":
            result = orchestrator.run_migration(skip_extract=args.skip_extract)
        else:
            result = orchestrator.run_phases(COMMAND_PHASES[args.command])
    except Exception as e:
        logger.exception(f"Migration aborted: {e}")
        sys.exit(1)

    print_summary(result)


def print_summary(result):
    """Print a run summary to stdout."""
    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" + (" (DRY RUN)" if result.dry_run else ""))
    print("=" * 60)
    print(f"Status: {result.status.value}")
    for step in result.steps:
        print(
            f"  {step.name}: {step.status.value} "
            f"({step.records_succeeded}/{step.records_processed} succeeded, "
            f"{step.records_failed} failed)"
        )
    print(f"Records Processed: {result.total_records_processed}")
    print(f"Succeeded: {result.total_records_succeeded}")
    print(f"Failed: {result.total_records_failed}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")


if __name__ == "__main__":
    main()
