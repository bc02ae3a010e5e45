"""
Command-line interface for the debate processing pipeline.

Usage:
    hansard-digest --latest
    hansard-digest --date 2024-03-05
    hansard-digest --debate-id 6B3F7C8E-1234-4C1B-9F0B-ABCDEF012345 --ai-process summary
    hansard-digest --date 2024-03-05 --no-vector
    hansard-digest --sync-members --create-tables
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import List, Optional

from dotenv import load_dotenv

# Environment must be loaded before settings are built
load_dotenv(".env")

from ..adapters.hansard_adapter import HansardAdapter
from ..config import settings
from ..db.session import Database
from ..exceptions import UpstreamUnavailableError
from ..models.analysis import AIProcessMode
from ..models.results import ProcessingStatus
from ..orchestration.debate_pipeline import DebatePipeline
from ..services.member_sync import sync_members

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.app.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


async def run_pipeline(
    sitting_date: Optional[date],
    debate_id: Optional[str],
    latest: bool,
    ai_process: Optional[AIProcessMode],
    vector: bool,
    create_tables: bool = False,
) -> int:
    """
    Run one unit of work and print the summary.

    Returns:
        Process exit code
    """
    database = Database()
    await database.initialize()
    if create_tables:
        await database.create_tables()

    pipeline = DebatePipeline.from_settings(
        database,
        ai_process_mode=ai_process,
        enable_vector_index=vector and settings.processing.enable_vector_index,
    )

    try:
        summary = await pipeline.run(sitting_date=sitting_date, debate_id=debate_id, latest=latest)
    except UpstreamUnavailableError as e:
        logger.error("Run aborted: %s", e)
        print(f"\n❌ Run aborted: {e}\n")
        return 1
    finally:
        await pipeline.close()
        await database.close()

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Success: {summary.success}")
    print(f"Failed: {summary.failed}")
    print(f"Skipped: {summary.skipped}")
    print(f"Index failures: {summary.index_failures}")
    print(f"Duration: {summary.duration_seconds:.2f}s")

    failures = [o for o in summary.outcomes if o.status == ProcessingStatus.FAILED]
    if failures:
        print("\n⚠️  Failures:")
        for i, outcome in enumerate(failures[:10], 1):
            print(f"  {i}. {outcome.ext_id} [{outcome.reason.value}] {outcome.message}")
        if len(failures) > 10:
            print(f"  ... and {len(failures) - 10} more")
    print("=" * 60 + "\n")
    return 0


async def run_member_sync(create_tables: bool = False) -> int:
    """Refresh the members table from the Hansard member search."""
    database = Database()
    await database.initialize()
    if create_tables:
        await database.create_tables()

    adapter = HansardAdapter()
    try:
        written = await sync_members(adapter, database)
    except UpstreamUnavailableError as e:
        logger.error("Member sync aborted: %s", e)
        print(f"\n❌ Member sync aborted: {e}\n")
        return 1
    finally:
        await adapter.close()
        await database.close()

    print(f"\n✅ Synced {written} members\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hansard-digest",
        description="Process Hansard debates: classify, analyse, score and store",
    )

    unit = parser.add_mutually_exclusive_group()
    unit.add_argument(
        "--date",
        type=date.fromisoformat,
        help="Sitting date to process (YYYY-MM-DD), both houses"
    )
    unit.add_argument(
        "--debate-id",
        help="External id of a single debate"
    )
    unit.add_argument(
        "--latest",
        action="store_true",
        help="Process the most recent sitting day (default)"
    )
    unit.add_argument(
        "--sync-members",
        action="store_true",
        help="Refresh the members table instead of processing debates"
    )

    parser.add_argument(
        "--ai-process",
        choices=[mode.value for mode in AIProcessMode],
        help="Only run one AI generator and keep other stored AI fields"
    )
    parser.add_argument(
        "--no-vector",
        action="store_true",
        help="Skip the weekly vector index"
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing database tables before running"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if args.sync_members:
        sys.exit(asyncio.run(run_member_sync(create_tables=args.create_tables)))

    exit_code = asyncio.run(
        run_pipeline(
            sitting_date=args.date,
            debate_id=args.debate_id,
            latest=args.latest,
            ai_process=AIProcessMode(args.ai_process) if args.ai_process else None,
            vector=not args.no_vector,
            create_tables=args.create_tables,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
