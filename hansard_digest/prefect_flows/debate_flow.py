"""
Prefect flow for processing Hansard debates.

Resolves the unit of work, runs the debate pipeline against the configured
database and providers, and returns the run summary counts. An unreachable
records API or datastore fails the flow run. A second flow refreshes the
members table.

Responsibility: Orchestration of the debate processing pipeline
"""

from datetime import date
from typing import Any, Dict, Optional

from prefect import flow, task, get_run_logger

from ..adapters.hansard_adapter import HansardAdapter
from ..db.session import Database
from ..models.analysis import AIProcessMode
from ..models.results import RunSummary
from ..orchestration.debate_pipeline import DebatePipeline
from ..services.member_sync import sync_members


def summarize(summary: RunSummary) -> Dict[str, Any]:
    return {
        **summary.as_counts(),
        "index_failures": summary.index_failures,
        "duration_seconds": round(summary.duration_seconds, 2),
        "outcomes": [outcome.model_dump(mode="json") for outcome in summary.outcomes],
    }


@task(name="resolve_sitting_date", retries=2, retry_delay_seconds=30)
async def resolve_sitting_date_task() -> str:
    """Most recent sitting day across both houses, as an ISO date."""
    logger_task = get_run_logger()
    adapter = HansardAdapter()
    try:
        sitting_date = await adapter.fetch_last_sitting_date()
    finally:
        await adapter.close()
    logger_task.info("Most recent sitting day: %s", sitting_date)
    return sitting_date.isoformat()


@task(name="process_debates")
async def process_debates_task(
    sitting_date: Optional[str] = None,
    debate_id: Optional[str] = None,
    ai_process: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the debate pipeline for one date or one debate.

    Args:
        sitting_date: ISO date of the sitting day
        debate_id: External id of a single debate
        ai_process: Limit AI analysis to one generator

    Returns:
        Summary dictionary with counts and per-debate outcomes
    """
    logger_task = get_run_logger()
    mode = AIProcessMode(ai_process) if ai_process else None

    database = Database()
    await database.initialize()
    pipeline = DebatePipeline.from_settings(database, ai_process_mode=mode)
    try:
        summary = await pipeline.run(
            sitting_date=date.fromisoformat(sitting_date) if sitting_date else None,
            debate_id=debate_id,
        )
    finally:
        await pipeline.close()
        await database.close()

    result = summarize(summary)
    logger_task.info(
        "Processed debates: success=%s failed=%s skipped=%s index_failures=%s",
        result["success"], result["failed"], result["skipped"], result["index_failures"]
    )
    return result


@flow(name="process_debates_flow")
async def process_debates_flow(
    date: Optional[str] = None,
    debate_id: Optional[str] = None,
    ai_process: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Process one sitting day (default: the most recent) or a single debate.

    Args:
        date: ISO sitting date
        debate_id: External id of a single debate
        ai_process: One of summary, questions, topics, keypoints,
            divisions, comments

    Returns:
        Result dictionary with counts
    """
    logger_flow = get_run_logger()
    logger_flow.info("Starting debate processing flow")

    if not date and not debate_id:
        date = await resolve_sitting_date_task()

    result = await process_debates_task(sitting_date=date, debate_id=debate_id, ai_process=ai_process)

    if result["failed"] and not result["success"]:
        logger_flow.warning("Every processed debate failed (%s)", result["failed"])
    logger_flow.info("Completed debate processing flow: %s", {k: v for k, v in result.items() if k != "outcomes"})
    return result


@task(name="sync_members", retries=1, retry_delay_seconds=60)
async def sync_members_task() -> int:
    logger_task = get_run_logger()
    adapter = HansardAdapter()
    database = Database()
    await database.initialize()
    try:
        written = await sync_members(adapter, database)
    finally:
        await adapter.close()
        await database.close()
    logger_task.info("Synced %s members", written)
    return written


@flow(name="sync_members_flow")
async def sync_members_flow() -> Dict[str, Any]:
    """Refresh the members table used for speaker attribution."""
    written = await sync_members_task()
    return {"members_synced": written}
