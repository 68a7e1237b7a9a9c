"""
Command line entry point: export every cube in the catalog to disk
"""

import asyncio
import sys
import logging
from datetime import datetime
from typing import Optional, Sequence

import click

from core.config import settings
from core.context import ExecutionContext
from core.exceptions import AuthenticationError, ConfigurationError, ExportException
from core.logging import setup_logging
from ingestion.checkpoint import parse_timestamp
from ingestion.client import APIClient, RetryPolicy
from ingestion.runner import ExportRunner
from ingestion.scheduler import ExportScheduler
from schemas.export import RunSummary

logger = logging.getLogger(__name__)

EXIT_CUBES_FAILED = 1
EXIT_AUTH_FAILED = 3


async def run_once(
    context: ExecutionContext,
    retry_policy: RetryPolicy,
    output_dir: str,
    start_timestamp: str,
    page_size: int,
    include: Sequence[str],
    exclude: Sequence[str]
) -> RunSummary:
    """Export all selected cubes once"""
    async with APIClient(context, retry_policy=retry_policy) as client:
        runner = ExportRunner(
            client=client,
            output_root=output_dir,
            default_timestamp=start_timestamp,
            page_size=page_size,
            transactional_cubes=settings.TRANSACTIONAL_CUBES,
            include=include,
            exclude=exclude
        )
        return await runner.run()


async def run_scheduled(interval_minutes: int, **run_kwargs):
    """Export every ``interval_minutes`` until interrupted"""
    scheduler = ExportScheduler(lambda: run_once(**run_kwargs), interval_minutes)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


def validate_timestamp(ctx, param, value):
    try:
        parse_timestamp(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO 8601 timestamp: {value}")
    return value


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--email", default=settings.API_EMAIL, required=True, help="Account email.")
@click.option("--password", default=settings.API_PASSWORD, required=True, help="Account password.")
@click.option(
    "--start", "start_timestamp",
    default=settings.DEFAULT_START_TIMESTAMP,
    show_default=True,
    callback=validate_timestamp,
    help="Checkpoint used by incremental cubes that have none yet."
)
@click.option("--base-url", default=settings.API_BASE_URL, show_default=True)
@click.option(
    "--output-dir",
    default=settings.OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False)
)
@click.option("--page-size", default=settings.PAGE_SIZE, show_default=True, type=click.IntRange(min=1))
@click.option("--include", multiple=True, default=settings.INCLUDE_CUBES, help="Only export these cubes.")
@click.option("--exclude", multiple=True, default=settings.EXCLUDE_CUBES, help="Skip these cubes.")
@click.option(
    "--max-attempts",
    default=settings.RETRY_MAX_ATTEMPTS,
    type=click.IntRange(min=1),
    help="Give up after this many 'Continue wait' answers (default: never)."
)
@click.option("--retry-delay", default=settings.RETRY_DELAY, show_default=True, type=click.FloatRange(min=0))
@click.option(
    "--interval",
    default=settings.EXPORT_INTERVAL_MINUTES,
    type=click.IntRange(min=1),
    help="Repeat the export every N minutes."
)
@click.option("--log-level", default=settings.LOG_LEVEL, show_default=True)
def main(
    email: str,
    password: str,
    start_timestamp: str,
    base_url: str,
    output_dir: str,
    page_size: int,
    include: Sequence[str],
    exclude: Sequence[str],
    max_attempts: Optional[int],
    retry_delay: float,
    interval: Optional[int],
    log_level: str
):
    """Export reporting cubes as paginated JSON files."""
    setup_logging(log_level)

    try:
        context = ExecutionContext.from_settings(email=email, password=password, base_url=base_url)
    except ConfigurationError as e:
        logger.error(e.message)
        sys.exit(EXIT_AUTH_FAILED)

    run_kwargs = dict(
        context=context,
        retry_policy=RetryPolicy(
            max_attempts=max_attempts,
            delay=retry_delay,
            backoff=settings.RETRY_BACKOFF
        ),
        output_dir=output_dir,
        start_timestamp=start_timestamp,
        page_size=page_size,
        include=list(include),
        exclude=list(exclude)
    )

    if interval:
        try:
            asyncio.run(run_scheduled(interval, **run_kwargs))
        except KeyboardInterrupt:
            logger.info("Interrupted, exiting")
        return

    started = datetime.now()
    try:
        summary = asyncio.run(run_once(**run_kwargs))
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e.message}")
        sys.exit(EXIT_AUTH_FAILED)
    except ExportException as e:
        logger.error(f"Export run failed: {e}")
        sys.exit(EXIT_CUBES_FAILED)

    for result in summary.failed:
        logger.error(f"{result.cube}: {result.error.get('message') if result.error else 'failed'}")

    logger.info(f"Finished in {(datetime.now() - started).total_seconds():.1f}s")

    if summary.failed:
        sys.exit(EXIT_CUBES_FAILED)


if __name__ == "__main__":
    main()
