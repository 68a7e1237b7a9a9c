import pytest
from unittest.mock import AsyncMock, patch
from core.exceptions import AuthenticationError
from ingestion.scheduler import ExportScheduler
from schemas.export import RunSummary


@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = ExportScheduler(AsyncMock(), interval_minutes=30)
    assert scheduler.scheduler is not None
    assert scheduler.interval_minutes == 30


@pytest.mark.asyncio
async def test_scheduler_job_execution():
    summary = RunSummary()
    run_export = AsyncMock(return_value=summary)
    scheduler = ExportScheduler(run_export, interval_minutes=5)

    await scheduler.run_export_job()

    run_export.assert_awaited_once()
    assert scheduler.last_summary is summary


@pytest.mark.asyncio
async def test_scheduler_job_failure_is_logged():
    run_export = AsyncMock(side_effect=AuthenticationError("bad credentials"))
    scheduler = ExportScheduler(run_export, interval_minutes=5)

    with patch("ingestion.scheduler.logger") as logger:
        await scheduler.run_export_job()

    assert logger.error.called
    assert scheduler.last_summary is None


@pytest.mark.asyncio
async def test_scheduler_registers_single_job():
    scheduler = ExportScheduler(AsyncMock(), interval_minutes=15)

    scheduler.start()
    try:
        jobs = scheduler.scheduler.get_jobs()
        assert [job.id for job in jobs] == ["export_job"]
        assert jobs[0].max_instances == 1
    finally:
        scheduler.stop()
