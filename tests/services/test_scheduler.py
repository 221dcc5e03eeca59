"""Tests for scheduler service lifecycle and job management."""

from __future__ import annotations

from pathlib import Path

import pytest

from seo_sitemap_engine.services.scheduler import SchedulerService


async def _noop_job() -> None:
    return None


@pytest.mark.asyncio
async def test_scheduler_service_registers_and_removes_interval_jobs(
    tmp_path: Path,
) -> None:
    scheduler = SchedulerService(
        enabled=True,
        jobstore_url=f"sqlite:///{tmp_path / 'scheduler-jobs.sqlite'}",
    )

    scheduler.add_interval_job(
        job_id="interval-job",
        func=_noop_job,
        seconds=60,
        name="Interval job",
    )

    await scheduler.start()
    try:
        assert scheduler.running is True
        jobs = scheduler.list_jobs()
        assert [job.job_id for job in jobs] == ["interval-job"]
        assert "interval" in jobs[0].trigger.lower()
        assert jobs[0].name == "Interval job"
        assert jobs[0].next_run_time is not None

        scheduler.add_interval_job(job_id="interval-job", func=_noop_job, seconds=120)
        job = scheduler.get_job("interval-job")
        assert job is not None
        assert "0:02:00" in job.trigger

        assert scheduler.remove_job("interval-job") is True
        assert scheduler.remove_job("interval-job") is False
        assert scheduler.get_job("interval-job") is None
    finally:
        await scheduler.shutdown()

    assert scheduler.running is False


@pytest.mark.asyncio
async def test_scheduler_service_rejects_non_positive_intervals(
    tmp_path: Path,
) -> None:
    scheduler = SchedulerService(
        enabled=True,
        jobstore_url=f"sqlite:///{tmp_path / 'scheduler-interval.sqlite'}",
    )

    with pytest.raises(ValueError, match="greater than zero"):
        scheduler.add_interval_job(job_id="bad", func=_noop_job, seconds=0)


@pytest.mark.asyncio
async def test_scheduler_service_rejects_operations_when_disabled(
    tmp_path: Path,
) -> None:
    scheduler = SchedulerService(
        enabled=False,
        jobstore_url=f"sqlite:///{tmp_path / 'scheduler-disabled.sqlite'}",
    )

    await scheduler.start()

    assert scheduler.running is False
    with pytest.raises(RuntimeError, match="disabled"):
        scheduler.list_jobs()
    with pytest.raises(RuntimeError, match="disabled"):
        scheduler.add_interval_job(job_id="job", func=_noop_job, seconds=60)
