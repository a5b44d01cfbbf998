# -*- coding: utf-8 -*-
"""
backend/tests/shared/scheduler/test_scheduler_service.py

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import pytest

from app.shared.scheduler import SchedulerService, get_scheduler, reset_scheduler


async def _noop():
    return None


@pytest.fixture
async def scheduler():
    service = SchedulerService()
    yield service
    service.shutdown(wait=False)


@pytest.mark.asyncio
async def test_start_and_shutdown(scheduler):
    assert scheduler.is_running is False

    scheduler.start()
    scheduler.start()

    assert scheduler.is_running is True

    scheduler.shutdown(wait=False)

    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_add_and_inspect_job(scheduler):
    scheduler.start()

    job_id = scheduler.add_interval_job(_noop, "sweep", minutes=5)

    assert job_id == "sweep"
    status = scheduler.get_job_status("sweep")
    assert status["name"] == "sweep"
    assert status["next_run"] is not None
    assert [j["id"] for j in scheduler.get_jobs()] == ["sweep"]


@pytest.mark.asyncio
async def test_add_replaces_existing_job(scheduler):
    scheduler.start()
    scheduler.add_interval_job(_noop, "sweep", minutes=5)
    scheduler.add_interval_job(_noop, "sweep", minutes=1)

    assert len(scheduler.get_jobs()) == 1
    assert "0:01:00" in scheduler.get_job_status("sweep")["trigger"]


@pytest.mark.asyncio
async def test_remove_job(scheduler):
    scheduler.start()
    scheduler.add_interval_job(_noop, "sweep", seconds=30)

    assert scheduler.remove_job("sweep") is True
    assert scheduler.remove_job("sweep") is False
    assert scheduler.get_job_status("sweep") is None


def test_process_scheduler_singleton():
    first = get_scheduler()

    assert get_scheduler() is first

    reset_scheduler()

    assert get_scheduler() is not first
    reset_scheduler()

# Fin del archivo backend/tests/shared/scheduler/test_scheduler_service.py
