from __future__ import annotations

import asyncio
from datetime import timedelta

from hiremistri.services.identity import IdentityResolver
from hiremistri.services.jobs import JobService
from hiremistri.services.repository import utcnow
from hiremistri.services.scheduler import PeriodicTask


def _job_service(fake_repo, notification_service) -> JobService:
    return JobService(fake_repo, notification_service, IdentityResolver(fake_repo), sweep_batch_size=10)


def test_sweep_closes_each_due_job_once(fake_repo, notification_service, recording_dispatcher) -> None:
    service = _job_service(fake_repo, notification_service)
    now = utcnow()

    async def scenario() -> tuple[list, list]:
        due = await fake_repo.create_job(
            {"client_id": "c1", "title": "Due", "expires_at": now - timedelta(hours=1), "auto_close_enabled": True}
        )
        on_hold = await fake_repo.create_job(
            {"client_id": "c2", "title": "Paused", "expires_at": now - timedelta(days=2), "auto_close_enabled": True}
        )
        await fake_repo.update_job(job_id=on_hold["id"], changes={"status": "on-hold"})
        await fake_repo.create_job(
            {"client_id": "c3", "title": "Manual", "expires_at": now - timedelta(hours=1), "auto_close_enabled": False}
        )
        await fake_repo.create_job(
            {"client_id": "c4", "title": "Future", "expires_at": now + timedelta(days=1), "auto_close_enabled": True}
        )
        cancelled = await fake_repo.create_job(
            {"client_id": "c5", "title": "Gone", "expires_at": now - timedelta(hours=1), "auto_close_enabled": True}
        )
        await fake_repo.update_job(job_id=cancelled["id"], changes={"status": "cancelled"})

        first = await service.expire_due_jobs(now)
        second = await service.expire_due_jobs(now)
        assert (await fake_repo.get_job(due["id"]))["status"] == "completed"
        return first, second

    first, second = asyncio.run(scenario())

    assert sorted(job["title"] for job in first) == ["Due", "Paused"]
    assert second == []
    expired = [event for event in recording_dispatcher.events if event.notification["type"] == "job_expired"]
    assert sorted(event.user_id for event in expired) == ["c1", "c2"]


def test_overlapping_sweep_runs_are_skipped(fake_repo, notification_service, recording_dispatcher) -> None:
    service = _job_service(fake_repo, notification_service)
    release = asyncio.Event()

    async def slow_sweep():
        await release.wait()
        return await service.expire_due_jobs()

    async def scenario():
        await fake_repo.create_job(
            {
                "client_id": "c1",
                "title": "Due",
                "expires_at": utcnow() - timedelta(minutes=5),
                "auto_close_enabled": True,
            }
        )
        task = PeriodicTask("expiration_sweep", 3600, slow_sweep)
        first = asyncio.create_task(task.run_once())
        await asyncio.sleep(0)
        assert task.in_flight
        skipped = await task.run_once()
        release.set()
        return await first, skipped, task.skipped_runs

    closed, skipped, skipped_runs = asyncio.run(scenario())

    assert [job["title"] for job in closed] == ["Due"]
    assert skipped is None
    assert skipped_runs == 1
    assert len(recording_dispatcher.events) == 1


def test_sweep_drains_a_backlog_larger_than_one_batch(fake_repo, notification_service, recording_dispatcher) -> None:
    service = JobService(fake_repo, notification_service, IdentityResolver(fake_repo), sweep_batch_size=2)
    now = utcnow()

    async def scenario() -> tuple[list, list]:
        for index in range(5):
            await fake_repo.create_job(
                {
                    "client_id": f"c{index}",
                    "title": f"Job {index}",
                    "expires_at": now - timedelta(hours=index + 1),
                    "auto_close_enabled": True,
                }
            )
        first = await service.expire_due_jobs(now)
        second = await service.expire_due_jobs(now)
        return first, second

    first, second = asyncio.run(scenario())

    assert len(first) == 5
    assert second == []
    assert {job["status"] for job in fake_repo.jobs.values()} == {"completed"}
    assert sorted(event.user_id for event in recording_dispatcher.events) == [f"c{index}" for index in range(5)]
