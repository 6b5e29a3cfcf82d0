from __future__ import annotations

from datetime import datetime
import logging
from typing import Any

from hiremistri.services import email_templates
from hiremistri.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.notifications import JOB_EXPIRED, JOB_STATUS, NotificationService, run_fan_out
from hiremistri.services.repository import JOB_CONTENT_COLUMNS, utcnow

logger = logging.getLogger(__name__)

JOB_STATUSES = {"active", "on-hold", "cancelled", "completed"}
TERMINAL_JOB_STATUSES = {"cancelled", "completed"}
JOB_TRANSITIONS: dict[str, set[str]] = {
    "active": {"on-hold", "cancelled", "completed"},
    "on-hold": {"active", "cancelled"},
    "cancelled": set(),
    "completed": set(),
}


def validate_job_transition(*, from_status: str, to_status: str) -> None:
    if to_status not in JOB_STATUSES:
        raise ValidationError(f"invalid job status: {to_status}")
    if to_status not in JOB_TRANSITIONS.get(from_status, set()):
        raise ValidationError(f"invalid job status transition: {from_status} -> {to_status}")


def normalize_skills(skills: Any) -> list[str]:
    if not isinstance(skills, (list, tuple)):
        return []
    return [str(skill).strip() for skill in skills if str(skill).strip()]


class JobService:
    def __init__(
        self,
        repository: Any,
        notifications: NotificationService,
        resolver: IdentityResolver,
        *,
        sweep_batch_size: int = 500,
    ) -> None:
        self.repository = repository
        self.notifications = notifications
        self.resolver = resolver
        self.sweep_batch_size = max(1, sweep_batch_size)

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        client_id = str(payload.get("client_id") or "").strip()
        title = str(payload.get("title") or "").strip()
        if not client_id:
            raise ValidationError("client_id is required")
        if not title:
            raise ValidationError("title is required")

        fields = {key: payload[key] for key in JOB_CONTENT_COLUMNS if payload.get(key) is not None}
        fields["title"] = title
        fields["skills"] = normalize_skills(payload.get("skills"))
        fields["auto_close_enabled"] = bool(payload.get("auto_close_enabled", False))
        fields["client_id"] = client_id

        client_email = str(payload.get("client_email") or "").strip().lower()
        if not client_email:
            client_email = (await self.resolver.resolve(client_id)).email
        fields["client_email"] = client_email or None

        job = await self.repository.create_job(fields)
        logger.info("job created id=%s client_id=%s", job["id"], client_id)
        return job

    async def get(self, job_id: str) -> dict[str, Any]:
        job = await self.repository.get_job(job_id)
        if not job:
            raise NotFoundError("job not found")
        return job

    async def list_jobs(
        self,
        *,
        client_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if status is not None and status not in JOB_STATUSES:
            raise ValidationError(f"invalid job status: {status}")
        return await self.repository.list_jobs(client_id=client_id, status=status, limit=limit, offset=offset)

    async def update(self, job_id: str, changes: dict[str, Any], *, actor_id: str | None = None) -> dict[str, Any]:
        job = await self.get(job_id)
        if actor_id and actor_id != job["client_id"]:
            raise ForbiddenError("only the job owner can update this job")

        update = {key: changes[key] for key in JOB_CONTENT_COLUMNS if key in changes}
        if "skills" in update:
            update["skills"] = normalize_skills(update["skills"])
        if "title" in update:
            update["title"] = str(update["title"] or "").strip()
            if not update["title"]:
                raise ValidationError("title cannot be empty")
        if "auto_close_enabled" in update:
            update["auto_close_enabled"] = bool(update["auto_close_enabled"])

        from_status = job["status"]
        to_status = changes.get("status")
        status_changed = to_status is not None and to_status != from_status
        if status_changed:
            validate_job_transition(from_status=from_status, to_status=to_status)
            update["status"] = to_status

        if not update:
            return job

        row = await self.repository.update_job(
            job_id=job_id,
            changes=update,
            expected_status=from_status if status_changed else None,
        )
        if not row:
            if await self.repository.get_job(job_id) is None:
                raise NotFoundError("job not found")
            raise ConflictError("job status changed concurrently; reload and retry")

        if status_changed:
            logger.info("job status changed id=%s %s -> %s", job_id, from_status, to_status)
            await run_fan_out("job_status", self._notify_status_change(row), job_id=job_id)
        return row

    async def delete(self, job_id: str, *, actor_id: str | None = None) -> None:
        job = await self.get(job_id)
        if actor_id and actor_id != job["client_id"]:
            raise ForbiddenError("only the job owner can delete this job")
        if not await self.repository.delete_job(job_id):
            raise NotFoundError("job not found")
        logger.info("job deleted id=%s", job_id)

    async def expire_due_jobs(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Close every auto-closing job past its expiry, then notify each owner once.

        Each batch is flipped in one statement before its notifications go out, so a
        repeated run finds nothing left to close. Batches repeat until one comes
        back short.
        """
        current = now or utcnow()
        expired: list[dict[str, Any]] = []
        while True:
            batch = await self.repository.expire_due_jobs(now=current, limit=self.sweep_batch_size)
            for job in batch:
                await run_fan_out("job_expired", self._notify_expired(job), job_id=job["id"])
            expired.extend(batch)
            if len(batch) < self.sweep_batch_size:
                break
        if expired:
            logger.info("expiration sweep closed jobs: %s", len(expired))
        return expired

    async def _notify_status_change(self, job: dict[str, Any]) -> None:
        identity = await self.resolver.resolve(job["client_id"])
        subject, html = email_templates.job_status(name=identity.name, job_title=job["title"], status=job["status"])
        await self.notifications.notify(
            user_id=job["client_id"],
            title="Job status updated",
            message=f'Your job "{job["title"]}" is now {job["status"]}.',
            type=JOB_STATUS,
            job_id=job["id"],
            link=f"/jobs/{job['id']}",
            email=job.get("client_email") or identity.email,
            email_subject=subject,
            email_html=html,
        )

    async def _notify_expired(self, job: dict[str, Any]) -> None:
        subject, html = email_templates.job_expired(name="", job_title=job["title"])
        await self.notifications.notify(
            user_id=job["client_id"],
            title="Job expired",
            message=f'Your job "{job["title"]}" reached its expiration date and was closed.',
            type=JOB_EXPIRED,
            job_id=job["id"],
            link=f"/jobs/{job['id']}",
            email=job.get("client_email"),
            email_subject=subject,
            email_html=html,
        )
