from __future__ import annotations

import logging
from typing import Any

from hiremistri.services import email_templates
from hiremistri.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hiremistri.services.identity import IdentityResolver, profile_display_name
from hiremistri.services.notifications import (
    APPLICATION_ACCEPTED,
    APPLICATION_REJECTED,
    APPLICATION_WITHDRAWN,
    NEW_APPLICATION,
    NotificationService,
    run_fan_out,
)
from hiremistri.services.repository import utcnow

logger = logging.getLogger(__name__)

APPLICATION_STATUSES = {"pending", "accepted", "rejected", "completed"}
LOCKED_APPLICATION_STATUSES = {"accepted", "completed"}
WORKER_IDENTITY_FIELDS = ("worker_email", "worker_name", "worker_phone")


class ProposalService:
    def __init__(self, repository: Any, notifications: NotificationService, resolver: IdentityResolver) -> None:
        self.repository = repository
        self.notifications = notifications
        self.resolver = resolver

    async def submit(self, job_id: str, worker_id: str, payload: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Create or edit the worker's single proposal on a job.

        Returns the stored application and whether this call inserted it.
        """
        job_id = _text(job_id)
        worker_id = _text(worker_id)
        if not job_id:
            raise ValidationError("job_id is required")
        if not worker_id:
            raise ValidationError("worker_id is required")

        job = await self.repository.get_job(job_id)
        if not job:
            raise NotFoundError("job not found")

        existing = await self.repository.get_application_for_pair(job_id=job_id, worker_id=worker_id)
        if existing and existing["status"] != "pending":
            raise ConflictError("proposal can no longer be edited")

        fields: dict[str, Any] = {}
        client_id = _text(payload.get("client_id")) or _text(job.get("client_id"))
        client_email = _email(payload.get("client_email")) or _email(job.get("client_email"))
        if not client_email and client_id and not (existing and existing.get("client_email")):
            client_email = (await self.resolver.resolve(client_id)).email
        fields["client_id"] = client_id
        fields["client_email"] = client_email

        incoming = {
            "worker_email": _email(payload.get("worker_email")),
            "worker_name": _text(payload.get("worker_name")),
            "worker_phone": _text(payload.get("worker_phone")),
        }
        missing = [
            key for key in WORKER_IDENTITY_FIELDS if not incoming[key] and not (existing and existing.get(key))
        ]
        if missing:
            identity = await self.resolver.resolve(worker_id)
            backfill = {
                "worker_email": identity.email,
                "worker_name": identity.name,
                "worker_phone": identity.phone,
            }
            for key in missing:
                incoming[key] = backfill[key]
        fields.update(incoming)

        if "proposal_text" in payload and payload["proposal_text"] is not None:
            fields["proposal_text"] = _text(payload["proposal_text"])

        application, created = await self.repository.upsert_application(
            job_id=job_id,
            worker_id=worker_id,
            fields=fields,
            now=utcnow(),
        )
        logger.info(
            "proposal %s id=%s job_id=%s worker_id=%s",
            "created" if created else "updated",
            application["id"],
            job_id,
            worker_id,
        )
        if created and application.get("client_id"):
            await run_fan_out(
                "new_application",
                self._notify_new_application(application, job),
                application_id=application["id"],
            )
        return application, created

    async def get(self, application_id: str) -> dict[str, Any]:
        application = await self.repository.get_application(application_id)
        if not application:
            raise NotFoundError("application not found")
        return application

    async def transition_status(
        self,
        application_id: str,
        status: str,
        *,
        actor_id: str | None = None,
    ) -> dict[str, Any]:
        # any of the four statuses is reachable from any other
        target = _text(status).lower()
        if target not in APPLICATION_STATUSES:
            raise ValidationError("Invalid status")

        existing = await self.get(application_id)
        if actor_id and actor_id not in {existing.get("client_id"), existing.get("worker_id")}:
            raise ForbiddenError("only the job owner or the applicant can change this application")

        result = await self.repository.update_application_status(
            application_id=application_id,
            status=target,
            now=utcnow(),
        )
        if result is None:
            raise NotFoundError("application not found")
        application, previous = result

        if previous != target and target in {"accepted", "rejected"}:
            logger.info("application %s id=%s", target, application_id)
            await run_fan_out(target, self._notify_decision(application), application_id=application_id)
        return application

    async def withdraw(self, application_id: str, worker_id: str) -> dict[str, Any]:
        existing = await self.get(application_id)
        if not worker_id or existing["worker_id"] != worker_id:
            raise ForbiddenError("only the applicant can withdraw this application")
        if existing["status"] in LOCKED_APPLICATION_STATUSES:
            raise ValidationError(f"cannot withdraw an application that is {existing['status']}")

        deleted = await self.repository.delete_application(application_id=application_id, worker_id=worker_id)
        if not deleted:
            raise ConflictError("application changed while withdrawing; reload and retry")

        logger.info("application withdrawn id=%s worker_id=%s", application_id, worker_id)
        if deleted.get("client_id"):
            await run_fan_out("application_withdrawn", self._notify_withdrawn(deleted), application_id=application_id)
        return deleted

    async def list_for_job(self, job_id: str) -> list[dict[str, Any]]:
        rows = await self.repository.list_applications_for_job(job_id)
        results = []
        for row in rows:
            item = dict(row)
            profile = item.pop("profile", None) or {}
            item["worker_name"] = profile_display_name(profile) or item.get("worker_name") or "Unknown Worker"
            item["worker_email"] = profile.get("email") or item.get("worker_email") or "No email"
            item["worker_phone"] = profile.get("phone") or item.get("worker_phone") or "No phone"
            results.append(item)
        return results

    async def list_for_worker(self, worker_id: str) -> list[dict[str, Any]]:
        if not _text(worker_id):
            raise ValidationError("worker_id is required")
        rows = await self.repository.list_applications_for_worker(worker_id)
        results = []
        for row in rows:
            item = dict(row)
            job = item.pop("job", None) or {}
            item["title"] = job.get("title") or "Untitled Job"
            item["location"] = job.get("location") or "N/A"
            item["budget"] = job.get("budget")
            item["category"] = job.get("category") or ""
            item["status"] = (item.get("status") or "pending").lower()
            results.append(item)
        return results

    # ---- notes ----

    async def add_note(self, application_id: str, *, author_id: str, text: str) -> dict[str, Any]:
        body = _text(text)
        if not body:
            raise ValidationError("note text is required")
        await self._load_for_participant(application_id, author_id)
        return await self.repository.add_application_note(
            application_id=application_id,
            author_id=author_id,
            text=body,
        )

    async def list_notes(self, application_id: str, *, user_id: str) -> list[dict[str, Any]]:
        await self._load_for_participant(application_id, user_id)
        return await self.repository.list_application_notes(application_id)

    async def delete_note(self, application_id: str, note_id: str, *, user_id: str) -> None:
        await self._load_for_participant(application_id, user_id)
        note = await self.repository.get_application_note(note_id)
        if not note or note["application_id"] != application_id:
            raise NotFoundError("note not found")
        if note["author_id"] != user_id:
            raise ForbiddenError("only the author can delete this note")
        if not await self.repository.delete_application_note(note_id):
            raise NotFoundError("note not found")

    async def _load_for_participant(self, application_id: str, user_id: str) -> dict[str, Any]:
        if not _text(user_id):
            raise ValidationError("user_id is required")
        application = await self.get(application_id)
        if user_id not in {application.get("client_id"), application.get("worker_id")}:
            raise ForbiddenError("not a participant of this application")
        return application

    # ---- fan-out ----

    async def _job_title(self, job_id: str) -> str:
        job = await self.repository.get_job(job_id)
        return (job or {}).get("title") or "your job"

    async def _notify_new_application(self, application: dict[str, Any], job: dict[str, Any]) -> None:
        worker_name = application.get("worker_name") or "A worker"
        subject, html = email_templates.application_received(
            client_name="",
            job_title=job["title"],
            worker_name=worker_name,
        )
        await self.notifications.notify(
            user_id=application["client_id"],
            title="New application",
            message=f'{worker_name} applied to "{job["title"]}".',
            type=NEW_APPLICATION,
            job_id=application["job_id"],
            link=f"/jobs/{application['job_id']}/applications",
            email=application.get("client_email"),
            email_subject=subject,
            email_html=html,
        )

    async def _notify_decision(self, application: dict[str, Any]) -> None:
        status = application["status"]
        job_title = await self._job_title(application["job_id"])
        subject, html = email_templates.application_status(
            worker_name=application.get("worker_name") or "",
            job_title=job_title,
            status=status,
        )
        await self.notifications.notify(
            user_id=application["worker_id"],
            title="Application accepted" if status == "accepted" else "Application rejected",
            message=f'Your application for "{job_title}" was {status}.',
            type=APPLICATION_ACCEPTED if status == "accepted" else APPLICATION_REJECTED,
            job_id=application["job_id"],
            link="/my-applications",
            email=application.get("worker_email"),
            email_subject=subject,
            email_html=html,
        )

    async def _notify_withdrawn(self, application: dict[str, Any]) -> None:
        job_title = await self._job_title(application["job_id"])
        worker_name = application.get("worker_name") or "A worker"
        subject, html = email_templates.application_withdrawn(
            client_name="",
            job_title=job_title,
            worker_name=worker_name,
        )
        await self.notifications.notify(
            user_id=application["client_id"],
            title="Application withdrawn",
            message=f'{worker_name} withdrew their application for "{job_title}".',
            type=APPLICATION_WITHDRAWN,
            job_id=application["job_id"],
            link=f"/jobs/{application['job_id']}/applications",
            email=application.get("client_email"),
            email_subject=subject,
            email_html=html,
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _email(value: Any) -> str:
    return _text(value).lower()
