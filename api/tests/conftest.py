from __future__ import annotations

import os
from datetime import datetime
from typing import Any
from uuid import uuid4

os.environ.setdefault("HM_OTEL_ENABLED", "false")
os.environ.setdefault("HM_EXPIRATION_SWEEP_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from hiremistri.core.config import get_settings
from hiremistri.main import app
from hiremistri.services.errors import ConflictError
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.live import get_connection_hub
from hiremistri.services.notifications import NotificationService, get_dispatcher
from hiremistri.services.repository import USER_COLUMNS, get_repository, utcnow

IDENTITY_FIELDS = ("client_id", "client_email", "worker_email", "worker_name", "worker_phone")


class FakeRepository:
    """In-memory stand-in for PostgresRepository; dict insertion order is creation order."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.jobs: dict[str, dict[str, Any]] = {}
        self.applications: dict[str, dict[str, Any]] = {}
        self.notes: dict[str, dict[str, Any]] = {}
        self.messages: dict[str, dict[str, Any]] = {}
        self.notifications: dict[str, dict[str, Any]] = {}
        self.saved_jobs: dict[str, dict[str, Any]] = {}

    async def close(self) -> None:
        return None

    # ---- users ----

    async def get_user(self, uid: str) -> dict[str, Any] | None:
        user = self.users.get(uid)
        return dict(user) if user else None

    async def sync_user(self, *, uid: str, email: str | None) -> dict[str, Any]:
        if uid not in self.users:
            self._check_email(uid, email)
            now = utcnow()
            user = {key: None for key in USER_COLUMNS}
            user.update(uid=uid, email=email, skills=[], is_available=True, role="worker")
            user.update(created_at=now, updated_at=now)
            self.users[uid] = user
        return dict(self.users[uid])

    async def upsert_user_profile(
        self,
        *,
        uid: str,
        set_fields: dict[str, Any],
        unset_fields: set[str],
    ) -> dict[str, Any]:
        self._check_email(uid, set_fields.get("email"))
        now = utcnow()
        user = self.users.get(uid)
        if user is None:
            user = {key: None for key in USER_COLUMNS}
            user.update(uid=uid, skills=[], is_available=True, role="worker", created_at=now)
            self.users[uid] = user
        for key in unset_fields:
            if key not in set_fields:
                user[key] = None
        user.update(set_fields)
        user["updated_at"] = now
        return dict(user)

    def _check_email(self, uid: str, email: str | None) -> None:
        if not email:
            return
        for other in self.users.values():
            if other["uid"] != uid and other.get("email") == email:
                raise ConflictError("Duplicate key (email must be unique)")

    # ---- jobs ----

    async def create_job(self, fields: dict[str, Any]) -> dict[str, Any]:
        now = utcnow()
        job = {
            "id": str(uuid4()),
            "client_id": None,
            "client_email": None,
            "title": None,
            "description": None,
            "category": None,
            "skills": [],
            "budget": None,
            "location": None,
            "lat": None,
            "lng": None,
            "status": "active",
            "expires_at": None,
            "auto_close_enabled": False,
            "created_at": now,
            "updated_at": now,
        }
        job.update(fields)
        self.jobs[job["id"]] = job
        return dict(job)

    async def get_job(self, job_id: str) -> dict[str, Any] | None:
        job = self.jobs.get(job_id)
        return dict(job) if job else None

    async def list_jobs(
        self,
        *,
        client_id: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[dict[str, Any]]:
        rows = [
            dict(job)
            for job in reversed(self.jobs.values())
            if (not client_id or job["client_id"] == client_id) and (not status or job["status"] == status)
        ]
        return rows[offset : offset + limit]

    async def update_job(
        self,
        *,
        job_id: str,
        changes: dict[str, Any],
        expected_status: str | None = None,
    ) -> dict[str, Any] | None:
        job = self.jobs.get(job_id)
        if job is None or (expected_status is not None and job["status"] != expected_status):
            return None
        job.update(changes)
        job["updated_at"] = utcnow()
        return dict(job)

    async def delete_job(self, job_id: str) -> bool:
        if job_id not in self.jobs:
            return False
        if any(app["job_id"] == job_id and app["status"] == "accepted" for app in self.applications.values()):
            raise ConflictError("cannot delete a job with an accepted application; complete or cancel it first")
        for application_id in [key for key, app in self.applications.items() if app["job_id"] == job_id]:
            del self.applications[application_id]
        del self.jobs[job_id]
        return True

    async def expire_due_jobs(self, *, now: datetime, limit: int) -> list[dict[str, Any]]:
        due = [
            job
            for job in self.jobs.values()
            if job["auto_close_enabled"]
            and job["expires_at"] is not None
            and job["expires_at"] <= now
            and job["status"] not in {"completed", "cancelled"}
        ]
        due.sort(key=lambda job: job["expires_at"])
        expired = []
        for job in due[:limit]:
            job["status"] = "completed"
            job["updated_at"] = now
            expired.append(dict(job))
        return expired

    async def list_recommendable_jobs(self, user_id: str) -> list[dict[str, Any]]:
        applied = {app["job_id"] for app in self.applications.values() if app["worker_id"] == user_id}
        return [dict(job) for job in self.jobs.values() if job["status"] == "active" and job["id"] not in applied]

    # ---- applications ----

    async def get_application(self, application_id: str) -> dict[str, Any] | None:
        application = self.applications.get(application_id)
        return dict(application) if application else None

    async def get_application_for_pair(self, *, job_id: str, worker_id: str) -> dict[str, Any] | None:
        for application in self.applications.values():
            if application["job_id"] == job_id and application["worker_id"] == worker_id:
                return dict(application)
        return None

    async def upsert_application(
        self,
        *,
        job_id: str,
        worker_id: str,
        fields: dict[str, Any],
        now: datetime,
    ) -> tuple[dict[str, Any], bool]:
        existing = next(
            (app for app in self.applications.values() if app["job_id"] == job_id and app["worker_id"] == worker_id),
            None,
        )
        if existing is None:
            application = {
                "id": str(uuid4()),
                "job_id": job_id,
                "worker_id": worker_id,
                "proposal_text": fields.get("proposal_text"),
                "status": "pending",
                "created_at": now,
                "updated_at": now,
            }
            for key in IDENTITY_FIELDS:
                application[key] = fields.get(key) or None
            self.applications[application["id"]] = application
            return dict(application), True

        if existing["status"] != "pending":
            raise ConflictError("proposal can no longer be edited")
        for key in IDENTITY_FIELDS:
            if fields.get(key):
                existing[key] = fields[key]
        if "proposal_text" in fields:
            existing["proposal_text"] = fields["proposal_text"]
        existing["updated_at"] = now
        return dict(existing), False

    async def update_application_status(
        self,
        *,
        application_id: str,
        status: str,
        now: datetime,
    ) -> tuple[dict[str, Any], str] | None:
        application = self.applications.get(application_id)
        if application is None:
            return None
        previous = application["status"]
        application["status"] = status
        application["updated_at"] = now
        return dict(application), previous

    async def delete_application(self, *, application_id: str, worker_id: str) -> dict[str, Any] | None:
        application = self.applications.get(application_id)
        if (
            application is None
            or application["worker_id"] != worker_id
            or application["status"] in {"accepted", "completed"}
        ):
            return None
        return dict(self.applications.pop(application_id))

    async def list_applications_for_job(self, job_id: str) -> list[dict[str, Any]]:
        results = []
        for application in reversed(self.applications.values()):
            if application["job_id"] != job_id:
                continue
            item = dict(application)
            user = self.users.get(application["worker_id"]) or {}
            item["profile"] = {
                key: user.get(key) for key in ("display_name", "first_name", "last_name", "email", "phone")
            }
            results.append(item)
        return results

    async def list_applications_for_worker(self, worker_id: str) -> list[dict[str, Any]]:
        results = []
        for application in reversed(self.applications.values()):
            if application["worker_id"] != worker_id:
                continue
            item = dict(application)
            job = self.jobs.get(application["job_id"]) or {}
            item["job"] = {key: job.get(key) for key in ("title", "location", "budget", "category")}
            results.append(item)
        return results

    # ---- application notes ----

    async def add_application_note(self, *, application_id: str, author_id: str, text: str) -> dict[str, Any]:
        note = {
            "id": str(uuid4()),
            "application_id": application_id,
            "author_id": author_id,
            "text": text,
            "created_at": utcnow(),
        }
        self.notes[note["id"]] = note
        return dict(note)

    async def list_application_notes(self, application_id: str) -> list[dict[str, Any]]:
        return [dict(note) for note in self.notes.values() if note["application_id"] == application_id]

    async def get_application_note(self, note_id: str) -> dict[str, Any] | None:
        note = self.notes.get(note_id)
        return dict(note) if note else None

    async def delete_application_note(self, note_id: str) -> bool:
        return self.notes.pop(note_id, None) is not None

    # ---- messages ----

    async def create_message(
        self,
        *,
        conversation_id: str,
        sender_id: str,
        recipient_id: str,
        job_id: str | None,
        text: str,
    ) -> dict[str, Any]:
        message = {
            "id": str(uuid4()),
            "conversation_id": conversation_id,
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "job_id": job_id,
            "text": text,
            "read": False,
            "read_at": None,
            "created_at": utcnow(),
        }
        self.messages[message["id"]] = message
        return dict(message)

    async def list_conversations(self, user_id: str) -> list[dict[str, Any]]:
        latest: dict[str, dict[str, Any]] = {}
        unread: dict[str, int] = {}
        for message in self.messages.values():
            if user_id not in {message["sender_id"], message["recipient_id"]}:
                continue
            conversation = message["conversation_id"]
            latest.pop(conversation, None)
            latest[conversation] = message
            if message["recipient_id"] == user_id and not message["read"]:
                unread[conversation] = unread.get(conversation, 0) + 1
        return [
            {
                "conversation_id": conversation,
                "last_message": dict(message),
                "unread_count": unread.get(conversation, 0),
            }
            for conversation, message in reversed(latest.items())
        ]

    async def list_conversation_messages(self, *, conversation_id: str, user_id: str) -> list[dict[str, Any]]:
        return [
            dict(message)
            for message in self.messages.values()
            if message["conversation_id"] == conversation_id
            and user_id in {message["sender_id"], message["recipient_id"]}
        ]

    async def mark_conversation_read(
        self,
        *,
        conversation_id: str,
        reader_id: str,
        now: datetime,
    ) -> list[dict[str, Any]]:
        flipped = []
        for message in self.messages.values():
            if message["conversation_id"] == conversation_id and message["recipient_id"] == reader_id:
                if not message["read"]:
                    message["read"] = True
                    message["read_at"] = now
                    flipped.append({"id": message["id"], "sender_id": message["sender_id"]})
        return flipped

    # ---- notifications ----

    async def create_notification(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: str,
        job_id: str | None,
        link: str | None,
    ) -> dict[str, Any]:
        notification = {
            "id": str(uuid4()),
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": type,
            "job_id": job_id,
            "link": link,
            "read": False,
            "created_at": utcnow(),
        }
        self.notifications[notification["id"]] = notification
        return dict(notification)

    async def list_notifications(self, *, user_id: str, unread_only: bool, limit: int) -> list[dict[str, Any]]:
        rows = [
            dict(row)
            for row in reversed(self.notifications.values())
            if row["user_id"] == user_id and not (unread_only and row["read"])
        ]
        return rows[:limit]

    async def get_notification(self, notification_id: str) -> dict[str, Any] | None:
        row = self.notifications.get(notification_id)
        return dict(row) if row else None

    async def mark_notification_read(self, notification_id: str) -> dict[str, Any] | None:
        row = self.notifications.get(notification_id)
        if row is None:
            return None
        row["read"] = True
        return dict(row)

    async def mark_all_notifications_read(self, user_id: str) -> int:
        updated = 0
        for row in self.notifications.values():
            if row["user_id"] == user_id and not row["read"]:
                row["read"] = True
                updated += 1
        return updated

    async def delete_notification(self, notification_id: str) -> bool:
        return self.notifications.pop(notification_id, None) is not None

    # ---- saved jobs ----

    async def save_job(self, *, user_id: str, job_id: str) -> dict[str, Any]:
        for row in self.saved_jobs.values():
            if row["user_id"] == user_id and row["job_id"] == job_id:
                return dict(row)
        row = {"id": str(uuid4()), "user_id": user_id, "job_id": job_id, "saved_at": utcnow()}
        self.saved_jobs[row["id"]] = row
        return dict(row)

    async def unsave_job(self, *, user_id: str, job_id: str) -> bool:
        for key, row in list(self.saved_jobs.items()):
            if row["user_id"] == user_id and row["job_id"] == job_id:
                del self.saved_jobs[key]
                return True
        return False

    async def list_saved_jobs(self, user_id: str) -> list[dict[str, Any]]:
        return [
            {**row, "job": dict(self.jobs[row["job_id"]])}
            for row in reversed(self.saved_jobs.values())
            if row["user_id"] == user_id and row["job_id"] in self.jobs
        ]


class RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list[Any] = []

    def enqueue(self, event: Any) -> None:
        self.events.append(event)


class FakeSocket:
    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        self.frames.append(data)

    def events(self, name: str) -> list[dict[str, Any]]:
        return [frame["data"] for frame in self.frames if frame["event"] == name]


@pytest.fixture
def fake_repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def notification_service(fake_repo: FakeRepository, recording_dispatcher: RecordingDispatcher) -> NotificationService:
    return NotificationService(fake_repo, recording_dispatcher, IdentityResolver(fake_repo))


@pytest.fixture
def fake_socket_factory():
    return FakeSocket


@pytest.fixture
def api_client(fake_repo: FakeRepository) -> TestClient:
    get_settings.cache_clear()
    get_connection_hub.cache_clear()
    get_dispatcher.cache_clear()
    app.dependency_overrides[get_repository] = lambda: fake_repo

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    get_connection_hub.cache_clear()
    get_dispatcher.cache_clear()
    get_settings.cache_clear()
