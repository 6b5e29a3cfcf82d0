from datetime import datetime
from typing import Literal

from pydantic import BaseModel

ApplicationStatus = Literal["pending", "accepted", "rejected", "completed"]


class ApplicationSubmitRequest(BaseModel):
    job_id: str
    worker_id: str
    client_id: str | None = None
    client_email: str | None = None
    worker_email: str | None = None
    worker_name: str | None = None
    worker_phone: str | None = None
    proposal_text: str | None = None


class ApplicationStatusRequest(BaseModel):
    status: str
    actor_id: str | None = None


class ApplicationOut(BaseModel):
    id: str
    job_id: str
    worker_id: str
    client_id: str | None = None
    client_email: str | None = None
    worker_email: str | None = None
    worker_name: str | None = None
    worker_phone: str | None = None
    proposal_text: str | None = None
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime


class WorkerApplicationOut(ApplicationOut):
    title: str
    location: str
    budget: float | None = None
    category: str = ""


class NoteCreateRequest(BaseModel):
    author_id: str
    text: str


class NoteOut(BaseModel):
    id: str
    application_id: str
    author_id: str
    text: str
    created_at: datetime
