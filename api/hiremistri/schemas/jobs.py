from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

JobStatus = Literal["active", "on-hold", "cancelled", "completed"]


class JobCreateRequest(BaseModel):
    client_id: str
    client_email: str | None = None
    title: str
    description: str | None = None
    category: str | None = None
    skills: list[str] = Field(default_factory=list)
    budget: float | None = None
    location: str | None = None
    lat: float | None = None
    lng: float | None = None
    expires_at: datetime | None = None
    auto_close_enabled: bool = False


class JobPatchRequest(BaseModel):
    client_id: str | None = None
    status: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    skills: list[str] | None = None
    budget: float | None = None
    location: str | None = None
    lat: float | None = None
    lng: float | None = None
    expires_at: datetime | None = None
    auto_close_enabled: bool | None = None


class JobOut(BaseModel):
    id: str
    client_id: str
    client_email: str | None = None
    title: str
    description: str | None = None
    category: str | None = None
    skills: list[str] = Field(default_factory=list)
    budget: float | None = None
    location: str | None = None
    lat: float | None = None
    lng: float | None = None
    status: JobStatus
    expires_at: datetime | None = None
    auto_close_enabled: bool = False
    created_at: datetime
    updated_at: datetime


class RecommendedJobOut(JobOut):
    score: int
