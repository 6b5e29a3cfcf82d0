from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    uid: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    phone: str | None = None
    headline: str | None = None
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    is_available: bool | None = None
    role: str | None = None
    city: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserProfileOut(UserOut):
    rating: float = 0
    review_count: int = 0


class SyncRequest(BaseModel):
    uid: str
    email: str | None = None


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    phone: str | None = None
    headline: str | None = None
    bio: str | None = None
    skills: list[str] | None = None
    is_available: bool | None = None
    role: str | None = None
    city: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None
    email: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
