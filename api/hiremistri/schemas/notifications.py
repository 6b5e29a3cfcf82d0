from datetime import datetime

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str
    job_id: str | None = None
    link: str | None = None
    read: bool = False
    created_at: datetime


class ReadAllResponse(BaseModel):
    updated: int
