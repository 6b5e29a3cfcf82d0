from datetime import datetime

from pydantic import BaseModel

from hiremistri.schemas.jobs import JobOut


class SaveJobRequest(BaseModel):
    user_id: str
    job_id: str


class SavedJobOut(BaseModel):
    id: str
    user_id: str
    job_id: str
    saved_at: datetime
    job: JobOut | None = None
