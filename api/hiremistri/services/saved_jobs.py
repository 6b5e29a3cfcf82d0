from __future__ import annotations

from typing import Any

from hiremistri.services.errors import NotFoundError, ValidationError


class SavedJobService:
    def __init__(self, repository: Any) -> None:
        self.repository = repository

    async def save(self, *, user_id: str, job_id: str) -> dict[str, Any]:
        if not (user_id or "").strip():
            raise ValidationError("user_id is required")
        if not await self.repository.get_job(job_id):
            raise NotFoundError("job not found")
        return await self.repository.save_job(user_id=user_id, job_id=job_id)

    async def unsave(self, *, user_id: str, job_id: str) -> None:
        if not await self.repository.unsave_job(user_id=user_id, job_id=job_id):
            raise NotFoundError("saved job not found")

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return await self.repository.list_saved_jobs(user_id)
