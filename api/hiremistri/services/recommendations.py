from __future__ import annotations

from datetime import datetime, timedelta
import math
from typing import Any

from hiremistri.services.repository import utcnow

EARTH_RADIUS_KM = 6371.0
SKILL_POINTS = 10
RECENT_POINTS = 5
RECENT_WINDOW = timedelta(days=7)
DISTANCE_BANDS = ((10.0, 20), (25.0, 10), (50.0, 5))


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _skill_set(values: Any) -> set[str]:
    if not isinstance(values, (list, tuple, set)):
        return set()
    return {str(value).strip().lower() for value in values if str(value).strip()}


def _has_coordinates(item: dict[str, Any]) -> bool:
    return item.get("lat") is not None and item.get("lng") is not None


def score_job(user: dict[str, Any], job: dict[str, Any], *, now: datetime | None = None) -> int:
    current = now or utcnow()
    score = SKILL_POINTS * len(_skill_set(user.get("skills")) & _skill_set(job.get("skills")))

    if _has_coordinates(user) and _has_coordinates(job):
        distance = haversine_km(float(user["lat"]), float(user["lng"]), float(job["lat"]), float(job["lng"]))
        for limit_km, points in DISTANCE_BANDS:
            if distance <= limit_km:
                score += points
                break

    created_at = job.get("created_at")
    if isinstance(created_at, datetime) and current - created_at <= RECENT_WINDOW:
        score += RECENT_POINTS
    return score


class RecommendationService:
    def __init__(self, repository: Any, *, limit: int = 10) -> None:
        self.repository = repository
        self.limit = max(1, limit)

    async def recommend(self, user_id: str, *, now: datetime | None = None) -> list[dict[str, Any]]:
        """Active jobs the user has not applied to, best match first.

        Jobs scoring zero are dropped; equal scores keep creation order.
        """
        user = await self.repository.get_user(user_id)
        if not user:
            return []
        current = now or utcnow()
        jobs = await self.repository.list_recommendable_jobs(user_id)

        scored = []
        for job in jobs:
            score = score_job(user, job, now=current)
            if score > 0:
                scored.append({**job, "score": score})
        scored.sort(key=lambda item: item["score"], reverse=True)
        return scored[: self.limit]
