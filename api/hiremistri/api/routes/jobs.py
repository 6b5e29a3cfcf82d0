from fastapi import APIRouter, Depends, HTTPException, Query, status

from hiremistri.api.deps import get_job_service, get_recommendation_service
from hiremistri.schemas.jobs import JobCreateRequest, JobOut, JobPatchRequest, RecommendedJobOut
from hiremistri.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from hiremistri.services.jobs import JobService
from hiremistri.services.recommendations import RecommendationService

router = APIRouter()


@router.get("", response_model=list[JobOut])
async def list_jobs(
    jobs: JobService = Depends(get_job_service),
    client_id: str | None = Query(default=None),
    job_status: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[JobOut]:
    try:
        rows = await jobs.list_jobs(client_id=client_id, status=job_status, limit=limit, offset=offset)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [JobOut(**row) for row in rows]


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
async def create_job(payload: JobCreateRequest, jobs: JobService = Depends(get_job_service)) -> JobOut:
    try:
        job = await jobs.create(payload.model_dump())
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return JobOut(**job)


@router.get("/recommendations/{user_id}", response_model=list[RecommendedJobOut])
async def recommend_jobs(
    user_id: str,
    recommendations: RecommendationService = Depends(get_recommendation_service),
) -> list[RecommendedJobOut]:
    try:
        rows = await recommendations.recommend(user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [RecommendedJobOut(**row) for row in rows]


@router.get("/{job_id}", response_model=JobOut)
async def get_job(job_id: str, jobs: JobService = Depends(get_job_service)) -> JobOut:
    try:
        job = await jobs.get(job_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobOut(**job)


@router.patch("/{job_id}", response_model=JobOut)
async def patch_job(
    job_id: str,
    payload: JobPatchRequest,
    client_id: str | None = Query(default=None),
    jobs: JobService = Depends(get_job_service),
) -> JobOut:
    changes = payload.model_dump(exclude_unset=True)
    actor_id = changes.pop("client_id", None) or client_id
    try:
        job = await jobs.update(job_id, changes, actor_id=actor_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return JobOut(**job)


@router.delete("/{job_id}")
async def delete_job(
    job_id: str,
    client_id: str | None = Query(default=None),
    jobs: JobService = Depends(get_job_service),
) -> dict[str, str]:
    try:
        await jobs.delete(job_id, actor_id=client_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return {"status": "deleted"}
