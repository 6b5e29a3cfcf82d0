from fastapi import APIRouter, Depends, HTTPException, status

from hiremistri.api.deps import get_saved_job_service
from hiremistri.schemas.saved_jobs import SavedJobOut, SaveJobRequest
from hiremistri.services.errors import NotFoundError, UnavailableError, ValidationError
from hiremistri.services.saved_jobs import SavedJobService

router = APIRouter()


@router.get("/{user_id}", response_model=list[SavedJobOut])
async def list_saved_jobs(
    user_id: str,
    saved_jobs: SavedJobService = Depends(get_saved_job_service),
) -> list[SavedJobOut]:
    try:
        rows = await saved_jobs.list_for_user(user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [SavedJobOut(**row) for row in rows]


@router.post("", response_model=SavedJobOut, status_code=status.HTTP_201_CREATED)
async def save_job(
    payload: SaveJobRequest,
    saved_jobs: SavedJobService = Depends(get_saved_job_service),
) -> SavedJobOut:
    try:
        row = await saved_jobs.save(user_id=payload.user_id, job_id=payload.job_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SavedJobOut(**row)


@router.delete("/{user_id}/{job_id}")
async def unsave_job(
    user_id: str,
    job_id: str,
    saved_jobs: SavedJobService = Depends(get_saved_job_service),
) -> dict[str, str]:
    try:
        await saved_jobs.unsave(user_id=user_id, job_id=job_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"status": "deleted"}
