from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from hiremistri.api.deps import get_proposal_service
from hiremistri.schemas.applications import (
    ApplicationOut,
    ApplicationStatusRequest,
    ApplicationSubmitRequest,
    NoteCreateRequest,
    NoteOut,
    WorkerApplicationOut,
)
from hiremistri.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from hiremistri.services.proposals import ProposalService

router = APIRouter()


@router.post("", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def submit_application(
    payload: ApplicationSubmitRequest,
    response: Response,
    proposals: ProposalService = Depends(get_proposal_service),
) -> ApplicationOut:
    fields = payload.model_dump(exclude_unset=True)
    try:
        application, created = await proposals.submit(payload.job_id, payload.worker_id, fields)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if not created:
        response.status_code = status.HTTP_200_OK
    return ApplicationOut(**application)


@router.get("/job/{job_id}", response_model=list[ApplicationOut])
async def list_job_applications(
    job_id: str,
    proposals: ProposalService = Depends(get_proposal_service),
) -> list[ApplicationOut]:
    try:
        rows = await proposals.list_for_job(job_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [ApplicationOut(**row) for row in rows]


@router.get("/worker/{worker_id}", response_model=list[WorkerApplicationOut])
async def list_worker_applications(
    worker_id: str,
    proposals: ProposalService = Depends(get_proposal_service),
) -> list[WorkerApplicationOut]:
    try:
        rows = await proposals.list_for_worker(worker_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [WorkerApplicationOut(**row) for row in rows]


@router.patch("/{application_id}", response_model=ApplicationOut)
async def update_application_status(
    application_id: str,
    payload: ApplicationStatusRequest,
    proposals: ProposalService = Depends(get_proposal_service),
) -> ApplicationOut:
    try:
        application = await proposals.transition_status(application_id, payload.status, actor_id=payload.actor_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return ApplicationOut(**application)


@router.delete("/{application_id}")
async def withdraw_application(
    application_id: str,
    worker_id: str = Query(...),
    proposals: ProposalService = Depends(get_proposal_service),
) -> dict[str, str]:
    try:
        await proposals.withdraw(application_id, worker_id)
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
    return {"status": "withdrawn"}


@router.post("/{application_id}/notes", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
async def add_note(
    application_id: str,
    payload: NoteCreateRequest,
    proposals: ProposalService = Depends(get_proposal_service),
) -> NoteOut:
    try:
        note = await proposals.add_note(application_id, author_id=payload.author_id, text=payload.text)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return NoteOut(**note)


@router.get("/{application_id}/notes", response_model=list[NoteOut])
async def list_notes(
    application_id: str,
    user_id: str = Query(...),
    proposals: ProposalService = Depends(get_proposal_service),
) -> list[NoteOut]:
    try:
        notes = await proposals.list_notes(application_id, user_id=user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return [NoteOut(**note) for note in notes]


@router.delete("/{application_id}/notes/{note_id}")
async def delete_note(
    application_id: str,
    note_id: str,
    user_id: str = Query(...),
    proposals: ProposalService = Depends(get_proposal_service),
) -> dict[str, str]:
    try:
        await proposals.delete_note(application_id, note_id, user_id=user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"status": "deleted"}
