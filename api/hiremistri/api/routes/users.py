from fastapi import APIRouter, Depends, HTTPException, Query, status

from hiremistri.api.deps import get_user_service
from hiremistri.schemas.users import ProfileUpdateRequest, SyncRequest, UserOut, UserProfileOut
from hiremistri.services.errors import ConflictError, NotFoundError, UnavailableError, ValidationError
from hiremistri.services.users import UserService

router = APIRouter()


@router.get("/users/{uid}", response_model=UserProfileOut)
async def get_user(uid: str, users: UserService = Depends(get_user_service)) -> UserProfileOut:
    try:
        user = await users.get(uid)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserProfileOut(**user)


@router.post("/auth/sync", response_model=UserOut)
async def sync_user(payload: SyncRequest, users: UserService = Depends(get_user_service)) -> UserOut:
    try:
        user = await users.sync(payload.uid, payload.email)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserOut(**user)


@router.patch("/users/{uid}", response_model=UserOut)
@router.put("/users/{uid}", response_model=UserOut)
async def update_user(
    uid: str,
    payload: ProfileUpdateRequest,
    allow_unset: bool = Query(default=False),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    try:
        user = await users.update_profile(uid, payload.changes(), allow_unset=allow_unset)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserOut(**user)
