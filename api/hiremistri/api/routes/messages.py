from fastapi import APIRouter, Depends, HTTPException, Query, status

from hiremistri.api.deps import get_messaging_service
from hiremistri.schemas.messages import (
    ConversationOut,
    MarkReadRequest,
    MarkReadResponse,
    MessageOut,
    MessageSendRequest,
)
from hiremistri.services.errors import UnavailableError, ValidationError
from hiremistri.services.messaging import MessagingService

router = APIRouter()


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageSendRequest,
    messaging: MessagingService = Depends(get_messaging_service),
) -> MessageOut:
    try:
        message = await messaging.send(
            sender_id=payload.sender_id,
            recipient_id=payload.recipient_id,
            text=payload.text,
            job_id=payload.job_id,
        )
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MessageOut(**message)


@router.get("/conversations", response_model=list[ConversationOut])
async def list_conversations(
    user_id: str = Query(...),
    messaging: MessagingService = Depends(get_messaging_service),
) -> list[ConversationOut]:
    try:
        rows = await messaging.list_conversations(user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [ConversationOut(**row) for row in rows]


@router.get("/conversation/{conversation_id}", response_model=list[MessageOut])
async def list_messages(
    conversation_id: str,
    user_id: str = Query(...),
    messaging: MessagingService = Depends(get_messaging_service),
) -> list[MessageOut]:
    try:
        rows = await messaging.list_messages(conversation_id, user_id=user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [MessageOut(**row) for row in rows]


@router.patch("/read", response_model=MarkReadResponse)
async def mark_read(
    payload: MarkReadRequest,
    messaging: MessagingService = Depends(get_messaging_service),
) -> MarkReadResponse:
    try:
        updated = await messaging.mark_read(payload.conversation_id, reader_id=payload.reader_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MarkReadResponse(updated=updated)
