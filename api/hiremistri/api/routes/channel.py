import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from hiremistri.api.deps import get_messaging_service
from hiremistri.services.errors import ServiceError
from hiremistri.services.live import ConnectionHub, get_connection_hub
from hiremistri.services.messaging import MessagingService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def live_channel(
    websocket: WebSocket,
    messaging: MessagingService = Depends(get_messaging_service),
    hub: ConnectionHub = Depends(get_connection_hub),
) -> None:
    """Bidirectional channel: join a user room, send messages, typing and read receipts."""
    await websocket.accept()
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await _send_error(websocket, "frames must be JSON objects")
                continue
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await _send_error(websocket, "frames must carry an event name")
                continue
            data = frame.get("data")
            if not isinstance(data, dict):
                data = {}
            try:
                await _handle(frame["event"], data, websocket, messaging, hub)
            except ServiceError as exc:
                await _send_error(websocket, str(exc))
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.exception("live channel event failed event=%s", frame["event"])
                await _send_error(websocket, "internal server error")
    except WebSocketDisconnect:
        pass
    finally:
        hub.leave(websocket)


async def _handle(
    event: str,
    data: dict[str, Any],
    websocket: WebSocket,
    messaging: MessagingService,
    hub: ConnectionHub,
) -> None:
    if event == "join_user":
        user_id = str(data.get("user_id") or "").strip()
        if not user_id:
            await _send_error(websocket, "user_id is required")
            return
        hub.join(user_id, websocket)
        logger.info("live channel joined user_id=%s connections=%s", user_id, hub.connection_count(user_id))
        await websocket.send_json({"event": "joined", "data": {"user_id": user_id}})
    elif event == "message:send":
        await messaging.send(
            sender_id=str(data.get("sender_id") or ""),
            recipient_id=str(data.get("recipient_id") or ""),
            text=str(data.get("text") or ""),
            job_id=str(data["job_id"]) if data.get("job_id") is not None else None,
        )
    elif event in {"typing:start", "typing:stop"}:
        await messaging.typing(
            sender_id=str(data.get("sender_id") or ""),
            recipient_id=str(data.get("recipient_id") or ""),
            conversation=data.get("conversation_id"),
            is_typing=event == "typing:start",
        )
    elif event == "message:read":
        await messaging.mark_read(
            str(data.get("conversation_id") or ""),
            reader_id=str(data.get("reader_id") or ""),
        )
    else:
        await _send_error(websocket, f"unknown event: {event}")


async def _send_error(websocket: WebSocket, detail: str) -> None:
    await websocket.send_json({"event": "error", "data": {"detail": detail}})
