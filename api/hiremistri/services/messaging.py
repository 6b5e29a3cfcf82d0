from __future__ import annotations

import logging
from typing import Any

from hiremistri.services import email_templates
from hiremistri.services.dispatcher import jsonable
from hiremistri.services.errors import ValidationError
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.live import ConnectionHub
from hiremistri.services.notifications import NEW_MESSAGE, NotificationService, run_fan_out
from hiremistri.services.repository import utcnow

logger = logging.getLogger(__name__)


def conversation_id(user_a: str, user_b: str, job_id: str | None = None) -> str:
    """Order-independent key for the two participants, scoped to a job when given."""
    participants = "_".join(sorted([user_a, user_b]))
    return f"{job_id}_{participants}" if job_id else participants


class MessagingService:
    """Shared by the REST routes and the WebSocket channel so both store the same state."""

    def __init__(
        self,
        repository: Any,
        notifications: NotificationService,
        resolver: IdentityResolver,
        hub: ConnectionHub,
    ) -> None:
        self.repository = repository
        self.notifications = notifications
        self.resolver = resolver
        self.hub = hub

    async def send(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        text: str,
        job_id: str | None = None,
    ) -> dict[str, Any]:
        sender_id = (sender_id or "").strip()
        recipient_id = (recipient_id or "").strip()
        body = (text or "").strip()
        job_id = (str(job_id) if job_id is not None else "").strip() or None
        if not sender_id:
            raise ValidationError("sender_id is required")
        if not recipient_id:
            raise ValidationError("recipient_id is required")
        if not body:
            raise ValidationError("text is required")

        message = await self.repository.create_message(
            conversation_id=conversation_id(sender_id, recipient_id, job_id),
            sender_id=sender_id,
            recipient_id=recipient_id,
            job_id=job_id,
            text=body,
        )

        payload = jsonable(message)
        await self.hub.emit_to_user(recipient_id, "new_message", payload)
        if sender_id != recipient_id:
            await self.hub.emit_to_user(sender_id, "new_message", payload)

        await run_fan_out("message", self._notify_recipient(message), message_id=message["id"])
        return message

    async def list_conversations(self, user_id: str) -> list[dict[str, Any]]:
        if not (user_id or "").strip():
            raise ValidationError("user_id is required")
        return await self.repository.list_conversations(user_id)

    async def list_messages(self, conversation: str, *, user_id: str) -> list[dict[str, Any]]:
        if not (user_id or "").strip():
            raise ValidationError("user_id is required")
        return await self.repository.list_conversation_messages(conversation_id=conversation, user_id=user_id)

    async def mark_read(self, conversation: str, *, reader_id: str) -> int:
        if not (conversation or "").strip():
            raise ValidationError("conversation_id is required")
        if not (reader_id or "").strip():
            raise ValidationError("reader_id is required")

        flipped = await self.repository.mark_conversation_read(
            conversation_id=conversation,
            reader_id=reader_id,
            now=utcnow(),
        )
        if flipped:
            payload = {"conversation_id": conversation, "reader_id": reader_id, "count": len(flipped)}
            for sender_id in sorted({row["sender_id"] for row in flipped}):
                await self.hub.emit_to_user(sender_id, "messages_read", payload)
        return len(flipped)

    async def typing(self, *, sender_id: str, recipient_id: str, conversation: str | None, is_typing: bool) -> None:
        if not sender_id or not recipient_id:
            return
        await self.hub.emit_to_user(
            recipient_id,
            "user_typing",
            {"user_id": sender_id, "conversation_id": conversation, "is_typing": is_typing},
        )

    async def _notify_recipient(self, message: dict[str, Any]) -> None:
        sender = await self.resolver.resolve(message["sender_id"])
        sender_name = sender.name or "Someone"
        job_title = None
        if message.get("job_id"):
            job = await self.repository.get_job(message["job_id"])
            job_title = job["title"] if job else None
        subject, html = email_templates.new_message(
            recipient_name="",
            sender_name=sender_name,
            job_title=job_title,
        )
        await self.notifications.notify(
            user_id=message["recipient_id"],
            title="New message",
            message=f"{sender_name}: {message['text'][:120]}",
            type=NEW_MESSAGE,
            job_id=message.get("job_id"),
            link=f"/messages?conversation={message['conversation_id']}",
            email_subject=subject,
            email_html=html,
        )
