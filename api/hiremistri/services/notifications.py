from __future__ import annotations

from functools import lru_cache
import logging
from typing import Any, Awaitable

from hiremistri.core.config import get_settings
from hiremistri.services.dispatcher import NotificationDispatcher, NotificationEvent
from hiremistri.services.email import EmailClient
from hiremistri.services.errors import ForbiddenError, NotFoundError, ValidationError
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.live import get_connection_hub

logger = logging.getLogger(__name__)

NEW_APPLICATION = "new_application"
APPLICATION_ACCEPTED = "application_accepted"
APPLICATION_REJECTED = "application_rejected"
APPLICATION_WITHDRAWN = "application_withdrawn"
JOB_STATUS = "job_status"
JOB_EXPIRED = "job_expired"
NEW_MESSAGE = "message"


async def run_fan_out(action: str, fan_out: Awaitable[Any], **context: Any) -> None:
    """Await a trailing notification step; failures are logged and never reach the caller."""
    try:
        await fan_out
    except Exception:
        details = " ".join(f"{key}={value}" for key, value in context.items())
        logger.exception("notification fan-out failed action=%s %s", action, details)


class NotificationService:
    """Single entry point for lifecycle side effects.

    ``notify`` persists the notification before returning, so a following read
    sees it. The live push and the email are handed to the dispatcher and never
    fail the caller.
    """

    def __init__(
        self,
        repository: Any,
        dispatcher: NotificationDispatcher,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self.repository = repository
        self.dispatcher = dispatcher
        self.resolver = resolver

    async def notify(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: str,
        job_id: str | None = None,
        link: str | None = None,
        email: str | None = None,
        email_subject: str | None = None,
        email_html: str | None = None,
    ) -> dict[str, Any]:
        if not user_id:
            raise ValidationError("notification user_id is required")
        notification = await self.repository.create_notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            job_id=job_id,
            link=link,
        )
        try:
            self.dispatcher.enqueue(
                NotificationEvent(
                    notification=notification,
                    email_subject=email_subject,
                    email_html=email_html,
                    email_to=email,
                    resolver=self.resolver,
                )
            )
        except Exception:
            logger.exception("failed to schedule notification dispatch id=%s", notification.get("id"))
        return notification

    async def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> list[dict[str, Any]]:
        return await self.repository.list_notifications(user_id=user_id, unread_only=unread_only, limit=limit)

    async def mark_read(self, notification_id: str, *, user_id: str | None = None) -> dict[str, Any]:
        await self._load_owned(notification_id, user_id)
        row = await self.repository.mark_notification_read(notification_id)
        if not row:
            raise NotFoundError("notification not found")
        return row

    async def mark_all_read(self, user_id: str) -> int:
        return await self.repository.mark_all_notifications_read(user_id)

    async def delete(self, notification_id: str, *, user_id: str | None = None) -> None:
        await self._load_owned(notification_id, user_id)
        if not await self.repository.delete_notification(notification_id):
            raise NotFoundError("notification not found")

    async def _load_owned(self, notification_id: str, user_id: str | None) -> dict[str, Any]:
        existing = await self.repository.get_notification(notification_id)
        if not existing:
            raise NotFoundError("notification not found")
        if user_id and existing["user_id"] != user_id:
            raise ForbiddenError("notification belongs to another user")
        return existing


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    settings = get_settings()
    return NotificationDispatcher(
        hub=get_connection_hub(),
        email_client=EmailClient(
            api_key=settings.sendgrid_api_key,
            from_email=settings.sendgrid_from_email,
            api_url=settings.sendgrid_api_url,
            timeout_seconds=settings.email_timeout_seconds,
        ),
        max_attempts=settings.email_max_attempts,
        retry_base_seconds=settings.email_retry_base_seconds,
        retry_max_seconds=settings.email_retry_max_seconds,
        queue_size=settings.notification_queue_size,
    )
