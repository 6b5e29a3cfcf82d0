from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any

from opentelemetry import trace

from hiremistri.services.email import EmailClient, EmailResult
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.live import ConnectionHub

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(slots=True)
class NotificationEvent:
    notification: dict[str, Any]
    email_subject: str | None = None
    email_html: str | None = None
    email_to: str | None = None
    # looks up the recipient address when email_to is empty
    resolver: IdentityResolver | None = field(default=None, repr=False)

    @property
    def user_id(self) -> str:
        return str(self.notification["user_id"])


class NotificationDispatcher:
    """Consumes notification events off the request path: live push, then email."""

    def __init__(
        self,
        *,
        hub: ConnectionHub,
        email_client: EmailClient,
        max_attempts: int = 3,
        retry_base_seconds: float = 2.0,
        retry_max_seconds: float = 60.0,
        queue_size: int = 1000,
    ) -> None:
        self.hub = hub
        self.email_client = email_client
        self.max_attempts = max(1, max_attempts)
        self.retry_base_seconds = max(0.0, retry_base_seconds)
        self.retry_max_seconds = max(self.retry_base_seconds, retry_max_seconds)
        self.queue_size = queue_size
        self._queue: asyncio.Queue[NotificationEvent] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="notification-dispatcher")

    async def stop(self, drain_timeout_seconds: float = 5.0) -> None:
        if self._queue is not None and self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning("notification queue not drained on shutdown pending=%s", self._queue.qsize())
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None

    def enqueue(self, event: NotificationEvent) -> None:
        """Hand the event to the worker without waiting on it."""
        if self._queue is not None and self.running:
            try:
                self._queue.put_nowait(event)
                return
            except asyncio.QueueFull:
                logger.warning("notification queue full; dispatching inline task user_id=%s", event.user_id)
        task = asyncio.get_running_loop().create_task(self.dispatch(event))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def dispatch(self, event: NotificationEvent) -> None:
        with tracer.start_as_current_span("notifications.dispatch") as span:
            span.set_attribute("notification.type", str(event.notification.get("type")))
            try:
                await self.hub.emit_to_user(event.user_id, "new_notification", jsonable(event.notification))
            except Exception:  # pragma: no cover - push is best effort
                logger.exception("live push failed user_id=%s", event.user_id)

            if not event.email_subject or not event.email_html:
                return
            try:
                await self._send_email(event)
            except Exception:
                logger.exception("email dispatch failed user_id=%s", event.user_id)

    async def _send_email(self, event: NotificationEvent) -> EmailResult | None:
        to = (event.email_to or "").strip()
        if not to and event.resolver is not None:
            to = (await event.resolver.resolve(event.user_id)).email
        if not to:
            logger.info("no email address for user_id=%s; skipping email", event.user_id)
            return None
        if not self.email_client.configured:
            return await self.email_client.send(to, event.email_subject or "", event.email_html or "")

        result: EmailResult | None = None
        for attempt in range(1, self.max_attempts + 1):
            result = await self.email_client.send(to, event.email_subject or "", event.email_html or "")
            if result.success or not result.retryable:
                break
            if attempt < self.max_attempts:
                delay = min(self.retry_base_seconds * (2 ** (attempt - 1)), self.retry_max_seconds)
                logger.info("email retry user_id=%s attempt=%s retry in %.1fs", event.user_id, attempt, delay)
                await asyncio.sleep(delay)
        if result is not None and not result.success:
            logger.warning("email not delivered user_id=%s error=%s", event.user_id, result.error)
        return result

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                await self.dispatch(event)
            finally:
                queue.task_done()


def jsonable(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        out[key] = value.isoformat() if hasattr(value, "isoformat") else value
    return out
