from __future__ import annotations

import asyncio
import json

import httpx

from hiremistri.services.dispatcher import NotificationDispatcher, NotificationEvent
from hiremistri.services.email import EmailClient
from hiremistri.services.identity import IdentityResolver
from hiremistri.services.live import ConnectionHub

NOTIFICATION = {
    "id": "n1",
    "user_id": "worker-1",
    "title": "Application accepted",
    "message": "Your application was accepted.",
    "type": "application_accepted",
    "job_id": None,
    "link": None,
    "read": False,
}


def _dispatcher(handler, hub: ConnectionHub | None = None, max_attempts: int = 3) -> NotificationDispatcher:
    email_client = EmailClient(
        api_key="sg-key",
        from_email="noreply@hiremistri.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return NotificationDispatcher(
        hub=hub or ConnectionHub(),
        email_client=email_client,
        max_attempts=max_attempts,
        retry_base_seconds=0,
        retry_max_seconds=0,
    )


def _event(**overrides) -> NotificationEvent:
    options = {
        "notification": dict(NOTIFICATION),
        "email_subject": "Accepted",
        "email_html": "<p>Accepted</p>",
        "email_to": "w1@example.com",
    }
    options.update(overrides)
    return NotificationEvent(**options)


def test_transient_email_failures_are_retried() -> None:
    statuses = iter([500, 429, 202])
    attempts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request.headers["Authorization"])
        return httpx.Response(next(statuses))

    asyncio.run(_dispatcher(handler).dispatch(_event()))

    assert len(attempts) == 3


def test_permanent_email_failure_is_not_retried() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(400, json={"errors": ["bad address"]})

    asyncio.run(_dispatcher(handler).dispatch(_event()))

    assert len(attempts) == 1


def test_retries_stop_at_max_attempts() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(503)

    asyncio.run(_dispatcher(handler, max_attempts=2).dispatch(_event()))

    assert len(attempts) == 2


def test_push_happens_even_without_email(fake_socket_factory) -> None:
    hub = ConnectionHub()
    socket = fake_socket_factory()
    hub.join("worker-1", socket)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no email expected")

    asyncio.run(_dispatcher(handler, hub=hub).dispatch(_event(email_subject=None, email_html=None)))

    assert [item["id"] for item in socket.events("new_notification")] == ["n1"]


def test_recipient_address_is_resolved_when_missing(fake_repo) -> None:
    recipients: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        recipients.append(json.loads(request.content)["personalizations"][0]["to"][0]["email"])
        return httpx.Response(202)

    async def scenario() -> None:
        await fake_repo.sync_user(uid="worker-1", email="resolved@example.com")
        event = _event(email_to=None, resolver=IdentityResolver(fake_repo))
        await _dispatcher(handler).dispatch(event)

    asyncio.run(scenario())

    assert recipients == ["resolved@example.com"]


def test_worker_drains_queue_on_stop(fake_socket_factory) -> None:
    hub = ConnectionHub()
    socket = fake_socket_factory()
    hub.join("worker-1", socket)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202)

    async def scenario() -> bool:
        dispatcher = _dispatcher(handler, hub=hub)
        dispatcher.start()
        for index in range(3):
            dispatcher.enqueue(_event(notification={**NOTIFICATION, "id": f"n{index}"}))
        await dispatcher.stop()
        return dispatcher.running

    assert asyncio.run(scenario()) is False
    assert [item["id"] for item in socket.events("new_notification")] == ["n0", "n1", "n2"]


def test_enqueue_without_worker_dispatches_in_background(fake_socket_factory) -> None:
    hub = ConnectionHub()
    socket = fake_socket_factory()
    hub.join("worker-1", socket)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202)

    async def scenario() -> None:
        dispatcher = _dispatcher(handler, hub=hub)
        dispatcher.enqueue(_event())
        for _ in range(20):
            if socket.frames:
                break
            await asyncio.sleep(0.01)

    asyncio.run(scenario())

    assert socket.events("new_notification")[0]["id"] == "n1"
