from __future__ import annotations

import asyncio
import json

import httpx

from hiremistri.services import email_templates
from hiremistri.services.email import EmailClient


def _client(handler, **overrides) -> EmailClient:
    options = {
        "api_key": "sg-key",
        "from_email": "noreply@hiremistri.test",
        "client": httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    }
    options.update(overrides)
    return EmailClient(**options)


def test_send_posts_sendgrid_payload() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(202)

    result = asyncio.run(_client(handler).send("w1@example.com", "Hello", "<p>Hi</p>", text="Hi"))

    assert result.success is True
    assert captured["url"] == "https://api.sendgrid.com/v3/mail/send"
    assert captured["auth"] == "Bearer sg-key"
    assert captured["body"]["personalizations"] == [{"to": [{"email": "w1@example.com"}]}]
    assert captured["body"]["from"] == {"email": "noreply@hiremistri.test"}
    assert [part["type"] for part in captured["body"]["content"]] == ["text/plain", "text/html"]


def test_unconfigured_client_does_not_call_out() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    result = asyncio.run(_client(handler, api_key=None).send("w1@example.com", "Hello", "<p>Hi</p>"))

    assert result.success is False
    assert result.retryable is False
    assert result.error == "SendGrid not configured"


def test_status_codes_decide_retryability() -> None:
    for status_code, retryable in ((429, True), (503, True), (400, False)):
        client = _client(lambda request, code=status_code: httpx.Response(code, text="nope"))
        result = asyncio.run(client.send("w1@example.com", "Hello", "<p>Hi</p>"))
        assert result.success is False
        assert result.retryable is retryable


def test_transport_errors_are_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_client(handler).send("w1@example.com", "Hello", "<p>Hi</p>"))

    assert result.success is False
    assert result.retryable is True


def test_templates_escape_user_content() -> None:
    subject, html = email_templates.application_received(
        client_name="Asha",
        job_title="<script>alert(1)</script>",
        worker_name="Ravi & Sons",
    )

    assert "<script>" not in html
    assert "Ravi &amp; Sons" in html
    assert subject
