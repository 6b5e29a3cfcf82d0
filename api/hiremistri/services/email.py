from __future__ import annotations

from dataclasses import dataclass
import logging

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmailResult:
    success: bool
    error: str | None = None
    retryable: bool = False


class EmailClient:
    """One-shot transactional email over the SendGrid v3 HTTP API."""

    def __init__(
        self,
        *,
        api_key: str | None,
        from_email: str | None,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> EmailResult:
        if not self.api_key:
            logger.warning("SendGrid API key not configured; email to=%s not sent", to)
            return EmailResult(success=False, error="SendGrid not configured")
        if not self.from_email:
            logger.warning("SendGrid from email not configured; email to=%s not sent", to)
            return EmailResult(success=False, error="From email not configured")

        content = [{"type": "text/html", "value": html}]
        if text:
            content.insert(0, {"type": "text/plain", "value": text})
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": content,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(self.api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("failed to send email to=%s error=%s", to, exc)
            return EmailResult(success=False, error=str(exc), retryable=True)

        if response.status_code >= 400:
            logger.error(
                "failed to send email to=%s status=%s body=%s",
                to,
                response.status_code,
                response.text[:500],
            )
            return EmailResult(
                success=False,
                error=f"SendGrid responded with {response.status_code}",
                retryable=response.status_code == 429 or response.status_code >= 500,
            )

        logger.info("email sent to=%s", to)
        return EmailResult(success=True)
