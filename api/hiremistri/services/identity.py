from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Identity:
    email: str = ""
    name: str = ""
    phone: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.email and self.name and self.phone)


class SupabaseIdentityProvider:
    """Reads user records from the Supabase Auth admin API."""

    def __init__(
        self,
        *,
        supabase_url: str,
        service_role_key: str,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = supabase_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def fetch_user(self, user_id: str) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }
        url = f"{self.base_url}/auth/v1/admin/users/{user_id}"
        if self._client is not None:
            response = await self._client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url, headers=headers)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("identity provider returned a non-object payload")
        return payload


class IdentityResolver:
    def __init__(self, repository: Any, provider: SupabaseIdentityProvider | None = None) -> None:
        self.repository = repository
        self.provider = provider

    async def resolve(self, user_id: str) -> Identity:
        """Best-effort contact identity: profile store first, then the identity provider.

        The provider only fills fields that are still empty, and its failures are
        logged and swallowed.
        """
        identity = Identity()
        if not user_id:
            return identity

        profile = await self.repository.get_user(user_id)
        if profile:
            identity.email = _clean_email(profile.get("email"))
            identity.name = profile_display_name(profile)
            identity.phone = _clean(profile.get("phone"))
            if identity.complete:
                return identity

        if self.provider is None:
            return identity

        try:
            record = await self.provider.fetch_user(user_id)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("identity provider lookup failed user_id=%s error=%s", user_id, exc)
            return identity

        metadata = record.get("user_metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        if not identity.email:
            identity.email = _clean_email(record.get("email"))
        if not identity.name:
            identity.name = _clean(
                metadata.get("display_name") or metadata.get("full_name") or metadata.get("name")
            )
        if not identity.phone:
            identity.phone = _clean(record.get("phone"))
        return identity


def profile_display_name(profile: dict[str, Any]) -> str:
    display_name = _clean(profile.get("display_name"))
    if display_name:
        return display_name
    parts = [_clean(profile.get("first_name")), _clean(profile.get("last_name"))]
    return " ".join(part for part in parts if part)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clean_email(value: Any) -> str:
    return _clean(value).lower()
