from __future__ import annotations

from typing import Any

from hiremistri.services.errors import NotFoundError, ValidationError

PROFILE_FIELDS = {
    "first_name",
    "last_name",
    "display_name",
    "phone",
    "headline",
    "bio",
    "skills",
    "is_available",
    "role",
    "city",
    "country",
    "lat",
    "lng",
    "email",
}


def build_profile_update(
    body: dict[str, Any],
    existing: dict[str, Any] | None,
    *,
    allow_unset: bool = False,
) -> tuple[dict[str, Any], set[str]]:
    """Split a profile patch into values to set and fields to clear.

    Blank strings and nulls are ignored unless ``allow_unset`` is given and the
    field currently has a value.
    """
    existing = existing or {}
    set_fields: dict[str, Any] = {}
    unset_fields: set[str] = set()

    for key, raw in body.items():
        if key not in PROFILE_FIELDS:
            continue
        value = raw.lower().strip() if key == "email" and isinstance(raw, str) else raw

        if key == "skills" and isinstance(value, list):
            cleaned = [str(skill).strip() for skill in value if str(skill).strip()]
            if cleaned:
                set_fields[key] = cleaned
            continue
        if isinstance(value, (bool, int, float)):
            set_fields[key] = value
            continue
        if isinstance(value, str):
            stripped = value.strip()
            if stripped:
                set_fields[key] = stripped
            elif allow_unset and existing.get(key) is not None:
                unset_fields.add(key)
            continue
        if value is None and allow_unset and existing.get(key) is not None:
            unset_fields.add(key)

    return set_fields, unset_fields


class UserService:
    def __init__(self, repository: Any) -> None:
        self.repository = repository

    async def get(self, uid: str) -> dict[str, Any]:
        user = await self.repository.get_user(uid)
        if not user:
            raise NotFoundError("User not found")
        # ratings are not computed yet
        return {**user, "rating": 0, "review_count": 0}

    async def sync(self, uid: str, email: str | None = None) -> dict[str, Any]:
        uid = (uid or "").strip()
        if not uid:
            raise ValidationError("uid required")
        normalized = email.lower().strip() if email else None
        return await self.repository.sync_user(uid=uid, email=normalized or None)

    async def update_profile(self, uid: str, body: dict[str, Any], *, allow_unset: bool = False) -> dict[str, Any]:
        uid = (uid or "").strip()
        if not uid:
            raise ValidationError("Missing uid")
        existing = await self.repository.get_user(uid)
        set_fields, unset_fields = build_profile_update(body, existing, allow_unset=allow_unset)
        if not set_fields and not unset_fields:
            if existing:
                return existing
            return await self.repository.sync_user(uid=uid, email=None)
        return await self.repository.upsert_user_profile(uid=uid, set_fields=set_fields, unset_fields=unset_fields)
