from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from functools import lru_cache
from typing import Any
from uuid import UUID

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from hiremistri.core.config import get_settings
from hiremistri.services.errors import ConflictError, UnavailableError

USER_COLUMNS = (
    "uid",
    "email",
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
)
JOB_CONTENT_COLUMNS = (
    "title",
    "description",
    "category",
    "skills",
    "budget",
    "location",
    "lat",
    "lng",
    "expires_at",
    "auto_close_enabled",
)

_JOB_SELECT = """
  j.id::text as id,
  j.client_id,
  j.client_email,
  j.title,
  j.description,
  j.category,
  j.skills,
  j.budget,
  j.location,
  j.lat,
  j.lng,
  j.status,
  j.expires_at,
  j.auto_close_enabled,
  j.created_at,
  j.updated_at
"""
_APPLICATION_SELECT = """
  a.id::text as id,
  a.job_id::text as job_id,
  a.worker_id,
  a.client_id,
  a.client_email,
  a.worker_email,
  a.worker_name,
  a.worker_phone,
  a.proposal_text,
  a.status,
  a.created_at,
  a.updated_at
"""
_MESSAGE_SELECT = """
  m.id::text as id,
  m.conversation_id,
  m.sender_id,
  m.recipient_id,
  m.job_id,
  m.text,
  m.read,
  m.read_at,
  m.created_at
"""
_NOTIFICATION_SELECT = """
  n.id::text as id,
  n.user_id,
  n.title,
  n.message,
  n.type,
  n.job_id,
  n.link,
  n.read,
  n.created_at
"""


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # ---- users ----

    async def get_user(self, uid: str) -> dict[str, Any] | None:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {", ".join(USER_COLUMNS)}, created_at, updated_at
            from users
            where uid = $1
            """,
            uid,
        )
        return self._user_row_to_dict(row) if row else None

    async def sync_user(self, *, uid: str, email: str | None) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        """
                        insert into users (uid, email, role)
                        values ($1, $2, 'worker')
                        on conflict (uid) do nothing
                        """,
                        uid,
                        email,
                    )
                    row = await conn.fetchrow(
                        f"""
                        select {", ".join(USER_COLUMNS)}, created_at, updated_at
                        from users
                        where uid = $1
                        """,
                        uid,
                    )
        except pg_exc.UniqueViolationError as exc:
            raise ConflictError("Duplicate key (email must be unique)") from exc
        return self._user_row_to_dict(row)

    async def upsert_user_profile(
        self,
        *,
        uid: str,
        set_fields: dict[str, Any],
        unset_fields: set[str],
    ) -> dict[str, Any]:
        columns = [key for key in USER_COLUMNS if key in set_fields and key != "uid"]
        cleared = [key for key in USER_COLUMNS if key in unset_fields and key not in set_fields and key != "uid"]
        values: list[Any] = [uid]

        def bind(value: Any) -> str:
            values.append(value)
            return f"${len(values)}"

        insert_columns = ["uid", *columns]
        insert_values = ["$1", *(bind(set_fields[key]) for key in columns)]
        assignments = [f"{key} = excluded.{key}" for key in columns]
        assignments.extend(f"{key} = null" for key in cleared)
        assignments.append("updated_at = now()")

        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into users ({", ".join(insert_columns)})
                values ({", ".join(insert_values)})
                on conflict (uid) do update set {", ".join(assignments)}
                returning {", ".join(USER_COLUMNS)}, created_at, updated_at
                """,
                *values,
            )
        except pg_exc.UniqueViolationError as exc:
            raise ConflictError("Duplicate key (email must be unique)") from exc
        return self._user_row_to_dict(row)

    # ---- jobs ----

    async def create_job(self, fields: dict[str, Any]) -> dict[str, Any]:
        columns = ["client_id", "client_email", *(key for key in JOB_CONTENT_COLUMNS if key in fields)]
        values = [fields.get(key) for key in columns]
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with j as (
              insert into jobs ({", ".join(columns)}, status)
              values ({placeholders}, 'active')
              returning *
            )
            select {_JOB_SELECT}
            from j
            """,
            *values,
        )
        return self._job_row_to_dict(row)

    async def get_job(self, job_id: str) -> dict[str, Any] | None:
        if not _is_uuid(job_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {_JOB_SELECT}
            from jobs j
            where j.id = $1::uuid
            """,
            job_id,
        )
        return self._job_row_to_dict(row) if row else None

    async def list_jobs(
        self,
        *,
        client_id: str | None,
        status: str | None,
        limit: int,
        offset: int,
    ) -> list[dict[str, Any]]:
        clauses: list[str] = []
        values: list[Any] = []

        def bind(value: Any) -> str:
            values.append(value)
            return f"${len(values)}"

        if client_id:
            clauses.append(f"j.client_id = {bind(client_id)}")
        if status:
            clauses.append(f"j.status = {bind(status)}")
        where = f"where {' and '.join(clauses)}" if clauses else ""

        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {_JOB_SELECT}
            from jobs j
            {where}
            order by j.created_at desc, j.id desc
            limit {bind(limit)} offset {bind(offset)}
            """,
            *values,
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def update_job(
        self,
        *,
        job_id: str,
        changes: dict[str, Any],
        expected_status: str | None = None,
    ) -> dict[str, Any] | None:
        if not _is_uuid(job_id):
            return None
        values: list[Any] = [job_id]

        def bind(value: Any) -> str:
            values.append(value)
            return f"${len(values)}"

        assignments = [f"{key} = {bind(changes[key])}" for key in (*JOB_CONTENT_COLUMNS, "status") if key in changes]
        assignments.append("updated_at = now()")
        guard = f"and status = {bind(expected_status)}" if expected_status is not None else ""

        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with j as (
              update jobs
              set {", ".join(assignments)}
              where id = $1::uuid {guard}
              returning *
            )
            select {_JOB_SELECT}
            from j
            """,
            *values,
        )
        return self._job_row_to_dict(row) if row else None

    async def delete_job(self, job_id: str) -> bool:
        if not _is_uuid(job_id):
            return False
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                exists = await conn.fetchval("select 1 from jobs where id = $1::uuid for update", job_id)
                if not exists:
                    return False
                has_accepted = await conn.fetchval(
                    """
                    select 1
                    from applications
                    where job_id = $1::uuid and status = 'accepted'
                    limit 1
                    """,
                    job_id,
                )
                if has_accepted:
                    raise ConflictError("cannot delete a job with an accepted application; complete or cancel it first")
                await conn.execute("delete from applications where job_id = $1::uuid", job_id)
                await conn.execute("delete from jobs where id = $1::uuid", job_id)
                return True

    async def expire_due_jobs(self, *, now: datetime, limit: int) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            with j as (
              update jobs
              set status = 'completed', updated_at = $1
              where id in (
                select id
                from jobs
                where auto_close_enabled
                  and expires_at is not null
                  and expires_at <= $1
                  and status not in ('completed', 'cancelled')
                order by expires_at asc
                limit $2
                for update skip locked
              )
              returning *
            )
            select {_JOB_SELECT}
            from j
            order by j.expires_at asc
            """,
            now,
            limit,
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def list_recommendable_jobs(self, user_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {_JOB_SELECT}
            from jobs j
            where j.status = 'active'
              and not exists (
                select 1 from applications a
                where a.job_id = j.id and a.worker_id = $1
              )
            order by j.created_at asc, j.id asc
            """,
            user_id,
        )
        return [self._job_row_to_dict(row) for row in rows]

    # ---- applications ----

    async def get_application(self, application_id: str) -> dict[str, Any] | None:
        if not _is_uuid(application_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {_APPLICATION_SELECT}
            from applications a
            where a.id = $1::uuid
            """,
            application_id,
        )
        return self._application_row_to_dict(row) if row else None

    async def get_application_for_pair(self, *, job_id: str, worker_id: str) -> dict[str, Any] | None:
        if not _is_uuid(job_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {_APPLICATION_SELECT}
            from applications a
            where a.job_id = $1::uuid and a.worker_id = $2
            """,
            job_id,
            worker_id,
        )
        return self._application_row_to_dict(row) if row else None

    async def upsert_application(
        self,
        *,
        job_id: str,
        worker_id: str,
        fields: dict[str, Any],
        now: datetime,
    ) -> tuple[dict[str, Any], bool]:
        """Insert or update the single proposal for (job_id, worker_id).

        Insert-only: status and created_at. Always applied: updated_at and every
        non-empty field in ``fields``. Identity columns are never blanked, and the
        update branch only fires while the stored proposal is still pending.
        """
        has_proposal_text = "proposal_text" in fields
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                with a as (
                  insert into applications (
                    job_id,
                    worker_id,
                    client_id,
                    client_email,
                    worker_email,
                    worker_name,
                    worker_phone,
                    proposal_text,
                    status,
                    created_at,
                    updated_at
                  )
                  values (
                    $1::uuid,
                    $2,
                    nullif($3, ''),
                    nullif($4, ''),
                    nullif($5, ''),
                    nullif($6, ''),
                    nullif($7, ''),
                    $8,
                    'pending',
                    $9,
                    $9
                  )
                  on conflict (job_id, worker_id) do update set
                    client_id = coalesce(nullif(excluded.client_id, ''), applications.client_id),
                    client_email = coalesce(nullif(excluded.client_email, ''), applications.client_email),
                    worker_email = coalesce(nullif(excluded.worker_email, ''), applications.worker_email),
                    worker_name = coalesce(nullif(excluded.worker_name, ''), applications.worker_name),
                    worker_phone = coalesce(nullif(excluded.worker_phone, ''), applications.worker_phone),
                    proposal_text = case when $10 then excluded.proposal_text else applications.proposal_text end,
                    updated_at = excluded.updated_at
                  where applications.status = 'pending'
                  returning *, (xmax = 0) as inserted
                )
                select {_APPLICATION_SELECT}, a.inserted
                from a
                """,
                job_id,
                worker_id,
                fields.get("client_id") or "",
                fields.get("client_email") or "",
                fields.get("worker_email") or "",
                fields.get("worker_name") or "",
                fields.get("worker_phone") or "",
                fields.get("proposal_text"),
                now,
                has_proposal_text,
            )
        except pg_exc.UniqueViolationError as exc:
            raise ConflictError("You already applied to this job.") from exc

        if not row:
            raise ConflictError("proposal can no longer be edited")
        return self._application_row_to_dict(row), bool(row["inserted"])

    async def update_application_status(
        self,
        *,
        application_id: str,
        status: str,
        now: datetime,
    ) -> tuple[dict[str, Any], str] | None:
        if not _is_uuid(application_id):
            return None
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                previous = await conn.fetchval(
                    "select status from applications where id = $1::uuid for update",
                    application_id,
                )
                if previous is None:
                    return None
                row = await conn.fetchrow(
                    f"""
                    with a as (
                      update applications
                      set status = $2, updated_at = $3
                      where id = $1::uuid
                      returning *
                    )
                    select {_APPLICATION_SELECT}
                    from a
                    """,
                    application_id,
                    status,
                    now,
                )
        return self._application_row_to_dict(row), str(previous)

    async def delete_application(self, *, application_id: str, worker_id: str) -> dict[str, Any] | None:
        if not _is_uuid(application_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with a as (
              delete from applications
              where id = $1::uuid
                and worker_id = $2
                and status not in ('accepted', 'completed')
              returning *
            )
            select {_APPLICATION_SELECT}
            from a
            """,
            application_id,
            worker_id,
        )
        return self._application_row_to_dict(row) if row else None

    async def list_applications_for_job(self, job_id: str) -> list[dict[str, Any]]:
        if not _is_uuid(job_id):
            return []
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select
              {_APPLICATION_SELECT},
              u.display_name as profile_display_name,
              u.first_name as profile_first_name,
              u.last_name as profile_last_name,
              u.email as profile_email,
              u.phone as profile_phone
            from applications a
            left join users u on u.uid = a.worker_id
            where a.job_id = $1::uuid
            order by a.created_at desc, a.id desc
            """,
            job_id,
        )
        results = []
        for row in rows:
            item = self._application_row_to_dict(row)
            item["profile"] = {
                "display_name": row["profile_display_name"],
                "first_name": row["profile_first_name"],
                "last_name": row["profile_last_name"],
                "email": row["profile_email"],
                "phone": row["profile_phone"],
            }
            results.append(item)
        return results

    async def list_applications_for_worker(self, worker_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select
              {_APPLICATION_SELECT},
              j.title as job_title,
              j.location as job_location,
              j.budget as job_budget,
              j.category as job_category
            from applications a
            left join jobs j on j.id = a.job_id
            where a.worker_id = $1
            order by a.created_at desc, a.id desc
            """,
            worker_id,
        )
        results = []
        for row in rows:
            item = self._application_row_to_dict(row)
            item["job"] = {
                "title": row["job_title"],
                "location": row["job_location"],
                "budget": _as_float(row["job_budget"]),
                "category": row["job_category"],
            }
            results.append(item)
        return results

    # ---- application notes ----

    async def add_application_note(self, *, application_id: str, author_id: str, text: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            insert into application_notes (application_id, author_id, text)
            values ($1::uuid, $2, $3)
            returning id::text as id, application_id::text as application_id, author_id, text, created_at
            """,
            application_id,
            author_id,
            text,
        )
        return dict(row)

    async def list_application_notes(self, application_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            """
            select id::text as id, application_id::text as application_id, author_id, text, created_at
            from application_notes
            where application_id = $1::uuid
            order by created_at asc, id asc
            """,
            application_id,
        )
        return [dict(row) for row in rows]

    async def get_application_note(self, note_id: str) -> dict[str, Any] | None:
        if not _is_uuid(note_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select id::text as id, application_id::text as application_id, author_id, text, created_at
            from application_notes
            where id = $1::uuid
            """,
            note_id,
        )
        return dict(row) if row else None

    async def delete_application_note(self, note_id: str) -> bool:
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            "delete from application_notes where id = $1::uuid returning id::text",
            note_id,
        )
        return deleted is not None

    # ---- messages ----

    async def create_message(
        self,
        *,
        conversation_id: str,
        sender_id: str,
        recipient_id: str,
        job_id: str | None,
        text: str,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with m as (
              insert into messages (conversation_id, sender_id, recipient_id, job_id, text, read)
              values ($1, $2, $3, $4, $5, false)
              returning *
            )
            select {_MESSAGE_SELECT}
            from m
            """,
            conversation_id,
            sender_id,
            recipient_id,
            job_id,
            text,
        )
        return dict(row)

    async def list_conversations(self, user_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            with mine as (
              select *
              from messages
              where sender_id = $1 or recipient_id = $1
            ),
            latest as (
              select distinct on (conversation_id) *
              from mine
              order by conversation_id, created_at desc, id desc
            ),
            unread as (
              select conversation_id, count(*)::int as unread_count
              from mine
              where recipient_id = $1 and not read
              group by conversation_id
            )
            select {_MESSAGE_SELECT}, coalesce(u.unread_count, 0) as unread_count
            from latest m
            left join unread u on u.conversation_id = m.conversation_id
            order by m.created_at desc, m.id desc
            """,
            user_id,
        )
        results = []
        for row in rows:
            message = dict(row)
            unread_count = message.pop("unread_count")
            results.append(
                {
                    "conversation_id": message["conversation_id"],
                    "last_message": message,
                    "unread_count": int(unread_count),
                }
            )
        return results

    async def list_conversation_messages(self, *, conversation_id: str, user_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {_MESSAGE_SELECT}
            from messages m
            where m.conversation_id = $1
              and (m.sender_id = $2 or m.recipient_id = $2)
            order by m.created_at asc, m.id asc
            """,
            conversation_id,
            user_id,
        )
        return [dict(row) for row in rows]

    async def mark_conversation_read(
        self,
        *,
        conversation_id: str,
        reader_id: str,
        now: datetime,
    ) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            """
            update messages
            set read = true, read_at = $3
            where conversation_id = $1 and recipient_id = $2 and not read
            returning id::text as id, sender_id
            """,
            conversation_id,
            reader_id,
            now,
        )
        return [dict(row) for row in rows]

    # ---- notifications ----

    async def create_notification(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: str,
        job_id: str | None,
        link: str | None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with n as (
              insert into notifications (user_id, title, message, type, job_id, link, read)
              values ($1, $2, $3, $4, $5, $6, false)
              returning *
            )
            select {_NOTIFICATION_SELECT}
            from n
            """,
            user_id,
            title,
            message,
            type,
            job_id,
            link,
        )
        return dict(row)

    async def list_notifications(self, *, user_id: str, unread_only: bool, limit: int) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {_NOTIFICATION_SELECT}
            from notifications n
            where n.user_id = $1 and (not $2 or not n.read)
            order by n.created_at desc, n.id desc
            limit $3
            """,
            user_id,
            unread_only,
            limit,
        )
        return [dict(row) for row in rows]

    async def get_notification(self, notification_id: str) -> dict[str, Any] | None:
        if not _is_uuid(notification_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {_NOTIFICATION_SELECT}
            from notifications n
            where n.id = $1::uuid
            """,
            notification_id,
        )
        return dict(row) if row else None

    async def mark_notification_read(self, notification_id: str) -> dict[str, Any] | None:
        if not _is_uuid(notification_id):
            return None
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            with n as (
              update notifications set read = true
              where id = $1::uuid
              returning *
            )
            select {_NOTIFICATION_SELECT}
            from n
            """,
            notification_id,
        )
        return dict(row) if row else None

    async def mark_all_notifications_read(self, user_id: str) -> int:
        pool = await self._get_pool()
        rows = await pool.fetch(
            "update notifications set read = true where user_id = $1 and not read returning id",
            user_id,
        )
        return len(rows)

    async def delete_notification(self, notification_id: str) -> bool:
        if not _is_uuid(notification_id):
            return False
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            "delete from notifications where id = $1::uuid returning id::text",
            notification_id,
        )
        return deleted is not None

    # ---- saved jobs ----

    async def save_job(self, *, user_id: str, job_id: str) -> dict[str, Any]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    insert into saved_jobs (user_id, job_id)
                    values ($1, $2::uuid)
                    on conflict (user_id, job_id) do nothing
                    """,
                    user_id,
                    job_id,
                )
                row = await conn.fetchrow(
                    """
                    select id::text as id, user_id, job_id::text as job_id, saved_at
                    from saved_jobs
                    where user_id = $1 and job_id = $2::uuid
                    """,
                    user_id,
                    job_id,
                )
        return dict(row)

    async def unsave_job(self, *, user_id: str, job_id: str) -> bool:
        if not _is_uuid(job_id):
            return False
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            "delete from saved_jobs where user_id = $1 and job_id = $2::uuid returning id::text",
            user_id,
            job_id,
        )
        return deleted is not None

    async def list_saved_jobs(self, user_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select
              s.id::text as saved_id,
              s.saved_at,
              {_JOB_SELECT}
            from saved_jobs s
            join jobs j on j.id = s.job_id
            where s.user_id = $1
            order by s.saved_at desc, s.id desc
            """,
            user_id,
        )
        results = []
        for row in rows:
            job = self._job_row_to_dict(row)
            results.append(
                {
                    "id": row["saved_id"],
                    "user_id": user_id,
                    "job_id": job["id"],
                    "saved_at": row["saved_at"],
                    "job": job,
                }
            )
        return results

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise UnavailableError("HM_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout_seconds,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise UnavailableError("database unavailable") from exc

    @staticmethod
    def _user_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        item = dict(row)
        item["skills"] = list(item.get("skills") or [])
        return item

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "client_id": row["client_id"],
            "client_email": row["client_email"],
            "title": row["title"],
            "description": row["description"],
            "category": row["category"],
            "skills": list(row["skills"] or []),
            "budget": _as_float(row["budget"]),
            "location": row["location"],
            "lat": row["lat"],
            "lng": row["lng"],
            "status": row["status"],
            "expires_at": row["expires_at"],
            "auto_close_enabled": bool(row["auto_close_enabled"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    @staticmethod
    def _application_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "job_id": row["job_id"],
            "worker_id": row["worker_id"],
            "client_id": row["client_id"],
            "client_email": row["client_email"],
            "worker_email": row["worker_email"],
            "worker_name": row["worker_name"],
            "worker_phone": row["worker_phone"],
            "proposal_text": row["proposal_text"],
            "status": row["status"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return value


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
