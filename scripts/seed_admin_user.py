#!/usr/bin/env python3
"""Emit deterministic SQL that seeds one row into admin_users."""

from __future__ import annotations

import argparse
import os


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, uid: str, email: str, permissions: list[str]) -> str:
    uid_value = _quote_sql(uid.strip())
    email_value = _quote_sql(email.strip().lower())
    permissions_value = "array[" + ", ".join(_quote_sql(item) for item in permissions) + "]::text[]"

    return f"""-- admin user seed SQL
-- Run this against the application database (psql or the Supabase SQL editor).

insert into admin_users (uid, email, permissions, created_at, updated_at)
values ({uid_value}, {email_value}, {permissions_value}, now(), now())
on conflict (uid) do update set
  email = excluded.email,
  permissions = excluded.permissions,
  updated_at = now();
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to seed an admin user.")
    parser.add_argument("--uid", default=os.getenv("ADMIN_SEED_UID"), help="Identity provider user id")
    parser.add_argument("--email", default=os.getenv("ADMIN_SEED_EMAIL"), help="Admin email address")
    parser.add_argument(
        "--permission",
        action="append",
        dest="permissions",
        help="Permission to grant; repeat for several (default: '*')",
    )
    args = parser.parse_args()

    uid = (args.uid or "").strip()
    email = (args.email or "").strip()
    if not uid or not email:
        parser.error("--uid and --email are required (or ADMIN_SEED_UID / ADMIN_SEED_EMAIL)")

    print(render_sql(uid=uid, email=email, permissions=args.permissions or ["*"]))


if __name__ == "__main__":
    main()
