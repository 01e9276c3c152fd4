#!/usr/bin/env python3
"""Emit deterministic SQL that creates (or promotes) a KaziConnect admin account."""

from __future__ import annotations

import argparse
import sys

from kaziconnect.core.security import hash_password


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, email: str, username: str, password_hash: str, actor: str) -> str:
    email_value = _quote_sql(email.strip().lower())
    username_value = _quote_sql(username)
    hash_value = _quote_sql(password_hash)
    actor_value = _quote_sql(f"admin bootstrap by {actor}")

    return f"""-- KaziConnect admin bootstrap SQL
-- Run against the application database after scripts/init_db.py.

insert into users (username, email, password_hash, role, email_verified)
values ({username_value}, {email_value}, {hash_value}, 'admin', true)
on conflict (email) do update
set
  role = 'admin',
  password_hash = excluded.password_hash,
  is_active = true;

insert into activity_logs (user_id, action, description)
select id, 'admin_bootstrap', {actor_value}
from users
where email = {email_value};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to bootstrap a KaziConnect admin user.")
    parser.add_argument("--email", required=True, help="Admin login email")
    parser.add_argument("--username", default="admin", help="Admin username")
    secret_group = parser.add_mutually_exclusive_group(required=True)
    secret_group.add_argument("--password", help="Plain password, hashed with bcrypt before emitting")
    secret_group.add_argument("--password-hash", help="Precomputed bcrypt hash to emit verbatim")
    parser.add_argument("--rounds", type=int, default=10, help="bcrypt cost factor for --password")
    parser.add_argument("--actor", default="system", help="Actor label recorded in activity_logs")
    args = parser.parse_args()

    if args.password_hash:
        if not args.password_hash.startswith("$2"):
            parser.error("--password-hash must be a bcrypt hash")
        password_hash = args.password_hash
    else:
        try:
            password_hash = hash_password(args.password, rounds=args.rounds)
        except ValueError as exc:
            parser.error(f"--password: {exc}")

    sys.stdout.write(
        render_sql(
            email=args.email,
            username=args.username,
            password_hash=password_hash,
            actor=args.actor,
        )
    )


if __name__ == "__main__":
    main()
